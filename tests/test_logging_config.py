"""Unit tests for logging setup using unittest."""

import logging
import unittest

from countscale.logging_config import LOG_APP_NAME, setup_logging


class TestSetupLogging(unittest.TestCase):
    """Tests for the setup_logging function."""

    def tearDown(self) -> None:
        logging.getLogger(LOG_APP_NAME).handlers.clear()

    def test_repeated_setup_does_not_stack_handlers(self) -> None:
        """Calling setup twice leaves a single handler at the requested level."""
        setup_logging("DEBUG")
        app_logger = setup_logging("WARNING")
        self.assertEqual(len(app_logger.handlers), 1)
        self.assertEqual(app_logger.level, logging.WARNING)

    def test_off_installs_null_handler(self) -> None:
        app_logger = setup_logging("off")
        self.assertEqual(len(app_logger.handlers), 1)
        self.assertIsInstance(app_logger.handlers[0], logging.NullHandler)

    def test_unknown_level_falls_back_to_info(self) -> None:
        app_logger = setup_logging("LOUD")
        self.assertEqual(app_logger.level, logging.INFO)


if __name__ == "__main__":
    unittest.main()
