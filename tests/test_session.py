"""Unit tests for the session state machine using unittest."""

import unittest

from countscale.session import Session, SessionState
from countscale.sim.errors import (
    CalibrationMissingError,
    EmptySampleError,
    InvalidConfigurationError,
    SampleSizeOutOfRangeError,
)
from countscale.sim.models import ProductionConfig


CONFIG = ProductionConfig(count=1000, nominal_weight=5.0, tolerance_percent=2.0)


class TestSessionTransitions(unittest.TestCase):
    """Tests for the produce / calibrate / weigh / reset workflow."""

    def test_happy_path(self) -> None:
        """Each operation moves the session one state forward."""
        session = Session.empty()
        self.assertEqual(session.state, SessionState.EMPTY)
        produced = session.produce(CONFIG, random_state=1)
        self.assertEqual(produced.state, SessionState.PRODUCED)
        calibrated = produced.calibrate(50, random_state=2)
        self.assertEqual(calibrated.state, SessionState.CALIBRATED)
        self.assertTrue(calibrated.is_calibrated)
        weighed = calibrated.weigh(200, random_state=3)
        self.assertEqual(weighed.state, SessionState.WEIGHED)
        again = weighed.weigh(100, random_state=4)
        self.assertEqual(again.state, SessionState.WEIGHED)
        self.assertIs(again.calibration, weighed.calibration)
        self.assertEqual(again.result.sample_size, 100)

    def test_transitions_do_not_mutate(self) -> None:
        """Earlier sessions keep their state after later operations."""
        produced = Session.empty().produce(CONFIG, random_state=1)
        produced.calibrate(50, random_state=2)
        self.assertEqual(produced.state, SessionState.PRODUCED)
        self.assertIsNone(produced.calibration)

    def test_weigh_requires_calibration(self) -> None:
        """Weighing while EMPTY or PRODUCED is rejected."""
        with self.assertRaises(CalibrationMissingError):
            Session.empty().weigh(10)
        with self.assertRaises(CalibrationMissingError):
            Session.empty().produce(CONFIG, random_state=1).weigh(10)

    def test_calibrate_requires_population(self) -> None:
        with self.assertRaises(EmptySampleError):
            Session.empty().calibrate(10)

    def test_reset_clears_everything(self) -> None:
        """After reset, any weigh attempt fails with CalibrationMissingError."""
        weighed = Session.empty().produce(CONFIG, random_state=1).calibrate(50).weigh(200)
        reset = weighed.reset()
        self.assertEqual(reset.state, SessionState.EMPTY)
        self.assertIsNone(reset.population)
        self.assertIsNone(reset.calibration)
        self.assertIsNone(reset.result)
        with self.assertRaises(CalibrationMissingError):
            reset.weigh(10)

    def test_new_production_invalidates_calibration(self) -> None:
        """A calibration from a previous run cannot be used after producing again."""
        calibrated = Session.empty().produce(CONFIG, random_state=1).calibrate(50)
        stale = calibrated.calibration
        reproduced = calibrated.produce(CONFIG, random_state=2)
        self.assertEqual(reproduced.state, SessionState.PRODUCED)
        self.assertIsNone(reproduced.calibration)
        self.assertIsNone(reproduced.result)
        with self.assertRaises(CalibrationMissingError):
            reproduced.weigh(10, calibration=stale)

    def test_recalibration_clears_result(self) -> None:
        weighed = Session.empty().produce(CONFIG, random_state=1).calibrate(50).weigh(200)
        recalibrated = weighed.calibrate(20)
        self.assertEqual(recalibrated.state, SessionState.CALIBRATED)
        self.assertIsNone(recalibrated.result)

    def test_sample_size_checks(self) -> None:
        produced = Session.empty().produce(ProductionConfig(10, 1.0), random_state=1)
        with self.assertRaises(SampleSizeOutOfRangeError):
            produced.calibrate(11)
        calibrated = produced.calibrate(10)
        with self.assertRaises(SampleSizeOutOfRangeError):
            calibrated.weigh(0)

    def test_miscounted_calibration(self) -> None:
        """Declaring more reference parts than were sampled under-estimates counts."""
        calibrated = Session.empty().produce(ProductionConfig(100, 2.0), random_state=1).calibrate(
            12, sample_size=10
        )
        self.assertAlmostEqual(calibrated.calibration.estimated_unit_weight, 20.0 / 12)
        result = calibrated.weigh(50).result
        self.assertEqual(result.rounded_count, 60)
        self.assertAlmostEqual(result.relative_error_percent, 20.0)

    def test_invalid_config(self) -> None:
        with self.assertRaises(InvalidConfigurationError):
            Session.empty().produce({"count": 0, "nominalWeight": 1.0})


class TestSessionData(unittest.TestCase):
    """Tests for the session's presentation data."""

    def test_weight_groups(self) -> None:
        session = Session.empty().produce(
            [ProductionConfig(10, 1.0), ProductionConfig(5, 2.0)], random_state=0
        )
        self.assertEqual(len(session.population), 15)
        df = session.distribution()
        self.assertEqual(df["weight"].tolist(), [1.0, 2.0])
        self.assertEqual(df["count"].tolist(), [10, 5])

    def test_to_dict(self) -> None:
        empty = Session.empty().to_dict()
        self.assertEqual(empty["state"], "empty")
        self.assertEqual(empty["totalParts"], 0)
        self.assertIsNone(empty["calibration"])
        weighed = Session.empty().produce(CONFIG, random_state=1).calibrate(50).weigh(200).to_dict()
        self.assertEqual(weighed["state"], "weighed")
        self.assertEqual(weighed["totalParts"], 1000)
        self.assertEqual(weighed["calibration"]["referenceCount"], 50)
        self.assertEqual(weighed["result"]["sampleSize"], 200)
        self.assertIn("relativeErrorPercent", weighed["result"])


if __name__ == "__main__":
    unittest.main()
