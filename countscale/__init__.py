"""
CountScale application package.

This package simulates a counting scale: a device that infers how many
parts lie on it from their total weight and a per-part weight obtained by
calibrating against a known reference count.

* ``sim`` holds the statistical core: producing a synthetic population of
  parts, drawing random samples, calibrating the unit weight and estimating
  counts together with their error.
* ``session`` ties the core together as an immutable produce / calibrate /
  weigh / reset workflow.
* ``data`` persists named production configurations, either in a shared
  JSON file behind the HTTP API or in a per-machine local store.
* ``main`` exposes a FastAPI instance serving the configuration and session
  JSON APIs.
"""

from .main import app  # noqa: F401
