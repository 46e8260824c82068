"""
FastAPI application for the CountScale counting scale simulator.

This module exposes the configuration persistence API used by the web
client and drives the simulation session: producing a batch of parts,
calibrating the scale against a reference count and weighing samples.
The application holds a single current session; each request replaces it
with the next session returned by the core.

Usage:
    uvicorn countscale.main:app --reload --host 0.0.0.0 --port 3001
"""

from __future__ import annotations

import asyncio
import csv
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, NoReturn, Optional

from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field

from .data.configurations import Configuration, ConfigurationStore, WeightGroup
from .logging_config import setup_logging
from .session import Session
from .sim.errors import CalibrationMissingError, CountingScaleError
from .sim.models import CalibrationResult, WeighingResult

logger = logging.getLogger("countscale.main")


# ---------------------------------------------------------------------------
# Application state

app = FastAPI(title="CountScale")

SESSION: Session = Session.empty()
SESSION_LOCK = asyncio.Lock()

STORE = ConfigurationStore()

# Seconds to wait before producing, calibrating or weighing, imitating the
# time a physical scale needs to settle.
WEIGH_DELAY = float(os.getenv("COUNTSCALE_WEIGH_DELAY", "0"))

# Every weighing is appended to this CSV so that the error history of a
# calibration can be inspected later.
LOG_FILE = Path(
    os.getenv(
        "COUNTSCALE_LOG_FILE",
        str(Path(__file__).resolve().parent.parent / "data" / "weighing_log.csv"),
    )
)
LOG_FIELDS = [
    "timestamp",
    "reference_count",
    "estimated_unit_weight",
    "sample_size",
    "sample_total_weight",
    "estimated_count",
    "rounded_count",
    "relative_error_percent",
]


def log_weighing(calibration: CalibrationResult, result: WeighingResult) -> None:
    """Append one weighing, together with the calibration it used, to the log file."""
    LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
    write_header = not LOG_FILE.exists()
    with LOG_FILE.open("a", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=LOG_FIELDS)
        if write_header:
            writer.writeheader()
        writer.writerow(
            {
                "timestamp": datetime.now().isoformat(),
                "reference_count": calibration.reference_count,
                "estimated_unit_weight": calibration.estimated_unit_weight,
                "sample_size": result.sample_size,
                "sample_total_weight": result.sample_total_weight,
                "estimated_count": result.estimated_count,
                "rounded_count": result.rounded_count,
                "relative_error_percent": result.relative_error_percent,
            }
        )


def _raise_http(exc: CountingScaleError) -> NoReturn:
    status_code = 409 if isinstance(exc, CalibrationMissingError) else 400
    raise HTTPException(status_code=status_code, detail=str(exc))


async def _simulate_delay() -> None:
    if WEIGH_DELAY > 0:
        await asyncio.sleep(WEIGH_DELAY)


@app.on_event("startup")
async def startup_event() -> None:
    """Configure logging and make sure the configuration file exists."""
    setup_logging()
    try:
        STORE.ensure()
    except OSError:
        logger.exception("Error initializing data directory")


# ---------------------------------------------------------------------------
# Request models

class ProduceRequest(WeightGroup):
    """A single weight group plus an optional random seed."""

    seed: Optional[int] = None


class CalibrateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    reference_count: int = Field(alias="referenceCount")
    sample_size: Optional[int] = Field(default=None, alias="sampleSize")
    seed: Optional[int] = None


class WeighRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    sample_size: int = Field(alias="sampleSize")
    seed: Optional[int] = None


# ---------------------------------------------------------------------------
# Configuration API

@app.get("/api/configurations")
async def list_configurations() -> List[Dict[str, Any]]:
    try:
        configurations = STORE.list()
    except (OSError, ValueError):
        logger.exception("Error reading configurations")
        raise HTTPException(status_code=500, detail="Failed to read configurations")
    return [config.model_dump(by_alias=True, exclude_none=True) for config in configurations]


@app.post("/api/configurations")
async def save_configuration(config: Configuration) -> Dict[str, Any]:
    """Insert a configuration or replace the one with the same name."""
    try:
        saved = STORE.upsert(config)
    except (OSError, ValueError):
        logger.exception("Error saving configuration")
        raise HTTPException(status_code=500, detail="Failed to save configuration")
    return saved.model_dump(by_alias=True, exclude_none=True)


@app.delete("/api/configurations/{name}")
async def delete_configuration(name: str) -> Dict[str, bool]:
    try:
        STORE.delete(name)
    except (OSError, ValueError):
        logger.exception("Error deleting configuration")
        raise HTTPException(status_code=500, detail="Failed to delete configuration")
    return {"success": True}


@app.post("/api/configurations/{name}/produce")
async def produce_from_configuration(name: str, seed: Optional[int] = Query(None)):
    """Run a production using every weight group of a stored configuration."""
    global SESSION
    try:
        config = STORE.get(name)
    except (OSError, ValueError):
        logger.exception("Error reading configurations")
        raise HTTPException(status_code=500, detail="Failed to read configurations")
    if config is None:
        raise HTTPException(status_code=404, detail="Configuration not found")
    await _simulate_delay()
    async with SESSION_LOCK:
        try:
            SESSION = SESSION.produce(config.production_configs(), random_state=seed)
        except CountingScaleError as exc:
            _raise_http(exc)
        return SESSION.to_dict()


# ---------------------------------------------------------------------------
# Session API

@app.get("/api/session")
async def get_session():
    async with SESSION_LOCK:
        return SESSION.to_dict()


@app.post("/api/session/produce")
async def produce(request: ProduceRequest):
    """Replace the population with a fresh production run."""
    global SESSION
    await _simulate_delay()
    async with SESSION_LOCK:
        try:
            SESSION = SESSION.produce(
                request.to_production_config(), random_state=request.seed
            )
        except CountingScaleError as exc:
            _raise_http(exc)
        return SESSION.to_dict()


@app.post("/api/session/calibrate")
async def calibrate(request: CalibrateRequest):
    global SESSION
    await _simulate_delay()
    async with SESSION_LOCK:
        try:
            SESSION = SESSION.calibrate(
                request.reference_count,
                sample_size=request.sample_size,
                random_state=request.seed,
            )
        except CountingScaleError as exc:
            _raise_http(exc)
        return SESSION.to_dict()


@app.post("/api/session/weigh")
async def weigh(request: WeighRequest):
    """Weigh a random sample against the current calibration."""
    global SESSION
    await _simulate_delay()
    async with SESSION_LOCK:
        try:
            SESSION = SESSION.weigh(request.sample_size, random_state=request.seed)
        except CountingScaleError as exc:
            _raise_http(exc)
        try:
            log_weighing(SESSION.calibration, SESSION.result)
        except OSError as exc:
            # The log is informational; the weighing itself succeeded.
            logger.warning("Could not write weighing log: %s", exc)
        return SESSION.to_dict()


@app.post("/api/session/reset")
async def reset():
    global SESSION
    async with SESSION_LOCK:
        SESSION = SESSION.reset()
        return SESSION.to_dict()


@app.get("/api/session/distribution")
async def distribution():
    """Weight histogram of the current population, one bar per 0.1 unit."""
    async with SESSION_LOCK:
        frame = SESSION.distribution()
    return [
        {"weight": float(weight), "count": int(count)}
        for weight, count in frame.itertuples(index=False)
    ]
