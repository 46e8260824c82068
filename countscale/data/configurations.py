"""
Persistence of named production configurations.

Two stores are provided:

* :class:`ConfigurationStore` backs the HTTP API.  It keeps a JSON array on
  disk and upserts records by exact (case-sensitive) name.
* :class:`LocalConfigurationStore` is the per-machine store used by a single
  client.  It lives under a fixed key of a :class:`LocalStorage` file and
  appends a timestamped revision on every save, so the same name may appear
  several times; :meth:`LocalConfigurationStore.latest` picks the newest.

Records are deliberately loose: apart from ``name`` and ``groups`` any extra
keys a client sends are kept as they are.
"""

from __future__ import annotations

import json
import logging
import os
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..sim.models import ProductionConfig

logger = logging.getLogger("countscale.data.configurations")

DATA_FILE = Path(
    os.getenv(
        "COUNTSCALE_DATA_FILE",
        str(Path(__file__).resolve().parent.parent.parent / "data" / "configurations.json"),
    )
)
LOCAL_STORAGE_FILE = Path(
    os.getenv(
        "COUNTSCALE_LOCAL_STORAGE",
        str(Path.home() / ".countscale" / "local_storage.json"),
    )
)
STORAGE_KEY = "weight-configurations"


class WeightGroup(BaseModel):
    """One group of identical parts inside a configuration."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    count: int = Field(gt=0)
    nominal_weight: float = Field(gt=0, alias="nominalWeight")
    tolerance_percent: float = Field(default=0.0, ge=0, alias="tolerancePercent")
    variance: Optional[float] = Field(default=None, ge=0)

    def to_production_config(self) -> ProductionConfig:
        return ProductionConfig(
            count=self.count,
            nominal_weight=self.nominal_weight,
            tolerance_percent=self.tolerance_percent,
            variance=self.variance,
        )


class Configuration(BaseModel):
    """A named list of weight groups as stored by the server."""

    model_config = ConfigDict(extra="allow")

    name: str
    groups: List[WeightGroup] = Field(default_factory=list)

    def production_configs(self) -> List[ProductionConfig]:
        return [group.to_production_config() for group in self.groups]


class StoredConfig(BaseModel):
    """A locally saved configuration revision."""

    name: str
    groups: List[WeightGroup] = Field(default_factory=list)
    timestamp: int


def _dump(records: Sequence[BaseModel]) -> List[Dict[str, Any]]:
    return [record.model_dump(by_alias=True, exclude_none=True) for record in records]


class ConfigurationStore:
    """JSON-array file of configurations, upserted by name."""

    def __init__(self, path: Path = DATA_FILE) -> None:
        self.path = Path(path)

    def ensure(self) -> None:
        """Create the data directory and an empty array file if missing."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if not self.path.exists():
            self.path.write_text("[]", encoding="utf-8")

    def list(self) -> List[Configuration]:
        self.ensure()
        raw = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(raw, list):
            raise ValueError(f"{self.path} does not contain a JSON array")
        return [Configuration.model_validate(item) for item in raw]

    def get(self, name: str) -> Optional[Configuration]:
        for config in self.list():
            if config.name == name:
                return config
        return None

    def upsert(self, config: Configuration) -> Configuration:
        configurations = self.list()
        for index, existing in enumerate(configurations):
            if existing.name == config.name:
                configurations[index] = config
                break
        else:
            configurations.append(config)
        self._write(configurations)
        logger.info("Saved configuration %r", config.name)
        return config

    def delete(self, name: str) -> None:
        remaining = [config for config in self.list() if config.name != name]
        self._write(remaining)
        logger.info("Deleted configuration %r", name)

    def _write(self, configurations: Sequence[Configuration]) -> None:
        self.path.write_text(json.dumps(_dump(configurations), indent=2), encoding="utf-8")


class LocalStorage:
    """String key/value pairs persisted in a single JSON object file."""

    def __init__(self, path: Path = LOCAL_STORAGE_FILE) -> None:
        self.path = Path(path)

    def _read(self) -> Dict[str, str]:
        """Return the stored pairs; a missing or unparseable file reads as empty."""
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except ValueError as exc:
            logger.warning("Ignoring unreadable local storage %s: %s", self.path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def get_item(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data), encoding="utf-8")

    def remove_item(self, key: str) -> None:
        data = self._read()
        if data.pop(key, None) is not None:
            self.path.write_text(json.dumps(data), encoding="utf-8")


class LocalConfigurationStore:
    """Client-side configuration history kept under :data:`STORAGE_KEY`."""

    def __init__(self, storage: Optional[LocalStorage] = None, key: str = STORAGE_KEY) -> None:
        self.storage = storage if storage is not None else LocalStorage()
        self.key = key

    def load(self) -> List[StoredConfig]:
        """Return every saved revision; unreadable data yields an empty list."""
        try:
            stored = self.storage.get_item(self.key)
            if not stored:
                return []
            return [StoredConfig.model_validate(item) for item in json.loads(stored)]
        except (OSError, TypeError, ValueError, ValidationError) as exc:
            logger.warning("Error loading configurations: %s", exc)
            return []

    def save(self, name: str, groups: Sequence[Any]) -> StoredConfig:
        if not name.strip():
            raise ValueError("Configuration name is required")
        record = StoredConfig(
            name=name,
            groups=[WeightGroup.model_validate(group) for group in groups],
            timestamp=int(time.time() * 1000),
        )
        self._write(self.load() + [record])
        return record

    def delete(self, name: str) -> None:
        self._write([config for config in self.load() if config.name != name])

    def latest(self, name: str) -> Optional[StoredConfig]:
        matches = [config for config in self.load() if config.name == name]
        return matches[-1] if matches else None

    def _write(self, configs: Sequence[StoredConfig]) -> None:
        if not configs:
            self.storage.remove_item(self.key)
            return
        self.storage.set_item(self.key, json.dumps(_dump(configs)))
