"""
SLA External Service Integrations
==================================

External concerns for SLA tracking:
- YAML policy file with watchdog hot-reload
- Wall clock and fixed clock
- Hour-of-day demand source
"""

import threading
import time
from datetime import datetime, timezone, tzinfo
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo

import yaml
from pydantic import ValidationError
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from servicedesk.core import ConfigurationException
from servicedesk.shared.infrastructure.logging import get_logger
from servicedesk.sla.application import IClock, IDemandSource, ISLAConfigProvider
from servicedesk.sla.domain import SLAPolicyConfig

logger = get_logger(__name__)


class ConfigFileHandler(FileSystemEventHandler):
    """Watchdog event handler for SLA policy file changes."""

    def __init__(self, config_manager: "SLAConfigManager", config_path: Path):
        self.config_manager = config_manager
        self.config_path = config_path
        super().__init__()

    def on_modified(self, event):
        if event.is_directory:
            return
        if Path(event.src_path).resolve() == self.config_path.resolve():
            logger.info(f"SLA policy file changed: {event.src_path}")
            self.config_manager.reload()


class SLAConfigManager(ISLAConfigProvider):
    """
    Thread-safe SLA policy manager with hot-reload support.

    Uses watchdog to monitor file changes and reload the policy
    without restarting the service. New policy values only affect
    tickets created after the reload; existing stamps are frozen.
    """

    def __init__(self, config: Optional[SLAPolicyConfig] = None):
        self._config: Optional[SLAPolicyConfig] = config
        self._lock = threading.Lock()
        self._path: Optional[Path] = None
        self._observer = None

    def load(self, path: Path) -> SLAPolicyConfig:
        """Initial policy load. Invalid files fail startup."""
        self._path = Path(path)
        config = self._load_from_file(self._path)
        with self._lock:
            self._config = config
        return config

    def _load_from_file(self, path: Path) -> SLAPolicyConfig:
        if not path.exists():
            logger.warning(f"SLA policy file not found: {path}, using defaults")
            return SLAPolicyConfig()

        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        try:
            return SLAPolicyConfig(**data)
        except ValidationError as e:
            raise ConfigurationException(f"Invalid SLA policy in {path}", {"errors": e.errors()})

    def reload(self) -> bool:
        """Reload policy from file, keeping the old one if the new file is invalid."""
        if self._path is None:
            return False

        try:
            new_config = self._load_from_file(self._path)
        except (ConfigurationException, yaml.YAMLError, OSError) as e:
            logger.error(f"Failed to reload SLA policy: {e}")
            return False

        with self._lock:
            self._config = new_config
        logger.info("SLA policy reloaded successfully")
        return True

    def start_watching(self) -> None:
        """
        Start watching the policy file for changes.

        Skipped when the file does not exist or the platform cannot watch it.
        """
        if self._path is None:
            raise RuntimeError("Config not loaded. Call load() first.")

        if not self._path.exists():
            logger.info(f"SLA policy file doesn't exist, skipping file watch: {self._path}")
            return

        try:
            self._observer = Observer()
            handler = ConfigFileHandler(self, self._path)
            self._observer.schedule(handler, str(self._path.parent), recursive=False)
            self._observer.start()
            logger.info(f"Started watching SLA policy file: {self._path}")
        except OSError as e:
            logger.warning(f"File watching not available, using static policy: {e}")
            self._observer = None

    def stop_watching(self) -> None:
        """Stop watching (safe to call even if not watching)."""
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=5)
            self._observer = None

    @property
    def is_watching(self) -> bool:
        return self._observer is not None

    def get_config(self) -> SLAPolicyConfig:
        with self._lock:
            if self._config is None:
                raise RuntimeError("SLA policy not loaded")
            return self._config


class SystemClock(IClock):
    """Wall clock in epoch milliseconds."""

    def now(self) -> int:
        return int(time.time() * 1000)


class FixedClock(IClock):
    """Clock that only moves when told to. Used for replays and tests."""

    def __init__(self, now: int):
        self._now = now

    def now(self) -> int:
        return self._now

    def set(self, now: int) -> None:
        self._now = now

    def advance(self, milliseconds: int) -> None:
        self._now += milliseconds


class FixedDemandSource(IDemandSource):
    def __init__(self, factor: float = 1.0):
        if factor <= 0:
            raise ValueError("demand factor must be positive")
        self._factor = factor

    def demand_factor(self, at: int) -> float:
        return self._factor


class HourOfDayDemandSource(IDemandSource):
    """
    Demand factor bucketed by the local hour of the creation time.

    Peak, off-hours and default factors come from the live SLA policy.
    """

    def __init__(self, config_provider: ISLAConfigProvider, tz: str = "UTC"):
        self._config_provider = config_provider
        self._tz = _resolve_timezone(tz)

    def hour_of(self, at: int) -> int:
        return datetime.fromtimestamp(at / 1000, tz=self._tz).hour

    def demand_factor(self, at: int) -> float:
        policy = self._config_provider.get_config().demand
        return policy.factor_for_hour(self.hour_of(at))


def _resolve_timezone(name: str) -> tzinfo:
    if name.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (KeyError, ValueError) as e:
        raise ConfigurationException(f"Unknown timezone: {name}", {"error": str(e)})
