"""Persistent statistics storage.

Wraps a Home Assistant ``Store`` holding one flat dictionary with
hierarchical ``statistics.*`` keys. Reads never fail: missing or broken
data falls back to defaults. Write failures are logged and reported to the
caller, which keeps running on in-memory values.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers import storage

from ..const import STORAGE_KEY, STORAGE_VERSION
from ..core.events import PvEvent, PvEventBus
from ..core.state import StatsState
from ..exceptions import PersistenceWriteFailure
from ..pv_logging import get_logger

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant


class StatsStore:
    """Key/value persistence for statistics, one store per config entry."""

    def __init__(self, hass: HomeAssistant, entry_id: str, events: PvEventBus) -> None:
        self.hass = hass
        self.events = events
        self._logger = get_logger()
        self._store = storage.Store(hass, STORAGE_VERSION, f"{STORAGE_KEY}.{entry_id}")
        self._data: dict[str, Any] = {}

    def get(self, key: str, default: Any = None) -> Any:
        """Get a stored value by hierarchical key."""
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set a value in memory; written on the next save."""
        self._data[key] = value

    async def async_load(self) -> StatsState:
        """Load statistics; defaults when nothing usable is stored."""
        try:
            data = await self._store.async_load()
        except (HomeAssistantError, ValueError, OSError) as ex:
            self._logger.error("STATISTICS_LOAD_FAILED", error=str(ex))
            data = None

        if not isinstance(data, dict):
            self._logger.info("STATISTICS_DEFAULTS")
            self._data = {}
            return StatsState()

        self._data = dict(data)
        stats = StatsState.from_store(self._data)
        self._logger.info(
            "STATISTICS_LOADED",
            full_today=stats.full_cycles_today,
            empty_today=stats.empty_cycles_today,
            full_week=stats.full_cycles_week,
            empty_week=stats.empty_cycles_week,
            last_daily_reset=stats.last_daily_reset,
        )
        return stats

    async def _write(self) -> None:
        try:
            await self._store.async_save(self._data)
        except (HomeAssistantError, OSError, TypeError, ValueError) as ex:
            raise PersistenceWriteFailure(str(ex)) from ex

    async def async_save(self, stats: StatsState) -> bool:
        """Write statistics.

        Returns:
            False if the write failed
        """
        for key, value in stats.to_store().items():
            self.set(key, value)
        try:
            await self._write()
        except PersistenceWriteFailure as ex:
            self._logger.error("PERSISTENCE_WRITE_FAILED", error=str(ex))
            await self.events.emit(PvEvent.PERSISTENCE_FAILED, error=str(ex))
            return False

        self._logger.debug("STATISTICS_SAVED")
        await self.events.emit(PvEvent.STATISTICS_SAVED)
        return True
