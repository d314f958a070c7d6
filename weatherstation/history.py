"""Append-only history of current conditions.

The sampler runs on its own timer, independent of weather updates, and copies
temperature, air pressure and humidity of the current conditions accessory
into a :class:`HistoryLog` at least once every ten minutes.
"""
from __future__ import annotations

import logging
import sqlite3
import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Iterator, List, Optional, Protocol

from .characteristics import CURRENT_RELATIVE_HUMIDITY, CURRENT_TEMPERATURE, CharacteristicType, Service
from .entities import HistoryRecord
from .measurements import AIR_PRESSURE, CUSTOM_CHARACTERISTICS

if TYPE_CHECKING:  # pragma: no cover
    from .accessories import AccessoryRegistry


logger = logging.getLogger(__name__)

# Just under ten minutes, so no gap between two records exceeds ten minutes.
HISTORY_INTERVAL_SECONDS = 10 * 60 - 10
HISTORY_INITIAL_DELAY_SECONDS = 10


class HistoryLog(Protocol):
    def append(self, record: HistoryRecord) -> None:
        ...

    def entries(self, limit: Optional[int] = None) -> List[HistoryRecord]:
        ...

    def close(self) -> None:
        ...


class MemoryHistoryLog:
    def __init__(self) -> None:
        self._records: List[HistoryRecord] = []

    def append(self, record: HistoryRecord) -> None:
        self._records.append(record)

    def entries(self, limit: Optional[int] = None) -> List[HistoryRecord]:
        if limit is None:
            return list(self._records)
        return self._records[-limit:] if limit > 0 else []

    def close(self) -> None:
        pass

    def __len__(self) -> int:
        return len(self._records)


class SQLiteHistoryLog:
    """History log stored in a SQLite file, one row per record."""

    def __init__(self, path: str | Path, name: str = "weather") -> None:
        self.path = str(path)
        self.name = name
        self._lock = threading.Lock()
        self._connection = sqlite3.connect(self.path, check_same_thread=False)
        self._connection.row_factory = sqlite3.Row
        self._migrate()

    @contextmanager
    def _cursor(self) -> Iterator[sqlite3.Cursor]:
        with self._lock:
            cursor = self._connection.cursor()
            try:
                yield cursor
                self._connection.commit()
            except Exception:
                self._connection.rollback()
                raise
            finally:
                cursor.close()

    def _migrate(self) -> None:
        with self._cursor() as cursor:
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS history (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name VARCHAR(128) NOT NULL,
                    ts REAL NOT NULL,
                    temperature REAL,
                    pressure REAL,
                    humidity REAL
                )
                """
            )
            cursor.execute("CREATE INDEX IF NOT EXISTS idx_history_name_ts ON history (name, ts)")

    def append(self, record: HistoryRecord) -> None:
        with self._cursor() as cursor:
            cursor.execute(
                "INSERT INTO history (name, ts, temperature, pressure, humidity) VALUES (?, ?, ?, ?, ?)",
                (self.name, record.timestamp, record.temperature, record.pressure, record.humidity),
            )

    def entries(self, limit: Optional[int] = None) -> List[HistoryRecord]:
        with self._cursor() as cursor:
            if limit is None:
                cursor.execute("SELECT * FROM history WHERE name = ? ORDER BY id", (self.name,))
                rows = cursor.fetchall()
            else:
                cursor.execute(
                    "SELECT * FROM history WHERE name = ? ORDER BY id DESC LIMIT ?",
                    (self.name, max(limit, 0)),
                )
                rows = list(reversed(cursor.fetchall()))
        return [
            HistoryRecord(
                timestamp=row["ts"],
                temperature=row["temperature"],
                pressure=row["pressure"],
                humidity=row["humidity"],
            )
            for row in rows
        ]

    def close(self) -> None:
        self._connection.close()


def _read(service: Service, characteristic_type: CharacteristicType) -> Optional[float]:
    if not service.has_characteristic(characteristic_type):
        return None
    return service.get_characteristic(characteristic_type).value


class HistorySampler:
    def __init__(self, registry: "AccessoryRegistry", clock: Callable[[], float] = time.time) -> None:
        self.registry = registry
        self._clock = clock

    def sample(self) -> Optional[HistoryRecord]:
        """Append one record for the current conditions accessory, if any."""
        accessory = self.registry.current()
        if accessory is None or accessory.history is None:
            return None
        temperature = _read(accessory.sensor, CURRENT_TEMPERATURE)
        if temperature is None:
            logger.debug("No current temperature yet, skipping history entry")
            return None
        record = HistoryRecord(
            timestamp=self._clock(),
            temperature=temperature,
            pressure=_read(accessory.sensor, CUSTOM_CHARACTERISTICS[AIR_PRESSURE]),
            humidity=_read(accessory.sensor, CURRENT_RELATIVE_HUMIDITY),
        )
        logger.debug("Saving history entry %s", record)
        accessory.history.append(record)
        return record


__all__ = [
    "HISTORY_INITIAL_DELAY_SECONDS",
    "HISTORY_INTERVAL_SECONDS",
    "HistoryLog",
    "HistorySampler",
    "MemoryHistoryLog",
    "SQLiteHistoryLog",
]
