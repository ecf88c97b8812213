"""Time-boxed cache of tool results, persisted as a single JSON snapshot."""

from __future__ import annotations

import json
import os
import time
from enum import StrEnum
from pathlib import Path
from typing import Any, Callable, Optional

from celo_bot.log import get_logger

logger = get_logger(__name__)

DEFAULT_TTL_SECONDS = 5 * 60


class CachePartition(StrEnum):
    TRANSACTIONS = "transactions"
    ADDRESSES = "addresses"
    FRIENDS = "friends"


def _valid_entry(item: Any) -> Optional[tuple[str, dict[str, Any]]]:
    """Return ``(key, entry)`` for a well-formed ``[key, {"timestamp", "data"}]`` pair, else None."""
    if not isinstance(item, (list, tuple)) or len(item) != 2:
        return None
    key, entry = item
    if not isinstance(key, str) or not isinstance(entry, dict):
        return None
    timestamp = entry.get("timestamp")
    if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)) or "data" not in entry:
        return None
    return key, entry


class CacheStore:
    """Three independent key/value partitions with TTL expiry.

    Entries are ``{"timestamp": <epoch ms>, "data": <json value>}``. Every
    ``set`` rewrites the full snapshot file, and both ``save`` and ``load``
    drop entries older than the TTL, so the file never carries stale data.
    """

    def __init__(
        self,
        path: str | Path,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self._path = Path(path)
        self._ttl_ms = int(ttl_seconds * 1000)
        self._clock = clock
        self._bot_address: Optional[str] = None
        self._partitions: dict[CachePartition, dict[str, dict[str, Any]]] = {
            p: {} for p in CachePartition
        }

    @property
    def path(self) -> Path:
        return self._path

    @property
    def bot_address(self) -> Optional[str]:
        return self._bot_address

    @bot_address.setter
    def bot_address(self, value: Optional[str]) -> None:
        self._bot_address = value

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def _is_expired(self, entry: dict[str, Any], now_ms: int) -> bool:
        return now_ms - entry["timestamp"] > self._ttl_ms

    def get(self, partition: CachePartition, key: str) -> Any | None:
        """Return cached data, or None if missing or expired (expired entries are evicted)."""
        entries = self._partitions[partition]
        entry = entries.get(key)
        if entry is None:
            return None
        if self._is_expired(entry, self._now_ms()):
            del entries[key]
            logger.debug("cache_entry_expired", partition=str(partition), key=key)
            return None
        return entry["data"]

    def set(self, partition: CachePartition, key: str, data: Any) -> None:
        """Store *data* under *key* and write the snapshot before returning.

        A failed write is logged and swallowed; the in-memory entry stays.
        """
        self._partitions[partition][key] = {"timestamp": self._now_ms(), "data": data}
        try:
            self.save()
        except (OSError, TypeError, ValueError) as e:
            logger.error(
                "cache_save_failed",
                partition=str(partition),
                key=key,
                path=str(self._path),
                error=str(e),
            )

    def size(self, partition: CachePartition) -> int:
        return len(self._partitions[partition])

    def clear(self) -> None:
        for entries in self._partitions.values():
            entries.clear()

    def sweep(self) -> int:
        """Drop every expired entry. Returns how many were removed."""
        now_ms = self._now_ms()
        removed = 0
        for entries in self._partitions.values():
            for key in [k for k, e in entries.items() if self._is_expired(e, now_ms)]:
                del entries[key]
                removed += 1
        return removed

    def snapshot(self) -> dict[str, Any]:
        return {
            "botAddress": self._bot_address,
            "cache": {
                str(p): [[key, entry] for key, entry in entries.items()]
                for p, entries in self._partitions.items()
            },
        }

    def save(self) -> None:
        """Sweep expired entries, then atomically overwrite the snapshot file."""
        removed = self.sweep()
        payload = json.dumps(self.snapshot(), indent=2)

        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        tmp_path.write_text(payload, encoding="utf-8")
        os.replace(tmp_path, self._path)
        logger.debug("cache_saved", path=str(self._path), swept=removed)

    def load(self) -> None:
        """Replace in-memory state with the snapshot file, discarding expired entries.

        A missing file means empty state; an unreadable one is logged and ignored.
        Malformed entries are dropped one by one.
        """
        self._bot_address = None
        self.clear()

        if not self._path.exists():
            logger.info("cache_snapshot_missing", path=str(self._path))
            return

        try:
            saved = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.error("cache_load_failed", path=str(self._path), error=str(e))
            return

        cache = saved.get("cache", {}) if isinstance(saved, dict) else None
        if not isinstance(cache, dict):
            logger.error("cache_load_failed", path=str(self._path), error="snapshot is not an object")
            return

        bot_address = saved.get("botAddress")
        self._bot_address = bot_address if isinstance(bot_address, str) else None
        now_ms = self._now_ms()
        discarded = 0
        for partition in CachePartition:
            items = cache.get(str(partition)) or []
            if not isinstance(items, list):
                discarded += 1
                continue
            for item in items:
                entry = _valid_entry(item)
                if entry is None or self._is_expired(entry[1], now_ms):
                    discarded += 1
                    continue
                key, value = entry
                self._partitions[partition][key] = value

        logger.info(
            "cache_loaded",
            path=str(self._path),
            transactions=self.size(CachePartition.TRANSACTIONS),
            addresses=self.size(CachePartition.ADDRESSES),
            friends=self.size(CachePartition.FRIENDS),
            discarded=discarded,
        )
