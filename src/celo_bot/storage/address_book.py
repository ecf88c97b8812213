"""Per-user address book mapping friend names to Celo addresses."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from celo_bot.log import get_logger
from celo_bot.storage.database import Database
from celo_bot.storage.models import FriendRecord

logger = get_logger(__name__)


def _normalize_name(name: str) -> str:
    return name.strip().lower()


class AddressBook:
    """CRUD over the ``friends`` table. Names are matched case-insensitively."""

    def __init__(self, db: Database):
        self._db = db

    async def resolve(self, user_id: str, name: str) -> Optional[str]:
        """Return the address saved under *name* for *user_id*, or None."""
        cursor = await self._db.conn.execute(
            "SELECT address FROM friends WHERE user_id = ? AND name = ?",
            (user_id, _normalize_name(name)),
        )
        row = await cursor.fetchone()
        return row["address"] if row else None

    async def add(self, user_id: str, name: str, address: str) -> None:
        """Create or overwrite a friend entry."""
        await self._db.conn.execute(
            """INSERT INTO friends (user_id, name, address)
               VALUES (?, ?, ?)
               ON CONFLICT(user_id, name)
               DO UPDATE SET address = excluded.address,
                             updated_at = strftime('%Y-%m-%dT%H:%M:%f','now')""",
            (user_id, _normalize_name(name), address),
        )
        await self._db.conn.commit()
        logger.info("friend_saved", user_id=user_id, name=_normalize_name(name))

    async def remove(self, user_id: str, name: str) -> bool:
        """Delete a friend entry. Returns False if it did not exist."""
        cursor = await self._db.conn.execute(
            "DELETE FROM friends WHERE user_id = ? AND name = ?",
            (user_id, _normalize_name(name)),
        )
        await self._db.conn.commit()
        removed = cursor.rowcount > 0
        if removed:
            logger.info("friend_removed", user_id=user_id, name=_normalize_name(name))
        return removed

    async def list(self, user_id: str) -> list[FriendRecord]:
        cursor = await self._db.conn.execute(
            "SELECT * FROM friends WHERE user_id = ? ORDER BY name ASC",
            (user_id,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_record(row) for row in rows]

    @staticmethod
    def _row_to_record(row) -> FriendRecord:
        return FriendRecord(
            user_id=row["user_id"],
            name=row["name"],
            address=row["address"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
