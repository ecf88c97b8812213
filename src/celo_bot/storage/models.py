"""Data models for storage layer."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class FriendRecord:
    user_id: str
    name: str
    address: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
