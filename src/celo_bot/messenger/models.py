"""Message models shared by the messenger front-ends."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from celo_bot.core.types import Platform


@dataclass(frozen=True, slots=True)
class BotCommand:
    """A parsed ``/command arg ...`` message."""

    name: str
    args: list[str]


@dataclass(frozen=True, slots=True)
class IncomingMessage:
    platform: Platform
    chat_id: str
    user_id: str
    user_display_name: str
    text: str
    timestamp: datetime
    message_id: Optional[str] = None

    def command(self) -> Optional[BotCommand]:
        """Parse the text as a bot command, or None for a plain query.

        ``/cmd@BotName`` is treated as ``/cmd``; names are lowercased.
        """
        text = self.text.strip()
        if not text.startswith("/"):
            return None
        head, *args = text.split()
        return BotCommand(name=head.split("@", 1)[0].lower(), args=args)


@dataclass(frozen=True, slots=True)
class OutgoingMessage:
    chat_id: str
    text: str
    parse_mode: Optional[str] = None  # "markdown", "html", None
    reply_to_message_id: Optional[str] = None
