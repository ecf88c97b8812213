"""Result value objects returned by the Celo tools."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional

CELO_DECIMALS = 18
GWEI_DECIMALS = 9


def from_base_units(value: int, decimals: int = CELO_DECIMALS) -> Decimal:
    """Convert an integer amount in the smallest unit to whole tokens."""
    return Decimal(value) / (Decimal(10) ** decimals)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def to_jsonable(value: Any) -> Any:
    """Convert dataclasses (recursively) into JSON-safe values; Decimals become strings."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        value = dataclasses.asdict(value)
    if isinstance(value, dict):
        return {k: to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    if isinstance(value, Decimal):
        return str(value)
    return value


@dataclass
class NativeBalance:
    wei: int
    celo: Decimal


@dataclass
class TransactionStats:
    total: int
    incoming: int
    outgoing: int
    nonce: int


@dataclass
class TokenHolding:
    contract: str
    symbol: str
    name: str
    balance: Decimal
    token_type: str


@dataclass
class AccountStatus:
    is_active: bool
    has_balance: bool
    can_send_transactions: bool


@dataclass
class AccountSnapshot:
    address: str
    account_type: str  # "Contract" | "Wallet"
    balance: NativeBalance
    transactions: TransactionStats
    gas_spent_celo: Decimal
    gas_price_gwei: Decimal
    estimated_transfer_cost_celo: Decimal
    status: AccountStatus
    first_activity: Optional[str]
    last_activity: Optional[str]
    tokens: list[TokenHolding] = field(default_factory=list)
    internal_transactions: int = 0
    nft_transfers: int = 0


@dataclass
class TokenBalances:
    address: str
    celo: Decimal
    cusd: Decimal
    raw: dict[str, str]
    last_checked: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TokenBalances:
        return cls(
            address=data["address"],
            celo=Decimal(data["celo"]),
            cusd=Decimal(data["cusd"]),
            raw=dict(data["raw"]),
            last_checked=data["last_checked"],
        )


@dataclass
class FriendInfo:
    name: str
    user_id: str
    found: bool
    address: Optional[str] = None
    balances: Optional[TokenBalances] = None
    last_checked: Optional[str] = None
    message: Optional[str] = None


@dataclass
class TransactionDetails:
    hash: str
    summary: dict[str, Any]
    transaction: dict[str, Any]
    receipt: Optional[dict[str, Any]]
