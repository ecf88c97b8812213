"""Account overview tool: balance, activity, token holdings and account type."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from celo_bot.ai.tools.base import Tool, require_str
from celo_bot.ai.tools.results import (
    GWEI_DECIMALS,
    AccountSnapshot,
    AccountStatus,
    NativeBalance,
    TokenHolding,
    TransactionStats,
    from_base_units,
)
from celo_bot.core.types import ToolContext
from celo_bot.log import get_logger
from celo_bot.services.chain import ChainClient
from celo_bot.services.indexer import IndexerClient

logger = get_logger(__name__)

TRANSFER_GAS = 21_000


def _to_int(value: Any) -> int:
    if value in (None, ""):
        return 0
    if isinstance(value, str) and value.startswith("0x"):
        return int(value, 16)
    return int(value)


def _iso_date(timestamp: Any) -> str:
    return datetime.fromtimestamp(_to_int(timestamp), tz=timezone.utc).isoformat()


def _token_holding(item: dict[str, Any]) -> TokenHolding:
    decimals = _to_int(item.get("decimals") or 0)
    return TokenHolding(
        contract=item.get("contractAddress", ""),
        symbol=item.get("symbol") or "UNKNOWN",
        name=item.get("name") or "Unknown Token",
        balance=from_base_units(_to_int(item.get("balance")), decimals),
        token_type=item.get("type") or "ERC-20",
    )


class AccountInfoTool(Tool):
    """Aggregates everything known about an address in one concurrent batch.

    ``status.can_send_transactions`` means the balance covers one plain
    transfer (21000 gas) at the current gas price.
    """

    def __init__(self, chain: ChainClient, indexer: IndexerClient):
        self._chain = chain
        self._indexer = indexer

    @property
    def name(self) -> str:
        return "getAccountInfo"

    @property
    def description(self) -> str:
        return (
            "Get an overview of a Celo account: CELO balance, transaction counts "
            "(incoming/outgoing), gas spent, first and last activity dates, token "
            "holdings, internal transactions, NFT transfers, whether it is a contract, "
            "the current gas price and the cost of a plain CELO transfer."
        )

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "address": {
                    "type": "string",
                    "description": "The 0x-prefixed Celo account address",
                },
            },
            "required": ["address"],
        }

    def call_args(self, arguments: dict[str, Any], context: ToolContext) -> tuple[Any, ...]:
        return (require_str(arguments, "address"),)

    async def run(self, address: str) -> AccountSnapshot:
        logger.info("account_info_start", address=address)
        balance, nonce, code, gas_price, txs, tokens, internal, nfts = await asyncio.gather(
            self._chain.get_balance(address),
            self._chain.get_transaction_count(address),
            self._chain.get_code(address),
            self._chain.get_gas_price(),
            self._indexer.get_transactions(address),
            self._indexer.get_token_list(address),
            self._indexer.get_internal_transactions(address),
            self._indexer.get_nft_transfers(address),
        )

        me = address.lower()
        outgoing = [tx for tx in txs if (tx.get("from") or "").lower() == me]
        incoming = [tx for tx in txs if (tx.get("to") or "").lower() == me]

        gas_wei = sum(_to_int(tx.get("gasUsed")) * _to_int(tx.get("gasPrice")) for tx in outgoing)
        timestamps = sorted(_to_int(tx["timeStamp"]) for tx in txs if tx.get("timeStamp"))
        transfer_cost_wei = gas_price * TRANSFER_GAS

        snapshot = AccountSnapshot(
            address=address,
            account_type="Contract" if code and code != "0x" else "Wallet",
            balance=NativeBalance(wei=balance, celo=from_base_units(balance)),
            transactions=TransactionStats(
                total=len(txs),
                incoming=len(incoming),
                outgoing=len(outgoing),
                nonce=nonce,
            ),
            gas_spent_celo=from_base_units(gas_wei) if gas_wei else Decimal(0),
            gas_price_gwei=from_base_units(gas_price, GWEI_DECIMALS),
            estimated_transfer_cost_celo=from_base_units(transfer_cost_wei),
            status=AccountStatus(
                is_active=nonce > 0,
                has_balance=balance > 0,
                can_send_transactions=balance > transfer_cost_wei,
            ),
            first_activity=_iso_date(timestamps[0]) if timestamps else None,
            last_activity=_iso_date(timestamps[-1]) if timestamps else None,
            tokens=[_token_holding(t) for t in tokens],
            internal_transactions=len(internal),
            nft_transfers=len(nfts),
        )
        logger.info(
            "account_info_done",
            address=address,
            account_type=snapshot.account_type,
            transactions=snapshot.transactions.total,
        )
        return snapshot
