"""Transaction details tool."""

from __future__ import annotations

from typing import Any

from celo_bot.ai.tools.base import Tool, require_str
from celo_bot.ai.tools.results import TransactionDetails, from_base_units, to_jsonable
from celo_bot.core.errors import RpcError
from celo_bot.core.types import ToolContext
from celo_bot.log import get_logger
from celo_bot.services.chain import ChainClient
from celo_bot.storage.cache import CachePartition, CacheStore

logger = get_logger(__name__)


def _hex_int(value: Any) -> int | None:
    if value is None:
        return None
    return int(value, 16) if isinstance(value, str) else int(value)


def summarize(tx: dict[str, Any], receipt: dict[str, Any] | None) -> dict[str, Any]:
    value_wei = _hex_int(tx.get("value")) or 0
    summary: dict[str, Any] = {
        "from": tx.get("from"),
        "to": tx.get("to") or "Contract Creation",
        "value_celo": str(from_base_units(value_wei)),
        "block_number": _hex_int(tx.get("blockNumber")),
        "nonce": _hex_int(tx.get("nonce")),
    }
    if receipt is None:
        summary["status"] = "Pending"
    else:
        summary["status"] = "Success" if _hex_int(receipt.get("status")) == 1 else "Failed"
        summary["gas_used"] = _hex_int(receipt.get("gasUsed"))
        price = _hex_int(receipt.get("effectiveGasPrice") or tx.get("gasPrice"))
        if price is not None and summary["gas_used"] is not None:
            summary["fee_celo"] = str(from_base_units(summary["gas_used"] * price))
    return summary


class TransactionDetailsTool(Tool):
    """Fetches a transaction and its receipt and records it under the sender."""

    def __init__(self, chain: ChainClient, cache: CacheStore):
        self._chain = chain
        self._cache = cache

    @property
    def name(self) -> str:
        return "getTransactionDetails"

    @property
    def description(self) -> str:
        return (
            "Get the details of a Celo transaction by hash: sender, recipient, value, "
            "status, gas used and fee, plus the raw transaction and receipt."
        )

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "hash": {
                    "type": "string",
                    "description": "The 0x-prefixed transaction hash",
                },
            },
            "required": ["hash"],
        }

    def call_args(self, arguments: dict[str, Any], context: ToolContext) -> tuple[Any, ...]:
        return (require_str(arguments, "hash"),)

    async def run(self, tx_hash: str) -> TransactionDetails:
        tx = await self._chain.get_transaction(tx_hash)
        if tx is None:
            raise RpcError(f"Transaction not found: {tx_hash}")
        receipt = await self._chain.get_transaction_receipt(tx_hash)

        details = TransactionDetails(
            hash=tx_hash,
            summary=summarize(tx, receipt),
            transaction=tx,
            receipt=receipt,
        )

        sender = tx.get("from")
        if sender:
            history = list(self._cache.get(CachePartition.TRANSACTIONS, sender) or [])
            history.append(to_jsonable(details))
            self._cache.set(CachePartition.TRANSACTIONS, sender, history)
            logger.info("transaction_recorded", sender=sender, hash=tx_hash, count=len(history))
        return details
