"""Tests for application wiring."""
import json

import pytest

from celo_bot.app import CeloBotApp
from celo_bot.config import AppConfig
from tests.conftest import ScriptedCompletion

pytestmark = pytest.mark.asyncio


def _config(tmp_path, bot_address=None) -> AppConfig:
    return AppConfig(
        completion={"api_key": "sk-test"},
        chain={"bot_address": bot_address},
        cache={"path": str(tmp_path / "localData.json")},
        storage={"db_path": str(tmp_path / "celo_bot.db")},
    )


async def test_setup_wires_tools_and_coordinator(tmp_path):
    app = CeloBotApp(_config(tmp_path), completion=ScriptedCompletion())

    coordinator = await app.setup()
    try:
        assert coordinator is app.coordinator
        assert app.tool_registry.names() == [
            "getAccountInfo",
            "getTokenBalances",
            "getFriendInfo",
            "getTransactionDetails",
        ]
        assert app.completion.model_name == "fake-model"
    finally:
        await app.stop()


async def test_bot_address_restored_from_snapshot(tmp_path):
    (tmp_path / "localData.json").write_text(
        json.dumps({"botAddress": "0xsaved", "cache": {}}), encoding="utf-8"
    )
    app = CeloBotApp(_config(tmp_path), completion=ScriptedCompletion())

    await app.setup()
    try:
        assert app.cache.bot_address == "0xsaved"
    finally:
        await app.stop()


async def test_configured_bot_address_overrides_snapshot(tmp_path):
    (tmp_path / "localData.json").write_text(
        json.dumps({"botAddress": "0xsaved", "cache": {}}), encoding="utf-8"
    )
    app = CeloBotApp(_config(tmp_path, bot_address="0xconfigured"), completion=ScriptedCompletion())

    await app.setup()
    try:
        assert app.cache.bot_address == "0xconfigured"
    finally:
        await app.stop()


async def test_start_requires_telegram_section(tmp_path):
    app = CeloBotApp(_config(tmp_path), completion=ScriptedCompletion())

    with pytest.raises(ValueError, match="telegram"):
        await app.start()
    await app.stop()
