"""Tests for the CLI setup and service check commands."""
import json
from unittest.mock import AsyncMock

import aiosqlite
import pytest

from celo_bot.__main__ import _check_services, _init
from celo_bot.config import AppConfig, ChainConfig
from celo_bot.services.service_manager import ServiceManager

pytestmark = pytest.mark.asyncio


def _config(tmp_path, bot_address=None) -> AppConfig:
    data_dir = tmp_path / "data"
    return AppConfig(
        data_dir=str(data_dir),
        log_file=str(data_dir / "logs" / "combined.log"),
        completion={"api_key": "sk-test"},
        chain={"bot_address": bot_address},
        cache={"path": str(data_dir / "cache" / "localData.json")},
        storage={"db_path": str(data_dir / "celo_bot.db")},
    )


async def test_init_creates_data_dir_schema_and_empty_snapshot(tmp_path, capsys):
    config = _config(tmp_path, bot_address="0xbot")

    assert await _init(config) == 0

    assert (tmp_path / "data" / "logs").is_dir()
    async with aiosqlite.connect(config.storage.db_path) as conn:
        cursor = await conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
        tables = [row[0] for row in await cursor.fetchall()]
    assert "friends" in tables

    snapshot = json.loads((tmp_path / "data" / "cache" / "localData.json").read_text())
    assert snapshot["botAddress"] == "0xbot"
    assert snapshot["cache"] == {"transactions": [], "addresses": [], "friends": []}
    assert "Created cache snapshot" in capsys.readouterr().out


async def test_init_keeps_existing_snapshot(tmp_path, capsys):
    config = _config(tmp_path)
    snapshot = tmp_path / "data" / "cache" / "localData.json"
    snapshot.parent.mkdir(parents=True)
    snapshot.write_text('{"botAddress": "0xsaved", "cache": {}}')

    assert await _init(config) == 0

    assert json.loads(snapshot.read_text())["botAddress"] == "0xsaved"
    assert "already exists" in capsys.readouterr().out


async def test_health_check_all_reports_each_service():
    manager = ServiceManager(ChainConfig())
    manager.get_chain().health_check = AsyncMock(return_value=True)
    manager.get_indexer().health_check = AsyncMock(return_value=False)

    assert await manager.health_check_all() == {"chain": True, "indexer": False}


@pytest.mark.parametrize("results, code", [({"chain": True, "indexer": True}, 0), ({"chain": True, "indexer": False}, 1)])
async def test_check_services_exit_code_follows_health(tmp_path, monkeypatch, capsys, results, code):
    monkeypatch.setattr(ServiceManager, "health_check_all", AsyncMock(return_value=results))

    assert await _check_services(_config(tmp_path)) == code

    out = capsys.readouterr().out
    assert "chain: ok" in out
    assert ("indexer: unreachable" in out) is (code == 1)
