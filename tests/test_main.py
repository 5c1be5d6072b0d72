import sys

import pytest

import main


@pytest.mark.asyncio
async def test_malformed_database_url_exits_with_status_one(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(sys, "argv", ["main.py", "test"])
    monkeypatch.setenv("DATABASE_URL", "not a database url")

    with pytest.raises(SystemExit) as exc_info:
        await main.main()

    assert exc_info.value.code == 1
