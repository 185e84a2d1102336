import json

import pytest

from rconcli.config import DEFAULT_LOG_NAME
from rconcli.logger import add_log


def test_appends_json_line(tmp_path):
    path = tmp_path / "logs" / "server.log"

    add_log(str(path), "127.0.0.1:16260", "status", "ok")
    add_log(str(path), "127.0.0.1:16260", "players", "none")

    lines = path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    record = json.loads(lines[0])
    assert record["address"] == "127.0.0.1:16260"
    assert record["command"] == "status"
    assert record["result"] == "ok"
    assert "ts" in record


def test_empty_target_uses_default_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    add_log("", "h:1", "save", "")

    assert (tmp_path / DEFAULT_LOG_NAME).exists()


def test_write_failure_propagates(tmp_path):
    with pytest.raises(OSError):
        add_log(str(tmp_path), "h:1", "save", "")
