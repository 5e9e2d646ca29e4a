from __future__ import annotations

import json

from orchestrator import log


def test_append_event_writes_json_lines(tmp_path):
    log.configure(tmp_path)
    path = log.append_event({"event": "generation.success", "seed": 1})
    record = json.loads(path.read_text(encoding="utf-8").strip())
    assert record["event"] == "generation.success"
    assert "ts" in record
    assert path.parent.parent == tmp_path
    assert log.current_log_path() == path


def test_rotation_starts_a_new_file(tmp_path):
    log.configure(tmp_path, max_bytes=10)
    first = log.append_event({"event": "a"})
    second = log.append_event({"event": "b"})
    assert first != second
    assert first.name == "events_00.jsonl"
    assert second.name == "events_01.jsonl"
