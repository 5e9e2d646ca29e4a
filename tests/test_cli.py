from __future__ import annotations

import json

import pytest

from contracts import validate
from orchestrator import orchestrator
from orchestrator.orchestrator import derive_seed, main, run_generation


def _env():
    return {"PUZZLE_PROFILE": "test", "CLI_EVENTS_ENABLED": "0"}


def test_derive_seed_is_stable():
    assert derive_seed("root") == derive_seed("root")
    assert derive_seed("root") != derive_seed("root", stage="other")
    assert 0 <= derive_seed("root") < 2**31


def test_run_generation_writes_a_valid_payload(tmp_path):
    result = run_generation(kinds=["triangles"], seed=31, output_dir=tmp_path, env_overrides=_env())
    payload = json.loads((tmp_path / f"{result['puzzle_id']}.json").read_text(encoding="utf-8"))
    assert payload["puzzle_id"] == result["puzzle_id"]
    assert payload["kinds"] == ["gap-line", "triangles"]
    assert validate(payload, "Puzzle").ok
    assert result["preview_path"] is None


def test_run_generation_is_reproducible(tmp_path):
    first = run_generation(kinds=["dots"], seed=12, output_dir=tmp_path / "a", env_overrides=_env())
    second = run_generation(kinds=["dots"], seed=12, output_dir=tmp_path / "b", env_overrides=_env())
    assert first["puzzle_id"] == second["puzzle_id"]


def test_main_prints_summary(tmp_path, monkeypatch, capsys):
    monkeypatch.setenv("PUZZLE_PROFILE", "test")
    exit_code = main(["--seed", "3", "--kinds", "triangles", "--output-dir", str(tmp_path)])
    assert exit_code == 0
    captured = capsys.readouterr()
    assert "seed 3" in captured.out
    assert len(list(tmp_path.glob("sha256-*.json"))) == 1


def test_main_reads_kinds_from_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("PUZZLE_PROFILE", "test")
    monkeypatch.setenv("PUZZLE_KINDS", "dots")
    assert main(["--seed", "4", "--output-dir", str(tmp_path)]) == 0


def test_main_rejects_bad_kinds(tmp_path, monkeypatch):
    monkeypatch.delenv("PUZZLE_KINDS", raising=False)
    with pytest.raises(SystemExit):
        main(["--kinds", "black-holes", "--output-dir", str(tmp_path)])
    with pytest.raises(SystemExit):
        main(["--output-dir", str(tmp_path)])


def test_events_dir_flag_writes_events(tmp_path, monkeypatch):
    monkeypatch.setenv("PUZZLE_PROFILE", "test")
    events = tmp_path / "events"
    assert main(["--seed", "6", "--kinds", "triangles", "--output-dir", str(tmp_path), "--events-dir", str(events)]) == 0
    assert list(events.rglob("events_*.jsonl"))
    assert orchestrator.log.current_log_path().is_relative_to(events)
