from __future__ import annotations

import pytest

import project_config


def teardown_function():
    project_config.reload()


def test_default_config_lives_at_the_repo_root():
    path = project_config.config_path({})
    assert path.name == "config.toml"
    assert path.exists()
    assert project_config.get_section("negation.max_negators") == 4
    assert project_config.get_section("generation.seed_offsets.stars") == 5003


def test_env_var_points_at_another_file(tmp_path, monkeypatch):
    custom = tmp_path / "tuning.toml"
    custom.write_text("[negation]\nmax_negators = 2\n", encoding="utf-8")
    assert project_config.config_path({"PUZZLE_CONFIG": str(custom)}) == custom

    monkeypatch.setenv("PUZZLE_CONFIG", str(custom))
    project_config.reload()
    assert project_config.get_section("negation.max_negators") == 2
    assert project_config.get_section("hexagon", {"full_grid_chance": 0.0}) == {"full_grid_chance": 0.0}


def test_missing_sections_and_files_raise(tmp_path, monkeypatch):
    with pytest.raises(KeyError):
        project_config.get_section("no.such.section")
    monkeypatch.setenv("PUZZLE_CONFIG", str(tmp_path / "absent.toml"))
    project_config.reload()
    with pytest.raises(RuntimeError):
        project_config.get_config()
