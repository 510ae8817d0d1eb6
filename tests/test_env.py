"""
Tests for env.py.

Tests cover:
- parse_env_text() line handling
- load_env_if_present() precedence and first-file-wins
- load_default_env() candidate resolution
- find_api_key() ordering across environment variables
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Generator

import pytest

from chatturn import env
from chatturn.env import find_api_key, load_default_env, load_env_if_present, parse_env_text

TEST_VARS = ("CT_TEST_A", "CT_TEST_B", "CT_TEST_C", "CT_PRIMARY", "CT_SECONDARY")


@pytest.fixture(autouse=True)
def clean_env() -> Generator[None, None, None]:
    yield
    for key in TEST_VARS:
        os.environ.pop(key, None)


class TestParseEnvText:
    def test_comments_blanks_and_malformed_lines_skipped(self) -> None:
        text = "# comment\n\nno_equals_here\n=no_key\nCT_TEST_A=1\n"
        assert parse_env_text(text) == {"CT_TEST_A": "1"}

    def test_export_prefix_and_quotes(self) -> None:
        text = "export OPENAI_API_KEY='sk-quoted'\nANTHROPIC_API_KEY=\"double\"\n"
        assert parse_env_text(text) == {
            "OPENAI_API_KEY": "sk-quoted",
            "ANTHROPIC_API_KEY": "double",
        }

    def test_value_keeps_later_equals_signs(self) -> None:
        assert parse_env_text("CT_TEST_A=a=b=c") == {"CT_TEST_A": "a=b=c"}


class TestLoadEnvIfPresent:
    def test_loads_first_readable_file(self, tmp_path: Path) -> None:
        first = tmp_path / "first.env"
        first.write_text("CT_TEST_A=from_first\n")
        second = tmp_path / "second.env"
        second.write_text("CT_TEST_A=from_second\nCT_TEST_B=only_second\n")

        loaded = load_env_if_present([tmp_path / "missing.env", tmp_path, first, second])

        assert loaded == first
        assert os.environ["CT_TEST_A"] == "from_first"
        assert "CT_TEST_B" not in os.environ

    def test_existing_values_win(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.setenv("CT_TEST_A", "original")
        path = tmp_path / ".env"
        path.write_text("CT_TEST_A=overwritten\n")

        load_env_if_present([path])

        assert os.environ["CT_TEST_A"] == "original"

    def test_nothing_found(self, tmp_path: Path) -> None:
        assert load_env_if_present([tmp_path / "nope.env"]) is None


class TestLoadDefaultEnv:
    def test_prefers_cwd(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.chdir(tmp_path)
        (tmp_path / ".env").write_text("CT_TEST_C=from_cwd\n")
        user_file = tmp_path / "user.env"
        user_file.write_text("CT_TEST_C=from_user\n")
        monkeypatch.setattr(env, "USER_ENV_FILE", user_file)

        assert load_default_env() == tmp_path / ".env"
        assert os.environ["CT_TEST_C"] == "from_cwd"

    def test_falls_back_to_user_file(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.chdir(tmp_path)
        user_file = tmp_path / "user.env"
        user_file.write_text("CT_TEST_C=from_user\n")
        monkeypatch.setattr(env, "USER_ENV_FILE", user_file)

        assert load_default_env() == user_file
        assert os.environ["CT_TEST_C"] == "from_user"


class TestFindApiKey:
    def test_first_non_empty_wins(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("CT_PRIMARY", "")
        monkeypatch.setenv("CT_SECONDARY", "second")
        assert find_api_key(["CT_PRIMARY", "CT_SECONDARY"]) == "second"

    def test_reads_env_file(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.chdir(tmp_path)
        (tmp_path / ".env").write_text("CT_PRIMARY=from_file\n")
        assert find_api_key(["CT_PRIMARY"]) == "from_file"

    def test_missing(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.chdir(tmp_path)
        assert find_api_key(["CT_PRIMARY", "CT_SECONDARY"]) is None
