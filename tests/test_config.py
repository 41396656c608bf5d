"""
Tests for Settings loading — precedence, required values, YAML validation.
Run: pytest tests/test_config.py -v
"""
from argparse import Namespace
from pathlib import Path

import pytest

from time_since_deploy.config import load_settings
from time_since_deploy.errors import ConfigError


def args(**kw):
    base = {"project": "shop", "trace": "", "config": "", "gitlab_url": ""}
    base.update(kw)
    return Namespace(**base)


class TestRequiredValues:

    def test_missing_project(self):
        with pytest.raises(ConfigError, match="project not set"):
            load_settings(args(project=""), {"GITLAB_TOKEN": "t"})

    def test_missing_token(self):
        with pytest.raises(ConfigError, match="token not set"):
            load_settings(args(), {})

    def test_defaults(self):
        s = load_settings(args(), {"GITLAB_TOKEN": "t"})
        assert s.project == "shop"
        assert s.token == "t"
        assert s.gitlab_url == "https://gitlab.com"
        assert s.marker == "prod/"
        assert s.separator == "/"
        assert s.per_page == 20
        assert s.trace_path is None


class TestPrecedence:

    def test_file_then_env_then_flag(self, tmp_path):
        cfg = tmp_path / "drift.yaml"
        cfg.write_text("gitlab_url: https://file.example.com\nper_page: 50\nmarker: production/\n")

        s = load_settings(args(config=str(cfg)), {"GITLAB_TOKEN": "t"})
        assert s.gitlab_url == "https://file.example.com"
        assert s.per_page == 50
        assert s.marker == "production/"

        s = load_settings(args(config=str(cfg)), {"GITLAB_TOKEN": "t", "GITLAB_URL": "https://env.example.com"})
        assert s.gitlab_url == "https://env.example.com"

        s = load_settings(args(config=str(cfg), gitlab_url="https://flag.example.com"),
                          {"GITLAB_TOKEN": "t", "GITLAB_URL": "https://env.example.com"})
        assert s.gitlab_url == "https://flag.example.com"

    def test_trace_path(self):
        s = load_settings(args(trace="run.jsonl"), {"GITLAB_TOKEN": "t"})
        assert s.trace_path == Path("run.jsonl")


class TestConfigFile:

    def test_unknown_key(self, tmp_path):
        cfg = tmp_path / "drift.yaml"
        cfg.write_text("token: leaked\n")
        with pytest.raises(ConfigError, match="unknown keys token"):
            load_settings(args(config=str(cfg)), {"GITLAB_TOKEN": "t"})

    def test_not_a_mapping(self, tmp_path):
        cfg = tmp_path / "drift.yaml"
        cfg.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_settings(args(config=str(cfg)), {"GITLAB_TOKEN": "t"})

    def test_bad_number(self, tmp_path):
        cfg = tmp_path / "drift.yaml"
        cfg.write_text("per_page: lots\n")
        with pytest.raises(ConfigError, match="invalid config value"):
            load_settings(args(config=str(cfg)), {"GITLAB_TOKEN": "t"})

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="read config"):
            load_settings(args(config=str(tmp_path / "nope.yaml")), {"GITLAB_TOKEN": "t"})
