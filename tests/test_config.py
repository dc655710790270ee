"""Tests for configuration loading."""

import pytest
import yaml

from newsdesk.config import Config, ConfigModel, load_config, save_config


class TestLoadConfig:
    def test_defaults_for_empty_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")

        config = load_config(path)

        assert config.scheduler.interval_seconds == 4.0
        assert config.service.poll_interval == 2.0
        assert config.service.max_polls == 150
        assert config.rewrite.sentinel_prefix == "Pending rewrite for: "
        assert config.rewrite.max_retries == 0

    def test_sections_override_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            yaml.dump(
                {
                    "scheduler": {"interval_seconds": 1.5},
                    "rewrite": {"batch_size": 3, "auto_start": False},
                    "discovery": {"collection_uuid": "col-1"},
                }
            )
        )

        config = load_config(path)

        assert config.scheduler.interval_seconds == 1.5
        assert config.rewrite.batch_size == 3
        assert config.rewrite.auto_start is False
        assert config.discovery.collection_uuid == "col-1"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("service: [unclosed")
        with pytest.raises(ValueError, match="Invalid YAML"):
            load_config(path)

    def test_blank_sentinel_rejected(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.dump({"rewrite": {"sentinel_prefix": "  "}}))
        with pytest.raises(ValueError, match="Invalid configuration"):
            load_config(path)

    def test_negative_interval_rejected(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.dump({"scheduler": {"interval_seconds": -1}}))
        with pytest.raises(ValueError):
            load_config(path)

    def test_save_then_load(self, tmp_path):
        path = tmp_path / "nested" / "config.yaml"
        save_config(ConfigModel(service={"account_name": "acct"}), path)
        assert load_config(path).service.account_name == "acct"


class TestConfig:
    def test_secrets_from_environment(self, tmp_path, monkeypatch):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.dump({"postgres": {"password_env": "TEST_NEWSDESK_PW"}}))
        monkeypatch.setenv("TEST_NEWSDESK_PW", "s3cret")
        monkeypatch.setenv("NEWSDESK_ACCOUNT_NAME", "env-acct")

        config = Config(path)

        assert config.get_db_config()["password"] == "s3cret"
        assert config.get_service_config()["account_name"] == "env-acct"

    def test_file_value_kept_without_environment(self, monkeypatch):
        monkeypatch.delenv("NEWSDESK_ACCOUNT_NAME", raising=False)
        config = Config.from_model(ConfigModel(service={"account_name": "file-acct"}))
        assert config.get_service_config()["account_name"] == "file-acct"
