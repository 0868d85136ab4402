"""Unit tests for Settings helpers and the YAML config loader."""

from __future__ import annotations

from pathlib import Path

import pytest

from consensus_verifier.config.loader import _deep_merge, apply_config, load_config, load_settings
from consensus_verifier.main import build_policy
from consensus_verifier.utils.errors import ConfigurationError
from tests.conftest import make_settings


class TestSettings:
    def test_gateway_models_split_and_trimmed(self, tmp_path: Path) -> None:
        settings = make_settings(tmp_path, gateway_models=" a/one , ,b/two,")
        assert settings.get_gateway_models() == ["a/one", "b/two"]

    def test_no_keys_means_no_providers(self, tmp_path: Path) -> None:
        assert make_settings(tmp_path).get_available_oracle_providers() == []

    def test_available_providers_in_fixed_order(self, tmp_path: Path) -> None:
        settings = make_settings(
            tmp_path,
            xai_api_key="x",
            openai_api_key="o",
            gateway_api_key="g",
            anthropic_api_key="a",
        )
        assert settings.get_available_oracle_providers() == ["openai", "anthropic", "gateway", "xai"]

    def test_gateway_without_models_not_available(self, tmp_path: Path) -> None:
        settings = make_settings(tmp_path, gateway_api_key="g", gateway_models="")
        assert settings.get_available_oracle_providers() == []


class TestDeepMerge:
    def test_nested_values_merged(self) -> None:
        base = {"consensus": {"quorum": 2, "note": "x"}, "app": {"name": "cv"}}
        _deep_merge(base, {"consensus": {"quorum": 3}})
        assert base == {"consensus": {"quorum": 3, "note": "x"}, "app": {"name": "cv"}}

    def test_non_dict_override_replaces(self) -> None:
        base = {"oracles": {"timeout_seconds": 25}}
        _deep_merge(base, {"oracles": "disabled"})
        assert base == {"oracles": "disabled"}


class TestLoadConfig:
    def test_env_values_win_over_yaml(self, tmp_path: Path) -> None:
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            "app:\n  name: consensus-verifier\nconsensus:\n  quorum: 2\n  note: keep\n",
            encoding="utf-8",
        )
        settings = make_settings(tmp_path, quorum=3, openai_api_key="sk")

        config = load_config(str(config_file), settings=settings)

        assert config["app"]["name"] == "consensus-verifier"
        assert config["consensus"]["quorum"] == 3
        assert config["consensus"]["note"] == "keep"
        assert config["oracles"]["available_providers"] == ["openai"]
        assert config["batch"]["delay_seconds"] == 0.0

    def test_missing_file_gives_env_only(self, tmp_path: Path) -> None:
        config = load_config(str(tmp_path / "absent.yaml"), settings=make_settings(tmp_path))
        assert "name" not in config["app"]
        assert config["logging"]["level"] == "WARNING"

    def test_yaml_values_survive_unset_settings(self, tmp_path: Path) -> None:
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            "consensus:\n  quorum: 3\nsynthesis:\n  min_confidence: 0.9\n", encoding="utf-8"
        )
        config = load_config(str(config_file), settings=make_settings(tmp_path))

        assert config["consensus"]["quorum"] == 3
        assert config["consensus"]["confidence_cap"] == 0.95
        assert config["synthesis"]["min_confidence"] == 0.9


class TestLoadSettings:
    def test_yaml_quorum_reaches_policy(self, tmp_path: Path) -> None:
        config_file = tmp_path / "config.yaml"
        config_file.write_text("consensus:\n  quorum: 3\n", encoding="utf-8")

        settings = load_settings(make_settings(tmp_path, config_path=str(config_file)))

        assert settings.quorum == 3
        assert build_policy(settings).quorum == 3
        assert settings.fact_db_path == str(tmp_path / "facts.db")

    def test_explicit_value_wins_over_yaml(self, tmp_path: Path) -> None:
        config_file = tmp_path / "config.yaml"
        config_file.write_text("consensus:\n  quorum: 3\n", encoding="utf-8")
        settings = make_settings(tmp_path, quorum=2, config_path=str(config_file))

        assert load_settings(settings).quorum == 2

    def test_nothing_to_apply_returns_same_object(self, tmp_path: Path) -> None:
        settings = make_settings(tmp_path, config_path=str(tmp_path / "absent.yaml"))
        assert load_settings(settings) is settings

    def test_invalid_yaml_value_is_configuration_error(self, tmp_path: Path) -> None:
        settings = make_settings(tmp_path)
        with pytest.raises(ConfigurationError, match="config file"):
            apply_config(settings, {"consensus": {"quorum": 0}})

    def test_non_mapping_file_rejected(self, tmp_path: Path) -> None:
        config_file = tmp_path / "config.yaml"
        config_file.write_text("- just\n- a list\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="mapping"):
            load_config(str(config_file), settings=make_settings(tmp_path))
