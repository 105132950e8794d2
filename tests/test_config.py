"""Tests for configuration loading and validation."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from unflattened.config.policies import Policies, load_policies
from unflattened.config.settings import DEFAULT_CONFIG_DIR, Settings


@pytest.fixture
def policy_dict() -> dict:
    return {
        "policy_version": "test-version",
        "flatten": {"buffer_size": 32, "timeout_seconds": 5},
        "unflatten": {"detect_cycles": True, "duplicate_keys": "error"},
        "markup": {"key_strategy": "sequence", "key_prefix": "row"},
    }


def test_load_policies_from_dict(policy_dict: dict) -> None:
    policies = load_policies(policy_dict)

    assert isinstance(policies, Policies)
    assert policies.flatten.buffer_size == 32
    assert policies.unflatten.detect_cycles is True
    assert policies.unflatten.dedupe_children is False
    assert policies.markup.key_prefix == "row"


def test_load_policies_defaults_match_permissive_behaviour() -> None:
    policies = load_policies({})

    assert policies.flatten.buffer_size == 128
    assert policies.flatten.timeout_seconds is None
    assert policies.unflatten.duplicate_keys == "last_wins"
    assert policies.markup.key_strategy == "random"


def test_load_policies_from_yaml_file(tmp_path: Path, policy_dict: dict) -> None:
    path = tmp_path / "policies.yaml"
    path.write_text(yaml.safe_dump(policy_dict), encoding="utf-8")

    assert load_policies(path).policy_version == "test-version"
    with pytest.raises(FileNotFoundError):
        load_policies(tmp_path / "missing.yaml")


def test_policy_env_overrides(monkeypatch: pytest.MonkeyPatch, policy_dict: dict) -> None:
    monkeypatch.setenv("UNFLATTENED_POLICY__FLATTEN__BUFFER_SIZE", "4")
    monkeypatch.setenv("UNFLATTENED_POLICY__UNFLATTEN__DEDUPE_CHILDREN", "true")

    policies = load_policies(policy_dict)

    assert policies.flatten.buffer_size == 4
    assert policies.unflatten.dedupe_children is True
    assert policy_dict["flatten"]["buffer_size"] == 32


def test_policy_env_override_rejects_non_mapping_segments(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("UNFLATTENED_POLICY__POLICY_VERSION__NESTED", "x")

    with pytest.raises(ValueError):
        load_policies({"policy_version": "v1"})


def test_invalid_policy_values_are_rejected() -> None:
    with pytest.raises(ValueError):
        load_policies({"unflatten": {"duplicate_keys": "merge"}})
    with pytest.raises(ValueError):
        load_policies({"flatten": {"timeout_seconds": 0}})


def test_settings_environment_override(tmp_path: Path, policy_dict: dict) -> None:
    default_yaml = {"environment": "development", "log_level": "info", "policies": policy_dict}
    testing_yaml = {"log_level": "debug", "policies": {"flatten": {"buffer_size": 8}}}
    (tmp_path / "default.yaml").write_text(yaml.safe_dump(default_yaml), encoding="utf-8")
    (tmp_path / "testing.yaml").write_text(yaml.safe_dump(testing_yaml), encoding="utf-8")

    settings = Settings(config_dir=tmp_path, environment="testing")

    assert settings.log_level == "DEBUG"
    assert settings.policies.flatten.buffer_size == 8
    assert settings.policies.flatten.timeout_seconds == 5
    assert settings.policy_version == "test-version"


def test_settings_env_override(monkeypatch: pytest.MonkeyPatch, tmp_path: Path, policy_dict: dict) -> None:
    (tmp_path / "default.yaml").write_text(
        yaml.safe_dump({"policies": policy_dict}), encoding="utf-8"
    )
    monkeypatch.setenv("UNFLATTENED_SETTINGS__POLICIES__FLATTEN__BUFFER_SIZE", "16")
    monkeypatch.setenv("UNFLATTENED_LOG_LEVEL", "warning")

    settings = Settings(config_dir=tmp_path)

    assert settings.policies.flatten.buffer_size == 16
    assert settings.log_level == "WARNING"


def test_settings_kwargs_take_precedence(tmp_path: Path, policy_dict: dict) -> None:
    (tmp_path / "default.yaml").write_text(
        yaml.safe_dump({"log_level": "error", "policies": policy_dict}), encoding="utf-8"
    )

    settings = Settings(
        config_dir=tmp_path,
        log_level="trace",
        policies={"markup": {"key_strategy": "random"}},
    )

    assert settings.log_level == "TRACE"
    assert settings.policies.markup.key_strategy == "random"
    assert settings.policies.markup.key_prefix == "row"


def test_settings_rejects_unknown_log_level(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        Settings(config_dir=tmp_path, log_level="chatty")


def test_shipped_configuration_loads() -> None:
    settings = Settings(config_dir=DEFAULT_CONFIG_DIR, environment="production")

    assert settings.policies.unflatten.duplicate_keys == "error"
    assert settings.policies.flatten.timeout_seconds == 300
