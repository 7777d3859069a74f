"""
Unit tests for acceptance policy resolution.
"""

import pytest

from zk_balance_gate.verification import feature_flags


@pytest.fixture(autouse=True)
def reset_feature_flags(monkeypatch: pytest.MonkeyPatch) -> None:
    feature_flags.set_policy(None)
    monkeypatch.delenv("ZK_VERIFY_POLICY", raising=False)
    yield
    feature_flags.set_policy(None)
    monkeypatch.delenv("ZK_VERIFY_POLICY", raising=False)


def test_default_policy_is_lenient() -> None:
    assert feature_flags.get_policy() == "lenient"


def test_env_var_controls_policy(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ZK_VERIFY_POLICY", "strict")
    assert feature_flags.get_policy() == "strict"


def test_env_var_is_case_insensitive(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ZK_VERIFY_POLICY", " STRICT ")
    assert feature_flags.get_policy() == "strict"


def test_prefer_overrides_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ZK_VERIFY_POLICY", "strict")
    assert feature_flags.get_policy(prefer="lenient") == "lenient"


def test_set_policy_overrides_and_clears(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ZK_VERIFY_POLICY", "lenient")
    feature_flags.set_policy("strict")
    assert feature_flags.get_policy() == "strict"
    feature_flags.set_policy(None)
    assert feature_flags.get_policy() == "lenient"


def test_set_policy_empty_string_clears(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ZK_VERIFY_POLICY", "strict")
    feature_flags.set_policy("lenient")
    feature_flags.set_policy("")
    assert feature_flags.get_policy() == "strict"


def test_invalid_prefer_raises_value_error() -> None:
    with pytest.raises(ValueError, match="Invalid verification policy"):
        feature_flags.get_policy(prefer="permissive")


def test_invalid_env_raises_value_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ZK_VERIFY_POLICY", "permissive")
    with pytest.raises(ValueError, match="Invalid verification policy"):
        feature_flags.get_policy()


def test_invalid_override_raises_value_error() -> None:
    with pytest.raises(ValueError, match="Invalid verification policy"):
        feature_flags.set_policy("permissive")


def test_empty_env_var_treated_as_unset(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ZK_VERIFY_POLICY", "")
    assert feature_flags.get_policy() == "lenient"
