"""
Deployment settings: optional YAML file overlaid by environment variables.

Environment variables win over the file so a container can override a baked
config without rebuilding it.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

from .config import DELEGATE_TIMEOUT, KEY_FETCH_TIMEOUT
from .exceptions import ConfigurationError
from .feature_flags import normalize_policy

ENV_VARS: Mapping[str, str] = {
    "SUPABASE_URL": "supabase_url",
    "ZK_VKEY_DIR": "vkey_dir",
    "VERCEL_ZK_VERIFIER_URL": "verifier_url",
    "ZK_ALLOWED_VERIFIER_URLS": "allowed_verifier_urls",
    "ZK_VERIFY_POLICY": "policy",
    "ZK_LOCAL_PAIRING": "local_pairing",
    "ZK_DELEGATE_TIMEOUT": "delegate_timeout",
    "ZK_KEY_FETCH_TIMEOUT": "key_fetch_timeout",
    "ZK_KEY_BUCKET": "key_bucket",
    "HOST": "host",
    "PORT": "port",
}

_TRUE = frozenset({"1", "true", "yes", "on"})
_FALSE = frozenset({"0", "false", "no", "off"})


@dataclass(frozen=True)
class ServiceSettings:
    """
    Attributes:
        supabase_url: Base URL of the blob store holding verification keys
        vkey_dir: Directory of verification key JSON files (wins over supabase_url)
        key_bucket: Blob store bucket name
        verifier_url: Default delegate verifier endpoint
        allowed_verifier_urls: Further delegate endpoints a request may name
            in ``verifierUrl``; ``verifier_url`` is always allowed
        policy: ``strict`` or ``lenient``; None defers to feature flags
        local_pairing: Run pairing checks in-process
        delegate_timeout: Delegate round-trip ceiling in seconds
        key_fetch_timeout: Key fetch ceiling in seconds
        host: Bind address for ``serve``
        port: Bind port for ``serve``
    """

    supabase_url: Optional[str] = None
    vkey_dir: Optional[str] = None
    key_bucket: str = "zkp"
    verifier_url: Optional[str] = None
    allowed_verifier_urls: Tuple[str, ...] = ()
    policy: Optional[str] = None
    local_pairing: bool = True
    delegate_timeout: float = DELEGATE_TIMEOUT
    key_fetch_timeout: float = KEY_FETCH_TIMEOUT
    host: str = "127.0.0.1"
    port: int = 8000

    def validate(self) -> None:
        if self.delegate_timeout <= 0:
            raise ConfigurationError("delegate_timeout must be positive")
        if self.key_fetch_timeout <= 0:
            raise ConfigurationError("key_fetch_timeout must be positive")
        if not 0 < self.port < 65536:
            raise ConfigurationError(f"port out of range: {self.port}")
        for name in ("supabase_url", "verifier_url"):
            value = getattr(self, name)
            if value is not None and not value.startswith(("http://", "https://")):
                raise ConfigurationError(f"{name} must be an http(s) URL, got {value!r}")
        for value in self.allowed_verifier_urls:
            if not value.startswith(("http://", "https://")):
                raise ConfigurationError(
                    f"allowed_verifier_urls entries must be http(s) URLs, got {value!r}"
                )


def _as_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {value!r}")


def _as_number(name: str, value: Any, kind: type) -> Any:
    if isinstance(value, bool):
        raise ConfigurationError(f"{name} must be a number, got {value!r}")
    try:
        return kind(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} must be a number, got {value!r}") from None


def _as_optional_str(name: str, value: Any) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigurationError(f"{name} must be a string, got {value!r}")
    value = value.strip()
    return value or None


def _as_url_list(name: str, value: Any) -> Tuple[str, ...]:
    # Env vars carry a comma-separated string, YAML may carry a list.
    if value is None:
        return ()
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, (list, tuple)):
        raise ConfigurationError(f"{name} must be a list of URLs, got {value!r}")
    urls = []
    for item in value:
        if not isinstance(item, str):
            raise ConfigurationError(f"{name} must be a list of URLs, got {value!r}")
        if item.strip():
            urls.append(item.strip())
    return tuple(urls)


def _coerce(raw: Mapping[str, Any]) -> Dict[str, Any]:
    known = {f.name for f in fields(ServiceSettings)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ConfigurationError(f"unknown settings: {', '.join(unknown)}")

    out: Dict[str, Any] = {}
    for name, value in raw.items():
        if name == "local_pairing":
            out[name] = _as_bool(name, value)
        elif name in ("delegate_timeout", "key_fetch_timeout"):
            out[name] = _as_number(name, value, float)
        elif name == "allowed_verifier_urls":
            out[name] = _as_url_list(name, value)
        elif name == "port":
            out[name] = _as_number(name, value, int)
        elif name == "policy":
            try:
                out[name] = normalize_policy(value)
            except ValueError as exc:
                raise ConfigurationError(str(exc)) from exc
        elif name in ("key_bucket", "host"):
            text = _as_optional_str(name, value)
            if text is None:
                raise ConfigurationError(f"{name} must not be empty")
            out[name] = text
        else:
            out[name] = _as_optional_str(name, value)
    return out


def read_settings_file(path: Path | str) -> Dict[str, Any]:
    """
    Raises:
        ConfigurationError: If the file is unreadable or not a YAML mapping
    """
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except OSError as exc:
        raise ConfigurationError(f"cannot read settings file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"malformed YAML in {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path} must contain a mapping")
    return data


def load_settings(
    path: Path | str | None = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ServiceSettings:
    """
    Build settings from defaults, then ``path``, then the environment.

    Raises:
        ConfigurationError: On unreadable files or malformed values
    """
    env = os.environ if environ is None else environ
    settings = ServiceSettings()

    if path is not None:
        settings = replace(settings, **_coerce(read_settings_file(path)))

    overrides = {field: env[var] for var, field in ENV_VARS.items() if env.get(var)}
    if overrides:
        settings = replace(settings, **_coerce(overrides))

    settings.validate()
    return settings
