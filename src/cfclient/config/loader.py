"""Layered ClientOptions loading.

Priority (highest to lowest):
1. Environment variables
2. Explicit config file (argument or CFCLIENT_CONFIG_FILE), loaded alone
3. Project TOML config (./cfclient.toml)
4. User TOML config (~/.cfclient.toml)
5. XDG config (~/.config/cfclient/config.toml)
6. Default values

TOML layout::

    [cloudflare]
    api_token = "..."
    account_id = "..."

    [cloudflare.resilience]
    preset = "production"
    max_retries = 3

    [cloudflare.clients.secondary]
    api_token = "..."
    [cloudflare.clients.secondary.resilience]
    permit_limit = 5

A named client starts from the ``[cloudflare]`` section and applies its
own table on top.
"""

import logging
import os
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, Optional

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # Python < 3.11 fallback

from cfclient.config.options import ClientOptions
from cfclient.config.parsing import _parse_bool, _parse_optional_float
from cfclient.core.errors import ConfigurationError
from cfclient.core.resilience.config import get_resilience_preset

logger = logging.getLogger(__name__)

CONFIG_FILE_ENV_VAR = "CFCLIENT_CONFIG_FILE"


def _merge(target: Dict[str, Any], source: Dict[str, Any]) -> None:
    for key, value in source.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _merge(target[key], value)
        else:
            target[key] = value


def _load_toml(path: Path, data: Dict[str, Any]) -> None:
    """Merge a TOML file into ``data``."""
    if not path.exists():
        logger.warning(f"Config file not found: {path}")
        return
    try:
        with open(path, "rb") as f:
            _merge(data, tomllib.load(f))
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError([f"{path}: invalid TOML ({exc})"]) from exc
    logger.debug(f"Loaded config from {path}")


def _read_layers(config_file: Optional[str]) -> Dict[str, Any]:
    data: Dict[str, Any] = {}
    toml_path = config_file or os.environ.get(CONFIG_FILE_ENV_VAR)
    if toml_path:
        _load_toml(Path(toml_path), data)
        return data

    xdg_config_home = os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")
    for candidate in (
        Path(xdg_config_home) / "cfclient" / "config.toml",
        Path.home() / ".cfclient.toml",
        Path("cfclient.toml"),
    ):
        if candidate.exists():
            _load_toml(candidate, data)
    return data


def _apply_env(options: ClientOptions, name: Optional[str]) -> ClientOptions:
    """Apply CFCLIENT_* environment overrides.

    Credentials from the environment apply only to the default client so a
    named client keeps its own account.
    """
    env = os.environ
    overrides: Dict[str, Any] = {}

    if name is None:
        if env.get("CFCLIENT_API_TOKEN"):
            overrides["api_token"] = env["CFCLIENT_API_TOKEN"]
        if env.get("CFCLIENT_ACCOUNT_ID"):
            overrides["account_id"] = env["CFCLIENT_ACCOUNT_ID"]
    if env.get("CFCLIENT_API_BASE_URL"):
        overrides["api_base_url"] = env["CFCLIENT_API_BASE_URL"]
    if env.get("CFCLIENT_LOG_LEVEL"):
        overrides["log_level"] = env["CFCLIENT_LOG_LEVEL"].upper()
    if env.get("CFCLIENT_STRUCTURED_LOGGING"):
        overrides["structured_logging"] = _parse_bool(env["CFCLIENT_STRUCTURED_LOGGING"])

    resilience = options.resilience
    failures = []
    if env.get("CFCLIENT_RESILIENCE_PRESET"):
        try:
            resilience = get_resilience_preset(env["CFCLIENT_RESILIENCE_PRESET"])
        except KeyError as exc:
            failures.append(f"CFCLIENT_RESILIENCE_PRESET: {exc.args[0]}")

    resilience_overrides: Dict[str, Any] = {}
    for var, key, parse in (
        ("CFCLIENT_MAX_RETRIES", "max_retries", int),
        ("CFCLIENT_PERMIT_LIMIT", "permit_limit", int),
        ("CFCLIENT_QUEUE_LIMIT", "queue_limit", int),
        ("CFCLIENT_ATTEMPT_TIMEOUT", "attempt_timeout", _parse_optional_float),
        ("CFCLIENT_TOTAL_TIMEOUT", "total_timeout", _parse_optional_float),
        ("CFCLIENT_PROACTIVE_THROTTLING", "proactive_throttling", _parse_bool),
    ):
        raw = env.get(var)
        if raw is None or raw == "":
            continue
        try:
            resilience_overrides[key] = parse(raw)
        except ValueError:
            failures.append(f"{var}: invalid value '{raw}'")

    if failures:
        raise ConfigurationError(failures)

    if resilience_overrides:
        resilience = resilience.with_overrides(**resilience_overrides)
    overrides["resilience"] = resilience

    return replace(options, **overrides)


def load_client_options(
    config_file: Optional[str] = None, name: Optional[str] = None
) -> ClientOptions:
    """Load options for the default client or for a named one.

    Args:
        config_file: Explicit TOML file; skips the layered search.
        name: Named client under ``[cloudflare.clients.<name>]``.

    Returns:
        Validated ClientOptions.

    Raises:
        ConfigurationError: Unknown client name, bad TOML or invalid options.
    """
    data = _read_layers(config_file)
    section = data.get("cloudflare", {})
    if not isinstance(section, dict):
        raise ConfigurationError(["cloudflare: expected a table"])

    defaults = {key: value for key, value in section.items() if key != "clients"}
    options = ClientOptions.from_toml_dict(defaults)

    if name is not None:
        clients = section.get("clients", {})
        if name not in clients:
            raise ConfigurationError([f"cloudflare.clients.{name}: no such client configured"])
        options = ClientOptions.from_toml_dict(
            clients[name], base=options, section=f"cloudflare.clients.{name}"
        )

    options = _apply_env(options, name)
    options.raise_if_invalid(name)
    return options
