"""Value parsing helpers shared by TOML and environment loading."""

import logging
from typing import Any, Dict, List, Optional

from cfclient.core.errors import ConfigurationError
from cfclient.core.resilience.config import ResilienceConfig, get_resilience_preset
from cfclient.core.resilience.limiter import QueueOrder

logger = logging.getLogger(__name__)

_NONE_VALUES = {"", "none", "null", "off"}

_INT_FIELDS = ("permit_limit", "queue_limit", "max_retries", "minimum_throughput")
_FLOAT_FIELDS = (
    "base_delay",
    "max_delay",
    "jitter",
    "failure_ratio",
    "sampling_duration",
    "break_duration",
    "quota_low_threshold",
)


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"true", "1", "yes", "on"}


def _parse_optional_float(value: Any) -> Optional[float]:
    """Parse a float where "none"/"off"/empty mean unbounded."""
    if value is None:
        return None
    if isinstance(value, str) and value.strip().lower() in _NONE_VALUES:
        return None
    return float(value)


def _parse_queue_order(value: Any) -> QueueOrder:
    normalized = str(value).strip().lower().replace("-", "_")
    return QueueOrder(normalized)


def _resilience_from_toml_dict(
    data: Dict[str, Any],
    base: Optional[ResilienceConfig] = None,
    section: str = "cloudflare.resilience",
) -> ResilienceConfig:
    """Apply a ``[cloudflare.resilience]`` table on top of ``base``.

    A ``preset`` key selects the starting point; the remaining keys
    override individual fields.

    Raises:
        ConfigurationError: Unknown preset or unparseable values.
    """
    failures: List[str] = []
    if "preset" in data:
        try:
            base = get_resilience_preset(str(data["preset"]))
        except KeyError as exc:
            failures.append(f"{section}.preset: {exc.args[0]}")
    config = base or ResilienceConfig()

    parsers = {key: int for key in _INT_FIELDS}
    parsers.update({key: float for key in _FLOAT_FIELDS})
    parsers.update({key: _parse_optional_float for key in ("attempt_timeout", "total_timeout")})
    parsers["queue_order"] = _parse_queue_order
    parsers["retry_on_rate_limit"] = _parse_bool
    parsers["proactive_throttling"] = _parse_bool

    overrides: Dict[str, Any] = {}
    for key, parse in parsers.items():
        if key not in data:
            continue
        try:
            overrides[key] = parse(data[key])
        except (TypeError, ValueError):
            failures.append(f"{section}.{key}: invalid value {data[key]!r}")

    if failures:
        raise ConfigurationError(failures)

    unknown = set(data) - set(parsers) - {"preset"}
    if unknown:
        logger.warning("Ignoring unknown resilience settings: %s", ", ".join(sorted(unknown)))

    return config.with_overrides(**overrides) if overrides else config
