"""Minimal strict schema for YAML config validation."""

from __future__ import annotations

from inspection_map.common.errors import ConfigError

TOP_LEVEL_KEYS = {"source", "http", "pipeline", "map"}


def _assert_mapping(obj: object, ctx: str) -> dict:
    if not isinstance(obj, dict):
        raise ConfigError(f"{ctx} must be a mapping")
    return obj


def _assert_required_keys(obj: dict, required: set[str], ctx: str) -> None:
    missing = required - set(obj)
    if missing:
        missing_str = ", ".join(sorted(missing))
        raise ConfigError(f"Missing keys in {ctx}: {missing_str}")


def _assert_no_unknown_keys(obj: dict, known: set[str], ctx: str, allow_unknown: bool) -> None:
    if allow_unknown:
        return
    unknown = set(obj) - known
    if unknown:
        unknown_str = ", ".join(sorted(unknown))
        raise ConfigError(f"Unknown keys in {ctx}: {unknown_str}")


def _assert_positive_number(value: object, ctx: str) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigError(f"{ctx} must be a positive number")


def _assert_non_negative_number(value: object, ctx: str) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
        raise ConfigError(f"{ctx} must be a non-negative number")


def validate_app_config(cfg: object, *, allow_unknown: bool = False) -> dict:
    cfg = _assert_mapping(cfg, "config")
    _assert_required_keys(cfg, TOP_LEVEL_KEYS, "config")
    _assert_no_unknown_keys(cfg, TOP_LEVEL_KEYS, "config", allow_unknown)

    source = _assert_mapping(cfg["source"], "source")
    _assert_required_keys(source, {"base_url", "resource"}, "source")
    _assert_no_unknown_keys(source, {"base_url", "resource"}, "source", allow_unknown)
    if not str(source["base_url"]).startswith(("http://", "https://")):
        raise ConfigError("source.base_url must be an http(s) URL")

    http = _assert_mapping(cfg["http"], "http")
    _assert_required_keys(http, {"timeout"}, "http")
    _assert_no_unknown_keys(http, {"timeout", "retry"}, "http", allow_unknown)
    timeout = _assert_mapping(http["timeout"], "http.timeout")
    _assert_required_keys(timeout, {"connect", "read"}, "http.timeout")
    _assert_positive_number(timeout["connect"], "http.timeout.connect")
    _assert_positive_number(timeout["read"], "http.timeout.read")
    if "retry" in http:
        retry = _assert_mapping(http["retry"], "http.retry")
        _assert_no_unknown_keys(retry, {"max_attempts", "multiplier", "max_wait"}, "http.retry", allow_unknown)
        if "max_attempts" in retry:
            attempts = retry["max_attempts"]
            if isinstance(attempts, bool) or not isinstance(attempts, int) or attempts < 1:
                raise ConfigError("http.retry.max_attempts must be an integer >= 1")
        for key in ("multiplier", "max_wait"):
            if key in retry:
                _assert_non_negative_number(retry[key], f"http.retry.{key}")

    pipeline = _assert_mapping(cfg["pipeline"], "pipeline")
    _assert_required_keys(pipeline, {"record_limit", "excluded_risks"}, "pipeline")
    _assert_no_unknown_keys(pipeline, {"record_limit", "excluded_risks"}, "pipeline", allow_unknown)
    limit = pipeline["record_limit"]
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 0:
        raise ConfigError("pipeline.record_limit must be a non-negative integer")
    excluded = pipeline["excluded_risks"]
    if not isinstance(excluded, list) or not all(isinstance(item, str) for item in excluded):
        raise ConfigError("pipeline.excluded_risks must be a list of strings")

    map_cfg = _assert_mapping(cfg["map"], "map")
    _assert_required_keys(map_cfg, {"zoom"}, "map")
    _assert_no_unknown_keys(map_cfg, {"zoom", "tilt", "bearing"}, "map", allow_unknown)
    _assert_positive_number(map_cfg["zoom"], "map.zoom")
    for key in ("tilt", "bearing"):
        value = map_cfg.get(key, 0)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ConfigError(f"map.{key} must be a number")

    return cfg
