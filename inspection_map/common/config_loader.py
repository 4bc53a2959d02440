"""Configuration loading and validation."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from inspection_map.common.constants import (
    DEFAULT_BASE_URL,
    DEFAULT_EXCLUDED_RISKS,
    DEFAULT_RECORD_LIMIT,
    DEFAULT_RESOURCE,
    DEFAULT_ZOOM,
)
from inspection_map.common.errors import ConfigError
from inspection_map.common.fs import read_yaml
from inspection_map.common.http import RetryConfig, TimeoutConfig
from inspection_map.common.schema import validate_app_config

CONFIG_FILENAME = "inspection_map.yml"


@dataclass(frozen=True)
class SourceConfig:
    base_url: str = DEFAULT_BASE_URL
    resource: str = DEFAULT_RESOURCE

    @property
    def endpoint(self) -> str:
        return f"{self.base_url.rstrip('/')}/{self.resource.lstrip('/')}"


@dataclass(frozen=True)
class PipelineConfig:
    record_limit: int = DEFAULT_RECORD_LIMIT
    excluded_risks: tuple[str, ...] = DEFAULT_EXCLUDED_RISKS


@dataclass(frozen=True)
class MapConfig:
    zoom: float = DEFAULT_ZOOM
    tilt: float = 0.0
    bearing: float = 0.0


@dataclass(frozen=True)
class AppConfig:
    source: SourceConfig = field(default_factory=SourceConfig)
    timeout: TimeoutConfig = field(default_factory=TimeoutConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    map: MapConfig = field(default_factory=MapConfig)

    @classmethod
    def default(cls) -> "AppConfig":
        return cls()


def _deep_merge(base: Any, overlay: Any) -> Any:
    if isinstance(base, dict) and isinstance(overlay, dict):
        merged = dict(base)
        for key, value in overlay.items():
            if key in merged:
                merged[key] = _deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged
    return overlay


def _read_config_yaml(path: Path) -> Any:
    try:
        return read_yaml(path)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc


def _load_yaml_with_overlay(path: Path, overlay_path: Path | None) -> Any:
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    base = _read_config_yaml(path)
    if overlay_path is None or not overlay_path.exists():
        return base
    overlay = _read_config_yaml(overlay_path)
    return _deep_merge(base, overlay)


def build_app_config(cfg: dict) -> AppConfig:
    http = cfg["http"]
    retry = http.get("retry") or {}
    map_cfg = cfg["map"]
    return AppConfig(
        source=SourceConfig(base_url=cfg["source"]["base_url"], resource=cfg["source"]["resource"]),
        timeout=TimeoutConfig(
            connect=float(http["timeout"]["connect"]),
            read=float(http["timeout"]["read"]),
        ),
        retry=RetryConfig(
            max_attempts=int(retry.get("max_attempts", 1)),
            multiplier=float(retry.get("multiplier", 1.0)),
            max_wait=float(retry.get("max_wait", 30.0)),
        ),
        pipeline=PipelineConfig(
            record_limit=int(cfg["pipeline"]["record_limit"]),
            excluded_risks=tuple(cfg["pipeline"]["excluded_risks"]),
        ),
        map=MapConfig(
            zoom=float(map_cfg["zoom"]),
            tilt=float(map_cfg.get("tilt", 0.0)),
            bearing=float(map_cfg.get("bearing", 0.0)),
        ),
    )


def load_config(
    config_path: Path,
    *,
    allow_unknown: bool = False,
    overlay_config_dir: Path | None = None,
) -> AppConfig:
    overlay_path = None
    if overlay_config_dir is not None:
        overlay_path = overlay_config_dir / config_path.name
    raw = _load_yaml_with_overlay(config_path, overlay_path)
    return build_app_config(validate_app_config(raw, allow_unknown=allow_unknown))
