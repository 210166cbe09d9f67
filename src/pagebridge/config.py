"""
Configuration for Pagebridge.

All tunable parameters in one place. Loaded from:
1. Defaults (this file)
2. Config file (~/.config/pagebridge/config.toml) if exists
3. Environment variables (PAGEBRIDGE_*) override file
"""

from __future__ import annotations

import contextlib
import logging
import os
import tomllib  # stdlib in 3.11+
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class ConfidenceConfig:
    """Advisory confidence scoring for converted nodes."""
    base: float = 0.8
    same_dialect: float = 0.95  # re-converting into the dialect a node was parsed from
    child_threshold: int = 5  # more children than this costs nesting_penalty
    nesting_penalty: float = 0.1


@dataclass
class OutputConfig:
    """Serialization settings for converter output."""
    json_indent: int | None = 2
    block_separator: str = "\n\n"  # between top-level Bootstrap blocks


@dataclass
class BatchConfig:
    """Fan-out settings for convert-to-all."""
    max_workers: int = 4


@dataclass
class Config:
    """Root config with all settings."""
    confidence: ConfidenceConfig = field(default_factory=ConfidenceConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    batch: BatchConfig = field(default_factory=BatchConfig)


def get_config_path() -> Path:
    """Get config file path, respecting XDG."""
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "pagebridge" / "config.toml"
    return Path.home() / ".config" / "pagebridge" / "config.toml"


def load_config() -> Config:
    """Load config from file if exists, else return defaults."""
    config = Config()
    path = get_config_path()

    if path.exists():
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
            config = _apply_toml(config, data)
        except (OSError, tomllib.TOMLDecodeError, TypeError, ValueError) as e:
            logger.warning("Ignoring config file %s: %s", path, e)
            config = Config()

    # env var overrides
    config = _apply_env(config)

    return config


def _apply_toml(config: Config, data: dict) -> Config:
    """Apply toml data to config."""
    if "confidence" in data:
        c = data["confidence"]
        if "base" in c:
            config.confidence.base = float(c["base"])
        if "same_dialect" in c:
            config.confidence.same_dialect = float(c["same_dialect"])
        if "child_threshold" in c:
            config.confidence.child_threshold = int(c["child_threshold"])
        if "nesting_penalty" in c:
            config.confidence.nesting_penalty = float(c["nesting_penalty"])

    if "output" in data:
        o = data["output"]
        if "json_indent" in o:
            # 0 means compact single-line JSON
            config.output.json_indent = int(o["json_indent"]) or None
        if "block_separator" in o:
            config.output.block_separator = str(o["block_separator"])

    if "batch" in data:
        b = data["batch"]
        if "max_workers" in b:
            config.batch.max_workers = max(1, int(b["max_workers"]))

    return config


def _apply_env(config: Config) -> Config:
    """Apply environment variable overrides."""
    env_map: dict[str, tuple[str, str, type]] = {
        "PAGEBRIDGE_CONFIDENCE_BASE": ("confidence", "base", float),
        "PAGEBRIDGE_CONFIDENCE_SAME_DIALECT": ("confidence", "same_dialect", float),
        "PAGEBRIDGE_CHILD_THRESHOLD": ("confidence", "child_threshold", int),
        "PAGEBRIDGE_NESTING_PENALTY": ("confidence", "nesting_penalty", float),
        "PAGEBRIDGE_JSON_INDENT": ("output", "json_indent", int),
        "PAGEBRIDGE_MAX_WORKERS": ("batch", "max_workers", int),
    }

    for env_key, (section, attr, conv) in env_map.items():
        val = os.environ.get(env_key)
        if val is not None:
            with contextlib.suppress(ValueError, AttributeError):
                setattr(getattr(config, section), attr, conv(val))

    if config.output.json_indent == 0:
        config.output.json_indent = None
    config.batch.max_workers = max(1, config.batch.max_workers)
    return config


# Module-level config instance, loaded lazily on first use
_config: Config | None = None


def get_config() -> Config:
    """Get the global config instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Drop the cached config so the next get_config() reloads it."""
    global _config
    _config = None
