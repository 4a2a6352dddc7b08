"""Configuration loading from YAML."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from scenario_qa.models import MatchPolicy

logger = logging.getLogger(__name__)


@dataclass
class ParserConfig:
    heuristic_titles: bool = True


@dataclass
class MatchingConfig:
    base_threshold: float = 0.70
    min_threshold: float = 0.55
    max_threshold: float = 0.80
    domain_state_discount: float = 0.05
    fast_path_threshold: int = 500
    policy: str = "many_to_one"  # "many_to_one" | "one_to_one"

    @property
    def match_policy(self) -> MatchPolicy:
        return MatchPolicy.from_name(self.policy)


@dataclass
class DuplicateConfig:
    high_threshold: float = 80.0
    medium_threshold: float = 70.0
    medium_step_gate: float = 60.0
    optimization_cap: float = 50.0
    fast_path_threshold: int = 500


@dataclass
class ReportConfig:
    gap_id_prefix: str = "GAP"
    gap_id_width: int = 3


@dataclass
class AppConfig:
    parser: ParserConfig = field(default_factory=ParserConfig)
    matching: MatchingConfig = field(default_factory=MatchingConfig)
    duplicates: DuplicateConfig = field(default_factory=DuplicateConfig)
    report: ReportConfig = field(default_factory=ReportConfig)


def _apply_dict(target: Any, data: dict[str, Any]) -> None:
    """Apply dictionary values onto a dataclass instance."""
    for key, value in data.items():
        if not hasattr(target, key):
            logger.warning("Unknown config key '%s' — ignoring.", key)
            continue
        current = getattr(target, key)
        if current is not None and value is not None:
            expected_type = type(current)
            actual_type = type(value)
            # Allow int → float coercion
            if expected_type is float and actual_type is int:
                value = float(value)
            # Guard against bool being subclass of int
            elif expected_type is int and actual_type is bool:
                logger.warning(
                    "Config type mismatch for '%s': expected %s, got %s — skipping.",
                    key, expected_type.__name__, actual_type.__name__,
                )
                continue
            elif not isinstance(value, expected_type):
                logger.warning(
                    "Config type mismatch for '%s': expected %s, got %s — skipping.",
                    key, expected_type.__name__, actual_type.__name__,
                )
                continue
        setattr(target, key, value)


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load configuration from YAML file, falling back to defaults."""
    cfg = AppConfig()

    if config_path is None:
        config_path = Path("config.yaml")

    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

        if not isinstance(raw, dict):
            logger.warning("Config file %s is not a mapping — using defaults.", config_path)
            return cfg

        for section in ("parser", "matching", "duplicates", "report"):
            if isinstance(raw.get(section), dict):
                _apply_dict(getattr(cfg, section), raw[section])

    return cfg


def config_to_dict(cfg: AppConfig) -> dict[str, Any]:
    """Convert an AppConfig to a plain dict."""
    return {f.name: dataclasses.asdict(getattr(cfg, f.name)) for f in dataclasses.fields(cfg)}


def save_config(cfg: AppConfig, config_path: Path | None = None) -> None:
    """Write the config to YAML on disk (write-to-temp then rename)."""
    if config_path is None:
        config_path = Path("config.yaml")

    tmp = config_path.with_suffix(".yaml.tmp")
    with open(tmp, "w", encoding="utf-8") as f:
        yaml.safe_dump(config_to_dict(cfg), f, default_flow_style=False, sort_keys=False)
    tmp.replace(config_path)
