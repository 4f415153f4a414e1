"""Configuration model for the aim trainer engine."""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, model_validator


class Sensitivity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class WeightRule(str, Enum):
    SUM = "sum"
    LAST_WRITE = "last_write"


class MultiplierBand(BaseModel):
    """Safe playable range for one recommendation multiplier."""
    low: float
    high: float

    @model_validator(mode="after")
    def _check_bounds(self) -> "MultiplierBand":
        if self.low <= 0:
            raise ValueError("multiplier band must stay positive")
        if self.low > self.high:
            raise ValueError("multiplier band low must not exceed high")
        return self

    def clamp(self, value: float) -> float:
        return max(self.low, min(self.high, value))

    def rising(self, ratio: float) -> float:
        return self.clamp(self.low + ratio * (self.high - self.low))

    def falling(self, ratio: float) -> float:
        return self.clamp(self.high - ratio * (self.high - self.low))


class AnalyzerConfig(BaseModel):
    smoothing_factor: float = Field(default=0.15, gt=0.0, le=1.0)
    gap_threshold: float = 15.0
    stability_floor: float = 60.0
    risk_threshold: float = 70.0
    recent_window: int = Field(default=10, ge=1)
    history_limit: int = Field(default=50, ge=1)


class RecommenderConfig(BaseModel):
    optimal_pull: float = Field(default=0.5, ge=0.0, le=1.0)
    gap_weight: float = 0.2
    max_gap_shift: float = 15.0
    risk_step: float = 15.0
    mode_gap_threshold: float = 20.0
    focus_gap_threshold: float = 15.0
    risk_threshold: float = 70.0
    stability_floor: float = 60.0
    target_size: MultiplierBand = Field(default_factory=lambda: MultiplierBand(low=0.4, high=1.2))
    spawn_rate: MultiplierBand = Field(default_factory=lambda: MultiplierBand(low=0.8, high=1.2))
    target_lifetime: MultiplierBand = Field(default_factory=lambda: MultiplierBand(low=0.3, high=1.0))
    movement_speed: MultiplierBand = Field(default_factory=lambda: MultiplierBand(low=0.5, high=1.5))


class ControllerConfig(BaseModel):
    initial_difficulty: float = Field(default=30.0, ge=0.0, le=100.0)
    sensitivity: Sensitivity = Sensitivity.MEDIUM
    recommendation_cooldown_s: float = 300.0
    session_history_limit: int = 100
    skill_history_limit: int = 200


class PatternConfig(BaseModel):
    adaptive_weight_rule: WeightRule = WeightRule.SUM


class Settings(BaseModel):
    analyzer: AnalyzerConfig = Field(default_factory=AnalyzerConfig)
    recommender: RecommenderConfig = Field(default_factory=RecommenderConfig)
    controller: ControllerConfig = Field(default_factory=ControllerConfig)
    patterns: PatternConfig = Field(default_factory=PatternConfig)
    data_dir: Path = Path.home() / ".aimtrainer"

    def get_data_dir(self) -> Path:
        override = os.environ.get("AIMTRAINER_DATA_DIR")
        return Path(override) if override else self.data_dir

    @classmethod
    def load(cls) -> "Settings":
        config_path = Path.home() / ".aimtrainer" / "config.yaml"
        if config_path.exists():
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
            return cls(**data)
        return cls()

    def save(self) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        config_path = self.data_dir / "config.yaml"
        with open(config_path, "w") as f:
            yaml.dump(self.model_dump(mode="json"), f, default_flow_style=False)
