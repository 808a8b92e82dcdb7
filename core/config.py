"""Configuration management utilities."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from services.ladder.errors import ConfigError
from services.ladder.pricing import precision_from_tick
from services.ladder.types import Instrument


class InstrumentConfig(BaseModel):
    """Tick metadata used when no live venue supplies it (paper runs)."""

    model_config = ConfigDict(frozen=True)

    tick_size: float = Field(default=0.0001, gt=0)
    precision: Optional[int] = Field(default=None, ge=0)

    def resolve(self, symbol: str) -> Instrument:
        precision = self.precision
        if precision is None:
            precision = precision_from_tick(self.tick_size)
        return Instrument(symbol=symbol, tick_size=self.tick_size, precision=precision)


class LadderConfig(BaseSettings):
    """Session configuration. Distances are expressed in instrument ticks.

    Values passed explicitly (or read from a YAML file) win over
    ``LADDER_*`` environment variables, which win over the defaults.
    """

    model_config = SettingsConfigDict(env_prefix="LADDER_", extra="ignore", frozen=True)

    symbol: str = Field(default="EURUSD")
    owner_tag: str = Field(default="ladder-1")
    label: str = Field(default="ladder")
    gap_points: int = Field(default=400, ge=0)
    take_profit_points: int = Field(default=400, ge=0)
    lots: float = Field(default=0.1, gt=0)
    trailing_enabled: bool = Field(default=False)
    break_even_points: int = Field(default=50, ge=0)
    trailing_step_trigger: int = Field(default=50, ge=0)
    trailing_step_size: int = Field(default=50, ge=0)
    instrument: InstrumentConfig = Field(default_factory=InstrumentConfig)

    @field_validator("symbol", "owner_tag", mode="before")
    @classmethod
    def validate_non_blank(cls, value: Any) -> Any:
        if value is None:
            return value
        text = str(value).strip()
        if not text:
            raise ValueError("must not be blank")
        return text

    @model_validator(mode="after")
    def validate_step_pair(self) -> "LadderConfig":
        if bool(self.trailing_step_trigger) != bool(self.trailing_step_size):
            raise ValueError(
                "trailing_step_trigger and trailing_step_size must both be zero or both positive"
            )
        return self

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()

    def with_overrides(self, **overrides: Any) -> "LadderConfig":
        payload = self.to_dict()
        for key, value in overrides.items():
            if value is None:
                continue
            payload[key] = value
        return build_config(payload)


def build_config(payload: Optional[Dict[str, Any]] = None) -> LadderConfig:
    """Validate ``payload`` into a ``LadderConfig``, raising ``ConfigError``."""

    try:
        return LadderConfig(**(payload or {}))
    except ValidationError as exc:
        raise ConfigError(f"invalid ladder configuration: {exc}") from exc


def _read_config_payload(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"cannot read config {path}: {exc}") from exc
    try:
        payload = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"cannot parse config {path}: {exc}") from exc
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ConfigError(f"config {path} must contain a mapping at the top level")
    # allow the settings to live under a "ladder:" key
    if "ladder" in payload and isinstance(payload["ladder"], dict):
        return dict(payload["ladder"])
    return payload


def load_config(path: Optional[Path] = None) -> LadderConfig:
    """Load configuration from ``path`` (YAML) or from the environment alone."""

    if path is None:
        return build_config()
    return build_config(_read_config_payload(Path(path)))


__all__ = ["InstrumentConfig", "LadderConfig", "build_config", "load_config"]
