"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults live here, ``phasectl.toml`` only holds
overrides. A fresh store needs no config file at all.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

# --- phasectl.toml sections ---


class StoreConfig(BaseModel):
    """[store] section."""

    model_config = {"frozen": True}

    name: str = "phasectl"
    data_dir: str = ".phasectl"


class TimelineConfig(BaseModel):
    """[timeline] section: day horizons for MVP/SHORT/LONG buckets."""

    model_config = {"frozen": True}

    mvp_horizon_days: int = Field(default=90, ge=0)
    short_horizon_days: int = Field(default=365, ge=0)

    @model_validator(mode="after")
    def _ordered(self) -> TimelineConfig:
        if self.short_horizon_days < self.mvp_horizon_days:
            raise ValueError("short_horizon_days must be >= mvp_horizon_days")
        return self


class ReviewConfig(BaseModel):
    """[review] section."""

    model_config = {"frozen": True}

    # When false, only members who can edit the current phase may request.
    allow_member_request: bool = True


class PluginsConfig(BaseModel):
    """[plugins] section."""

    model_config = {"frozen": True}

    enabled: bool = True
    activity_log: bool = True
    max_retries: int = Field(default=3, ge=1)
