"""
Configuration Schemas for schedload.

Process-wide driver settings. Values normally come from the environment
(see service.get_settings) and can be overridden on the command line.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from schedload.registry import ResolutionPolicy


class DriverSettings(BaseModel):
    """
    Driver settings model.

    verbose enables human-readable progress logging and the periodic
    diagnostics reporter. The reporter options only matter when verbose
    is on.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    verbose: bool = Field(False, description="Enable progress logging and the reporter")
    reporter_period_ms: int = Field(1000, ge=1, description="Reporter interval in milliseconds")
    report_name_filter: str | None = Field(
        None, description="Also report loaded artifacts whose name contains this text"
    )
    resolution_policy: ResolutionPolicy = Field(
        ResolutionPolicy.SHORT_BY_IMPLEMENTATION,
        description="Label spaces consulted when resolving a loader label",
    )

    @field_validator("report_name_filter", mode="before")
    @classmethod
    def _empty_filter_is_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def reporter_enabled(self) -> bool:
        return self.verbose
