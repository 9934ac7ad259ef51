"""Pydantic models for recovered records, telemetry, and pipeline outcomes."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class FailureCause(str, Enum):
    EMPTY_OR_NULL_COMPLETION = "empty_or_null_completion"
    NO_JSON_FOUND = "no_json_found"
    STRUCTURAL_PARSE_ERROR = "structural_parse_error"


class RepairTelemetry(BaseModel):
    """What the pipeline repaired during one call.

    Returned with the result of that call and never stored anywhere else.
    """

    repair_attempted: bool = False
    objects_saved: int = Field(default=0, ge=0)
    duplicates_removed: int = Field(default=0, ge=0)
    fallback_used: bool = False

    model_config = {"frozen": True}

    def merge(self, other: RepairTelemetry) -> RepairTelemetry:
        """Combine telemetry from two independent repair passes."""
        return RepairTelemetry(
            repair_attempted=self.repair_attempted or other.repair_attempted,
            objects_saved=self.objects_saved + other.objects_saved,
            duplicates_removed=self.duplicates_removed + other.duplicates_removed,
            fallback_used=self.fallback_used or other.fallback_used,
        )


class CanonicalRecord(BaseModel):
    name: str
    specification_text: str = ""
    source_excerpt: str = ""
    category_tags: list[str] = Field(default_factory=list)
    quantity: int | str | None = None
    supplier_context: str | None = None
    priority: str | None = None  # "high" | "medium" | "low"
    estimated_cost_range: str | None = None  # "low" | "medium" | "high"


class RecoveryResult(BaseModel):
    records: list[CanonicalRecord] = Field(default_factory=list)
    reasoning: str | None = None
    confidence: float | None = None
    telemetry: RepairTelemetry = Field(default_factory=RepairTelemetry)

    @property
    def ok(self) -> bool:
        return True


class RecoveryFailure(BaseModel):
    """An unrecoverable completion, with enough context for the caller to log
    it and degrade gracefully (e.g. to the keyword fallback generator)."""

    cause: FailureCause
    raw_text: str = ""
    partially_cleaned_text: str = ""
    detail: str = ""

    @property
    def ok(self) -> bool:
        return False
