"""Aggregate statistics over many recovery outcomes."""

from __future__ import annotations

from collections import Counter
from datetime import datetime

from .recovery.models import RecoveryFailure, RecoveryResult


class RecoveryStats:
    """Track recovery outcomes for a batch of completions.

    Owned by the caller; the pipeline itself never reads or writes it.
    """

    def __init__(self) -> None:
        self._start_time = datetime.now()
        self._total = 0
        self._succeeded = 0
        self._records = 0
        self._repaired = 0
        self._objects_saved = 0
        self._duplicates_removed = 0
        self._fallback = 0
        self._failures: Counter[str] = Counter()

    def record(self, outcome: RecoveryResult | RecoveryFailure) -> None:
        self._total += 1
        if isinstance(outcome, RecoveryFailure):
            self._failures[outcome.cause.value] += 1
            return
        self._succeeded += 1
        self._records += len(outcome.records)
        telemetry = outcome.telemetry
        if telemetry.repair_attempted:
            self._repaired += 1
        self._objects_saved += telemetry.objects_saved
        self._duplicates_removed += telemetry.duplicates_removed
        if telemetry.fallback_used:
            self._fallback += 1

    @property
    def total(self) -> int:
        return self._total

    def summary(self) -> dict:
        elapsed = (datetime.now() - self._start_time).total_seconds()
        return {
            "total_completions": self._total,
            "succeeded": self._succeeded,
            "failed": self._total - self._succeeded,
            "success_rate_pct": (
                round(self._succeeded / self._total * 100, 1) if self._total else None
            ),
            "records_recovered": self._records,
            "structurally_repaired": self._repaired,
            "objects_saved": self._objects_saved,
            "duplicates_removed": self._duplicates_removed,
            "fallback_used": self._fallback,
            "failures_by_cause": dict(self._failures),
            "elapsed_seconds": round(elapsed, 1),
        }
