"""Custom exception hierarchy for asset-recovery.

All asset-recovery exceptions inherit from AssetRecoveryError, allowing
callers to catch broad or specific errors:

    try:
        candidate = strip_fences(raw)
    except NoJsonFound as e:
        print(f"No JSON in completion: {e}")
    except AssetRecoveryError as e:
        print(f"asset-recovery error: {e}")

``recover()`` itself never raises these; it converts them into
``RecoveryFailure`` values for the caller.
"""

from __future__ import annotations


class AssetRecoveryError(Exception):
    """Base exception for all asset-recovery errors."""


class RecoveryError(AssetRecoveryError):
    """Raised when a pipeline stage cannot produce usable output."""


class EmptyOrNullCompletion(RecoveryError):
    """Raised when the completion is None, empty, or whitespace-only."""


class NoJsonFound(RecoveryError):
    """Raised when no ``{ ... }`` span exists in the completion."""


class StructuralParseError(RecoveryError):
    """Raised when the repaired document still does not parse.

    Carries the raw completion, the fully cleaned text, and the underlying
    parser error so the caller can route into fallback extraction.
    """

    def __init__(
        self,
        message: str,
        raw_text: str = "",
        cleaned_text: str = "",
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.raw_text = raw_text
        self.cleaned_text = cleaned_text
        self.cause = cause


class ConfigError(AssetRecoveryError):
    """Raised when configuration is invalid or missing."""
