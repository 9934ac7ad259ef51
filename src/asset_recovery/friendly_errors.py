"""Human-readable explanations for recovery failures.

Maps a RecoveryFailure (or a config error) to a short message with an
actionable fix, for display in the terminal.
"""

from __future__ import annotations

from dataclasses import dataclass

from .recovery.models import FailureCause, RecoveryFailure


@dataclass
class FriendlyError:
    """A readable error with a fix suggestion."""

    title: str
    message: str
    fix: str


def friendly_recovery_error(failure: RecoveryFailure) -> FriendlyError:
    """Convert a recovery failure to a readable message."""
    if failure.cause is FailureCause.EMPTY_OR_NULL_COMPLETION:
        return FriendlyError(
            title="Model returned nothing",
            message="The completion was empty, so there were no assets to read.",
            fix=(
                "Check the model call itself:\n"
                "1. Was max_tokens large enough for the brief?\n"
                "2. Did the provider return an error body instead of a completion?\n"
                "Re-run the request or pass --brief to use keyword fallback assets."
            ),
        )

    if failure.cause is FailureCause.NO_JSON_FOUND:
        return FriendlyError(
            title="No JSON in completion",
            message="The model answered in prose without any JSON object.",
            fix=(
                "The prompt must ask for ONLY a JSON object with an \"assets\" "
                "array. Pass --brief to generate keyword fallback assets instead."
            ),
        )

    detail = failure.detail or "unknown parse error"
    return FriendlyError(
        title="Completion could not be repaired",
        message=f"The JSON was too damaged to recover any complete asset: {detail}",
        fix=(
            "Common causes:\n"
            "- The completion was cut off before the first asset closed\n"
            "- Asset records nest objects the fallback extractor cannot split\n"
            "Increase max_tokens, or pass --brief to use keyword fallback assets."
        ),
    )


def friendly_config_error(error: Exception) -> FriendlyError:
    """Convert a configuration error to a readable message."""
    msg = str(error).lower()

    if "yaml" in msg or "parse" in msg or "invalid" in msg:
        return FriendlyError(
            title="Configuration file error",
            message="The configuration file has a formatting issue.",
            fix=(
                "Check ~/.asset-recovery/config.yaml for syntax errors. "
                "Common issues:\n"
                "- Missing spaces after colons (use 'key: value' not 'key:value')\n"
                "- Incorrect indentation (use 2 spaces, not tabs)\n"
                "- A list field (array_keys, duplicable_fields) given as a string\n"
                "Run 'asset-recovery config' to print the effective config."
            ),
        )

    return FriendlyError(
        title="Configuration error",
        message=f"There's a problem with your setup: {error}",
        fix="Check ~/.asset-recovery/config.yaml or pass --config PATH.",
    )


def format_friendly_error(err: FriendlyError) -> str:
    """Format a FriendlyError for display in the terminal."""
    lines = [
        f"Error: {err.title}",
        f"   {err.message}",
        "",
        "How to fix:",
    ]
    for line in err.fix.split("\n"):
        lines.append(f"   {line}")
    return "\n".join(lines)
