"""Asset Recovery: structured-output recovery for LLM asset extraction."""

__version__ = "1.0.0"

from .exceptions import (
    AssetRecoveryError,
    ConfigError,
    EmptyOrNullCompletion,
    NoJsonFound,
    RecoveryError,
    StructuralParseError,
)
from .recovery import (
    CanonicalRecord,
    FailureCause,
    RecoveryFailure,
    RecoveryResult,
    RepairTelemetry,
    recover,
)

__all__ = [
    "__version__",
    "recover",
    "CanonicalRecord",
    "FailureCause",
    "RecoveryFailure",
    "RecoveryResult",
    "RepairTelemetry",
    "AssetRecoveryError",
    "RecoveryError",
    "EmptyOrNullCompletion",
    "NoJsonFound",
    "StructuralParseError",
    "ConfigError",
]
