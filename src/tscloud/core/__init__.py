"""Core modules for tscloud - error hierarchy and exit codes."""

from tscloud.core.errors import (
    BlockedError,
    ClusterErrorKind,
    ClusterOperationError,
    ConfigurationError,
    ConvergenceFailed,
    ConvergenceTimeout,
    CreateFailed,
    DeleteFailed,
    ExitCode,
    NotFound,
    ProviderError,
    ReadFailed,
    TscloudError,
    UpdateFailed,
    ValidationError,
    format_error_message,
    main_with_error_handling,
)

__all__ = [
    # Command errors
    "ExitCode",
    "TscloudError",
    "ConfigurationError",
    "ProviderError",
    "ValidationError",
    "BlockedError",
    "main_with_error_handling",
    "format_error_message",
    # Cluster lifecycle errors
    "ClusterErrorKind",
    "ClusterOperationError",
    "CreateFailed",
    "ConvergenceFailed",
    "ConvergenceTimeout",
    "ReadFailed",
    "NotFound",
    "UpdateFailed",
    "DeleteFailed",
]
