"""
Error types and CLI error handling for tscloud.

Two layers live here:

* The command-level hierarchy (``TscloudError`` and friends) that maps every
  failure onto a process exit code.
* The cluster lifecycle errors raised by the reconciliation engine. Each one
  carries a ``ClusterErrorKind`` tag so callers branch on ``kind`` (or on the
  class) instead of parsing messages. The remote failure that triggered it is
  always chained as ``__cause__``.

Exit Codes:
- 0: Success
- 1: Warning (operation succeeded with warnings)
- 2: Blocked (operation refused, e.g. delete not confirmed)
- 10: Configuration error
- 11: Provider error (Typesense Cloud API failure)
- 12: Validation error
- 127: Unknown/internal error
"""

from __future__ import annotations

import functools
import sys
import traceback
from enum import Enum, IntEnum
from typing import Any, Callable, TypeVar

import structlog

logger = structlog.get_logger()


class ExitCode(IntEnum):
    """Standardized exit codes for CLI commands."""

    SUCCESS = 0
    WARNING = 1
    BLOCKED = 2
    CONFIG_ERROR = 10
    PROVIDER_ERROR = 11
    VALIDATION_ERROR = 12
    UNKNOWN_ERROR = 127


class TscloudError(Exception):
    """Base exception for tscloud errors with exit code support."""

    exit_code: ExitCode = ExitCode.UNKNOWN_ERROR
    show_traceback: bool = False

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(TscloudError):
    """Raised for configuration-related errors."""

    exit_code = ExitCode.CONFIG_ERROR


class ProviderError(TscloudError):
    """Raised when the remote control plane fails."""

    exit_code = ExitCode.PROVIDER_ERROR


class ValidationError(TscloudError):
    """Raised for validation failures."""

    exit_code = ExitCode.VALIDATION_ERROR


class BlockedError(TscloudError):
    """Raised when an operation is refused before it reaches the API."""

    exit_code = ExitCode.BLOCKED


# ---------------------------------------------------------------------------
# Cluster lifecycle errors
# ---------------------------------------------------------------------------


class ClusterErrorKind(str, Enum):
    """Tag identifying which lifecycle step failed."""

    CREATE_FAILED = "create_failed"
    CONVERGENCE_FAILED = "convergence_failed"
    CONVERGENCE_TIMEOUT = "convergence_timeout"
    READ_FAILED = "read_failed"
    NOT_FOUND = "not_found"
    UPDATE_FAILED = "update_failed"
    DELETE_FAILED = "delete_failed"


class ClusterOperationError(ProviderError):
    """A lifecycle operation against a cluster failed."""

    kind: ClusterErrorKind

    def __init__(
        self,
        message: str,
        *,
        cluster_id: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        merged = dict(details or {})
        if cluster_id is not None:
            merged.setdefault("cluster_id", cluster_id)
        super().__init__(message, merged)
        self.cluster_id = cluster_id


class CreateFailed(ClusterOperationError):
    """The create call was rejected; nothing exists remotely."""

    kind = ClusterErrorKind.CREATE_FAILED


class ConvergenceFailed(ClusterOperationError):
    """The cluster was created but polling for a stable status failed.

    The cluster may exist remotely, so hosts should keep track of
    ``cluster_id`` rather than discarding it.
    """

    kind = ClusterErrorKind.CONVERGENCE_FAILED


class ConvergenceTimeout(ConvergenceFailed):
    """The cluster did not leave the provisioning status in time."""

    kind = ClusterErrorKind.CONVERGENCE_TIMEOUT

    def __init__(
        self,
        message: str,
        *,
        cluster_id: str | None = None,
        last_status: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        merged = dict(details or {})
        if last_status is not None:
            merged.setdefault("last_status", last_status)
        super().__init__(message, cluster_id=cluster_id, details=merged)
        self.last_status = last_status


class ReadFailed(ClusterOperationError):
    kind = ClusterErrorKind.READ_FAILED


class NotFound(ReadFailed):
    """The cluster no longer exists; hosts drop it from state."""

    kind = ClusterErrorKind.NOT_FOUND


class UpdateFailed(ClusterOperationError):
    kind = ClusterErrorKind.UPDATE_FAILED


class DeleteFailed(ClusterOperationError):
    kind = ClusterErrorKind.DELETE_FAILED


# Type variable for decorated functions
F = TypeVar("F", bound=Callable[..., int])


def main_with_error_handling(
    *,
    show_traceback: bool = False,
    log_errors: bool = True,
) -> Callable[[F], F]:
    """
    Decorator for CLI entry points that provides unified error handling.

    Args:
        show_traceback: If True, show full traceback for unexpected errors
        log_errors: If True, log errors to structlog

    Exit codes:
        - TscloudError subclasses: Uses the error's exit_code
        - KeyboardInterrupt: Returns 130 (standard for SIGINT)
        - Other exceptions: Returns 127 (unknown error)
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> int:
            try:
                return func(*args, **kwargs)
            except TscloudError as e:
                if log_errors:
                    logger.error(
                        "command_error",
                        error_type=type(e).__name__,
                        message=e.message,
                        exit_code=e.exit_code,
                        **e.details,
                    )
                if e.show_traceback or show_traceback:
                    traceback.print_exc(file=sys.stderr)
                return e.exit_code
            except KeyboardInterrupt:
                if log_errors:
                    logger.info("command_interrupted")
                return 130
            except Exception as e:
                if log_errors:
                    logger.error(
                        "unexpected_error",
                        error_type=type(e).__name__,
                        message=str(e),
                        exit_code=ExitCode.UNKNOWN_ERROR,
                    )
                if show_traceback:
                    traceback.print_exc(file=sys.stderr)
                return ExitCode.UNKNOWN_ERROR

        return wrapper  # type: ignore[return-value]

    return decorator


def format_error_message(error: TscloudError) -> str:
    """Format an error message for display to users."""
    msg = error.message
    if error.details:
        detail_str = ", ".join(f"{k}={v}" for k, v in error.details.items())
        msg = f"{msg} ({detail_str})"
    if error.__cause__ is not None:
        msg = f"{msg}: {error.__cause__}"
    return msg
