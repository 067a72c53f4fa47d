"""Dingus exceptions."""

from typing import List, Optional
from dataclasses import dataclass


@dataclass
class ValidationError:
    """Single configuration validation error."""
    message: str
    path: str = ""

    def __str__(self) -> str:
        if self.path:
            return f"{self.path}: {self.message}"
        return self.message


class DingusError(Exception):
    """Base class for every error surfaced to the command line."""

    exit_code = 1


class ConfigurationError(DingusError):
    """Raised when the configuration cannot be found, read or parsed."""


class ConfigNotFoundError(ConfigurationError):
    """Raised when no config file exists in the directory hierarchy."""

    def __init__(self, message: str = "config file not found"):
        super().__init__(message)


class ConfigValidationError(ConfigurationError):
    """Raised when the configuration document fails validation.

    All problems found in one pass are carried in ``errors`` so the CLI can
    report them together.
    """

    def __init__(self, errors: List[ValidationError]):
        self.errors = errors

        messages = []
        for error in errors:
            messages.append(f"Validation error: {error}")

        super().__init__("\n".join(messages))


class CommandNotFoundError(DingusError):
    """Raised when an invocation path does not match a runnable command."""

    def __init__(self, path: Optional[List[str]] = None, reason: str = "could not find a suitable command"):
        self.path = list(path or [])
        if self.path:
            super().__init__(f"{reason}: {' '.join(self.path)}")
        else:
            super().__init__(reason)


class ProcessLaunchError(DingusError):
    """Raised when a process cannot be started or fails at the I/O level."""

    def __init__(self, command: str, cause: OSError):
        self.command = command
        self.cause = cause
        super().__init__(f"failed to run '{command}': {cause}")


class PromptError(DingusError):
    """Raised when an interactive prompt is cancelled or cannot be shown."""


def describe_exit_code(exit_code: int) -> str:
    """Human readable description of a process exit code."""
    if exit_code < 0:
        return f"process terminated by signal {-exit_code}"
    return f"process exited with code {exit_code}"


class VariableResolutionError(DingusError):
    """Base class for failures while resolving a single variable."""

    def __init__(self, key: str, detail: str):
        self.key = key
        super().__init__(f'failed to resolve variable "{key}": {detail}')


class VariableExecutionError(VariableResolutionError):
    """The variable's command could not be launched."""

    def __init__(self, key: str, cause: ProcessLaunchError):
        self.cause = cause
        super().__init__(key, str(cause))


class VariableExitStatusError(VariableResolutionError):
    """The variable's command exited with a failure status."""

    def __init__(self, key: str, exit_code: int):
        self.exit_code = exit_code
        super().__init__(key, describe_exit_code(exit_code))


class VariableOutputError(VariableResolutionError):
    """The variable's command produced output that is not valid text."""

    def __init__(self, key: str, cause: UnicodeDecodeError):
        self.cause = cause
        super().__init__(key, f"output is not valid UTF-8 ({cause.reason})")


class VariablePromptError(VariableResolutionError):
    """The interactive prompt for the variable failed or was cancelled."""

    def __init__(self, key: str, cause: DingusError):
        self.cause = cause
        super().__init__(key, str(cause))


class ActionError(DingusError):
    """Base class for a failed action, tagged with its position."""

    def __init__(self, index: int, detail: str, deferred: bool = False):
        self.index = index
        self.deferred = deferred
        kind = "deferred action" if deferred else "action"
        super().__init__(f"failed to execute {kind} {index}: {detail}")


class ActionLaunchError(ActionError):
    """The action's process could not be launched."""

    def __init__(self, index: int, cause: ProcessLaunchError, deferred: bool = False):
        self.cause = cause
        super().__init__(index, str(cause), deferred)


class ActionExitStatusError(ActionError):
    """The action's process exited with a non-zero status."""

    def __init__(self, index: int, exit_code: int, deferred: bool = False):
        self.exit_code = exit_code
        super().__init__(index, describe_exit_code(exit_code), deferred)


class ConfirmationDeclinedError(ActionError):
    """A confirmation action was answered with anything but yes."""

    def __init__(self, index: int, message: str, deferred: bool = False):
        self.message = message
        super().__init__(index, "confirmation resulted in a negative result", deferred)


class ActionErrors(DingusError):
    """Several action failures reported together."""

    def __init__(self, errors: List[ActionError]):
        self.errors = list(errors)
        super().__init__("\n".join(str(error) for error in self.errors))
