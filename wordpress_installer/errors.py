from __future__ import annotations

from typing import Optional

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_NOT_PRIVILEGED = 10
EXIT_PRECONDITION_ERROR = 11
EXIT_STEP_FAILED = 12
EXIT_LOCK_HELD = 13


class InstallerError(RuntimeError):
    """Base class for failures that end an installer run."""

    exit_code = EXIT_ERROR


class ConfigError(InstallerError):
    pass


class PrivilegeError(InstallerError):
    exit_code = EXIT_NOT_PRIVILEGED


class LockContention(InstallerError):
    exit_code = EXIT_LOCK_HELD


class SecretGenerationFailed(InstallerError):
    pass


class PreconditionCheckError(InstallerError):
    exit_code = EXIT_PRECONDITION_ERROR

    def __init__(self, step_id: str, message: str) -> None:
        super().__init__(f"Precondition check for {step_id} errored: {message}")
        self.step_id = step_id


class StepApplyError(InstallerError):
    exit_code = EXIT_STEP_FAILED

    def __init__(self, step_id: str, message: str, *, output: Optional[str] = None) -> None:
        text = f"Step {step_id} failed: {message}"
        if output:
            text += f"\n{output.rstrip()}"
        super().__init__(text)
        self.step_id = step_id
        self.output = output or ""
