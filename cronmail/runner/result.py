"""
Result types shared by the runner, alerting and executor.
"""

import signal
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Union


@dataclass(frozen=True)
class Success:
    """The wrapped command exited with status 0."""
    code: int = 0

    @property
    def failed(self) -> bool:
        return False


@dataclass(frozen=True)
class Failure:
    """The wrapped command exited with a non-zero status."""
    code: int

    @property
    def failed(self) -> bool:
        return True


ExitStatus = Union[Success, Failure]


def exit_status(returncode: int) -> ExitStatus:
    """
    Convert a raw process return code into an ExitStatus.

    subprocess reports a child killed by signal N as -N; that is mapped
    to 128 + N the way a shell reports it, so the code is always positive.
    """
    if returncode == 0:
        return Success()
    if returncode < 0:
        return Failure(code=128 - returncode)
    return Failure(code=returncode)


def describe_status(status: ExitStatus) -> str:
    """Human readable status, naming the signal where there is one."""
    if not status.failed:
        return "0 (success)"
    if status.code > 128:
        try:
            name = signal.Signals(status.code - 128).name
        except ValueError:
            return str(status.code)
        return f"{status.code} (killed by {name})"
    return str(status.code)


@dataclass
class ExecutionResult:
    """Result of running one wrapped command."""
    status: ExitStatus
    log_path: Path
    output: bytes = b""
    duration_seconds: float = 0.0

    @property
    def exit_code(self) -> int:
        return self.status.code


@dataclass(frozen=True)
class Address:
    """An email address with display name."""
    email: str
    name: str = ""

    def to_dict(self) -> Dict[str, str]:
        data = {'email': self.email}
        if self.name:
            data['name'] = self.name
        return data


@dataclass(frozen=True)
class NotificationPayload:
    """One notification email, built once per qualifying run."""
    to: Address
    sender: Address
    subject: str
    body: str

    def to_dict(self) -> Dict[str, Any]:
        """Request body in the transactional mail API shape."""
        return {
            'personalizations': [{'to': [self.to.to_dict()]}],
            'from': self.sender.to_dict(),
            'subject': self.subject,
            'content': [{'type': 'text/plain', 'value': self.body}],
        }


@dataclass
class DeliveryOutcome:
    """Final outcome of a delivery attempt sequence."""
    status_code: int
    raw_response: bytes = b""
    attempts: int = 1
    errors: list = field(default_factory=list)

    @property
    def ok(self) -> bool:
        # status_code 0 means no HTTP response was ever received
        return 0 < self.status_code <= 299
