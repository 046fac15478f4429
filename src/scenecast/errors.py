"""Error taxonomy for composition requests.

Every failure carries a Severity. FATAL errors are raised and reject the
request (media that cannot load, empty capture, failed ffmpeg stage).
WARNING conditions (an overlay that failed to draw, a missing template
variable) are never raised: they are logged and collected as Issue
records so callers can tell a cosmetic glitch from a failed render.
"""

from dataclasses import dataclass, field
from enum import Enum


class Severity(str, Enum):
    FATAL = "fatal"
    WARNING = "warning"


@dataclass(frozen=True)
class Issue:
    """A non-fatal problem observed while composing."""

    severity: Severity
    message: str
    context: dict = field(default_factory=dict)

    @classmethod
    def warning(cls, message: str, **context) -> "Issue":
        return cls(Severity.WARNING, message, context)


class CompositionError(Exception):
    """Base class for request-level failures."""

    severity = Severity.FATAL


class MediaNotReadyError(CompositionError):
    """The transport could not load or seek the source video."""


class EmptyOutputError(CompositionError):
    """Capture finished but produced zero bytes."""


class TransportBusyError(CompositionError):
    """A second driver tried to claim a transport that is already owned."""


class TranscodeError(CompositionError):
    """An external ffmpeg stage (trim, concat, encode) failed.

    The message is the process's own error output so callers see the
    underlying cause.
    """

    def __init__(self, message: str, returncode: int | None = None, stderr: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr
