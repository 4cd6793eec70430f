"""Failure values raised by the stylization core.

Every error is terminal for a single invocation: no stage retries and no
partially stylized buffer is handed back to the caller.
"""

from __future__ import annotations


class StylizeError(Exception):
    """Base class for all stylization failures."""


class DecodeFailure(StylizeError):
    """The input could not be parsed into a pixel buffer."""


class SurfaceUnavailable(StylizeError):
    """A working buffer could not be acquired for the invocation."""


class InvalidParameters(StylizeError, ValueError):
    """Parameters were rejected before any pixel work began."""

    def __init__(self, problems):
        if isinstance(problems, str):
            problems = [problems]
        self.problems = list(problems)
        super().__init__("; ".join(self.problems))


class UpscaleFailure(StylizeError):
    """The super-resolution collaborator failed or is not configured."""
