"""Errors raised by the profile analytics components."""


class BiolinkError(Exception):
    """Base class for errors talking to the Backend API."""


class RecordingFailure(BiolinkError):
    """A visit submission failed (network or server error).

    Only raised inside the recorder's background task, where it is logged
    and dropped.
    """

    def __init__(self, handle: str, reason: str):
        self.handle = handle
        self.reason = reason
        super().__init__(f"Visit for {handle!r} not recorded: {reason}")


class QueryFailure(BiolinkError):
    """A stats query failed after its retries were exhausted."""

    def __init__(self, handle: str, period: str, reason: str):
        self.handle = handle
        self.period = period
        self.reason = reason
        super().__init__(f"Stats for {handle!r} ({period}) unavailable: {reason}")


class ProfileNotFound(BiolinkError):
    """The public profile could not be loaded or does not exist."""

    def __init__(self, handle: str, reason: str = "not found"):
        self.handle = handle
        self.reason = reason
        super().__init__(f"Profile {handle!r} unavailable: {reason}")
