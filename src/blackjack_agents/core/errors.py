"""
Exception hierarchy shared by the agent loop, the tool executor and the model channels.

Only :class:`ChannelFailure` (and subclasses) ever escapes the conversation driver; everything
else is recovered inside the loop.
"""


class MalformedResponse(RuntimeError):
    """Raised when model text cannot be strictly parsed into an agent response."""


class ToolExecutionError(RuntimeError):
    """Raised when a requested tool cannot run or fails."""


class ToolNotFoundError(ToolExecutionError):
    """Raised when the requested tool is not registered for the current turn."""


class ChannelFailure(RuntimeError):
    """Base class for every failure talking to the language model."""


class ChannelTimeout(ChannelFailure):
    """The model did not answer within the configured timeout."""


class ChannelNetworkError(ChannelFailure):
    """The model endpoint could not be reached."""


class ChannelHTTPError(ChannelFailure):
    """The model endpoint answered with a non-2xx status."""

    def __init__(self, status_code: int, detail: str = "") -> None:
        super().__init__(f"Model API error: {status_code} {detail}".rstrip())
        self.status_code = status_code
        self.detail = detail


class RateLimited(ChannelHTTPError):
    """The model endpoint answered HTTP 429."""

    def __init__(self, detail: str = "") -> None:
        super().__init__(429, detail)


class EmptyResponse(ChannelFailure):
    """The model answered successfully but without any text."""


class TurnInProgressError(RuntimeError):
    """Raised when a second agent turn is started while one is still running."""
