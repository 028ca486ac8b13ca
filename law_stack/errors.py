"""Caller-defect errors shared by the tool registry and the domain functions."""


class ToolError(Exception):
    """A caller defect: reported back to the client, never logged as a failure."""


class UnknownToolError(ToolError):
    pass


class ToolUnavailableError(ToolError):
    pass


class InvalidArgumentsError(ToolError, ValueError):
    pass
