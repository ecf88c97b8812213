"""Error taxonomy for query processing."""

from __future__ import annotations


class CeloBotError(Exception):
    """Base class for all errors surfaced by the query pipeline."""


class ToolNotUsedError(CeloBotError):
    """The completion response contained no usable tool call."""

    def __init__(self, message: str = "The model did not request any tool, but tool data is required"):
        super().__init__(message)


class ToolExecutionError(CeloBotError):
    """A tool was unknown, raised, or returned no data."""

    def __init__(self, tool_name: str, message: str):
        super().__init__(f"{tool_name}: {message}")
        self.tool_name = tool_name


class UpstreamError(CeloBotError):
    """A remote collaborator (RPC node, indexer, completion service) failed."""


class RpcError(UpstreamError):
    pass


class IndexerError(UpstreamError):
    pass


class CompletionError(UpstreamError):
    pass
