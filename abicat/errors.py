"""
Exceptions raised by :mod:`abicat`.
"""


class AbicatError(Exception):
    """
    Base class for all abicat errors
    """


class InvalidInput(AbicatError, ValueError):
    """
    A request was rejected before any work was queued.
    """


class PayloadTooLarge(InvalidInput):
    """
    A request carries more items than a single call accepts.
    """

    def __init__(self, field: str, size: int, limit: int):
        super().__init__(f"Too many {field}: {size} > {limit}")
        self.field = field
        self.size = size
        self.limit = limit


class UnknownChain(InvalidInput):
    """
    A chain name has no configured numeric chain id.
    """

    def __init__(self, chain: str):
        super().__init__(f"Unknown chain `{chain}`")
        self.chain = chain


class SourceError(AbicatError):
    """
    The metadata source failed to resolve a contract.

    Args:
        message: error description
        status: HTTP status code, if the failure came with one
    """

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class DispatcherClosed(AbicatError):
    """
    The fetch dispatcher no longer accepts requests.
    """
