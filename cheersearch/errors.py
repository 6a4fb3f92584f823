class CheerSearchError(Exception):
    """Base class for errors raised by the retrieval engine."""


class VectorStoreError(CheerSearchError):
    """The vector store answered with a non-2xx status or is not configured."""

    def __init__(self, operation: str, status: int | None = None, body: str = ""):
        self.operation = operation
        self.status = status
        self.body = body
        if status is None:
            message = f"Vector store {operation} error: {body}"
        else:
            message = f"Vector store {operation} error: {status} - {body}"
        super().__init__(message)


class MetadataValidationError(CheerSearchError, ValueError):
    """Vector metadata exceeds the store's size or key-count limits.

    Raised before any request is issued; never retried.
    """
