class RecallServiceError(Exception):
    """Base class for errors raised by the recall service."""


class StoreUnavailableError(RecallServiceError):
    """The recall store cannot be reached. Fatal for store-backed operations."""


class ProviderError(RecallServiceError):
    """An external recall feed answered with an error or an unreadable payload."""

    def __init__(self, provider: str, message: str, status: int | None = None):
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.status = status
