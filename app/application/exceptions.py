"""Application-layer exceptions. Do not reuse domain exceptions."""


class ApplicationError(Exception):
    """Base for all application-layer errors."""

    code = "INTERNAL_FAILURE"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class IdempotencyStoreError(ApplicationError):
    """Raised when the idempotency cache cannot be read before a submission."""

    code = "IDEMPOTENCY_STORE_UNAVAILABLE"
