from fastapi import status


class LocalocoError(Exception):
    """Base class for failures raised by the service layer.

    Every subclass carries a stable ``code`` tag and the HTTP status the API
    boundary should answer with, so handlers never inspect messages.
    """

    code = "INTERNAL_ERROR"
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_response(self) -> dict:
        return {"error": {"code": self.code, "message": self.message}}


class InputValidationError(LocalocoError):
    """Input failed shape or range constraints before reaching the store."""

    code = "VALIDATION_ERROR"
    http_status = status.HTTP_400_BAD_REQUEST


class NotFoundError(LocalocoError):
    """A required row (business, user, referral code, voucher...) is missing."""

    code = "NOT_FOUND"
    http_status = status.HTTP_404_NOT_FOUND


class BusinessRuleError(LocalocoError):
    """A precondition or uniqueness rule was violated."""

    code = "CONFLICT"
    http_status = status.HTTP_409_CONFLICT


class StoreError(LocalocoError):
    """The store failed a write or reported no affected rows."""

    code = "STORE_ERROR"
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR
