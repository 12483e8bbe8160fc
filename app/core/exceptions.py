from fastapi import HTTPException
from app.constants.error_codes import ErrorCode


class AppException(HTTPException):
    def __init__(
        self,
        status_code: int,
        message: str,
        error_code: ErrorCode,
        details: dict | None = None,
    ):
        super().__init__(status_code=status_code, detail=message)
        self.error_code = error_code
        self.details = details

    @property
    def message(self) -> str:
        return self.detail

    def __str__(self) -> str:
        return self.detail


# =====================================================
# QUOTATION APPROVAL
# =====================================================
class InvalidInputError(AppException):
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(400, message, ErrorCode.VALIDATION_ERROR, details)


class QuotationNotFoundError(AppException):
    def __init__(self, quotation_id: str):
        super().__init__(
            404,
            f"Quotation not found: {quotation_id}",
            ErrorCode.QUOTATION_NOT_FOUND,
        )


class InvalidStateError(AppException):
    def __init__(self, message: str):
        super().__init__(400, message, ErrorCode.QUOTATION_INVALID_STATE)


class PersistenceError(AppException):
    def __init__(self, message: str):
        super().__init__(500, message, ErrorCode.QUOTATION_PERSISTENCE_FAILED)


class WorkflowError(AppException):
    """The external approval workflow failed, rejected the quotation or answered garbage."""

    def __init__(self, message: str, attempts: int | None = None):
        super().__init__(
            500,
            message,
            ErrorCode.WORKFLOW_FAILED,
            {"attempts": attempts} if attempts is not None else None,
        )
        self.attempts = attempts
