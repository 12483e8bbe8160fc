# app/constants/error_codes.py
from enum import Enum


class ErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    NOT_FOUND = "NOT_FOUND"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    CONFLICT = "CONFLICT"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    # ---------------- QUOTATIONS ----------------
    QUOTATION_NOT_FOUND = "QUOTATION_NOT_FOUND"
    QUOTATION_INVALID_STATE = "QUOTATION_INVALID_STATE"
    QUOTATION_PERSISTENCE_FAILED = "QUOTATION_PERSISTENCE_FAILED"

    # ---------------- APPROVAL WORKFLOW ----------------
    WORKFLOW_FAILED = "WORKFLOW_FAILED"
