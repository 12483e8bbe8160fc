# app/utils/response.py

from datetime import datetime, timezone
from typing import TypeVar, Generic, Optional, Dict, Any
from pydantic import BaseModel

T = TypeVar("T")


def success_response(message: str, data: Optional[T] = None) -> Dict[str, Any]:
    return {
        "success": True,
        "message": message,
        "data": data,
    }


def error_response(
    error: str,
    error_code: str,
    details: Optional[Any] = None,
) -> Dict[str, Any]:
    body = {
        "success": False,
        "error": error,
        "error_code": error_code,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if details is not None:
        body["details"] = details
    return body


class APIResponse(BaseModel, Generic[T]):
    success: bool = True
    message: str
    data: Optional[T] = None
