# app/routers/__init__.py

from .quotations.approval_router import router as approval_router
from .quotations.quotation_router import router as quotation_router


__all__ = [
"approval_router",
"quotation_router",
]
