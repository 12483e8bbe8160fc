from pydantic import BaseModel
from typing import Any, Dict, List, Optional
from decimal import Decimal
from datetime import datetime, date

from app.models.enums.quotation_status import QuotationStatus


# =====================================================
# QUOTATION DETAIL RESPONSE
# =====================================================

class QuotationOut(BaseModel):
    id: str
    quotation_number: str
    email_id: Optional[str]
    status: QuotationStatus

    total_amount: Optional[Decimal]
    margin_percentage: Optional[Decimal]
    analysis: Optional[Dict[str, Any]]
    client_details: Optional[Dict[str, Any]]
    project_summary: Optional[Dict[str, Any]]

    valid_until: Optional[date]
    sent_at: Optional[datetime]
    pdf_url: Optional[str]

    approved_by: Optional[str]
    approved_at: Optional[datetime]
    last_modified_by: Optional[str]
    last_modified_at: Optional[datetime]

    error_message: Optional[str]
    last_error_at: Optional[datetime]

    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


# =====================================================
# QUOTATION LIST RESPONSE
# =====================================================

class QuotationListItem(BaseModel):
    id: str
    quotation_number: str
    status: QuotationStatus
    total_amount: Optional[Decimal]
    valid_until: Optional[date]
    sent_at: Optional[datetime]
    has_error: bool
    created_at: Optional[datetime]


class QuotationListData(BaseModel):
    total: int
    items: List[QuotationListItem]
