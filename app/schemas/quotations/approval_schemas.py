# app/schemas/quotations/approval_schemas.py

from pydantic import BaseModel
from typing import Any, Dict, Optional


# =====================================================
# REQUEST
# =====================================================

class ApprovalRequest(BaseModel):
    quotation_id: str
    user_id: str
    updated_analysis_data: Optional[Dict[str, Any]] = None


class WorkflowPayload(BaseModel):
    quotation_id: str
    user_id: str
    action: str = "approve_and_send"


# =====================================================
# RESPONSE SECTIONS
# =====================================================

class QuotationDetails(BaseModel):
    quotation_id: str
    quotation_number: Optional[str] = None
    status: str = "sent"
    sent_at: Optional[Any] = None


class ClientInformation(BaseModel):
    client_name: Optional[Any] = None
    project_name: Optional[Any] = None
    total_amount: Optional[Any] = None
    currency: str = "EUR"


class EmailDetails(BaseModel):
    word_file_sent: bool = False
    word_filename: Optional[Any] = None
    email_thread_maintained: bool = False


class DocumentStorage(BaseModel):
    html_stored: bool = False
    html_available_for_pdf: bool = False
    pdf_generation: str = "frontend_handled"


# =====================================================
# RESPONSE
# =====================================================

class ApprovalResult(BaseModel):
    success: bool = True
    status: str = "sent"
    message: str

    quotation_details: QuotationDetails
    client_information: ClientInformation
    email_details: EmailDetails
    document_storage: DocumentStorage

    workflow_metadata: Optional[Any] = None
    processing_time: Optional[Any] = None
