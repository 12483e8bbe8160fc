# app/models/enums/quotation_status.py
import enum

class QuotationStatus(str, enum.Enum):
    draft = "draft"
    approved = "approved"
    sent = "sent"
    accepted = "accepted"
    rejected = "rejected"
    expired = "expired"
