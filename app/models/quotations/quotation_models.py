import uuid
from decimal import Decimal

from sqlalchemy import Column, String, Numeric, Enum, JSON, Text, DateTime, Index, Uuid
from sqlalchemy.types import Date

from app.core.db import Base
from app.models.base.mixins import TimestampMixin, ModificationMixin
from app.models.enums.quotation_status import QuotationStatus


def _new_id() -> str:
    return str(uuid.uuid4())


class Quotation(Base, TimestampMixin, ModificationMixin):
    __tablename__ = "quotations"

    # uuid columns in Supabase; ids travel as strings
    id = Column(Uuid(as_uuid=False), primary_key=True, default=_new_id)
    email_id = Column(Uuid(as_uuid=False), nullable=True, index=True)
    company_id = Column(Uuid(as_uuid=False), nullable=True)
    quotation_number = Column(String(50), nullable=False, unique=True, index=True)

    # Text column + CHECK constraint on the Supabase side
    status = Column(
        Enum(
            QuotationStatus,
            name="quotations_status_check",
            native_enum=False,
            create_constraint=True,
            length=20,
        ),
        nullable=False,
        default=QuotationStatus.draft,
        index=True,
    )

    analysis = Column(JSON, nullable=True, default=dict)
    total_amount = Column(Numeric(10, 2), nullable=True, default=Decimal("0.00"))
    margin_percentage = Column(Numeric(5, 2), nullable=True, default=Decimal("20.00"))

    valid_until = Column(Date, nullable=True)
    pdf_url = Column(Text, nullable=True)
    html_quotation = Column(Text, nullable=True)
    sent_at = Column(DateTime(timezone=True), nullable=True)

    approved_by = Column(Uuid(as_uuid=False), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)

    project_summary = Column(JSON, nullable=True, default=dict)
    client_details = Column(JSON, nullable=True, default=dict)
    processing_metadata = Column(JSON, nullable=True, default=dict)

    error_message = Column(Text, nullable=True)
    last_error_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_quotations_status_valid_until", "status", "valid_until"),
    )

    def __repr__(self):
        return f"<Quotation {self.quotation_number} status={self.status}>"
