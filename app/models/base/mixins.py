from sqlalchemy import Column, DateTime, Uuid
from sqlalchemy.sql import func


class TimestampMixin:
    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now()
    )


class ModificationMixin:
    """Who last edited the quotation content from the dashboard."""
    last_modified_at = Column(DateTime(timezone=True), nullable=True)
    last_modified_by = Column(Uuid(as_uuid=False), nullable=True)
