from datetime import datetime, timezone
from decimal import Decimal
import logging
import uuid

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.quotations.quotation_models import Quotation
from app.models.enums.quotation_status import QuotationStatus
from app.core.exceptions import PersistenceError, QuotationNotFoundError

logger = logging.getLogger(__name__)

# Statuses an approval can still be undone from. Anything past these
# means the workflow already delivered the quotation.
REVERTIBLE_STATUSES = (QuotationStatus.draft, QuotationStatus.approved)


class QuotationStore:
    """Single-row reads and conditional writes on the quotations table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, quotation_id: str) -> Quotation:
        # Postgres rejects malformed uuids outright; treat them as unknown ids
        try:
            lookup_id = str(uuid.UUID(quotation_id))
        except (TypeError, ValueError, AttributeError):
            raise QuotationNotFoundError(quotation_id)

        try:
            result = await self.db.execute(
                select(Quotation).where(Quotation.id == lookup_id)
            )
            q = result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            logger.exception("Quotation lookup failed", extra={"quotation_id": quotation_id})
            raise PersistenceError("Failed to load quotation") from exc

        if not q:
            raise QuotationNotFoundError(quotation_id)
        return q

    async def claim_for_approval(
        self,
        quotation_id: str,
        user_id: str,
        analysis: dict | None = None,
        total_amount: Decimal | None = None,
    ) -> bool:
        """
        Move a draft quotation to `approved`, saving the user's edits in the
        same statement. Returns False when the row is no longer a draft.
        """
        values = {"status": QuotationStatus.approved}
        if analysis is not None:
            values.update(
                analysis=analysis,
                total_amount=total_amount if total_amount is not None else Decimal("0.00"),
                last_modified_at=datetime.now(timezone.utc),
                last_modified_by=user_id,
            )

        try:
            result = await self.db.execute(
                update(Quotation)
                .where(
                    Quotation.id == quotation_id,
                    Quotation.status == QuotationStatus.draft,
                )
                .values(**values)
                .returning(Quotation.id)
                .execution_options(synchronize_session=False)
            )
            claimed_id = result.scalar_one_or_none()
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.exception(
                "Failed to update quotation with user edits",
                extra={"quotation_id": quotation_id},
            )
            raise PersistenceError("Failed to save quotation changes") from exc

        return claimed_id is not None

    async def revert_to_draft(self, quotation_id: str, reason: str) -> bool:
        """
        Put a failed approval back to `draft` and record why. Returns False
        when the quotation had already moved past `approved`.
        """
        try:
            result = await self.db.execute(
                update(Quotation)
                .where(
                    Quotation.id == quotation_id,
                    Quotation.status.in_(REVERTIBLE_STATUSES),
                )
                .values(
                    status=QuotationStatus.draft,
                    approved_by=None,
                    approved_at=None,
                    error_message=reason,
                    last_error_at=datetime.now(timezone.utc),
                )
                .returning(Quotation.id)
                .execution_options(synchronize_session=False)
            )
            reverted_id = result.scalar_one_or_none()
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self.db.rollback()
            raise PersistenceError("Failed to revert quotation status") from exc

        return reverted_id is not None
