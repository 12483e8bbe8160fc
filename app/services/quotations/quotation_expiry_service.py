from datetime import date
import logging

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.quotations.quotation_models import Quotation
from app.models.enums.quotation_status import QuotationStatus

logger = logging.getLogger(__name__)


def _expire_quotation_stmt(today: date):
    # Only offers already with the client can lapse
    return (
        update(Quotation)
        .where(
            Quotation.status == QuotationStatus.sent,
            Quotation.valid_until.isnot(None),
            Quotation.valid_until < today,
        )
        .values(status=QuotationStatus.expired)
        .returning(Quotation.quotation_number)
        .execution_options(synchronize_session=False)
    )


async def auto_expire_quotations(db: AsyncSession, today: date | None = None) -> int:
    today = today or date.today()

    result = await db.execute(_expire_quotation_stmt(today))
    expired = result.scalars().all()

    if not expired:
        return 0

    await db.commit()
    logger.info(
        "Expired %s sent quotations past validity",
        len(expired),
        extra={"quotation_numbers": expired, "as_of": today.isoformat()},
    )
    return len(expired)
