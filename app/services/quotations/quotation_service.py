from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, asc, desc

from app.models.quotations.quotation_models import Quotation
from app.models.enums.quotation_status import QuotationStatus
from app.schemas.quotations.quotation_schemas import (
    QuotationOut,
    QuotationListData,
    QuotationListItem,
)
from app.core.exceptions import InvalidInputError
from app.services.quotations.quotation_store import QuotationStore

SORT_COLUMNS = {
    "created_at": Quotation.created_at,
    "quotation_number": Quotation.quotation_number,
    "total_amount": Quotation.total_amount,
}


async def get_quotation(
    db: AsyncSession,
    quotation_id: str,
) -> QuotationOut:
    q = await QuotationStore(db).get(quotation_id)
    return QuotationOut.model_validate(q)


async def list_quotations(
    db: AsyncSession,
    status: str | None = None,
    page: int = 1,
    page_size: int = 20,
    sort_by: str = "created_at",
    order: str = "desc",
) -> QuotationListData:
    filters = []
    if status:
        try:
            filters.append(Quotation.status == QuotationStatus(status))
        except ValueError:
            raise InvalidInputError(f"Unknown quotation status: {status}")

    total = await db.scalar(
        select(func.count(Quotation.id)).where(*filters)
    )

    sort_col = SORT_COLUMNS.get(sort_by, Quotation.created_at)

    result = await db.execute(
        select(Quotation)
        .where(*filters)
        .order_by(asc(sort_col) if order == "asc" else desc(sort_col), Quotation.id)
        .offset((page - 1) * page_size)
        .limit(page_size)
    )

    items = [
        QuotationListItem(
            id=q.id,
            quotation_number=q.quotation_number,
            status=q.status,
            total_amount=q.total_amount,
            valid_until=q.valid_until,
            sent_at=q.sent_at,
            has_error=q.error_message is not None,
            created_at=q.created_at,
        )
        for q in result.scalars()
    ]

    return QuotationListData(
        total=total or 0,
        items=items,
    )
