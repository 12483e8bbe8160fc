from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.utils.get_user import get_current_user
from app.utils.response import success_response, APIResponse

from app.schemas.quotations.quotation_schemas import (
    QuotationOut,
    QuotationListData,
)

from app.services.quotations.quotation_service import (
    get_quotation,
    list_quotations,
)

router = APIRouter(
    prefix="/quotations",
    tags=["Quotations"],
    dependencies=[Depends(get_current_user)],
)


@router.get(
    "",
    response_model=APIResponse[QuotationListData],
)
async def list_quotations_api(
    db: AsyncSession = Depends(get_db),
    status: str | None = Query(None, description="Filter by status (e.g., draft, sent)"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    sort_by: str = Query("created_at"),
    order: str = Query("desc"),
):
    data = await list_quotations(
        db=db,
        status=status,
        page=page,
        page_size=page_size,
        sort_by=sort_by,
        order=order,
    )
    return success_response(
        "Quotations retrieved successfully",
        data,
    )


@router.get(
    "/{quotation_id}",
    response_model=APIResponse[QuotationOut],
)
async def get_quotation_api(
    quotation_id: str,
    db: AsyncSession = Depends(get_db),
):
    quotation = await get_quotation(
        db=db,
        quotation_id=quotation_id,
    )
    return success_response(
        "Quotation retrieved successfully",
        quotation,
    )
