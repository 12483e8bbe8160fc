import json
import logging
from typing import Any

from fastapi import APIRouter, Depends, Request, Response
from pydantic import ValidationError

from app.core.exceptions import InvalidInputError
from app.schemas.quotations.approval_schemas import ApprovalRequest, ApprovalResult
from app.services.quotations.approval_service import QuotationApprovalService
from app.utils.get_services import get_approval_service
from app.utils.get_user import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["Quotation Approval"],
)


def parse_approval_request(raw: bytes) -> ApprovalRequest:
    try:
        body: Any = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise InvalidInputError("Invalid JSON in request body")

    if not isinstance(body, dict):
        raise InvalidInputError("Request body must be a JSON object")

    quotation_id = body.get("quotation_id")
    if not isinstance(quotation_id, str) or not quotation_id.strip():
        raise InvalidInputError("Quotation ID is required")

    user_id = body.get("user_id")
    if not isinstance(user_id, str) or not user_id.strip():
        raise InvalidInputError("User ID is required")

    updated = body.get("updated_analysis_data")
    if updated is not None and not isinstance(updated, dict):
        raise InvalidInputError("updated_analysis_data must be a JSON object")

    try:
        return ApprovalRequest(
            quotation_id=quotation_id,
            user_id=user_id,
            updated_analysis_data=updated,
        )
    except ValidationError as exc:
        raise InvalidInputError("Invalid approval request", {"errors": exc.errors(include_context=False)})


@router.options("/approve-quotation", include_in_schema=False)
async def approve_quotation_preflight():
    return Response(status_code=200)


@router.post(
    "/approve-quotation",
    response_model=ApprovalResult,
    response_model_exclude_none=True,
)
async def approve_quotation_api(
    request: Request,
    claims: dict = Depends(get_current_user),
    service: QuotationApprovalService = Depends(get_approval_service),
):
    payload = parse_approval_request(await request.body())

    if claims["sub"] != payload.user_id:
        logger.warning(
            "Approval user_id does not match token subject",
            extra={"user_id": payload.user_id, "token_sub": claims["sub"]},
        )

    return await service.approve(
        quotation_id=payload.quotation_id,
        user_id=payload.user_id,
        updated_analysis=payload.updated_analysis_data,
    )
