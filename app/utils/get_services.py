import httpx
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import (
    APPROVAL_WEBHOOK_URL,
    APPROVAL_WEBHOOK_TIMEOUT_SECONDS,
    APPROVAL_MAX_RETRY_ATTEMPTS,
    APPROVAL_RETRY_BASE_DELAY_SECONDS,
)
from app.core.db import get_db
from app.services.quotations.approval_service import QuotationApprovalService
from app.services.quotations.approval_workflow_client import (
    ApprovalWorkflowClient,
    RetryPolicy,
)
from app.services.quotations.quotation_store import QuotationStore


def build_approval_workflow_client(http_client: httpx.AsyncClient) -> ApprovalWorkflowClient:
    return ApprovalWorkflowClient(
        http_client=http_client,
        url=APPROVAL_WEBHOOK_URL,
        policy=RetryPolicy(
            max_attempts=APPROVAL_MAX_RETRY_ATTEMPTS,
            timeout_seconds=APPROVAL_WEBHOOK_TIMEOUT_SECONDS,
            base_delay_seconds=APPROVAL_RETRY_BASE_DELAY_SECONDS,
        ),
    )


def get_approval_workflow_client(request: Request) -> ApprovalWorkflowClient:
    return request.app.state.approval_workflow_client


def get_approval_service(
    db: AsyncSession = Depends(get_db),
    workflow: ApprovalWorkflowClient = Depends(get_approval_workflow_client),
) -> QuotationApprovalService:
    return QuotationApprovalService(QuotationStore(db), workflow)
