import asyncio
import logging
from typing import Any, Dict, Optional

from app.core.exceptions import InvalidInputError, InvalidStateError
from app.models.enums.quotation_status import QuotationStatus
from app.schemas.quotations.approval_schemas import (
    ApprovalResult,
    ClientInformation,
    DocumentStorage,
    EmailDetails,
    QuotationDetails,
)
from app.services.quotations.approval_workflow_client import ApprovalWorkflowClient
from app.services.quotations.quotation_store import QuotationStore
from app.utils.decimal_utils import grand_total_of

logger = logging.getLogger(__name__)

DEFAULT_SUCCESS_MESSAGE = "Quotation sent successfully to client"


class QuotationApprovalService:
    """
    Approves a draft quotation and hands it to the send workflow.

    Once the quotation has been claimed, any failure reverts it to draft
    through rollback_to_draft() before the error reaches the caller.
    """

    def __init__(self, store: QuotationStore, workflow: ApprovalWorkflowClient):
        self.store = store
        self.workflow = workflow

    async def approve(
        self,
        quotation_id: str,
        user_id: str,
        updated_analysis: Optional[Dict[str, Any]] = None,
    ) -> ApprovalResult:
        if not isinstance(quotation_id, str) or not quotation_id.strip():
            raise InvalidInputError("Quotation ID is required")
        if not isinstance(user_id, str) or not user_id.strip():
            raise InvalidInputError("User ID is required")

        total_amount = None
        if updated_analysis is not None:
            try:
                total_amount = grand_total_of(updated_analysis)
            except ValueError as exc:
                raise InvalidInputError(f"Invalid pricing.grand_total: {exc}") from exc

        logger.info(
            "Starting quotation approval process",
            extra={
                "quotation_id": quotation_id,
                "user_id": user_id,
                "has_updated_data": updated_analysis is not None,
            },
        )

        quotation = await self.store.get(quotation_id)
        if quotation.status != QuotationStatus.draft:
            raise InvalidStateError(
                f"Quotation status is '{_status_value(quotation.status)}'. "
                "Only draft quotations can be approved."
            )
        quotation_number = quotation.quotation_number

        completed = False
        lost_race = False
        failure_reason = "Approval interrupted before the workflow responded"
        try:
            claimed = await self.store.claim_for_approval(
                quotation_id,
                user_id,
                analysis=updated_analysis,
                total_amount=total_amount,
            )
            if not claimed:
                # Another approval owns the row now; nothing of ours to undo
                lost_race = True
                raise InvalidStateError(
                    f"Quotation {quotation_id} is no longer a draft. "
                    "Only draft quotations can be approved."
                )

            workflow_result = await self.workflow.send(quotation_id, user_id)
            result = build_approval_result(quotation_id, quotation_number, workflow_result)
            completed = True
        except Exception as exc:
            failure_reason = str(exc)
            logger.error(
                "Quotation approval failed: %s",
                exc,
                extra={"quotation_id": quotation_id},
            )
            raise
        finally:
            # Also runs on cancellation (client gone, worker shutdown)
            if not completed and not lost_race:
                await asyncio.shield(self.rollback_to_draft(quotation_id, failure_reason))

        logger.info(
            "Quotation approval completed successfully",
            extra={
                "quotation_id": quotation_id,
                "quotation_number": quotation_number,
                "email_sent": result.email_details.word_file_sent,
                "html_stored": result.document_storage.html_stored,
            },
        )
        return result

    async def rollback_to_draft(self, quotation_id: str, reason: str) -> None:
        """Best effort. Never raises: the primary failure is what the caller sees."""
        try:
            reverted = await self.store.revert_to_draft(quotation_id, reason)
        except Exception:
            logger.exception(
                "Failed to revert quotation status",
                extra={"quotation_id": quotation_id},
            )
            return

        if reverted:
            logger.info(
                "Reverted quotation status to draft due to failure",
                extra={"quotation_id": quotation_id},
            )
        else:
            logger.warning(
                "Quotation already progressed past approval; status left unchanged",
                extra={"quotation_id": quotation_id},
            )


def _status_value(status) -> str:
    return status.value if isinstance(status, QuotationStatus) else str(status)


def _section(workflow_result: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = workflow_result.get(key)
    return value if isinstance(value, dict) else {}


def build_approval_result(
    quotation_id: str,
    quotation_number: str,
    workflow_result: Dict[str, Any],
) -> ApprovalResult:
    details = _section(workflow_result, "quotation_details")
    client = _section(workflow_result, "client_information")
    email = _section(workflow_result, "email_details")
    storage = _section(workflow_result, "document_storage")

    return ApprovalResult(
        message=str(workflow_result.get("message") or DEFAULT_SUCCESS_MESSAGE),
        quotation_details=QuotationDetails(
            quotation_id=quotation_id,
            quotation_number=str(details.get("quotation_number") or quotation_number),
            status=str(details.get("status") or QuotationStatus.sent.value),
            sent_at=details.get("sent_at"),
        ),
        client_information=ClientInformation(
            client_name=client.get("client_name"),
            project_name=client.get("project_name"),
            total_amount=client.get("total_amount"),
            currency=str(client.get("currency") or "EUR"),
        ),
        email_details=EmailDetails(
            word_file_sent=bool(email.get("word_file_sent")),
            word_filename=email.get("word_filename"),
            email_thread_maintained=bool(email.get("email_thread_maintained")),
        ),
        document_storage=DocumentStorage(
            html_stored=bool(storage.get("html_stored")),
            html_available_for_pdf=bool(storage.get("html_available_for_pdf")),
            pdf_generation=str(storage.get("pdf_generation") or "frontend_handled"),
        ),
        workflow_metadata=workflow_result.get("workflow_metadata"),
        processing_time=workflow_result.get("timestamp"),
    )
