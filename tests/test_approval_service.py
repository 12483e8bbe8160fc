import asyncio
from decimal import Decimal

import httpx
import pytest

from app.core.exceptions import (
    InvalidInputError,
    InvalidStateError,
    PersistenceError,
    QuotationNotFoundError,
    WorkflowError,
)
from app.models.enums.quotation_status import QuotationStatus
from app.services.quotations.approval_service import (
    QuotationApprovalService,
    build_approval_result,
)
from conftest import (
    FakeQuotationStore,
    WorkflowStub,
    connect_error,
    make_quotation,
    workflow_ok,
)


def approve(store, stub, quotation_id="Q1", user_id="user-1", updated_analysis=None):
    service = QuotationApprovalService(store, stub.client())
    return asyncio.run(
        service.approve(quotation_id, user_id, updated_analysis=updated_analysis)
    )


class TestPreconditions:

    @pytest.mark.parametrize(
        "status",
        [QuotationStatus.approved, QuotationStatus.sent, QuotationStatus.accepted, QuotationStatus.expired],
    )
    def test_non_draft_is_rejected_without_writes(self, status):
        store = FakeQuotationStore([make_quotation("Q1", status=status)])
        stub = WorkflowStub([workflow_ok()])

        with pytest.raises(InvalidStateError) as exc_info:
            approve(store, stub)

        assert f"'{status.value}'" in exc_info.value.message
        assert "Only draft quotations can be approved" in exc_info.value.message
        assert store.writes == []
        assert stub.call_count == 0

    def test_unknown_quotation_is_not_found_before_any_call(self, fake_store):
        stub = WorkflowStub([workflow_ok()])

        with pytest.raises(QuotationNotFoundError) as exc_info:
            approve(fake_store, stub, quotation_id="missing")

        assert exc_info.value.status_code == 404
        assert fake_store.writes == []
        assert stub.call_count == 0

    @pytest.mark.parametrize(
        "quotation_id, user_id, message",
        [
            ("", "user-1", "Quotation ID is required"),
            ("   ", "user-1", "Quotation ID is required"),
            ("Q1", "", "User ID is required"),
            ("Q1", None, "User ID is required"),
        ],
    )
    def test_missing_ids_fail_fast(self, fake_store, quotation_id, user_id, message):
        stub = WorkflowStub([workflow_ok()])

        with pytest.raises(InvalidInputError) as exc_info:
            approve(fake_store, stub, quotation_id=quotation_id, user_id=user_id)

        assert exc_info.value.message == message
        assert fake_store.calls == []

    def test_non_numeric_grand_total_fails_before_side_effects(self, fake_store):
        stub = WorkflowStub([workflow_ok()])

        with pytest.raises(InvalidInputError):
            approve(fake_store, stub, updated_analysis={"pricing": {"grand_total": "lots"}})

        assert fake_store.calls == []
        assert stub.call_count == 0


class TestApproval:

    def test_draft_without_edits_is_sent(self, fake_store):
        stub = WorkflowStub([workflow_ok()])

        result = approve(fake_store, stub)

        assert result.success is True
        assert result.status == "sent"
        assert result.message == "sent"
        assert result.quotation_details.quotation_id == "Q1"
        assert result.quotation_details.quotation_number == "QT-Q1"
        assert stub.call_count == 1
        assert fake_store.rows["Q1"].status != QuotationStatus.draft
        assert ("revert", "Q1") not in fake_store.calls
        # analysis untouched when no edits are supplied
        assert fake_store.rows["Q1"].last_modified_by is None

    def test_succeeds_on_third_attempt(self, fake_store):
        stub = WorkflowStub([connect_error(), connect_error(), workflow_ok()])

        result = approve(fake_store, stub)

        assert result.success is True
        assert stub.call_count == 3
        assert ("revert", "Q1") not in fake_store.calls

    def test_edits_are_persisted_before_the_workflow_call(self, fake_store):
        seen = {}

        def check_store(request):
            q = fake_store.rows["Q1"]
            seen["total_amount"] = q.total_amount
            seen["analysis"] = q.analysis
            return workflow_ok()

        stub = WorkflowStub([check_store])
        analysis = {"pricing": {"grand_total": 1500}, "items": [{"model": "AC-12"}]}

        approve(fake_store, stub, updated_analysis=analysis)

        assert seen["total_amount"] == Decimal("1500")
        assert seen["analysis"] == analysis
        assert fake_store.rows["Q1"].last_modified_by == "user-1"

    def test_missing_grand_total_defaults_to_zero(self, fake_store):
        stub = WorkflowStub([workflow_ok()])

        approve(fake_store, stub, updated_analysis={"items": []})

        assert fake_store.rows["Q1"].total_amount == Decimal("0")


class TestRollback:

    def test_exhausted_retries_roll_back_to_draft(self):
        q = make_quotation("Q1", approved_by="someone", approved_at="2025-07-30T10:00:00Z")
        store = FakeQuotationStore([q])
        stub = WorkflowStub([connect_error()])

        with pytest.raises(WorkflowError) as exc_info:
            approve(store, stub)

        assert stub.call_count == 3
        assert q.status == QuotationStatus.draft
        assert q.approved_by is None
        assert q.approved_at is None
        assert q.error_message == exc_info.value.message
        assert q.last_error_at is not None

    def test_non_2xx_makes_exactly_one_call_and_rolls_back(self, fake_store):
        stub = WorkflowStub([httpx.Response(500, text="boom")])

        with pytest.raises(WorkflowError):
            approve(fake_store, stub)

        assert stub.call_count == 1
        assert fake_store.rows["Q1"].status == QuotationStatus.draft
        assert "status 500" in fake_store.rows["Q1"].error_message

    def test_workflow_reported_failure_rolls_back(self, fake_store):
        stub = WorkflowStub([httpx.Response(200, json={"success": False, "message": "no client email"})])

        with pytest.raises(WorkflowError):
            approve(fake_store, stub)

        assert fake_store.rows["Q1"].status == QuotationStatus.draft
        assert "no client email" in fake_store.rows["Q1"].error_message

    def test_failed_edit_write_skips_workflow_and_rolls_back(self, fake_store):
        fake_store.fail_claim = True
        stub = WorkflowStub([workflow_ok()])

        with pytest.raises(PersistenceError):
            approve(fake_store, stub, updated_analysis={"pricing": {"grand_total": 10}})

        assert stub.call_count == 0
        assert ("revert", "Q1") in fake_store.calls

    def test_rollback_failure_keeps_primary_error(self, fake_store):
        fake_store.fail_revert = True
        stub = WorkflowStub([httpx.Response(503, text="down")])

        with pytest.raises(WorkflowError) as exc_info:
            approve(fake_store, stub)

        assert "status 503" in exc_info.value.message
        assert ("revert", "Q1") in fake_store.calls

    def test_lost_race_is_invalid_state_without_rollback(self, fake_store):
        fake_store.lose_claim_race = True
        stub = WorkflowStub([workflow_ok()])

        with pytest.raises(InvalidStateError):
            approve(fake_store, stub)

        assert stub.call_count == 0
        assert ("revert", "Q1") not in fake_store.calls

    def test_cancelled_request_rolls_back_to_draft(self, fake_store):
        async def hang(request):
            await asyncio.sleep(10)
            return workflow_ok()

        stub = WorkflowStub([hang])
        service = QuotationApprovalService(fake_store, stub.client(timeout_seconds=60))

        async def scenario():
            task = asyncio.create_task(service.approve("Q1", "user-1"))
            await asyncio.sleep(0.1)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        asyncio.run(scenario())

        q = fake_store.rows["Q1"]
        assert stub.call_count == 1
        assert fake_store.calls == [("get", "Q1"), ("claim", "Q1"), ("revert", "Q1")]
        assert q.status == QuotationStatus.draft
        assert "interrupted" in q.error_message

    def test_delivered_quotation_is_left_alone(self, fake_store):
        def deliver_then_garble(request):
            fake_store.rows["Q1"].status = QuotationStatus.sent
            return httpx.Response(200, text="not json")

        stub = WorkflowStub([deliver_then_garble])

        with pytest.raises(WorkflowError):
            approve(fake_store, stub)

        assert ("revert", "Q1") in fake_store.calls
        assert fake_store.rows["Q1"].status == QuotationStatus.sent
        assert fake_store.rows["Q1"].error_message is None


class TestBuildApprovalResult:

    def test_defaults_when_workflow_is_terse(self):
        result = build_approval_result("Q9", "QT-0009", {"success": True})

        assert result.message == "Quotation sent successfully to client"
        assert result.quotation_details.quotation_number == "QT-0009"
        assert result.quotation_details.status == "sent"
        assert result.client_information.currency == "EUR"
        assert result.email_details.word_file_sent is False
        assert result.email_details.email_thread_maintained is False
        assert result.document_storage.pdf_generation == "frontend_handled"
        assert result.workflow_metadata is None
        assert result.processing_time is None

    def test_workflow_values_win(self):
        result = build_approval_result(
            "Q9",
            "QT-0009",
            {
                "success": True,
                "message": "Quotation emailed",
                "timestamp": "2025-07-30T10:00:00Z",
                "quotation_details": {"quotation_number": "MEP-2025-09", "sent_at": "2025-07-30T10:00:00Z"},
                "client_information": {"client_name": "ACME", "project_name": "HQ HVAC", "total_amount": 1500, "currency": "USD"},
                "email_details": {"word_file_sent": True, "word_filename": "MEP-2025-09.docx", "email_thread_maintained": True},
                "document_storage": {"html_stored": True, "html_available_for_pdf": True},
                "workflow_metadata": {"execution_id": "42"},
            },
        )

        assert result.message == "Quotation emailed"
        assert result.quotation_details.quotation_number == "MEP-2025-09"
        assert result.quotation_details.sent_at == "2025-07-30T10:00:00Z"
        assert result.client_information.client_name == "ACME"
        assert result.client_information.currency == "USD"
        assert result.email_details.word_filename == "MEP-2025-09.docx"
        assert result.document_storage.html_stored is True
        assert result.workflow_metadata == {"execution_id": "42"}
        assert result.processing_time == "2025-07-30T10:00:00Z"
