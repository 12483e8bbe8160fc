import os

# app.core.config validates the environment at import time
os.environ.setdefault("APP_ENV", "development")
os.environ.setdefault("DB_TYPE", "sqlite")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("APPROVAL_WEBHOOK_URL", "https://workflow.test/webhook/approve-quotation")

import json
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.db import Base
from app.core.exceptions import PersistenceError, QuotationNotFoundError
from app.models.enums.quotation_status import QuotationStatus
from app.services.quotations.approval_workflow_client import (
    ApprovalWorkflowClient,
    RetryPolicy,
)

WEBHOOK_URL = os.environ["APPROVAL_WEBHOOK_URL"]


class FakeQuotationStore:
    """In-memory stand-in for QuotationStore that records every call."""

    def __init__(self, quotations=None):
        self.rows = {q.id: q for q in (quotations or [])}
        self.calls = []
        self.fail_claim = False
        self.fail_revert = False
        self.lose_claim_race = False

    @property
    def writes(self):
        return [c for c in self.calls if c[0] != "get"]

    async def get(self, quotation_id):
        self.calls.append(("get", quotation_id))
        if quotation_id not in self.rows:
            raise QuotationNotFoundError(quotation_id)
        return self.rows[quotation_id]

    async def claim_for_approval(self, quotation_id, user_id, analysis=None, total_amount=None):
        self.calls.append(("claim", quotation_id))
        if self.fail_claim:
            raise PersistenceError("Failed to save quotation changes")
        q = self.rows[quotation_id]
        if self.lose_claim_race or q.status != QuotationStatus.draft:
            return False
        q.status = QuotationStatus.approved
        if analysis is not None:
            q.analysis = analysis
            q.total_amount = total_amount
            q.last_modified_by = user_id
            q.last_modified_at = datetime.now(timezone.utc)
        return True

    async def revert_to_draft(self, quotation_id, reason):
        self.calls.append(("revert", quotation_id))
        if self.fail_revert:
            raise PersistenceError("Failed to revert quotation status")
        q = self.rows[quotation_id]
        if q.status not in (QuotationStatus.draft, QuotationStatus.approved):
            return False
        q.status = QuotationStatus.draft
        q.approved_by = None
        q.approved_at = None
        q.error_message = reason
        q.last_error_at = datetime.now(timezone.utc)
        return True


def make_quotation(quotation_id="Q1", status=QuotationStatus.draft, **overrides):
    fields = dict(
        id=quotation_id,
        quotation_number=f"QT-{quotation_id}",
        status=status,
        analysis={},
        total_amount=Decimal("0.00"),
        approved_by=None,
        approved_at=None,
        error_message=None,
        last_error_at=None,
        last_modified_by=None,
        last_modified_at=None,
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


class WorkflowStub:
    """
    Scripted webhook. Each entry in `script` answers one call: an
    httpx.Response, an exception instance to raise, or a callable
    taking the request.
    """

    def __init__(self, script):
        self.script = list(script)
        self.requests = []
        self.sleeps = []

    async def handler(self, request):
        self.requests.append(request)
        step = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if isinstance(step, Exception):
            raise step
        if callable(step):
            step = step(request)
            if hasattr(step, "__await__"):
                step = await step
        return step

    async def sleep(self, seconds):
        self.sleeps.append(seconds)

    def client(self, max_attempts=3, timeout_seconds=5.0, base_delay_seconds=1.0):
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(self.handler))
        return ApprovalWorkflowClient(
            http_client,
            WEBHOOK_URL,
            RetryPolicy(
                max_attempts=max_attempts,
                timeout_seconds=timeout_seconds,
                base_delay_seconds=base_delay_seconds,
            ),
            sleep=self.sleep,
        )

    @property
    def call_count(self):
        return len(self.requests)


def workflow_ok(**extra):
    body = {
        "success": True,
        "message": "sent",
        "quotation_details": {"quotation_number": "QT-Q1", "status": "sent"},
    }
    body.update(extra)
    return httpx.Response(200, text=json.dumps(body))


def connect_error(message="connection refused"):
    return httpx.ConnectError(message)


@pytest.fixture
def fake_store():
    return FakeQuotationStore([make_quotation("Q1")])


@pytest.fixture
def sqlite_db():
    """Factory for an isolated in-memory database, used inside asyncio.run()."""

    @asynccontextmanager
    async def open_db():
        engine = create_async_engine(
            "sqlite+aiosqlite:///:memory:",
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        sessions = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
        try:
            yield sessions
        finally:
            await engine.dispose()

    return open_db


@pytest.fixture
def auth_headers():
    from jose import jwt

    token = jwt.encode(
        {
            "sub": "user-1",
            "aud": "authenticated",
            "exp": datetime.now(timezone.utc) + timedelta(minutes=5),
        },
        os.environ["SUPABASE_JWT_SECRET"],
        algorithm="HS256",
    )
    return {"Authorization": f"Bearer {token}"}
