"""
Client for the external "approve and send" workflow (n8n webhook).

The workflow renders the quotation document, emails it to the client and
marks the quotation as sent. Calls are retried on transport failures only.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict

import httpx

from app.core.exceptions import WorkflowError
from app.schemas.quotations.approval_schemas import WorkflowPayload

logger = logging.getLogger(__name__)

USER_AGENT = "MEP-Quotation-Approval/2.0"
PREVIEW_CHARS = 200

# Failures worth another attempt: the call never produced an HTTP answer.
RETRYABLE_ERRORS = (asyncio.TimeoutError, httpx.TransportError)


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    timeout_seconds: float = 180.0
    base_delay_seconds: float = 1.0

    def delay_for(self, failed_attempts: int) -> float:
        return self.base_delay_seconds * (2 ** failed_attempts)


class ApprovalWorkflowClient:
    def __init__(
        self,
        http_client: httpx.AsyncClient,
        url: str,
        policy: RetryPolicy | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.http_client = http_client
        self.url = url
        self.policy = policy or RetryPolicy()
        self._sleep = sleep

    async def send(self, quotation_id: str, user_id: str) -> Dict[str, Any]:
        payload = WorkflowPayload(quotation_id=quotation_id, user_id=user_id)

        logger.info(
            "Calling approval workflow",
            extra={"quotation_id": quotation_id, "webhook_url": self.url},
        )
        response = await self._post_with_retry(payload.model_dump())
        logger.info(
            "Approval workflow responded",
            extra={"quotation_id": quotation_id, "status_code": response.status_code},
        )

        if not response.is_success:
            logger.error(
                "Approval workflow error",
                extra={"status_code": response.status_code, "body": response.text[:500]},
            )
            raise WorkflowError(
                f"Approval workflow failed with status {response.status_code}: {response.text}"
            )

        return self._parse_result(response.text)

    async def _post_with_retry(self, payload: Dict[str, Any]) -> httpx.Response:
        failed_attempts = 0

        while True:
            try:
                return await asyncio.wait_for(
                    self.http_client.post(
                        self.url,
                        json=payload,
                        headers={"User-Agent": USER_AGENT},
                    ),
                    timeout=self.policy.timeout_seconds,
                )
            except RETRYABLE_ERRORS as exc:
                failed_attempts += 1
                reason = _describe(exc, self.policy.timeout_seconds)
                logger.warning(
                    "Workflow call attempt %s failed: %s",
                    failed_attempts,
                    reason,
                    extra={"remaining": self.policy.max_attempts - failed_attempts},
                )

                if failed_attempts >= self.policy.max_attempts:
                    raise WorkflowError(
                        f"Approval workflow failed after {failed_attempts} attempts: {reason}",
                        attempts=failed_attempts,
                    ) from exc

                await self._sleep(self.policy.delay_for(failed_attempts))

    @staticmethod
    def _parse_result(body: str) -> Dict[str, Any]:
        if not body or not body.strip():
            raise WorkflowError("Approval workflow returned empty response")

        try:
            result = json.loads(body)
        except json.JSONDecodeError as exc:
            logger.error(
                "Failed to parse workflow response",
                extra={"response_preview": body[:PREVIEW_CHARS]},
            )
            raise WorkflowError(
                f"Invalid JSON response from approval workflow: {body[:PREVIEW_CHARS]}"
            ) from exc

        if not isinstance(result, dict) or not result.get("success"):
            message = result.get("message") if isinstance(result, dict) else None
            raise WorkflowError(
                f"Approval workflow processing failed: {message or 'Unknown error'}"
            )

        return result


def _describe(exc: BaseException, timeout: float) -> str:
    if isinstance(exc, asyncio.TimeoutError):
        return f"timed out after {timeout:g}s"
    return str(exc) or exc.__class__.__name__
