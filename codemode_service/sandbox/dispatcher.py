"""Sandbox Dispatcher: one fresh sandbox per entry module, one invocation."""

import json
import logging
import uuid
from dataclasses import dataclass
from typing import Callable

from ..envelope import ErrorResponse, ResponseEnvelope, SuccessResponse
from ..metrics import TimedOperation, metrics
from .harness import ENTRY_MODULE_NAME
from .loader import SandboxLoader, SandboxLoadError, SandboxRequest, SandboxResponse

logger = logging.getLogger(__name__)

EXECUTION_FAILED_PREFIX = "Execution failed: "
MALFORMED_RESPONSE = "sandbox returned a malformed response"


@dataclass
class SandboxOutcome:
    status: int
    envelope: ResponseEnvelope


def _failure(message: str) -> SandboxOutcome:
    return SandboxOutcome(
        status=500, envelope=ErrorResponse(error=f"{EXECUTION_FAILED_PREFIX}{message}")
    )


def normalize_response(response: SandboxResponse) -> SandboxOutcome:
    """Turn the harness's raw response into the public envelope.

    Only ``success``, ``result`` and ``error`` are taken from the sandbox; any
    other key it produced (diagnostics included) is dropped.
    """
    try:
        body = json.loads(response.body)
    except ValueError:
        return _failure(MALFORMED_RESPONSE)
    if not isinstance(body, dict) or not isinstance(body.get("success"), bool):
        return _failure(MALFORMED_RESPONSE)

    if body["success"]:
        return SandboxOutcome(
            status=response.status, envelope=SuccessResponse(result=body.get("result"))
        )
    error = body.get("error")
    return SandboxOutcome(
        status=response.status,
        envelope=ErrorResponse(error=error if isinstance(error, str) else str(error)),
    )


class SandboxDispatcher:
    """Load a synthesized entry module into a new sandbox and invoke it once.

    Never retries: a guest program may have side effects, so each request gets
    at most one execution attempt.
    """

    def __init__(
        self,
        loader: SandboxLoader,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ):
        self.loader = loader
        self._new_id = id_factory

    async def run(self, entry_module: str) -> SandboxOutcome:
        request = SandboxRequest(
            sandbox_id=self._new_id(),
            entry_module_id=ENTRY_MODULE_NAME,
            modules={ENTRY_MODULE_NAME: entry_module},
            network_egress=False,
            env={},
        )

        logger.info(
            "Dispatching to sandbox",
            extra={"sandbox_id": request.sandbox_id, "loader": self.loader.name},
        )
        timer = TimedOperation("sandbox_invoke", "sandbox")
        try:
            with timer:
                response = await self.loader.invoke(request)
        except SandboxLoadError as e:
            logger.warning(
                "Sandbox load failed",
                extra={"sandbox_id": request.sandbox_id, "error": str(e)},
            )
            return _failure(str(e))
        except Exception as e:
            logger.error(f"Sandbox invocation error: {e}", exc_info=True)
            return _failure(str(e) or type(e).__name__)

        metrics.record_sandbox(response.status, timer.duration or 0.0)
        outcome = normalize_response(response)
        logger.info(
            "Sandbox finished",
            extra={
                "sandbox_id": request.sandbox_id,
                "status": outcome.status,
                "success": outcome.envelope.success,
            },
        )
        return outcome
