"""
Request Orchestrator

decode -> check -> (fail fast) -> synthesize -> dispatch -> respond

Three failure domains stay apart:
- input errors (400/405) are decided before any collaborator is called
- check errors (400) carry diagnostics and never reach the sandbox
- execution errors (500) carry a message only
"""

import json
import logging
from dataclasses import dataclass
from typing import Optional

from .compiler import CompilerFrontendAdapter, CompilerFrontendError
from .diagnostics import format_diagnostics
from .envelope import ErrorResponse, ResponseEnvelope
from .metrics import TimedOperation, metrics
from .sandbox import EntryModuleSynthesizer, SandboxDispatcher

logger = logging.getLogger(__name__)

EMPTY_BODY_MESSAGE = "Request body is empty. Please provide TypeScript code."
METHOD_NOT_ALLOWED_MESSAGE = "Method not allowed"
CHECK_FAILED_PREFIX = "TypeScript compilation failed:\n"
COMPILER_UNAVAILABLE_PREFIX = "Compiler unavailable: "


class InputError(Exception):
    """Request rejected before any collaborator runs."""

    def __init__(self, status: int, message: str):
        super().__init__(message)
        self.status = status
        self.message = message


@dataclass
class PipelineResult:
    """Status plus envelope; ``envelope`` is None when the playground page is due."""

    status: int
    envelope: Optional[ResponseEnvelope] = None
    outcome: str = "success"

    @property
    def wants_playground(self) -> bool:
        return self.envelope is None


def decode_body(body: str) -> str:
    """Extract source text from a POST body: JSON ``{"code": ...}`` or raw text."""
    if not body.lstrip().startswith("{"):
        return body
    try:
        data = json.loads(body)
    except ValueError as e:
        raise InputError(400, f"Request body is not valid JSON: {e}")
    if not isinstance(data, dict):
        raise InputError(400, "Request body is not valid JSON: expected an object")
    code = data.get("code")
    return code if isinstance(code, str) else ""


class RequestOrchestrator:
    """Turn one inbound request into one response envelope."""

    def __init__(
        self,
        adapter: CompilerFrontendAdapter,
        synthesizer: EntryModuleSynthesizer,
        dispatcher: SandboxDispatcher,
    ):
        self.adapter = adapter
        self.synthesizer = synthesizer
        self.dispatcher = dispatcher

    async def handle(
        self, method: str, body: str = "", query_code: Optional[str] = None
    ) -> PipelineResult:
        method = method.upper()
        try:
            if method == "GET":
                code = query_code or ""
            elif method == "POST":
                code = decode_body(body)
            else:
                raise InputError(405, METHOD_NOT_ALLOWED_MESSAGE)

            if not code.strip():
                if method == "GET":
                    return PipelineResult(status=200, envelope=None, outcome="playground")
                raise InputError(400, EMPTY_BODY_MESSAGE)
        except InputError as e:
            outcome = "method_not_allowed" if e.status == 405 else "bad_request"
            metrics.record_request(outcome)
            return PipelineResult(
                status=e.status, envelope=ErrorResponse(error=e.message), outcome=outcome
            )

        result = await self.run(code)
        metrics.record_request(result.outcome)
        return result

    async def run(self, code: str) -> PipelineResult:
        """Check ``code`` and, only if it passes, execute it in a sandbox."""
        timer = TimedOperation("typescript_check", "compiler")
        try:
            with timer:
                check = await self.adapter.check(code)
        except CompilerFrontendError as e:
            logger.error(f"Compiler frontend failed: {e}")
            return PipelineResult(
                status=500,
                envelope=ErrorResponse(error=f"{COMPILER_UNAVAILABLE_PREFIX}{e}"),
                outcome="compiler_unavailable",
            )
        metrics.record_compile(timer.duration or 0.0)

        if not check.success:
            return PipelineResult(
                status=400,
                envelope=ErrorResponse(
                    error=f"{CHECK_FAILED_PREFIX}{format_diagnostics(check.diagnostics)}",
                    diagnostics=check.diagnostics,
                ),
                outcome="check_failed",
            )

        entry_module = self.synthesizer.wrap(check.lowered)
        outcome = await self.dispatcher.run(entry_module)
        return PipelineResult(
            status=outcome.status,
            envelope=outcome.envelope,
            outcome="success" if outcome.envelope.success else "runtime_failed",
        )
