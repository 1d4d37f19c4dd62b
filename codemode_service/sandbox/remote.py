"""
HTTP client for a remote sandbox runtime.

The runtime receives the module set with network egress revoked and no env
bindings, loads it into a fresh isolate keyed by the sandbox id, invokes the
entry module once and answers with ``{"status": int, "body": str}``.
"""

import json
import logging
from typing import Optional

import httpx

from .loader import SandboxLoader, SandboxLoadError, SandboxRequest, SandboxResponse

logger = logging.getLogger(__name__)


class RemoteSandboxLoader(SandboxLoader):
    """Dispatch entry modules to a sandbox runtime over HTTP."""

    name = "remote"

    def __init__(
        self,
        url: str,
        timeout_seconds: float = 30.0,
        compatibility_date: str = "2025-06-01",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.timeout_seconds = timeout_seconds
        self.compatibility_date = compatibility_date
        self._transport = transport

    def is_available(self) -> bool:
        return bool(self.url)

    async def invoke(self, request: SandboxRequest) -> SandboxResponse:
        payload = request.to_dict()
        payload["compatibilityDate"] = self.compatibility_date

        logger.debug(
            "Remote sandbox request",
            extra={"sandbox_id": request.sandbox_id, "url": self.url},
        )
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds, transport=self._transport
            ) as client:
                resp = await client.post(self.url, json=payload)
        except httpx.TimeoutException:
            raise SandboxLoadError(
                f"Sandbox runtime timed out after {self.timeout_seconds} seconds"
            )
        except httpx.HTTPError as e:
            raise SandboxLoadError(f"Sandbox runtime unreachable: {e}") from e

        if resp.status_code >= 400:
            raise SandboxLoadError(
                f"Sandbox runtime returned HTTP {resp.status_code}: {resp.text[:200]}"
            )

        try:
            data = resp.json()
            body = data["body"]
            if not isinstance(body, str):
                body = json.dumps(body)
            return SandboxResponse(status=int(data["status"]), body=body)
        except (ValueError, KeyError, TypeError) as e:
            raise SandboxLoadError(f"Unreadable sandbox runtime reply: {e}") from e
