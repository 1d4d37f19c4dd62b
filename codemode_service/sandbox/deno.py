"""
Deno Sandbox Loader - run guest modules in a local deno process

Security model:
- No --allow-* flags: network, env, filesystem, subprocess, ffi and sys
  access are all denied, and --no-prompt turns every request into an error
- --no-remote / --no-npm: only the modules written for this request load
- Scrubbed process environment with a throwaway HOME and DENO_DIR
- V8 heap cap and wall-clock timeout; the process is killed on timeout
- One temporary directory per sandbox, removed after the call
"""

import asyncio
import json
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Optional

from .loader import SandboxLoader, SandboxLoadError, SandboxRequest, SandboxResponse

logger = logging.getLogger(__name__)

BOOTSTRAP_MODULE = "__bootstrap__.js"
RESPONSE_MARKER = "__codemode_response_{sandbox_id}__:"

BOOTSTRAP_TEMPLATE = """import worker from "./%(entry)s";

const response = await worker.fetch(new Request("http://internal/"));
const body = await response.text();
const line = %(marker)s + JSON.stringify({ status: response.status, body }) + "\\n";
const bytes = new TextEncoder().encode("\\n" + line);
let written = 0;
while (written < bytes.length) {
  written += await Deno.stdout.write(bytes.subarray(written));
}
// Pending guest timers must not hold the answer back
Deno.exit(0);
"""


def _safe_module_name(name: str) -> bool:
    return (
        bool(name)
        and name == os.path.basename(name)
        and name not in (".", "..", BOOTSTRAP_MODULE)
    )


class DenoSandboxLoader(SandboxLoader):
    """Execute the entry module in a permissionless deno process."""

    name = "deno"

    def __init__(
        self,
        deno_binary: str = "deno",
        timeout_seconds: float = 30.0,
        memory_limit_mb: int = 128,
    ):
        self.deno_binary = deno_binary
        self.timeout_seconds = timeout_seconds
        self.memory_limit_mb = memory_limit_mb

    def is_available(self) -> bool:
        return shutil.which(self.deno_binary) is not None

    def _command(self, bootstrap: Path):
        return [
            self.deno_binary,
            "run",
            "--quiet",
            "--no-prompt",
            "--no-remote",
            "--no-npm",
            "--no-config",
            "--no-lock",
            f"--v8-flags=--max-old-space-size={self.memory_limit_mb}",
            str(bootstrap),
        ]

    @staticmethod
    def _environment(workspace: Path):
        return {
            "PATH": os.environ.get("PATH", "/usr/bin:/bin"),
            "HOME": str(workspace),
            "DENO_DIR": str(workspace / ".deno"),
            "NO_COLOR": "1",
        }

    @staticmethod
    def _parse_response(stdout: str, marker: str) -> Optional[SandboxResponse]:
        for line in reversed(stdout.splitlines()):
            if not line.startswith(marker):
                continue
            try:
                data = json.loads(line[len(marker):])
                return SandboxResponse(status=int(data["status"]), body=str(data["body"]))
            except (ValueError, KeyError, TypeError) as e:
                raise SandboxLoadError(f"Unreadable sandbox response: {e}") from e
        return None

    @staticmethod
    def _error_detail(stderr: str) -> str:
        lines = [line.strip() for line in stderr.strip().splitlines() if line.strip()]
        if not lines:
            return "no output"
        for line in lines:
            if line.startswith("error:"):
                return line[len("error:"):].strip()
        return lines[-1]

    async def invoke(self, request: SandboxRequest) -> SandboxResponse:
        if request.network_egress:
            raise SandboxLoadError("Network egress is not supported for guest code")
        if request.entry_module_id not in request.modules:
            raise SandboxLoadError(f"Entry module '{request.entry_module_id}' not provided")
        for name in request.modules:
            if not _safe_module_name(name):
                raise SandboxLoadError(f"Invalid module name: {name!r}")

        marker = RESPONSE_MARKER.format(sandbox_id=request.sandbox_id.replace("-", ""))

        with tempfile.TemporaryDirectory(prefix="codemode-") as tmp:
            workspace = Path(tmp)
            for name, source in request.modules.items():
                (workspace / name).write_text(source, encoding="utf-8")
            bootstrap = workspace / BOOTSTRAP_MODULE
            bootstrap.write_text(
                BOOTSTRAP_TEMPLATE
                % {"entry": request.entry_module_id, "marker": json.dumps(marker)},
                encoding="utf-8",
            )

            try:
                proc = await asyncio.create_subprocess_exec(
                    *self._command(bootstrap),
                    stdin=asyncio.subprocess.DEVNULL,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                    cwd=str(workspace),
                    env=self._environment(workspace),
                )
            except FileNotFoundError:
                raise SandboxLoadError(f"Sandbox runtime '{self.deno_binary}' not found in PATH")
            except OSError as e:
                raise SandboxLoadError(f"Failed to start sandbox: {e}") from e

            try:
                stdout, stderr = await asyncio.wait_for(
                    proc.communicate(), timeout=self.timeout_seconds
                )
            except asyncio.TimeoutError:
                proc.kill()
                await proc.wait()
                raise SandboxLoadError(
                    f"Sandbox timed out after {self.timeout_seconds} seconds"
                )

        stdout_str = stdout.decode("utf-8", errors="replace")
        stderr_str = stderr.decode("utf-8", errors="replace")

        response = self._parse_response(stdout_str, marker)
        if response is None:
            raise SandboxLoadError(
                f"Sandbox exited with code {proc.returncode}: {self._error_detail(stderr_str)}"
            )

        logger.debug(
            "Deno sandbox finished",
            extra={
                "sandbox_id": request.sandbox_id,
                "exit_code": proc.returncode,
                "stdout_len": len(stdout_str),
                "stderr_len": len(stderr_str),
            },
        )
        return response
