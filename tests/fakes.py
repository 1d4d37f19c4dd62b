"""In-memory collaborators and runtime probes shared by the test suite."""

import functools
import shutil
import subprocess
from typing import List, Optional

from codemode_service.compiler.base import CompilerFrontend, EngineOutput, SourceUnit
from codemode_service.compiler.environment import build_compiler_environment
from codemode_service.config import Settings
from codemode_service.sandbox.loader import (
    SandboxLoader,
    SandboxRequest,
    SandboxResponse,
)


class FakeFrontend(CompilerFrontend):
    name = "fake"

    def __init__(self, output: Optional[EngineOutput] = None, error: Optional[Exception] = None):
        self.output = output or EngineOutput(emitted="")
        self.error = error
        self.units: List[SourceUnit] = []

    async def compile(self, unit: SourceUnit) -> EngineOutput:
        self.units.append(unit)
        if self.error is not None:
            raise self.error
        return self.output


class FakeLoader(SandboxLoader):
    name = "fake"

    def __init__(
        self,
        response: Optional[SandboxResponse] = None,
        error: Optional[Exception] = None,
    ):
        self.response = response or SandboxResponse(
            status=200, body='{"success": true, "result": null}'
        )
        self.error = error
        self.requests: List[SandboxRequest] = []

    async def invoke(self, request: SandboxRequest) -> SandboxResponse:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.response


@functools.lru_cache(maxsize=None)
def typescript_available() -> bool:
    """node is installed and can require() the TypeScript package"""
    environment = build_compiler_environment(Settings())
    if not environment.available:
        return False
    try:
        proc = subprocess.run(
            [
                environment.node_executable,
                "-e",
                "require(process.env.CODEMODE_TS_MODULE || 'typescript')",
            ],
            env=environment.env,
            cwd=environment.cwd,
            capture_output=True,
            timeout=60,
        )
    except (OSError, subprocess.SubprocessError):
        return False
    return proc.returncode == 0


@functools.lru_cache(maxsize=None)
def deno_available() -> bool:
    return shutil.which(Settings().deno_binary) is not None
