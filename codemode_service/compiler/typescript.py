"""
TypeScript frontend driven through a node subprocess.

Each check runs a short-lived node process that loads the TypeScript compiler
API, builds a program over one in-memory source file and reports pre-emit
diagnostics plus, when there are no errors, the emitted JavaScript. The
process is fed the source on stdin and answers with a single JSON document on
stdout.
"""

import asyncio
import json
import logging
from typing import Any, Dict, List

from .base import (
    CompilerFrontend,
    CompilerFrontendError,
    EngineDiagnostic,
    EngineOutput,
    MessageChain,
    SourceUnit,
)
from .environment import CompilerEnvironment

logger = logging.getLogger(__name__)

# Fixed configuration: ES2020 target and lib, ESNext modules, strict checking,
# no declaration or source map output.
DRIVER_SOURCE = r"""
"use strict";
const ts = require(process.env.CODEMODE_TS_MODULE || "typescript");

function chain(messageText) {
  if (typeof messageText === "string") return messageText;
  return {
    messageText: messageText.messageText,
    next: (messageText.next || []).map(chain),
  };
}

function serialize(d) {
  const positioned = d.file !== undefined && d.start !== undefined;
  return {
    code: d.code,
    category: d.category,
    messageText: chain(d.messageText),
    fileName: d.file ? d.file.fileName : null,
    start: positioned ? d.start : null,
  };
}

let input = "";
process.stdin.setEncoding("utf8");
process.stdin.on("data", (chunk) => { input += chunk; });
process.stdin.on("end", () => {
  const request = JSON.parse(input);
  const options = {
    target: ts.ScriptTarget.ES2020,
    module: ts.ModuleKind.ESNext,
    lib: ["lib.es2020.d.ts"],
    strict: true,
    noEmit: false,
    declaration: false,
    sourceMap: false,
  };
  const host = ts.createCompilerHost(options);
  const sourceFile = ts.createSourceFile(request.fileName, request.text, options.target);
  const getSourceFile = host.getSourceFile;
  const fileExists = host.fileExists;
  const readFile = host.readFile;
  host.getSourceFile = (name, languageVersion, onError, shouldCreate) =>
    name === request.fileName
      ? sourceFile
      : getSourceFile.call(host, name, languageVersion, onError, shouldCreate);
  host.fileExists = (name) => name === request.fileName || fileExists.call(host, name);
  host.readFile = (name) => (name === request.fileName ? request.text : readFile.call(host, name));
  host.writeFile = () => {};

  const program = ts.createProgram([request.fileName], options, host);
  const preEmit = ts.getPreEmitDiagnostics(program, sourceFile);
  const output = { preEmit: preEmit.map(serialize), emitted: null, emitDiagnostics: [] };

  if (!preEmit.some((d) => d.category === ts.DiagnosticCategory.Error)) {
    let js = "";
    const result = program.emit(sourceFile, (name, text) => {
      if (name.endsWith(".js")) js = text;
    });
    output.emitted = js;
    output.emitDiagnostics = result.diagnostics.map(serialize);
  }
  process.stdout.write(JSON.stringify(output));
});
"""


def _parse_message(raw: Any):
    if isinstance(raw, str):
        return raw
    if not isinstance(raw, dict):
        raise ValueError(f"unexpected message text: {raw!r}")
    return MessageChain(
        message_text=str(raw.get("messageText", "")),
        next=[_parse_message(n) for n in raw.get("next") or []],
    )


def _parse_diagnostics(items: List[Dict[str, Any]]) -> List[EngineDiagnostic]:
    return [
        EngineDiagnostic(
            code=int(item["code"]),
            category=int(item["category"]),
            message_text=_parse_message(item["messageText"]),
            file_name=item.get("fileName"),
            start=item.get("start"),
        )
        for item in items
    ]


def parse_engine_output(raw: bytes) -> EngineOutput:
    """Decode the driver's JSON answer"""
    try:
        data = json.loads(raw.decode("utf-8"))
        return EngineOutput(
            pre_emit=_parse_diagnostics(data.get("preEmit") or []),
            emitted=data.get("emitted"),
            emit_diagnostics=_parse_diagnostics(data.get("emitDiagnostics") or []),
        )
    except (UnicodeDecodeError, ValueError, KeyError, TypeError, AttributeError) as e:
        raise CompilerFrontendError(f"Malformed output from TypeScript driver: {e}") from e


class NodeTypeScriptFrontend(CompilerFrontend):
    """Check and lower TypeScript with the official compiler running under node."""

    name = "typescript"

    def __init__(self, environment: CompilerEnvironment, timeout_seconds: float = 30.0):
        self.environment = environment
        self.timeout_seconds = timeout_seconds

    def is_available(self) -> bool:
        return self.environment.available

    async def compile(self, unit: SourceUnit) -> EngineOutput:
        if not self.environment.available:
            raise CompilerFrontendError("node executable not found")

        payload = json.dumps({"fileName": unit.file_name, "text": unit.text}).encode(
            "utf-8"
        )

        try:
            proc = await asyncio.create_subprocess_exec(
                self.environment.node_executable,
                "-e",
                DRIVER_SOURCE,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=self.environment.cwd,
                env=self.environment.env,
            )
        except OSError as e:
            raise CompilerFrontendError(f"Failed to start node: {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(
                proc.communicate(payload), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            raise CompilerFrontendError(
                f"TypeScript check timed out after {self.timeout_seconds} seconds"
            )

        if proc.returncode != 0:
            lines = stderr.decode("utf-8", errors="replace").strip().splitlines()
            logger.debug("TypeScript driver stderr", extra={"stderr": lines[-20:]})
            detail = next(
                (line.strip() for line in lines if "Error" in line),
                lines[-1] if lines else "no output",
            )
            raise CompilerFrontendError(
                f"TypeScript driver exited with code {proc.returncode}: {detail}"
            )

        return parse_engine_output(stdout)
