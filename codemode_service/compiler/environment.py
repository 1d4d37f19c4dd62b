"""
Process-wide setup for the TypeScript engine.

The engine runs under node and expects a conventional host environment. This
resolves the node executable and builds the environment the compiler
subprocess runs with, once per process, before the adapter is constructed.
"""

import logging
import os
import shutil
from dataclasses import dataclass
from typing import Dict, Optional

from ..config import Settings

logger = logging.getLogger(__name__)

# Variables the compiler process may inherit from the host
# SECURITY: Do NOT add API keys, tokens, or credentials here
SAFE_ENV_VARS = {
    "PATH",
    "LANG",
    "LC_ALL",
    "LC_CTYPE",
    "TZ",
    "NODE_PATH",
}

TS_MODULE_ENV = "CODEMODE_TS_MODULE"


@dataclass(frozen=True)
class CompilerEnvironment:
    """Resolved executable and environment for the compiler subprocess"""

    node_executable: Optional[str]
    env: Dict[str, str]
    cwd: str = "/"

    @property
    def available(self) -> bool:
        return self.node_executable is not None


_environment: Optional[CompilerEnvironment] = None


def build_compiler_environment(settings: Settings) -> CompilerEnvironment:
    """Resolve node and build the compiler subprocess environment from settings"""
    node = shutil.which(settings.node_binary)
    if node is None:
        logger.warning(
            "node executable not found; TypeScript checks will fail",
            extra={"node_binary": settings.node_binary},
        )

    env = {k: v for k, v in os.environ.items() if k in SAFE_ENV_VARS}
    if settings.node_path:
        paths = [settings.node_path]
        if env.get("NODE_PATH"):
            paths.append(env["NODE_PATH"])
        env["NODE_PATH"] = os.pathsep.join(paths)
    env[TS_MODULE_ENV] = settings.typescript_module
    env["NODE_ENV"] = "production"
    env["NO_COLOR"] = "1"

    return CompilerEnvironment(node_executable=node, env=env)


def prepare_compiler_environment(settings: Settings) -> CompilerEnvironment:
    """Get or create the process-wide compiler environment."""
    global _environment
    if _environment is None:
        _environment = build_compiler_environment(settings)
        logger.info(
            "Compiler environment prepared",
            extra={
                "node": _environment.node_executable,
                "typescript_module": settings.typescript_module,
            },
        )
    return _environment


def reset_compiler_environment() -> None:
    """Forget the prepared environment (used when settings change)"""
    global _environment
    _environment = None
