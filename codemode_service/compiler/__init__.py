from .adapter import CheckResult, CompilerFrontendAdapter, LineIndex, flatten_message
from .base import (
    CompilerFrontend,
    CompilerFrontendError,
    EngineCategory,
    EngineDiagnostic,
    EngineOutput,
    MessageChain,
    SourceUnit,
)
from .environment import (
    CompilerEnvironment,
    build_compiler_environment,
    prepare_compiler_environment,
)
from .typescript import NodeTypeScriptFrontend

__all__ = [
    "CheckResult",
    "CompilerEnvironment",
    "CompilerFrontend",
    "CompilerFrontendAdapter",
    "CompilerFrontendError",
    "EngineCategory",
    "EngineDiagnostic",
    "EngineOutput",
    "LineIndex",
    "MessageChain",
    "NodeTypeScriptFrontend",
    "SourceUnit",
    "build_compiler_environment",
    "flatten_message",
    "prepare_compiler_environment",
]
