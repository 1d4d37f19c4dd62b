"""
Base Compiler Frontend interface

A frontend wraps an external check/lower engine. It reports diagnostics in the
engine's own terms (absolute offsets, numeric categories, nested message
chains); the adapter normalizes them.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import IntEnum
from typing import List, Optional, Union


class EngineCategory(IntEnum):
    """Diagnostic category numbering used by the TypeScript engine"""

    WARNING = 0
    ERROR = 1
    SUGGESTION = 2
    MESSAGE = 3


@dataclass
class MessageChain:
    """Nested diagnostic message as produced by the engine"""

    message_text: str
    next: List["MessageChain"] = field(default_factory=list)


@dataclass
class EngineDiagnostic:
    """Diagnostic in engine-native form.

    ``start`` is an absolute offset in UTF-16 code units into ``file_name``.
    """

    code: int
    category: int
    message_text: Union[str, MessageChain]
    file_name: Optional[str] = None
    start: Optional[int] = None


@dataclass
class SourceUnit:
    """A single virtual source file handed to the engine"""

    file_name: str
    text: str


@dataclass
class EngineOutput:
    """Result of one engine pass over a source unit.

    ``emitted`` is None when the engine did not emit.
    """

    pre_emit: List[EngineDiagnostic] = field(default_factory=list)
    emitted: Optional[str] = None
    emit_diagnostics: List[EngineDiagnostic] = field(default_factory=list)


class CompilerFrontendError(Exception):
    """The check/lower engine could not be run at all."""


class CompilerFrontend(ABC):
    """Abstract check/lower engine"""

    name: str = "frontend"

    @abstractmethod
    async def compile(self, unit: SourceUnit) -> EngineOutput:
        """
        Collect all pre-emit diagnostics for ``unit`` and emit only when none of
        them is an error.

        Raises:
            CompilerFrontendError: if the engine itself fails
        """
        pass

    def is_available(self) -> bool:
        """Whether the engine can be invoked in this process"""
        return True
