from .deno import DenoSandboxLoader
from .dispatcher import SandboxDispatcher, SandboxOutcome, normalize_response
from .harness import (
    ENTRY_FUNCTION_NAME,
    ENTRY_MODULE_NAME,
    MISSING_ENTRY_MESSAGE,
    EntryModuleSynthesizer,
)
from .loader import SandboxLoader, SandboxLoadError, SandboxRequest, SandboxResponse
from .remote import RemoteSandboxLoader

__all__ = [
    "DenoSandboxLoader",
    "ENTRY_FUNCTION_NAME",
    "ENTRY_MODULE_NAME",
    "EntryModuleSynthesizer",
    "MISSING_ENTRY_MESSAGE",
    "RemoteSandboxLoader",
    "SandboxDispatcher",
    "SandboxLoadError",
    "SandboxLoader",
    "SandboxOutcome",
    "SandboxRequest",
    "SandboxResponse",
    "normalize_response",
]
