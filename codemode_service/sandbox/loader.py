"""
Sandbox Loader interface

A loader takes a set of modules, loads them into a fresh isolated context,
calls the entry module's default ``fetch`` handler once with a synthetic
request and hands back the raw response.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass
class SandboxRequest:
    """What the sandbox runtime is asked to load.

    ``network_egress`` is always False and ``env`` always empty for guest code;
    they are carried explicitly so loaders forward the revocation instead of
    relying on their own defaults.
    """

    sandbox_id: str
    entry_module_id: str
    modules: Dict[str, str]
    network_egress: bool = False
    env: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.sandbox_id,
            "entryModuleId": self.entry_module_id,
            "modules": dict(self.modules),
            "networkEgress": self.network_egress,
            "env": dict(self.env),
        }


@dataclass
class SandboxResponse:
    """Raw response of the entry module's handler"""

    status: int
    body: str


class SandboxLoadError(Exception):
    """The sandbox could not be created, loaded or invoked."""


class SandboxLoader(ABC):
    """Abstract sandbox runtime"""

    name: str = "loader"

    @abstractmethod
    async def invoke(self, request: SandboxRequest) -> SandboxResponse:
        """
        Load ``request.modules`` into a new isolated context and invoke it once.

        Raises:
            SandboxLoadError: on quota, load, crash or transport failures
        """
        pass

    def is_available(self) -> bool:
        return True

    async def close(self) -> None:
        return None
