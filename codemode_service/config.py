from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Application settings"""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Service configuration
    debug: bool = Field(default=False)
    service_name: str = Field(default="codemode-service")
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)
    enable_tracing: bool = Field(default=False)

    # Compiler frontend (TypeScript via node)
    node_binary: str = Field(default="node")
    typescript_module: str = Field(
        default="typescript", description="Module specifier require()d by the driver"
    )
    node_path: Optional[str] = Field(
        default=None, description="Extra NODE_PATH used to resolve the TypeScript package"
    )
    compile_timeout_seconds: float = Field(default=30.0, gt=0)

    # Sandbox runtime
    sandbox_backend: str = Field(default="deno", description="deno or remote")
    deno_binary: str = Field(default="deno")
    sandbox_timeout_seconds: float = Field(default=30.0, gt=0)
    sandbox_memory_limit_mb: int = Field(default=128, ge=16)
    remote_sandbox_url: Optional[str] = Field(default=None)
    compatibility_date: str = Field(default="2025-06-01")

    @property
    def uses_remote_sandbox(self) -> bool:
        """Whether guest code is dispatched to a remote sandbox runtime"""
        return self.sandbox_backend.lower() == "remote"
