"""Public response envelope: the only shape the service ever answers with."""

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from .diagnostics import Diagnostic


class SuccessResponse(BaseModel):
    success: Literal[True] = True
    result: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {"success": True, "result": self.result}


class ErrorResponse(BaseModel):
    success: Literal[False] = False
    error: str
    diagnostics: Optional[List[Diagnostic]] = Field(
        default=None, description="Only present for check failures"
    )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"success": False, "error": self.error}
        if self.diagnostics is not None:
            data["diagnostics"] = [d.to_dict() for d in self.diagnostics]
        return data


ResponseEnvelope = Union[SuccessResponse, ErrorResponse]
