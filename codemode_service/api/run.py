import json
import logging
from typing import Any

from fastapi import APIRouter, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import HTMLResponse, JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from .playground import render_playground

logger = logging.getLogger(__name__)

router = APIRouter()

CORS_HEADERS = {"Access-Control-Allow-Origin": "*"}

PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

# Methods the router knows; anything else reaches run_code via not_allowed_handler
ROUTED_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD"]


class PrettyJSONResponse(JSONResponse):
    """JSON body indented by two spaces, non-ASCII escaped like JSON.stringify"""

    def render(self, content: Any) -> bytes:
        return json.dumps(content, indent=2).encode("utf-8")


async def answer_preflight(request: Request, call_next):
    """CORS preflight: every OPTIONS request gets an empty 204"""
    if request.method == "OPTIONS":
        return Response(status_code=204, headers=PREFLIGHT_HEADERS)
    return await call_next(request)


async def not_allowed_handler(request: Request, exc: StarletteHTTPException):
    """Let the orchestrator answer unrouted methods on / with its own envelope"""
    if exc.status_code == 405 and request.url.path == "/":
        return await run_code(request)
    return await http_exception_handler(request, exc)


@router.api_route("/", methods=ROUTED_METHODS)
async def run_code(request: Request):
    """Type-check the submitted TypeScript and run its codemode() in a sandbox"""
    body = ""
    if request.method == "POST":
        body = (await request.body()).decode("utf-8", errors="replace")

    orchestrator = request.app.state.orchestrator
    result = await orchestrator.handle(
        request.method, body=body, query_code=request.query_params.get("code")
    )

    if result.wants_playground:
        return HTMLResponse(render_playground(), status_code=200, headers=CORS_HEADERS)

    return PrettyJSONResponse(
        result.envelope.to_dict(), status_code=result.status, headers=CORS_HEADERS
    )
