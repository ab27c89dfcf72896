"""
HTTP API for the blackjack agents.

It exposes the following endpoints:
- **GET /health**         - liveness probe for health checks.
- **POST /api/gemini**    - proxy to the Gemini ``generateContent`` endpoint that keeps the API key
                            on the server (point ``GEMINI_PROXY_URL`` here from clients).
- **POST /turns**         - run one agent turn for a posted table snapshot.
- **GET /session**        - current model availability flags.
- **POST /session/reset** - forget the probe result and any rate limit.
"""

import logging

import httpx
from fastapi import (
    Depends,
    FastAPI,
    HTTPException,
    Request,
)
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import (
    JSONResponse,
    Response,
)

from blackjack_agents.agent.model_channel import load_channel
from blackjack_agents.agent.runner import TurnOrchestrator
from blackjack_agents.api.models import (
    SessionStatus,
    TurnRequest,
)
from blackjack_agents.common import (
    AnsiColors,
    colored_print,
)
from blackjack_agents.config import settings
from blackjack_agents.core.errors import TurnInProgressError
from blackjack_agents.core.schema import TurnOutcome

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Blackjack Agents API",
    version="0.1.0",
    description="Agentic tool-calling blackjack players",
)

# Browser front ends call the Gemini proxy and /turns directly
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_orchestrator: TurnOrchestrator | None = None


def get_orchestrator() -> TurnOrchestrator:
    """Lazily build the process-wide orchestrator for the configured channel."""
    global _orchestrator  # pylint: disable=global-statement
    if _orchestrator is None:
        _orchestrator = TurnOrchestrator(load_channel())
    return _orchestrator


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------
@app.get("/health", summary="Health check")
async def health() -> dict[str, str]:
    """Return a simple liveness payload."""
    return {"status": "ok"}


@app.post("/api/gemini", summary="Gemini proxy")
async def gemini_proxy(request: Request) -> Response:
    """Forward the request body to Gemini and relay status and body verbatim."""
    if not settings.GEMINI_API_KEY:
        return JSONResponse({"error": "API key not configured"}, status_code=500)

    body = await request.body()
    url = f"{settings.GEMINI_BASE_URL.rstrip('/')}/models/{settings.GEMINI_MODEL}:generateContent"
    try:
        async with httpx.AsyncClient(timeout=settings.REQUEST_TIMEOUT) as client:
            upstream = await client.post(
                url,
                params={"key": settings.GEMINI_API_KEY},
                content=body,
                headers={"Content-Type": "application/json"},
            )
    except httpx.HTTPError as exc:
        logger.warning("Gemini proxy request failed: %s", exc)
        return JSONResponse({"error": "Proxy request failed"}, status_code=502)

    return Response(
        content=upstream.content,
        status_code=upstream.status_code,
        media_type="application/json",
    )


@app.post("/turns", response_model=TurnOutcome, summary="Run one agent turn")
def run_turn(
    req: TurnRequest, orchestrator: TurnOrchestrator = Depends(get_orchestrator)
) -> TurnOutcome:
    """Let the requested agent decide hit or stand for the posted snapshot."""
    try:
        return orchestrator.run_agent_turn(req.role, req.snapshot, req.thinking_lang)
    except TurnInProgressError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc


@app.get("/session", response_model=SessionStatus, summary="Model availability")
def session_status(orchestrator: TurnOrchestrator = Depends(get_orchestrator)) -> SessionStatus:
    """Report whether the model was probed and whether it is rate limited."""
    return SessionStatus(
        probed=orchestrator.session.probed, rate_limited=orchestrator.session.rate_limited
    )


@app.post("/session/reset", response_model=SessionStatus, summary="Reset model availability")
def reset_session(orchestrator: TurnOrchestrator = Depends(get_orchestrator)) -> SessionStatus:
    """Forget the cached probe result and rate limit."""
    orchestrator.session.reset()
    return SessionStatus(probed=False, rate_limited=False)


# ---------------------------------------------------------------------------
# Public helper to launch the API (imported by main.py)
# ---------------------------------------------------------------------------
def run_api(
    host: str = "0.0.0.0", port: int = 8000, reload: bool = False, log_level: str | None = None
) -> None:
    """Serve *app* with uvicorn.

    Parameters
    ----------
    host, port:
        Bind address for the HTTP server.
    reload:
        Restart on source changes.
    log_level:
        uvicorn log level; ``settings.LOG_LEVEL`` when omitted.
    """

    import uvicorn  # pylint: disable=import-outside-toplevel

    log_level = log_level or settings.LOG_LEVEL
    logger.info(
        "Serving on %s:%d with channel '%s' (reload=%s)", host, port, settings.CHANNEL, reload
    )
    if settings.CHANNEL == "gemini" and not settings.GEMINI_API_KEY:
        logger.warning("GEMINI_API_KEY is not set: the proxy answers 500 and turns use the rules")

    colored_print(f"🃏 Blackjack agents listening on http://localhost:{port}", AnsiColors.GREEN)
    colored_print(f"   OpenAPI docs at http://localhost:{port}/docs", AnsiColors.BLUE)
    uvicorn.run(
        "blackjack_agents.api.app:app", host=host, port=port, reload=reload, log_level=log_level
    )


if __name__ == "__main__":
    run_api(reload=True)
