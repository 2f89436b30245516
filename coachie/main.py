"""Coachie MCP Server - Entry point.

Runs the MCP server with HTTP transport for Cloud Run deployment,
plus stateless HTTP endpoints for voice parsing and score calculation.
"""

import logging
import os
from typing import Optional

import uvicorn
from pydantic import BaseModel, Field, ValidationError
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route, Mount

from .core.models import DailyLog, ScoreGoals
from .core.scoring import calculate_all_scores
from .core.voice import parse_command
from .shell.mcp_server import mcp, current_user_id


logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

USER_HEADER = "X-Coachie-User"


class ScoreRequest(BaseModel):
    """Body of POST /score/calculate."""

    daily_log: Optional[DailyLog] = None
    goals: ScoreGoals = Field(default_factory=ScoreGoals)
    completed_habits: int = Field(default=0, ge=0)
    total_habits: Optional[int] = Field(default=None, ge=0)
    has_circle_interaction_today: bool = False
    all_todays_focus_tasks_completed: bool = False


# ==================== Route Handlers ====================


async def health_check(request: Request) -> JSONResponse:
    """Health check endpoint for Cloud Run."""
    return JSONResponse({"status": "healthy", "service": "coachie-mcp"})


async def parse_voice(request: Request) -> JSONResponse:
    """Parse a transcript into a structured logging intent."""
    try:
        body = await request.json()
    except ValueError:
        # JSONDecodeError and UnicodeDecodeError
        return JSONResponse({"error": "Request body must be JSON"}, status_code=400)

    transcript = body.get("transcript") if isinstance(body, dict) else None
    if not isinstance(transcript, str):
        return JSONResponse({"error": "transcript (string) is required"}, status_code=400)

    result = parse_command(transcript)
    logger.debug("Parsed voice command as %s", result.type)
    return JSONResponse(result.model_dump(mode="json"))


async def calculate_score(request: Request) -> JSONResponse:
    """Calculate the Coachie Score for a supplied day."""
    try:
        payload = ScoreRequest.model_validate_json(await request.body())
    except ValidationError as e:
        return JSONResponse(
            {"error": "Invalid score request", "details": e.errors(include_url=False, include_context=False)},
            status_code=400,
        )

    breakdown = calculate_all_scores(
        payload.daily_log,
        payload.goals,
        completed_habits=payload.completed_habits,
        total_habits=payload.total_habits,
        has_circle_interaction_today=payload.has_circle_interaction_today,
        all_todays_focus_tasks_completed=payload.all_todays_focus_tasks_completed,
    )
    return JSONResponse(breakdown.model_dump())


# ==================== Identity Middleware ====================


class IdentityMiddleware(BaseHTTPMiddleware):
    """Set the user for MCP requests from the header added by the gateway.

    Authentication happens upstream; requests without the header reach the
    tools with no user and are rejected there.
    """

    async def dispatch(self, request: Request, call_next):
        if not request.url.path.startswith("/mcp"):
            return await call_next(request)

        user_id = request.headers.get(USER_HEADER, "").strip()
        if user_id:
            current_user_id.set(user_id)
            logger.debug("Request for user: %s", user_id[:8])

        return await call_next(request)


# ==================== Create ASGI App ====================


def create_app() -> Starlette:
    """Create the Starlette application with MCP at root.

    The MCP streamable_http_app() handles /mcp/ internally when mounted at root.
    We use its lifespan context to ensure proper initialization.
    """
    mcp_app = mcp.streamable_http_app()

    routes = [
        Route("/health", health_check, methods=["GET"]),
        Route("/voice/parse", parse_voice, methods=["POST"]),
        Route("/score/calculate", calculate_score, methods=["POST"]),
        Mount("/", app=mcp_app),
    ]

    origins = os.environ.get("CORS_ORIGINS", "http://localhost:3000")

    app = Starlette(
        routes=routes,
        middleware=[
            Middleware(
                CORSMiddleware,
                allow_origins=[o.strip() for o in origins.split(",") if o.strip()],
                allow_methods=["GET", "POST", "OPTIONS"],
                allow_headers=["*"],
            ),
            Middleware(IdentityMiddleware),
        ],
        lifespan=mcp_app.router.lifespan_context,
    )

    return app


# Create app at module level for Cloud Run
app = create_app()


def main() -> None:
    """Run the server."""
    port = int(os.environ.get("PORT", 8080))
    host = os.environ.get("HOST", "0.0.0.0")

    logger.info("Starting Coachie MCP server on %s:%d", host, port)

    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
