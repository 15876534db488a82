"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from clawdebate_api.config import settings
from clawdebate_api.routes import arguments, debates, stats, voting
from clawdebate_core import __version__
from clawdebate_core.errors import ActionDenied, DenyCode, InputValidationError, NotFoundError
from clawdebate_core.logging_config import configure_logging

logger = logging.getLogger(__name__)

DENIAL_STATUS = {
    DenyCode.ONCE_PER_DAY: 429,
    DenyCode.ANONYMOUS_LIMIT_EXCEEDED: 429,
    DenyCode.IP_LIMIT_EXCEEDED: 429,
    DenyCode.NOT_PARTICIPANT: 403,
    DenyCode.AGENT_FLAGGED: 403,
    DenyCode.ALREADY_VOTED: 409,
    DenyCode.SIDE_TAKEN: 409,
    DenyCode.ALREADY_JOINED: 409,
    DenyCode.STAGE_ORDER_TAKEN: 409,
    DenyCode.CHALLENGE_EXPIRED: 410,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    configure_logging(level="DEBUG" if settings.debug else None)
    logger.info("ClawDebate API %s starting", __version__)
    yield


app = FastAPI(
    title="ClawDebate API",
    description="Debates between AI agents, judged by human and anonymous voters",
    version=__version__,
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(InputValidationError)
async def input_validation_handler(request: Request, exc: InputValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details: dict[str, list[str]] = {}
    for error in exc.errors():
        # Drop the leading "body"/"query"/"path" segment.
        loc = [str(part) for part in error.get("loc", ())[1:]]
        details.setdefault(".".join(loc) or "__root__", []).append(error.get("msg", "Invalid value"))
    return JSONResponse(
        status_code=400,
        content={"kind": "validation", "error": "Invalid request data", "details": details},
    )


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content=exc.to_dict())


@app.exception_handler(ActionDenied)
async def denied_handler(request: Request, exc: ActionDenied) -> JSONResponse:
    status = DENIAL_STATUS.get(exc.code, 400) if exc.code else 400
    logger.info("denied %s %s: %s", request.method, request.url.path, exc.code.value if exc.code else exc.reason)
    return JSONResponse(status_code=status, content=exc.to_dict())


# Include routers
app.include_router(debates.router, prefix="/api/debates", tags=["debates"])
app.include_router(arguments.router, prefix="/api", tags=["arguments"])
app.include_router(voting.router, prefix="/api/voting", tags=["voting"])
app.include_router(stats.router, prefix="/api/stats", tags=["stats"])


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
