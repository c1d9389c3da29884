"""FastAPI application creation and configuration.

This module creates and configures the FastAPI application instance.
It registers exception handlers, auth middleware, CORS, request-id
middleware, and routes.

Middleware Ordering (Critical):
- Middleware runs in reverse order of registration
- RequestIDMiddleware is added LAST so it runs FIRST (outermost)
- CORSMiddleware wraps AuthMiddleware so preflight and error responses
  carry CORS headers

Actual execution order per request:
1. RequestIDMiddleware (sets request_id, starts timer)
2. CORSMiddleware
3. AuthMiddleware (runs the auth gate, sets principal)
4. Route handler

LLM Client Lifecycle:
- httpx.AsyncClient is created at startup, stored in app.state
- LLMGateway wraps the shared client for connection pooling
- Client is closed gracefully at shutdown
"""

import json
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session, sessionmaker
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from relay.api.routes import create_api_router
from relay.auth.gate import AuthGate
from relay.auth.middleware import AuthMiddleware
from relay.auth.tokens import TokenService
from relay.config import Settings, get_settings
from relay.db.engine import create_db_engine
from relay.db.session import create_session_factory
from relay.errors import ApiError, ApiErrorCode
from relay.logging import configure_logging, get_logger
from relay.middleware.request_id import RequestIDMiddleware
from relay.responses import (
    api_error_handler,
    error_response,
    http_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from relay.services.chats import ChatStore
from relay.services.llm import LLMGateway, OpenRouterAdapter
from relay.services.users import UserStore

# Configure structured logging at import time
configure_logging()

logger = get_logger(__name__)


def create_llm_gateway(client: httpx.AsyncClient, settings: Settings) -> LLMGateway:
    """Build the OpenRouter-backed gateway from settings."""
    adapter = OpenRouterAdapter(
        client,
        base_url=settings.openrouter_base_url,
        referer=settings.openrouter_referer,
        title=settings.openrouter_title,
    )
    return LLMGateway(
        adapter,
        api_key=settings.openrouter_api_key,
        model_name=settings.openrouter_model,
        timeout_s=settings.llm_timeout_s,
        max_tokens=settings.llm_max_tokens,
        temperature=settings.llm_temperature,
        env=settings.relay_env.value,
    )


def check_database(session_factory: sessionmaker[Session]) -> None:
    with session_factory() as db:
        db.execute(text("SELECT 1"))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle resources.

    - Verifies the database is reachable (fatal only in prod)
    - Creates the shared httpx.AsyncClient and the LLM gateway
    - Closes the client on shutdown
    """
    settings: Settings = app.state.settings

    try:
        await run_in_threadpool(check_database, app.state.session_factory)
        logger.info("database_connected")
    except Exception as e:
        if settings.is_production:
            logger.error("database_connection_failed", error=str(e))
            raise
        logger.warning("database_connection_failed", error=str(e))

    app.state.httpx_client = httpx.AsyncClient(
        timeout=httpx.Timeout(settings.llm_timeout_s, connect=10.0),
        limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
    )

    if app.state.llm_gateway is None:
        app.state.llm_gateway = create_llm_gateway(app.state.httpx_client, settings)
        logger.info(
            "llm_gateway_initialized",
            model_name=settings.openrouter_model,
            configured=app.state.llm_gateway.is_configured,
        )

    yield

    await app.state.httpx_client.aclose()
    logger.info("httpx_client_closed")


def create_app(
    settings: Settings | None = None,
    session_factory: sessionmaker[Session] | None = None,
    llm_gateway: LLMGateway | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to use; loaded from the environment if None.
        session_factory: Session factory for the stores (for testing). If None,
            one is bound to settings.database_url.
        llm_gateway: Pre-built gateway (for testing). If None, one is built
            in the lifespan around the shared httpx client.

    Returns:
        Configured FastAPI application instance.
    """
    settings = settings or get_settings()
    if session_factory is None:
        session_factory = create_session_factory(create_db_engine(settings.database_url))

    app = FastAPI(
        title="Relay Chat API",
        description="Backend API for Relay - authenticated chat with an LLM assistant",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    user_store = UserStore(session_factory)
    token_service = TokenService(settings.jwt_secret, settings.jwt_expires_in_s)

    app.state.settings = settings
    app.state.session_factory = session_factory
    app.state.user_store = user_store
    app.state.chat_store = ChatStore(session_factory)
    app.state.token_service = token_service
    app.state.llm_gateway = llm_gateway

    # Register exception handlers
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # Handle JSON decode errors from malformed JSON bodies
    @app.middleware("http")
    async def catch_json_decode_errors(request: Request, call_next):
        """Catch JSON decode errors before they reach route handlers."""
        if request.method in ("POST", "PUT", "PATCH"):
            content_type = request.headers.get("content-type", "")
            if "application/json" in content_type:
                body = await request.body()
                if body:
                    try:
                        json.loads(body)
                    except json.JSONDecodeError:
                        return JSONResponse(
                            status_code=400,
                            content=error_response(
                                ApiErrorCode.E_INVALID_REQUEST,
                                "Validation failed",
                                "Malformed JSON body",
                            ),
                        )
        return await call_next(request)

    app.include_router(create_api_router())

    app.add_middleware(
        AuthMiddleware,
        gate=AuthGate(token_service, user_store),
        cookie_name=settings.cookie_name,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    logger.info("app_created", env=settings.relay_env.value)
    return app


def add_request_id_middleware(app: FastAPI, log_requests: bool = True) -> None:
    """Add request-id middleware to the app.

    This should be called AFTER all other middleware is added, so it runs FIRST.
    This ensures every response includes X-Request-ID, including auth failures.
    """
    app.add_middleware(RequestIDMiddleware, log_requests=log_requests)
