"""FastAPI application exposing the Pearl Cover AI assistant."""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any
from uuid import uuid4

from fastapi import Depends, FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from pearlcover.api.schemas import (
    AIConfigResponse,
    AIConfigUpdateRequest,
    ChatRequest,
    ChatResponse,
    ConnectionTestResponse,
    ErrorLogRequest,
    QuickStatsResponse,
    SourcesModel,
    SuccessResponse,
)
from pearlcover.backend import Backend, SupabaseBackend
from pearlcover.config import Settings, get_settings
from pearlcover.errors import (
    BackendError,
    PearlCoverError,
    RateLimitedError,
    UnauthorizedError,
    ValidationFailure,
)
from pearlcover.metrics.observability import (
    PipelineMetrics,
    bind_correlation_id,
    clear_correlation_id,
    configure_logging,
    get_logger,
)
from pearlcover.models import AuthenticatedUser
from pearlcover.search import RpcSearchAggregator, SearchConfig
from pearlcover.services.chat import ChatService
from pearlcover.services.completion import CompletionConfig, OpenAICompatibleClient
from pearlcover.services.context import ContextBuilder, ContextBuilderConfig
from pearlcover.services.links import linkify
from pearlcover.services.profile import ProfileConfigService
from pearlcover.services.rate_limit import SlidingWindowRateLimiter
from pearlcover.services.stats import quick_stats


@dataclass(frozen=True)
class AppDependencies:
    backend: Backend
    profiles: ProfileConfigService
    completion: OpenAICompatibleClient
    chat_service: ChatService
    rate_limiter: SlidingWindowRateLimiter


def build_dependencies(settings: Settings) -> AppDependencies:
    backend = SupabaseBackend(
        settings.supabase_url,
        settings.supabase_anon_key,
        timeout=settings.backend_timeout_seconds,
    )
    profiles = ProfileConfigService(
        backend,
        default_endpoint=settings.ai_endpoint_url,
        default_model=settings.ai_model_name,
    )
    aggregator = RpcSearchAggregator(
        backend,
        SearchConfig(limit=settings.search_limit, expense_limit=settings.search_expense_limit),
    )
    completion = OpenAICompatibleClient(
        CompletionConfig(
            endpoint_url=settings.ai_endpoint_url,
            model=settings.ai_model_name,
            temperature=settings.ai_temperature,
            max_tokens=settings.ai_max_tokens,
            timeout_seconds=settings.ai_timeout_seconds,
        ),
    )
    chat_service = ChatService(
        profiles,
        aggregator,
        completion,
        ContextBuilder(ContextBuilderConfig(truncate_chars=settings.context_truncate_chars)),
    )
    return AppDependencies(
        backend=backend,
        profiles=profiles,
        completion=completion,
        chat_service=chat_service,
        rate_limiter=SlidingWindowRateLimiter(),
    )


def _bearer_token(request: Request) -> str | None:
    header = request.headers.get("Authorization") or ""
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def create_app(*, settings: Settings | None = None, dependencies: AppDependencies | None = None) -> FastAPI:
    settings = settings or get_settings()
    owns_dependencies = dependencies is None
    deps = dependencies or build_dependencies(settings)

    configure_logging(settings.log_level)
    logger = get_logger("api")

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        yield
        if owns_dependencies:
            await deps.completion.aclose()
            await deps.backend.aclose()

    app = FastAPI(title="Pearl Cover AI API", version="1.0.0", lifespan=lifespan)
    app.state.dependencies = deps

    if settings.cors_allow_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.cors_allow_origins),
            allow_credentials=settings.cors_allow_credentials,
            allow_methods=list(settings.cors_allow_methods),
            allow_headers=list(settings.cors_allow_headers),
        )

    @app.middleware("http")
    async def add_correlation_id(request: Request, call_next):  # type: ignore[override]
        correlation_id = request.headers.get("X-Request-ID", uuid4().hex)
        request.state.correlation_id = correlation_id
        bind_correlation_id(correlation_id)
        try:
            response = await call_next(request)
        finally:
            clear_correlation_id()
        response.headers["X-Correlation-ID"] = correlation_id
        return response

    def _error_response(request: Request, status_code: int, detail: str, **extra: Any) -> JSONResponse:
        correlation_id = getattr(request.state, "correlation_id", uuid4().hex)
        return JSONResponse(
            status_code=status_code,
            content={"detail": detail, "correlation_id": correlation_id, **extra},
        )

    @app.exception_handler(PearlCoverError)
    async def handle_pearlcover_error(request: Request, exc: PearlCoverError) -> JSONResponse:
        log = logger.error if exc.status_code >= 500 else logger.warning
        log("api.error", path=request.url.path, error=type(exc).__name__, status=exc.status_code, detail=exc.message)
        return _error_response(request, exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = jsonable_encoder(exc.errors())
        logger.warning("api.error", path=request.url.path, error="ValidationFailure", status=400)
        return _error_response(request, status.HTTP_400_BAD_REQUEST, "Invalid request", errors=errors)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.error("unhandled.error", path=request.url.path, detail=str(exc))
        return _error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error")

    def get_dependencies(request: Request) -> AppDependencies:
        return request.app.state.dependencies

    async def get_optional_user(
        request: Request, dep: AppDependencies = Depends(get_dependencies)
    ) -> AuthenticatedUser | None:
        token = _bearer_token(request)
        if token is None:
            return None
        try:
            return await dep.backend.get_user(token)
        except BackendError as exc:
            logger.warning("auth.lookup_failed", detail=exc.message)
            return None

    def require_user(user: AuthenticatedUser | None = Depends(get_optional_user)) -> AuthenticatedUser:
        if user is None:
            raise UnauthorizedError()
        return user

    def chat_rate_limit(
        user: AuthenticatedUser = Depends(require_user),
        dep: AppDependencies = Depends(get_dependencies),
    ) -> None:
        allowed = dep.rate_limiter.allow(
            user.id,
            settings.chat_rate_limit_requests,
            settings.chat_rate_limit_window_ms,
        )
        if not allowed:
            PipelineMetrics.record_rate_limited()
            logger.warning("ratelimit.rejected", user_id=user.id)
            raise RateLimitedError()

    @app.post("/api/ai/chat", response_model=ChatResponse)
    async def chat(
        payload: ChatRequest,
        user: AuthenticatedUser = Depends(require_user),
        dep: AppDependencies = Depends(get_dependencies),
        _rl: None = Depends(chat_rate_limit),
    ) -> ChatResponse:
        try:
            result = await dep.chat_service.answer(user.id, payload.query, access_token=user.access_token)
        except BackendError as exc:
            raise PearlCoverError(exc.message) from exc
        except PearlCoverError:
            raise
        except Exception as exc:
            logger.error("chat.failed", user_id=user.id, detail=str(exc))
            raise PearlCoverError(str(exc) or None) from exc
        return ChatResponse(
            content=result.content,
            linked_content=linkify(result.content),
            sources=SourcesModel(**result.sources.as_dict()),
        )

    @app.get("/api/ai/config", response_model=AIConfigResponse)
    async def read_ai_config(
        user: AuthenticatedUser = Depends(require_user),
        dep: AppDependencies = Depends(get_dependencies),
    ) -> AIConfigResponse:
        try:
            config = await dep.profiles.read(user.id, access_token=user.access_token)
        except BackendError as exc:
            raise PearlCoverError("Failed to get AI configuration") from exc
        return AIConfigResponse(
            api_key_configured=config.api_key_configured,
            endpoint_url=config.endpoint_url,
            model_name=config.model_name,
        )

    @app.put("/api/ai/config", response_model=SuccessResponse)
    async def update_ai_config(
        payload: AIConfigUpdateRequest,
        user: AuthenticatedUser = Depends(require_user),
        dep: AppDependencies = Depends(get_dependencies),
    ) -> SuccessResponse:
        try:
            await dep.profiles.save(
                user.id,
                api_key=payload.api_key or "",
                endpoint_url=payload.endpoint_url,
                model_name=payload.model_name,
                access_token=user.access_token,
            )
        except BackendError as exc:
            raise PearlCoverError("Failed to update AI configuration") from exc
        return SuccessResponse()

    @app.post("/api/ai/config/test", response_model=ConnectionTestResponse)
    async def test_ai_config(
        user: AuthenticatedUser = Depends(require_user),
        dep: AppDependencies = Depends(get_dependencies),
    ) -> ConnectionTestResponse:
        credentials = await dep.profiles.get_credentials(user.id, access_token=user.access_token)
        return ConnectionTestResponse(ok=await dep.completion.test_connection(credentials))

    @app.get("/api/ai/stats", response_model=QuickStatsResponse)
    async def ai_stats(
        user: AuthenticatedUser = Depends(require_user),
        dep: AppDependencies = Depends(get_dependencies),
    ) -> QuickStatsResponse:
        return QuickStatsResponse(**await quick_stats(dep.backend, access_token=user.access_token))

    @app.post("/api/log-error", response_model=SuccessResponse)
    async def log_client_error(
        payload: ErrorLogRequest,
        user: AuthenticatedUser | None = Depends(get_optional_user),
        dep: AppDependencies = Depends(get_dependencies),
    ) -> SuccessResponse:
        if not payload.message:
            raise ValidationFailure("Error message is required")
        row = {
            "user_id": user.id if user else None,
            "error_message": payload.message,
            "stack_trace": payload.stack,
            "component_stack": payload.component_stack,
            "url": payload.url,
            "user_agent": payload.user_agent,
        }
        try:
            await dep.backend.insert("error_logs", row, access_token=user.access_token if user else None)
        except BackendError as exc:
            logger.error("error_log.insert_failed", detail=exc.message)
            raise PearlCoverError("Failed to log error") from exc
        return SuccessResponse()

    @app.get("/metrics")
    async def metrics() -> Response:
        payload = generate_latest()
        return Response(content=payload, media_type=CONTENT_TYPE_LATEST)

    @app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        from pearlcover import __version__

        return {"status": "ok", "version": __version__, "environment": settings.environment}

    @app.head("/healthz")
    async def healthcheck_head() -> Response:
        return Response(status_code=status.HTTP_200_OK)

    @app.get("/livez")
    async def liveness() -> dict[str, str]:
        return {"status": "alive"}

    @app.get("/healthz/ready")
    async def readiness(dep: AppDependencies = Depends(get_dependencies)) -> JSONResponse:
        try:
            await dep.backend.ping()
        except BackendError as exc:
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={"status": "unhealthy", "error": "Database connection failed", "details": exc.message},
            )
        return JSONResponse(content={"status": "healthy", "database": "connected"})

    return app
