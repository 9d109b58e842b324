"""FastAPI application powering the Study Portal backend."""

from __future__ import annotations

import asyncio
import contextvars
import functools
import json
import logging
import uuid
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse, HTMLResponse, JSONResponse
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ..config import AppConfig
from ..errors import PayloadTooLarge, PortalError
from ..services.auth import AdminGate
from ..services.catalog import JsonCatalogStore
from ..services.events import emit_structured_event
from ..services.lessons import LessonService
from ..services.media import MediaLibrary

_TEMPLATE_ROOT = Path(__file__).parent / "templates"


_REQUEST_ID_VAR: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "study_portal_request_id",
    default=None,
)
_ACTOR_VAR: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "study_portal_actor",
    default=None,
)


def _new_correlation_id() -> str:
    return uuid.uuid4().hex


def _collect_correlation_context() -> Dict[str, str]:
    context: Dict[str, str] = {}
    request_id = _REQUEST_ID_VAR.get()
    if request_id:
        context["request_id"] = str(request_id)
    actor = _ACTOR_VAR.get()
    if actor:
        context["actor"] = str(actor)
    return context


class ContextualLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that injects correlation context into records."""

    def process(self, msg: Any, kwargs: Dict[str, Any]) -> tuple[Any, Dict[str, Any]]:  # type: ignore[override]
        extra: Dict[str, Any] = dict(self.extra)
        provided = kwargs.get("extra")
        if isinstance(provided, dict):
            extra.update(provided)
        correlation = _collect_correlation_context()
        for key, value in correlation.items():
            extra.setdefault(key, value)
        kwargs["extra"] = extra
        return msg, kwargs


LOGGER = ContextualLoggerAdapter(logging.getLogger(__name__), {})
EVENT_LOGGER = ContextualLoggerAdapter(logging.getLogger("study_portal.events"), {})


def _log_event(message: str, **context: Any) -> None:
    emit_structured_event(
        "APP_EVENT",
        message,
        context=context,
        correlation=_collect_correlation_context(),
        logger=EVENT_LOGGER,
    )


class RequestContextMiddleware:
    """Assign a correlation identifier to each request and expose it via contextvars."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        request_id = _new_correlation_id()
        scope_state = scope.get("state")
        if scope_state is None:
            scope_state = {}
            scope["state"] = scope_state
        if isinstance(scope_state, dict):
            scope_state["request_id"] = request_id
        else:
            setattr(scope_state, "request_id", request_id)

        method = scope.get("method")
        actor = f"request:{method.upper()}" if isinstance(method, str) else "request"
        request_token = _REQUEST_ID_VAR.set(request_id)
        actor_token = _ACTOR_VAR.set(actor)

        try:
            await self.app(scope, receive, send)
        finally:
            _ACTOR_VAR.reset(actor_token)
            _REQUEST_ID_VAR.reset(request_token)


class CatchAllErrorMiddleware:
    """Turn any unhandled exception into a 400 JSON error response."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def _send(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, _send)
        except Exception as error:  # noqa: BLE001 - every failure becomes a JSON error
            LOGGER.exception("Unhandled error while serving %s", scope.get("path"))
            if response_started:
                raise
            response = _error_response(400, str(error) or "Error")
            await response(scope, receive, send)


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def _read_json_body(request: Request) -> Any:
    body = await request.body()
    if not body.strip():
        return {}
    try:
        return json.loads(body)
    except ValueError as error:
        raise HTTPException(status_code=400, detail="Invalid JSON body") from error


def create_app(
    service: LessonService,
    *,
    gate: AdminGate,
    media: MediaLibrary,
    root_path: str | None = None,
) -> FastAPI:
    """Return a configured FastAPI application."""

    app = FastAPI(
        title="Study Portal",
        description="Lesson catalog and media uploads for a self-study portal",
        root_path=root_path or "",
    )
    app.state.server = None
    app.state.lesson_service = service
    app.state.admin_gate = gate
    app.state.media_library = media
    app.add_middleware(CatchAllErrorMiddleware)
    app.add_middleware(RequestContextMiddleware)

    index_html = (_TEMPLATE_ROOT / "index.html").read_text(encoding="utf-8")
    admin_html = (_TEMPLATE_ROOT / "admin.html").read_text(encoding="utf-8")
    login_html = (_TEMPLATE_ROOT / "admin-login.html").read_text(encoding="utf-8")

    @app.exception_handler(PortalError)
    async def _handle_portal_error(request: Request, error: PortalError) -> JSONResponse:
        LOGGER.info("%s %s rejected: %s", request.method, request.url.path, error.message)
        return _error_response(error.status_code, error.message)

    @app.exception_handler(StarletteHTTPException)
    async def _handle_http_error(request: Request, error: StarletteHTTPException) -> JSONResponse:
        return _error_response(error.status_code, str(error.detail))

    @app.exception_handler(RequestValidationError)
    async def _handle_request_validation(
        request: Request, error: RequestValidationError
    ) -> JSONResponse:
        messages = [str(item.get("msg", "")) for item in error.errors() if item.get("msg")]
        return _error_response(400, "; ".join(messages) or "Invalid request")

    def _is_admin(request: Request) -> bool:
        return gate.is_authenticated(request.cookies.get(gate.cookie_name))

    def require_admin(request: Request) -> None:
        gate.require(request.cookies.get(gate.cookie_name))

    @app.get("/", response_class=HTMLResponse)
    async def index() -> HTMLResponse:
        return HTMLResponse(index_html)

    @app.get("/admin-login", response_class=HTMLResponse)
    async def admin_login_page() -> HTMLResponse:
        return HTMLResponse(login_html)

    @app.get("/admin.html", response_class=HTMLResponse)
    async def admin_page(request: Request) -> HTMLResponse:
        if not _is_admin(request):
            _log_event("Serving login page in place of admin page")
            return HTMLResponse(login_html)
        return HTMLResponse(admin_html)

    @app.get("/video/{name:path}")
    async def serve_media(name: str) -> FileResponse:
        try:
            target = media.open(name)
        except FileNotFoundError as error:
            raise HTTPException(status_code=404, detail="File not found") from error
        return FileResponse(target)

    @app.post("/api/admin/login")
    async def login(request: Request) -> JSONResponse:
        payload = await _read_json_body(request)
        if not isinstance(payload, Mapping):
            payload = {}
        cookie_value = gate.login(payload.get("username"), payload.get("password"))
        response = JSONResponse({"success": True})
        response.set_cookie(
            gate.cookie_name,
            cookie_value,
            httponly=True,
            samesite="lax",
            path="/",
        )
        return response

    @app.post("/api/admin/logout")
    async def logout() -> JSONResponse:
        response = JSONResponse({"success": True})
        response.delete_cookie(gate.cookie_name, path="/")
        _log_event("Admin logged out")
        return response

    @app.get("/api/lessons")
    async def list_lessons() -> JSONResponse:
        return JSONResponse(service.list_lessons())

    @app.post("/api/lessons", dependencies=[Depends(require_admin)])
    async def upsert_lesson(request: Request) -> Dict[str, Any]:
        payload = await _read_json_body(request)
        lesson = service.upsert_lesson(payload)
        _log_event("Saved lesson", lesson_id=lesson.id)
        return {"success": True, "lesson": lesson.to_dict()}

    @app.delete("/api/lessons/{lesson_id}", dependencies=[Depends(require_admin)])
    async def delete_lesson(lesson_id: str) -> Dict[str, Any]:
        removed = service.delete_lesson(lesson_id)
        _log_event("Deleted lesson", lesson_id=lesson_id, removed=removed)
        return {"success": True}

    @app.post("/api/upload", dependencies=[Depends(require_admin)])
    async def upload_media(request: Request) -> Dict[str, Any]:
        async with request.form() as form:
            upload = form.get("file")
            if not isinstance(upload, UploadFile):
                raise HTTPException(status_code=400, detail="No file uploaded")

            original_name = Path(upload.filename or "").name
            stored = media.resolve(original_name)
            if upload.size is not None and upload.size > media.max_bytes:
                raise PayloadTooLarge()

            _log_event("Uploading media", original_name=original_name)
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, functools.partial(media.store, upload.file, stored))

        return {
            "success": True,
            "fileName": stored.file_name,
            "originalName": stored.original_name,
        }

    return app


def create_app_from_config(config: AppConfig, *, root_path: str | None = None) -> FastAPI:
    """Build the catalog store, gate and media library for *config* and wire them up."""

    service = LessonService(JsonCatalogStore(config.catalog_file))
    gate = AdminGate(config.admin, config.secret_key, cookie_name=config.cookie_name)
    media = MediaLibrary(config.media_root, max_bytes=config.max_upload_bytes)
    return create_app(service, gate=gate, media=media, root_path=root_path)


__all__ = ["create_app", "create_app_from_config"]
