"""FastAPI server receiving GitLab webhooks."""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from .common import (
    log_error,
    log_server_message,
    log_webhook_request,
    setup_logging,
    verify_gitlab_token,
)
from .config import AppConfig
from .models import parse_hook
from .service import WebhookService

logger = logging.getLogger(__name__)

CONFIG_PATH_ENV = "TRACKHOOK_CONFIG"


async def gitlab_webhook(request: Request) -> dict:
    """Handle GitLab webhook requests authenticated by X-Gitlab-Token."""
    state = request.app.state
    body = await request.body()
    event_header = request.headers.get("X-Gitlab-Event")

    webhook_secret = state.config.webhook.secret if state.config else ""
    if not webhook_secret:
        log_server_message("Webhook secret not configured")
        log_error("Webhook secret not configured", body.decode("utf-8", errors="ignore"))
        raise HTTPException(status_code=500, detail="Webhook secret not configured")

    token_header = request.headers.get("X-Gitlab-Token")
    if not token_header:
        log_server_message("Missing X-Gitlab-Token header")
        raise HTTPException(status_code=401, detail="Missing X-Gitlab-Token header")
    if not verify_gitlab_token(token_header, webhook_secret):
        log_server_message("Invalid X-Gitlab-Token")
        raise HTTPException(status_code=401, detail="Invalid X-Gitlab-Token")

    try:
        payload = json.loads(body)
    except json.JSONDecodeError as e:
        log_server_message(f"JSON parsing error: {e}")
        log_error(f"Invalid JSON in request body: {e}", body.decode("utf-8", errors="ignore"))
        raise HTTPException(status_code=400, detail="Invalid JSON payload")
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Webhook payload must be a JSON object")

    log_webhook_request(payload, event_header)

    try:
        hook = parse_hook(payload)
    except (ValidationError, ValueError) as e:
        log_server_message(f"Failed to validate webhook payload: {e}")
        log_error(f"Validation error: {e}", json.dumps(payload))
        raise HTTPException(status_code=400, detail="Unsupported or invalid GitLab payload")

    dispatched = await state.service.dispatch(hook)
    log_server_message(f"Webhook {hook.object_kind} {'queued' if dispatched else 'ignored'}")
    return {
        "status": "queued" if dispatched else "ignored",
        "object_kind": hook.object_kind,
    }


def _mount_webhook(app: FastAPI, endpoint: str) -> None:
    if getattr(app.state, "webhook_endpoint", None) == endpoint:
        return
    app.add_api_route(endpoint, gitlab_webhook, methods=["POST"])
    app.state.webhook_endpoint = endpoint


def create_app(cfg: Optional[AppConfig] = None, service: Any = None) -> FastAPI:
    """Build the webhook application.

    Without ``cfg`` the configuration is loaded at startup from ``$TRACKHOOK_CONFIG``
    (default ``config.yml``) and the webhook route is mounted at its
    ``webhook.endpoint``; an invalid configuration aborts startup.
    """
    app = FastAPI(title="trackhook", description="GitLab driven issue tracker automation")
    app.state.config = cfg
    app.state.service = service
    if cfg is not None:
        _mount_webhook(app, cfg.webhook.endpoint)

    @app.on_event("startup")
    async def startup_event() -> None:
        setup_logging()
        log_server_message("Server starting up")

        if app.state.config is None:
            config_path = os.getenv(CONFIG_PATH_ENV, "config.yml")
            try:
                app.state.config = AppConfig.load(config_path)
            except Exception as e:
                log_server_message(f"Failed to load configuration from {config_path}: {e}")
                raise
        _mount_webhook(app, app.state.config.webhook.endpoint)

        if app.state.service is None:
            app.state.service = WebhookService(app.state.config)
        app.state.service.start()

        log_server_message(f"Webhook endpoint: {app.state.webhook_endpoint}")
        log_server_message("Health check: /health")
        log_server_message("Server ready")

    @app.on_event("shutdown")
    async def shutdown_event() -> None:
        log_server_message("Server shutting down")
        if app.state.service is not None:
            await app.state.service.stop()
            log_server_message("Service stopped")

    @app.get("/health")
    async def health_check() -> Dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy"}

    @app.exception_handler(404)
    async def not_found_handler(request: Request, exc: HTTPException):
        """Handle 404 errors."""
        log_server_message(f"404 Not Found: {request.url}")
        return JSONResponse(
            status_code=404,
            content={"error": "Not found", "path": str(request.url)}
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "trackhook.server:app",
        host="0.0.0.0",
        port=8080,
        reload=False,
        log_level="info"
    )
