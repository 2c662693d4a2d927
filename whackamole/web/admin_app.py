import os
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from whackamole.config import AppConfig
from whackamole.core.eviction import EvictionScheduler
from whackamole.storage.audit import AuditLog
from whackamole.storage.event_buffer import EventBuffer
from whackamole.storage.state_store import StateStore


def _require_admin(config: AppConfig):
    expected = os.getenv(config.admin.token_env, "")

    async def verifier(request: Request):
        token = request.headers.get("X-Admin-Token")
        if not expected or token != expected:
            raise HTTPException(status_code=401, detail="unauthorized")
        return True

    return verifier


def create_admin_app(
    config: AppConfig,
    state_store: StateStore,
    scheduler: EvictionScheduler,
    event_buffer: EventBuffer,
    audit_log: AuditLog,
) -> FastAPI:
    app = FastAPI(title=f"{config.app.name} Admin", docs_url=None, redoc_url=None)

    verifier = _require_admin(config)
    detector = scheduler.detector

    @app.get("/api/status")
    async def status(_: bool = Depends(verifier)):
        state = await state_store.load()
        return {
            "enabled": state.enabled,
            "detection": config.detection.dict(),
            "stats": detector.stats(),
            "scheduler_running": scheduler.running,
        }

    @app.post("/api/toggle")
    async def toggle(body: dict, _: bool = Depends(verifier)):
        enabled = bool(body.get("enabled", True))
        await state_store.set_enabled(enabled)
        audit_log.add("admin_toggle", {"enabled": enabled})
        return {"ok": True, "enabled": enabled}

    @app.post("/api/sweep")
    async def sweep(_: bool = Depends(verifier)):
        result = await scheduler.sweep_once()
        return {
            "ok": True,
            "evicted": result.evicted,
            "dropped": result.dropped,
            "stats": detector.stats(),
        }

    @app.get("/api/logs")
    async def logs(event_type: Optional[str] = None, _: bool = Depends(verifier)):
        return {
            "events": event_buffer.recent(100, event_type=event_type),
            "audit": audit_log.recent(50),
        }

    @app.exception_handler(HTTPException)
    async def http_exc(_, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    return app
