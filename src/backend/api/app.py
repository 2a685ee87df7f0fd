from __future__ import annotations

import logging

from fastapi import FastAPI

from common.audit_engine.settings import get_audit_settings

from api.audit import router as audit_router

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def create_app() -> FastAPI:
    settings = get_audit_settings()
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)

    app = FastAPI(title="NF-e pre-audit")
    app.include_router(audit_router)
    return app
