from __future__ import annotations

import logging
from functools import lru_cache
from typing import List

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from common.audit_engine.audit import audit_xml, server_error_report
from common.audit_engine.batch import BatchDocument, audit_batch
from common.audit_engine.config import AuditRulesConfig
from common.audit_engine.settings import AuditSettings, get_audit_settings, load_rules_config

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/audit", tags=["audit"])


class BatchDocumentIn(BaseModel):
    name: str
    xml: str = ""


class BatchAuditRequest(BaseModel):
    documents: List[BatchDocumentIn] = Field(default_factory=list)


@lru_cache(maxsize=1)
def _settings() -> AuditSettings:
    return get_audit_settings()


@lru_cache(maxsize=1)
def _rules_config() -> AuditRulesConfig:
    return load_rules_config(_settings().rules_config_path)


def _server_error() -> JSONResponse:
    return JSONResponse(server_error_report().to_payload(), status_code=500)


@router.post("")
async def audit_document(request: Request):
    try:
        payload = await request.json()
        report = audit_xml(payload, rules_config=_rules_config())
    except Exception:
        logger.exception("Audit request failed")
        return _server_error()
    return JSONResponse(report.to_payload(), status_code=200)


@router.post("/batch")
def audit_documents(body: BatchAuditRequest):
    try:
        results = audit_batch(
            (BatchDocument(name=doc.name, xml=doc.xml) for doc in body.documents),
            max_workers=_settings().max_workers,
            rules_config=_rules_config(),
        )
    except Exception:
        logger.exception("Batch audit request failed")
        return _server_error()
    return JSONResponse(
        {"results": [{"name": r.name, "report": r.report.to_payload()} for r in results]},
        status_code=200,
    )
