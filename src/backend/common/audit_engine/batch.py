"""Batch auditing with bounded concurrency.

Each document is audited independently; results come back in input order and a
fault while auditing one document only affects that document's report.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Iterable, List, Optional

from .audit import audit_xml, server_error_report
from .config import AuditRulesConfig
from .models import AuditReport
from .runner import AuditRunner

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 4


@dataclass(frozen=True)
class BatchDocument:
    name: str
    xml: str


@dataclass(frozen=True)
class BatchResult:
    name: str
    report: AuditReport


def _audit_one(
    document: BatchDocument,
    rules_config: Optional[AuditRulesConfig],
    runner: AuditRunner,
) -> BatchResult:
    try:
        report = audit_xml({"xml": document.xml}, rules_config=rules_config, runner=runner)
    except Exception:
        logger.exception("Unexpected failure auditing %s", document.name)
        report = server_error_report()
    return BatchResult(name=document.name, report=report)


def audit_batch(
    documents: Iterable[BatchDocument],
    *,
    max_workers: int = DEFAULT_MAX_WORKERS,
    rules_config: Optional[AuditRulesConfig] = None,
) -> List[BatchResult]:
    if max_workers < 1:
        raise ValueError("max_workers must be >= 1")

    docs = list(documents)
    if not docs:
        return []

    # Rules hold no per-audit state; one runner serves all workers.
    runner = AuditRunner()
    executor = ThreadPoolExecutor(max_workers=min(max_workers, len(docs)), thread_name_prefix="nfe-audit")
    try:
        futures: List[Future] = [executor.submit(_audit_one, doc, rules_config, runner) for doc in docs]
        results = [future.result() for future in futures]
    except BaseException:
        # Interrupted: drop documents that have not started; completed reports are untouched.
        executor.shutdown(wait=False, cancel_futures=True)
        raise
    executor.shutdown(wait=True)
    logger.info("Audited %d document(s) with %d worker(s)", len(results), min(max_workers, len(docs)))
    return results
