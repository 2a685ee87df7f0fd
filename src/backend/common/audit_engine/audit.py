"""Audit entry point: input envelope -> parse -> structural gate -> rules -> report.

`audit_xml` never raises for anything found in the document; every outcome is
encoded as findings inside a normally returned `AuditReport`.
"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError

from .config import AuditRulesConfig
from .context import AuditContext
from .models import AuditReport, Finding, Severity
from .parser import DocumentParseError, parse_invoice
from .runner import AuditRunner, build_meta, summarize

logger = logging.getLogger(__name__)

MIN_XML_LENGTH = 10


class AuditInput(BaseModel):
    xml: str = Field(min_length=MIN_XML_LENGTH)


def _input_findings(exc: ValidationError) -> List[Finding]:
    findings: List[Finding] = []
    for issue in exc.errors():
        path = ".".join(str(part) for part in issue.get("loc", ())) or "xml"
        findings.append(
            Finding(
                severity=Severity.ERROR,
                code="INPUT_INVALID",
                title="Invalid input",
                message=issue.get("msg", "Invalid value."),
                path=path,
                hint="Paste the full NF-e XML (the content of the .xml file).",
            )
        )
    return findings


def _parse_error_finding() -> Finding:
    return Finding(
        severity=Severity.ERROR,
        code="XML_PARSE_ERROR",
        title="Invalid XML",
        message="Could not read the XML (probably a formatting error).",
        hint="Check that the XML is complete and well-formed (closed tags, no broken characters).",
    )


def _inf_nfe_missing_finding() -> Finding:
    return Finding(
        severity=Severity.ERROR,
        code="INFNFE_MISSING",
        title="Structure not found",
        message="Could not find NFe/infNFe in the XML.",
        path="NFe.infNFe",
        hint="Confirm the XML is an NF-e (model 55) with the standard nfeProc/NFe/infNFe structure.",
    )


def audit_xml(
    payload: Any,
    *,
    rules_config: Optional[AuditRulesConfig] = None,
    runner: Optional[AuditRunner] = None,
) -> AuditReport:
    """Audit one NF-e given a `{"xml": "<...>"}` mapping."""
    try:
        data = AuditInput.model_validate(payload if isinstance(payload, Mapping) else {})
    except ValidationError as exc:
        return summarize(_input_findings(exc))

    try:
        invoice = parse_invoice(data.xml)
    except DocumentParseError as exc:
        logger.warning("NF-e XML could not be parsed: %s", exc)
        return summarize([_parse_error_finding()])

    if not invoice.has_inf_nfe:
        return summarize([_inf_nfe_missing_finding()], build_meta(invoice))

    ctx = AuditContext.build(invoice, rules_config)
    findings = (runner or AuditRunner()).run(ctx)
    report = summarize(findings, build_meta(invoice, ctx.sums))
    logger.debug(
        "Audited NF-e %s: %d error(s), %d warning(s), %d info(s)",
        invoice.access_key or "<no key>",
        report.summary.errors,
        report.summary.warnings,
        report.summary.infos,
    )
    return report


def server_error_report() -> AuditReport:
    """Synthetic report for unexpected faults in the hosting layer."""
    return summarize(
        [
            Finding(
                severity=Severity.ERROR,
                code="SERVER_ERROR",
                title="Server error",
                message="Failed to process the request.",
            )
        ]
    )
