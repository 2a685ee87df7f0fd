from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from .context import AuditContext, ItemSums
from .models import (
    AuditReport,
    ComputedSums,
    DeclaredTotals,
    Finding,
    ParsedInvoice,
    ReportMeta,
    ReportSummary,
    Severity,
)
from .registry import registry


class AuditRunner:
    def __init__(self, rules: Optional[Iterable] = None):
        self._rules = list(rules) if rules is not None else registry.create_all()

    @property
    def rule_ids(self) -> List[str]:
        return [rule.rule_id for rule in self._rules]

    def run(self, ctx: AuditContext, *, rule_ids: Optional[set[str]] = None) -> List[Finding]:
        findings: List[Finding] = []
        for rule in self._rules:
            if rule_ids is not None and rule.rule_id not in rule_ids:
                continue
            findings.extend(rule.run(ctx))
        return findings


def build_meta(invoice: Optional[ParsedInvoice] = None, sums: Optional[ItemSums] = None) -> ReportMeta:
    if invoice is None:
        return ReportMeta()

    ide = invoice.identification
    fields: Dict[str, Any] = dict(
        items_count=len(invoice.items),
        has_nfe_proc=invoice.has_nfe_proc,
        access_key=invoice.access_key,
        emit_name=invoice.issuer.name if invoice.issuer else None,
        dest_name=invoice.recipient.name if invoice.recipient else None,
        number=ide.number if ide else None,
        series=ide.series if ide else None,
        issued_at=ide.issued_at if ide else None,
    )

    totals = invoice.totals
    if totals is not None:
        sums = sums or ItemSums()
        fields.update(
            v_nf=totals.v_nf,
            totals=DeclaredTotals(
                v_prod=totals.v_prod,
                v_desc=totals.v_desc,
                v_frete=totals.v_frete,
                v_seg=totals.v_seg,
                v_outro=totals.v_outro,
                v_nf=totals.v_nf,
            ),
            sums=ComputedSums(
                v_prod=sums.v_prod,
                v_desc=sums.v_desc,
                v_frete=sums.v_frete,
                v_seg=sums.v_seg,
                v_outro=sums.v_outro,
            ),
        )
    return ReportMeta(**fields)


def summarize(findings: List[Finding], meta: Optional[ReportMeta] = None) -> AuditReport:
    summary = ReportSummary(
        errors=sum(1 for f in findings if f.severity == Severity.ERROR),
        warnings=sum(1 for f in findings if f.severity == Severity.WARNING),
        infos=sum(1 for f in findings if f.severity == Severity.INFO),
    )
    return AuditReport(
        ok=summary.errors == 0,
        meta=meta or ReportMeta(),
        summary=summary,
        findings=list(findings),
    )
