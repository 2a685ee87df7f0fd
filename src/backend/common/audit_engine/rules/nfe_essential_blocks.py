from __future__ import annotations

from typing import List

from ..context import AuditContext
from ..models import Finding, Severity
from ..registry import register_rule
from ..rule import Rule, finding


@register_rule
class NFE_ESSENTIAL_BLOCKS(Rule):
    rule_id = "NFE-ESSENTIAL-BLOCKS"
    rule_title = "Identification, issuer and recipient blocks are present"
    order = 30
    finding_codes = ("IDE_MISSING", "EMIT_MISSING", "DEST_MISSING")

    def evaluate(self, ctx: AuditContext) -> List[Finding]:
        findings: List[Finding] = []
        if ctx.invoice.identification is None:
            findings.append(
                finding(
                    Severity.ERROR,
                    "IDE_MISSING",
                    "Identification missing",
                    "No ide block inside infNFe.",
                    path="NFe.infNFe.ide",
                )
            )
        if ctx.invoice.issuer is None:
            findings.append(
                finding(
                    Severity.ERROR,
                    "EMIT_MISSING",
                    "Issuer missing",
                    "No emit block inside infNFe.",
                    path="NFe.infNFe.emit",
                )
            )
        if ctx.invoice.recipient is None:
            # Some operations omit dest; it is usually mandatory.
            findings.append(
                finding(
                    Severity.WARNING,
                    "DEST_MISSING",
                    "Recipient missing",
                    "No dest block inside infNFe (optional for some operations, but usually required).",
                    path="NFe.infNFe.dest",
                )
            )
        return findings
