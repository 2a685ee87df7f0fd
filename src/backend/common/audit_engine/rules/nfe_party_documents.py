from __future__ import annotations

from typing import List

from ..context import AuditContext
from ..models import Finding, Severity
from ..registry import register_rule
from ..rule import Rule, finding
from ..validators import document_kind, is_valid_tax_id


@register_rule
class NFE_PARTY_DOCUMENTS(Rule):
    rule_id = "NFE-PARTY-DOCUMENTS"
    rule_title = "Issuer and recipient CNPJ/CPF have valid check digits"
    order = 40
    finding_codes = (
        "EMIT_DOC_MISSING",
        "EMIT_DOC_INVALID",
        "EMIT_DOC_OK",
        "DEST_DOC_MISSING",
        "DEST_DOC_INVALID",
        "DEST_DOC_OK",
    )

    def evaluate(self, ctx: AuditContext) -> List[Finding]:
        findings: List[Finding] = []
        issuer = ctx.invoice.issuer
        emit_doc = issuer.document if issuer else None

        if not emit_doc:
            findings.append(
                finding(
                    Severity.WARNING,
                    "EMIT_DOC_MISSING",
                    "Issuer document missing",
                    "No CNPJ/CPF found for the issuer.",
                    path="NFe.infNFe.emit.CNPJ",
                    hint="The issuer must have a CNPJ (or a CPF in specific cases).",
                )
            )
        else:
            kind = document_kind(emit_doc)
            if is_valid_tax_id(emit_doc):
                findings.append(
                    finding(
                        Severity.INFO,
                        "EMIT_DOC_OK",
                        "Issuer document OK",
                        f"Issuer document ({kind}) is valid.",
                    )
                )
            else:
                findings.append(
                    finding(
                        Severity.ERROR,
                        "EMIT_DOC_INVALID",
                        "Issuer document invalid",
                        f"The issuer {kind} looks invalid.",
                        path="NFe.infNFe.emit",
                        hint="Check the number and the check digits of the issuer document.",
                    )
                )

        recipient = ctx.invoice.recipient
        if recipient is None:
            return findings

        dest_doc = recipient.document
        if not dest_doc:
            findings.append(
                finding(
                    Severity.WARNING,
                    "DEST_DOC_MISSING",
                    "Recipient document missing",
                    "No CNPJ/CPF found for the recipient.",
                    path="NFe.infNFe.dest.CNPJ",
                    hint="The recipient usually needs a CNPJ/CPF, depending on the operation type.",
                )
            )
            return findings

        kind = document_kind(dest_doc)
        if is_valid_tax_id(dest_doc):
            findings.append(
                finding(
                    Severity.INFO,
                    "DEST_DOC_OK",
                    "Recipient document OK",
                    f"Recipient document ({kind}) is valid.",
                )
            )
        else:
            findings.append(
                finding(
                    Severity.WARNING,
                    "DEST_DOC_INVALID",
                    "Recipient document suspicious",
                    f"The recipient {kind} looks invalid.",
                    path="NFe.infNFe.dest",
                    hint="Check the number and the check digits of the recipient document.",
                )
            )
        return findings
