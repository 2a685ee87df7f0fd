from __future__ import annotations

from typing import List, Optional

from ..context import AuditContext
from ..models import Finding, Party, Severity
from ..registry import register_rule
from ..rule import Rule, finding
from ..validators import is_valid_cep


def _check_cep(party: Optional[Party], *, code: str, label: str, path: str) -> Optional[Finding]:
    if party is None or party.address is None or not party.address.cep:
        return None
    if is_valid_cep(party.address.cep):
        return None
    return finding(
        Severity.WARNING,
        code,
        f"{label} CEP invalid",
        f"The {label.lower()} CEP '{party.address.cep}' must have 8 digits and not be a repeated digit.",
        path=path,
        hint="Check the postal code of the address.",
    )


@register_rule
class NFE_PARTY_ADDRESSES(Rule):
    rule_id = "NFE-PARTY-ADDRESSES"
    rule_title = "Issuer and recipient postal codes (CEP) are well-formed"
    order = 50
    finding_codes = ("EMIT_CEP_INVALID", "DEST_CEP_INVALID")

    def evaluate(self, ctx: AuditContext) -> List[Finding]:
        checks = (
            _check_cep(
                ctx.invoice.issuer,
                code="EMIT_CEP_INVALID",
                label="Issuer",
                path="NFe.infNFe.emit.enderEmit.CEP",
            ),
            _check_cep(
                ctx.invoice.recipient,
                code="DEST_CEP_INVALID",
                label="Recipient",
                path="NFe.infNFe.dest.enderDest.CEP",
            ),
        )
        return [f for f in checks if f is not None]
