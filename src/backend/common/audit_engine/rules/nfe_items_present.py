from __future__ import annotations

from typing import List

from ..context import AuditContext
from ..models import Finding, Severity
from ..registry import register_rule
from ..rule import Rule, finding


@register_rule
class NFE_ITEMS_PRESENT(Rule):
    rule_id = "NFE-ITEMS-PRESENT"
    rule_title = "NF-e must contain at least one item (det)"
    order = 10
    finding_codes = ("ITEMS_EMPTY",)

    def evaluate(self, ctx: AuditContext) -> List[Finding]:
        if ctx.invoice.items:
            return []
        return [
            finding(
                Severity.ERROR,
                "ITEMS_EMPTY",
                "No items",
                "The NF-e has no items (det).",
                path="NFe.infNFe.det",
                hint="Check that the XML is complete. A valid NF-e must contain at least one item.",
            )
        ]
