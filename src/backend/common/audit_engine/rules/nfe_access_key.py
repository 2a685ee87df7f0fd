from __future__ import annotations

from typing import List

from ..context import AuditContext
from ..models import Finding, Severity
from ..registry import register_rule
from ..rule import Rule, finding
from ..validators import ACCESS_KEY_LENGTH, access_key_check_digit


@register_rule
class NFE_ACCESS_KEY(Rule):
    rule_id = "NFE-ACCESS-KEY"
    rule_title = "Access key has 44 digits and a valid check digit"
    order = 20
    finding_codes = (
        "ACCESS_KEY_NOT_FOUND",
        "ACCESS_KEY_LEN",
        "ACCESS_KEY_DV_UNKNOWN",
        "ACCESS_KEY_DV_MISMATCH",
        "ACCESS_KEY_OK",
    )

    def evaluate(self, ctx: AuditContext) -> List[Finding]:
        if not ctx.invoice.access_key:
            return [
                finding(
                    Severity.WARNING,
                    "ACCESS_KEY_NOT_FOUND",
                    "Access key not found",
                    "Could not extract the access key (infNFe/@Id or protNFe/infProt/chNFe).",
                    hint="If possible, use the authorized XML (nfeProc, with protocol).",
                )
            ]

        # Unicode digits count towards the length; only ASCII digits can be checked.
        key = "".join(ch for ch in ctx.invoice.access_key if ch.isdigit())
        if len(key) != ACCESS_KEY_LENGTH:
            return [
                finding(
                    Severity.WARNING,
                    "ACCESS_KEY_LEN",
                    "Incomplete access key",
                    f"The extracted key does not have {ACCESS_KEY_LENGTH} digits (found {len(key)}).",
                    hint="Check that infNFe/@Id has the format NFe{44 digits}.",
                )
            ]

        dv_calc = access_key_check_digit(key)
        if dv_calc is None or not key[-1].isascii():
            return [
                finding(
                    Severity.WARNING,
                    "ACCESS_KEY_DV_UNKNOWN",
                    "Check digit not verifiable",
                    "Could not compute the access key check digit.",
                )
            ]

        dv_in = int(key[-1])
        if dv_calc != dv_in:
            return [
                finding(
                    Severity.ERROR,
                    "ACCESS_KEY_DV_MISMATCH",
                    "Access key check digit is invalid",
                    f"Access key check digit looks wrong. Supplied: {dv_in}, computed: {dv_calc}.",
                    hint="If the key was typed or edited by hand, regenerate it from the original data.",
                )
            ]

        return [
            finding(
                Severity.INFO,
                "ACCESS_KEY_OK",
                "Access key OK",
                "Access key has a valid check digit.",
            )
        ]
