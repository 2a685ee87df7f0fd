from __future__ import annotations

from decimal import Decimal
from typing import List, Optional

from ..config import TotalsReconcileRuleConfig
from ..context import AuditContext, amounts_differ
from ..fiscal import format_amount, round2
from ..models import Finding, Severity, Totals
from ..registry import register_rule
from ..rule import Rule, finding

_ZERO = Decimal("0")

# (sum/total attribute, XML tag, mismatch code, title)
_EXPENSE_FIELDS = (
    ("v_desc", "vDesc", "TOTAL_VDESC_MISMATCH", "Discount total may not match"),
    ("v_frete", "vFrete", "TOTAL_VFRETE_MISMATCH", "Freight total may not match"),
    ("v_seg", "vSeg", "TOTAL_VSEG_MISMATCH", "Insurance total may not match"),
    ("v_outro", "vOutro", "TOTAL_VOUTRO_MISMATCH", "Other expenses total may not match"),
)


def expected_final_value(totals: Totals) -> Optional[Decimal]:
    if totals.v_prod is None:
        return None
    return round2(
        totals.v_prod
        + (totals.v_frete or _ZERO)
        + (totals.v_seg or _ZERO)
        + (totals.v_outro or _ZERO)
        - (totals.v_desc or _ZERO)
    )


@register_rule
class NFE_TOTALS_RECONCILE(Rule):
    rule_id = "NFE-TOTALS-RECONCILE"
    rule_title = "Item amounts reconcile with ICMSTot totals"
    order = 60
    finding_codes = (
        "ITEM_VPROD_MISSING",
        "TOTALS_MISSING",
        "TOTAL_VPROD_MISMATCH",
        "TOTAL_VPROD_OK",
        "TOTAL_VDESC_MISMATCH",
        "TOTAL_VFRETE_MISMATCH",
        "TOTAL_VSEG_MISMATCH",
        "TOTAL_VOUTRO_MISMATCH",
        "TOTAL_VNF_MISMATCH",
        "TOTAL_VNF_OK",
    )
    config_model = TotalsReconcileRuleConfig

    def evaluate(self, ctx: AuditContext) -> List[Finding]:
        cfg: TotalsReconcileRuleConfig = self.config(ctx)
        sums = ctx.sums
        findings: List[Finding] = []

        if sums.v_prod_missing > 0:
            findings.append(
                finding(
                    Severity.WARNING,
                    "ITEM_VPROD_MISSING",
                    "vProd missing on items",
                    f"{sums.v_prod_missing} item(s) without prod/vProd.",
                    hint="Every item should carry vProd so it can be matched against the totals.",
                )
            )

        totals = ctx.invoice.totals
        if totals is None:
            findings.append(
                finding(
                    Severity.WARNING,
                    "TOTALS_MISSING",
                    "Totals missing",
                    "No total/ICMSTot block in the XML.",
                    path="NFe.infNFe.total.ICMSTot",
                    hint="Sum validations cannot run without the declared totals.",
                )
            )
            return findings

        if totals.v_prod is not None:
            diff = round2(totals.v_prod - sums.v_prod)
            if amounts_differ(totals.v_prod, sums.v_prod, cfg.tolerance):
                findings.append(
                    finding(
                        Severity.ERROR,
                        "TOTAL_VPROD_MISMATCH",
                        "Products total does not match",
                        f"Sum of item vProd={format_amount(sums.v_prod)} but declared "
                        f"vProd={format_amount(totals.v_prod)} (difference {diff}).",
                        path="NFe.infNFe.total.ICMSTot.vProd",
                        hint="Review rounding and the unit prices/quantities of the items.",
                    )
                )
            else:
                findings.append(
                    finding(
                        Severity.INFO,
                        "TOTAL_VPROD_OK",
                        "Products total OK",
                        f"Sum of items matches the declared vProd ({format_amount(totals.v_prod)}).",
                    )
                )

        for attr, tag, code, title in _EXPENSE_FIELDS:
            item_sum: Decimal = getattr(sums, attr)
            declared: Optional[Decimal] = getattr(totals, attr)
            # Expenses declared only at document level leave the item sum at zero.
            if declared is None or item_sum <= 0:
                continue
            if amounts_differ(declared, item_sum, cfg.tolerance):
                findings.append(
                    finding(
                        Severity.WARNING,
                        code,
                        title,
                        f"Sum of item {tag}={format_amount(item_sum)} but declared {tag}={format_amount(declared)} "
                        f"(difference {round2(declared - item_sum)}).",
                        path=f"NFe.infNFe.total.ICMSTot.{tag}",
                        hint=f"Check whether {tag} was applied per item or only on the document total.",
                    )
                )

        if cfg.check_final_value and totals.v_nf is not None:
            expected = expected_final_value(totals)
            if expected is not None:
                findings.append(self._final_value_finding(expected, totals.v_nf, cfg.tolerance))

        return findings

    @staticmethod
    def _final_value_finding(expected: Decimal, declared: Decimal, tolerance: Decimal) -> Finding:
        diff = round2(expected - declared)
        if amounts_differ(expected, declared, tolerance):
            return finding(
                Severity.WARNING,
                "TOTAL_VNF_MISMATCH",
                "Invoice total may not match",
                f"Expected vNF={format_amount(expected)} (vProd + vFrete + vSeg + vOutro - vDesc) but "
                f"declared vNF={format_amount(declared)} (difference {diff}).",
                path="NFe.infNFe.total.ICMSTot.vNF",
                hint="Heuristic check: taxes such as IPI/ICMS-ST or exemptions can legitimately change vNF.",
            )
        return finding(
            Severity.INFO,
            "TOTAL_VNF_OK",
            "Invoice total OK",
            f"Declared vNF ({format_amount(declared)}) matches vProd + vFrete + vSeg + vOutro - vDesc.",
        )
