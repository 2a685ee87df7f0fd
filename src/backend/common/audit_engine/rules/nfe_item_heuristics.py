from __future__ import annotations

from typing import List

from ..config import ItemHeuristicsRuleConfig
from ..context import AuditContext
from ..fiscal import NCM_LENGTH, CfopScope, cfop_scope, is_valid_ncm, ncm_digit_count
from ..models import Finding, Item, Severity
from ..registry import register_rule
from ..rule import Rule, finding


def _label(index: int, item: Item) -> str:
    if item.product_code:
        return f"Item {index + 1} ({item.product_code})"
    return f"Item {index + 1}"


def _path(index: int, field: str) -> str:
    return f"NFe.infNFe.det[{index}].prod.{field}"


def check_quantity_and_price(index: int, item: Item) -> List[Finding]:
    findings: List[Finding] = []
    if item.quantity is not None and item.quantity <= 0:
        findings.append(
            finding(
                Severity.ERROR,
                "ITEM_QCOM_ZERO",
                "Invalid quantity",
                f"{_label(index, item)}: qCom <= 0.",
                path=_path(index, "qCom"),
                hint="Quantity must be greater than zero.",
            )
        )
    if item.unit_price is not None and item.unit_price <= 0:
        findings.append(
            finding(
                Severity.WARNING,
                "ITEM_VUN_ZERO",
                "Suspicious unit price",
                f"{_label(index, item)}: vUnCom <= 0.",
                path=_path(index, "vUnCom"),
                hint="Confirm the unit price (zero is only expected for free samples).",
            )
        )
    return findings


def check_cfop(index: int, item: Item, *, issuer_uf: str, recipient_uf: str, cross_check: bool) -> List[Finding]:
    if not item.cfop:
        return [
            finding(
                Severity.WARNING,
                "ITEM_CFOP_MISSING",
                "CFOP missing",
                f"{_label(index, item)}: no CFOP.",
                path=_path(index, "CFOP"),
                hint="Every item needs the CFOP of the operation.",
            )
        ]
    if not cross_check or not issuer_uf or not recipient_uf:
        return []

    scope = cfop_scope(item.cfop)
    same_uf = issuer_uf == recipient_uf
    if scope == CfopScope.INTERSTATE and same_uf:
        message = (
            f"{_label(index, item)}: CFOP {item.cfop} indicates an interstate operation "
            f"but issuer and recipient are both in {issuer_uf}."
        )
    elif scope == CfopScope.INTERNAL and not same_uf:
        message = (
            f"{_label(index, item)}: CFOP {item.cfop} indicates an internal operation "
            f"but issuer is in {issuer_uf} and recipient in {recipient_uf}."
        )
    else:
        return []
    return [
        finding(
            Severity.WARNING,
            "ITEM_CFOP_UF_MISMATCH",
            "CFOP does not match the parties' UF",
            message,
            path=_path(index, "CFOP"),
            hint="CFOPs starting with 1/5 are internal, 2/6 interstate.",
        )
    ]


def check_ncm(index: int, item: Item) -> List[Finding]:
    if not item.ncm:
        return [
            finding(
                Severity.WARNING,
                "ITEM_NCM_MISSING",
                "NCM missing",
                f"{_label(index, item)}: no NCM.",
                path=_path(index, "NCM"),
                hint="Inform the product NCM classification.",
            )
        ]
    if is_valid_ncm(item.ncm):
        return []
    return [
        finding(
            Severity.WARNING,
            "ITEM_NCM_INVALID",
            "NCM malformed",
            f"{_label(index, item)}: NCM '{item.ncm}' has {ncm_digit_count(item.ncm)} digit(s), "
            f"expected {NCM_LENGTH}.",
            path=_path(index, "NCM"),
            hint=f"NCM must have exactly {NCM_LENGTH} digits.",
        )
    ]


@register_rule
class NFE_ITEM_HEURISTICS(Rule):
    rule_id = "NFE-ITEM-HEURISTICS"
    rule_title = "Per-item quantity, price, CFOP and NCM sanity checks"
    order = 70
    finding_codes = (
        "ITEM_QCOM_ZERO",
        "ITEM_VUN_ZERO",
        "ITEM_CFOP_MISSING",
        "ITEM_CFOP_UF_MISMATCH",
        "ITEM_NCM_MISSING",
        "ITEM_NCM_INVALID",
    )
    config_model = ItemHeuristicsRuleConfig

    def evaluate(self, ctx: AuditContext) -> List[Finding]:
        cfg: ItemHeuristicsRuleConfig = self.config(ctx)
        issuer_uf = ctx.issuer_uf
        recipient_uf = ctx.recipient_uf

        findings: List[Finding] = []
        for index, item in enumerate(ctx.invoice.items):
            findings.extend(check_quantity_and_price(index, item))
            findings.extend(
                check_cfop(
                    index,
                    item,
                    issuer_uf=issuer_uf,
                    recipient_uf=recipient_uf,
                    cross_check=cfg.check_cfop_jurisdiction,
                )
            )
            if cfg.check_ncm:
                findings.extend(check_ncm(index, item))
        return findings
