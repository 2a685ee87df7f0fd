from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from functools import reduce
from typing import Iterable, Optional

from .config import AuditRulesConfig
from .fiscal import round2
from .models import Item, ParsedInvoice

_ZERO = Decimal("0")


@dataclass(frozen=True)
class ItemSums:
    v_prod: Decimal = _ZERO
    v_desc: Decimal = _ZERO
    v_frete: Decimal = _ZERO
    v_seg: Decimal = _ZERO
    v_outro: Decimal = _ZERO
    v_prod_missing: int = 0

    @classmethod
    def of_item(cls, item: Item) -> "ItemSums":
        return cls(
            v_prod=item.v_prod or _ZERO,
            v_desc=item.v_desc or _ZERO,
            v_frete=item.v_frete or _ZERO,
            v_seg=item.v_seg or _ZERO,
            v_outro=item.v_outro or _ZERO,
            v_prod_missing=1 if item.v_prod is None else 0,
        )

    def __add__(self, other: "ItemSums") -> "ItemSums":
        return ItemSums(
            v_prod=self.v_prod + other.v_prod,
            v_desc=self.v_desc + other.v_desc,
            v_frete=self.v_frete + other.v_frete,
            v_seg=self.v_seg + other.v_seg,
            v_outro=self.v_outro + other.v_outro,
            v_prod_missing=self.v_prod_missing + other.v_prod_missing,
        )

    def rounded(self) -> "ItemSums":
        return ItemSums(
            v_prod=round2(self.v_prod),
            v_desc=round2(self.v_desc),
            v_frete=round2(self.v_frete),
            v_seg=round2(self.v_seg),
            v_outro=round2(self.v_outro),
            v_prod_missing=self.v_prod_missing,
        )


def compute_item_sums(items: Iterable[Item]) -> ItemSums:
    """Combine per-item contributions by reduction and round each sum to cents."""
    return reduce(lambda acc, part: acc + part, (ItemSums.of_item(i) for i in items), ItemSums()).rounded()


@dataclass(frozen=True)
class AuditContext:
    invoice: ParsedInvoice
    sums: ItemSums = field(default_factory=ItemSums)
    rules_config: AuditRulesConfig = field(default_factory=AuditRulesConfig)

    @classmethod
    def build(cls, invoice: ParsedInvoice, rules_config: Optional[AuditRulesConfig] = None) -> "AuditContext":
        return cls(
            invoice=invoice,
            sums=compute_item_sums(invoice.items),
            rules_config=rules_config or AuditRulesConfig(),
        )

    @property
    def issuer_uf(self) -> str:
        return self.invoice.issuer.uf if self.invoice.issuer else ""

    @property
    def recipient_uf(self) -> str:
        return self.invoice.recipient.uf if self.invoice.recipient else ""


def amounts_differ(a: Decimal, b: Decimal, tolerance: Decimal) -> bool:
    return abs(round2(a - b)) > tolerance
