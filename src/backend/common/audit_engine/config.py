from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Optional, Type, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T", bound=BaseModel)


class RuleConfigBase(BaseModel):
    enabled: bool = True


class TotalsReconcileRuleConfig(RuleConfigBase):
    # Amounts are compared after rounding to cents; differences up to this value are accepted.
    tolerance: Decimal = Decimal("0.01")
    # Document-level heuristic (vProd + vFrete + vSeg + vOutro - vDesc == vNF).
    check_final_value: bool = True


class ItemHeuristicsRuleConfig(RuleConfigBase):
    # Skipped automatically when either party's UF is unknown.
    check_cfop_jurisdiction: bool = True
    check_ncm: bool = True


class AuditRulesConfig(BaseModel):
    """Per-rule configuration for an audit run.

    Rules pull their typed config via `get_rule_config`.
    """

    rules: Dict[str, Dict[str, Any]] = Field(default_factory=dict)

    def get_rule_config(
        self,
        rule_id: str,
        model: Type[T],
        default: Optional[T] = None,
    ) -> T:
        if rule_id not in self.rules:
            if default is not None:
                return default
            return model()  # type: ignore[call-arg]
        raw = self.rules.get(rule_id, {})
        return model.model_validate(raw)
