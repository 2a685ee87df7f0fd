from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional, Tuple, Type

from pydantic import BaseModel

from .config import RuleConfigBase
from .context import AuditContext
from .models import Finding, Severity


class Rule(ABC):
    rule_id: str
    rule_title: str
    # Evaluation position; findings are reported in ascending order.
    order: int
    finding_codes: Tuple[str, ...] = ()
    config_model: Type[BaseModel] = RuleConfigBase

    def __init__(self):
        if not getattr(self, "rule_id", None):
            raise ValueError("Rule must define rule_id")

    def config(self, ctx: AuditContext):
        return ctx.rules_config.get_rule_config(self.rule_id, self.config_model)

    def run(self, ctx: AuditContext) -> List[Finding]:
        if not self.config(ctx).enabled:
            return []
        return self.evaluate(ctx)

    @abstractmethod
    def evaluate(self, ctx: AuditContext) -> List[Finding]:  # pragma: no cover
        raise NotImplementedError


def finding(
    severity: Severity,
    code: str,
    title: str,
    message: str,
    *,
    path: Optional[str] = None,
    hint: Optional[str] = None,
) -> Finding:
    return Finding(severity=severity, code=code, title=title, message=message, path=path, hint=hint)
