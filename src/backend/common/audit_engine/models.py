from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class Address(_Frozen):
    cep: Optional[str] = None
    uf: Optional[str] = None
    municipality: Optional[str] = None


class Party(_Frozen):
    name: Optional[str] = None
    cnpj: Optional[str] = None
    cpf: Optional[str] = None
    address: Optional[Address] = None

    @property
    def document(self) -> Optional[str]:
        return self.cnpj or self.cpf

    @property
    def uf(self) -> str:
        if self.address is None or not self.address.uf:
            return ""
        return self.address.uf.strip().upper()


class Identification(_Frozen):
    number: Optional[str] = None
    series: Optional[str] = None
    model: Optional[str] = None
    issued_at: Optional[str] = None


class Item(_Frozen):
    product_code: Optional[str] = None
    description: Optional[str] = None
    quantity: Optional[Decimal] = None
    unit_price: Optional[Decimal] = None
    v_prod: Optional[Decimal] = None
    v_desc: Optional[Decimal] = None
    v_frete: Optional[Decimal] = None
    v_seg: Optional[Decimal] = None
    v_outro: Optional[Decimal] = None
    cfop: Optional[str] = None
    ncm: Optional[str] = None


class Totals(_Frozen):
    v_prod: Optional[Decimal] = None
    v_desc: Optional[Decimal] = None
    v_frete: Optional[Decimal] = None
    v_seg: Optional[Decimal] = None
    v_outro: Optional[Decimal] = None
    v_nf: Optional[Decimal] = None


class ParsedInvoice(_Frozen):
    """Typed view of one NF-e document; every consumed field is optional."""

    has_nfe_proc: bool = False
    has_inf_nfe: bool = False
    access_key: Optional[str] = None
    identification: Optional[Identification] = None
    issuer: Optional[Party] = None
    recipient: Optional[Party] = None
    items: tuple[Item, ...] = ()
    totals: Optional[Totals] = None


class Finding(BaseModel):
    severity: Severity
    code: str
    title: str
    message: str
    path: Optional[str] = None
    hint: Optional[str] = None


class DeclaredTotals(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    v_prod: Optional[float] = Field(default=None, alias="vProd")
    v_desc: Optional[float] = Field(default=None, alias="vDesc")
    v_frete: Optional[float] = Field(default=None, alias="vFrete")
    v_seg: Optional[float] = Field(default=None, alias="vSeg")
    v_outro: Optional[float] = Field(default=None, alias="vOutro")
    v_nf: Optional[float] = Field(default=None, alias="vNF")


class ComputedSums(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    v_prod: float = Field(default=0.0, alias="vProd")
    v_desc: float = Field(default=0.0, alias="vDesc")
    v_frete: float = Field(default=0.0, alias="vFrete")
    v_seg: float = Field(default=0.0, alias="vSeg")
    v_outro: float = Field(default=0.0, alias="vOutro")


class ReportMeta(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    items_count: int = Field(default=0, alias="itemsCount")
    has_nfe_proc: bool = Field(default=False, alias="hasNfeProc")
    access_key: Optional[str] = Field(default=None, alias="accessKey")

    emit_name: Optional[str] = Field(default=None, alias="emitName")
    dest_name: Optional[str] = Field(default=None, alias="destName")
    number: Optional[str] = Field(default=None, alias="nNF")
    series: Optional[str] = Field(default=None, alias="serie")
    issued_at: Optional[str] = Field(default=None, alias="dhEmi")
    v_nf: Optional[float] = Field(default=None, alias="vNF")

    totals: Optional[DeclaredTotals] = None
    sums: Optional[ComputedSums] = None


class ReportSummary(BaseModel):
    errors: int = 0
    warnings: int = 0
    infos: int = 0


class AuditReport(BaseModel):
    ok: bool
    meta: ReportMeta = Field(default_factory=ReportMeta)
    summary: ReportSummary = Field(default_factory=ReportSummary)
    findings: List[Finding] = Field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        """JSON-ready dict using the wire field names; absent optionals are dropped."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def codes(self) -> List[str]:
        return [f.code for f in self.findings]

    def by_severity(self, severity: Severity) -> List[Finding]:
        return [f for f in self.findings if f.severity == severity]
