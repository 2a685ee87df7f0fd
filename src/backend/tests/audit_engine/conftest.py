import os
import sys


# Ensure `src/backend` is on sys.path so imports like `import common...` work.
BACKEND_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "../.."))
if BACKEND_DIR not in sys.path:
    sys.path.insert(0, BACKEND_DIR)

import pytest

from common.audit_engine.config import AuditRulesConfig
from common.audit_engine.context import AuditContext
from common.audit_engine.models import (
    Address,
    Identification,
    Item,
    ParsedInvoice,
    Party,
    Totals,
)

from nfe_fixtures import VALID_KEY, build_nfe_xml


@pytest.fixture
def make_nfe_xml():
    return build_nfe_xml


@pytest.fixture
def make_invoice():
    def _make(
        *,
        items=(),
        totals: Totals | None = None,
        issuer: Party | None = None,
        recipient: Party | None = None,
        identification: Identification | None = None,
        access_key: str | None = VALID_KEY,
    ) -> ParsedInvoice:
        return ParsedInvoice(
            has_nfe_proc=True,
            has_inf_nfe=True,
            access_key=access_key,
            identification=identification,
            issuer=issuer,
            recipient=recipient,
            items=tuple(items),
            totals=totals,
        )

    return _make


@pytest.fixture
def make_party():
    def _make(*, cnpj=None, cpf=None, cep=None, uf=None, name="Parte") -> Party:
        address = None
        if cep is not None or uf is not None:
            address = Address(cep=cep, uf=uf)
        return Party(name=name, cnpj=cnpj, cpf=cpf, address=address)

    return _make


@pytest.fixture
def make_item():
    def _make(**fields) -> Item:
        return Item(**fields)

    return _make


@pytest.fixture
def make_ctx():
    def _make(invoice: ParsedInvoice, *, client_rules: dict | None = None) -> AuditContext:
        return AuditContext.build(invoice, AuditRulesConfig(rules=client_rules or {}))

    return _make
