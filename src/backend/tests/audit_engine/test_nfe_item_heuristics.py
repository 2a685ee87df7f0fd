from decimal import Decimal

from common.audit_engine.models import Severity
from common.audit_engine.rules.nfe_item_heuristics import NFE_ITEM_HEURISTICS


def _codes(findings):
    return [f.code for f in findings]


def _good_item(make_item, **overrides):
    fields = dict(
        product_code="P001",
        quantity=Decimal("1"),
        unit_price=Decimal("10.00"),
        v_prod=Decimal("10.00"),
        cfop="5102",
        ncm="84713012",
    )
    fields.update(overrides)
    return make_item(**fields)


def _run(make_invoice, make_party, make_ctx, items, *, emit_uf="SP", dest_uf="SP", client_rules=None):
    invoice = make_invoice(
        items=items,
        issuer=make_party(uf=emit_uf) if emit_uf is not None else None,
        recipient=make_party(uf=dest_uf) if dest_uf is not None else None,
    )
    return NFE_ITEM_HEURISTICS().evaluate(make_ctx(invoice, client_rules=client_rules))


def test_clean_item_has_no_findings(make_invoice, make_party, make_item, make_ctx):
    assert _run(make_invoice, make_party, make_ctx, [_good_item(make_item)]) == []


def test_zero_quantity_is_error_and_zero_price_is_warning(make_invoice, make_party, make_item, make_ctx):
    item = _good_item(make_item, quantity=Decimal("0"), unit_price=Decimal("0.00"))
    findings = _run(make_invoice, make_party, make_ctx, [item])
    assert _codes(findings) == ["ITEM_QCOM_ZERO", "ITEM_VUN_ZERO"]
    assert findings[0].severity == Severity.ERROR
    assert findings[1].severity == Severity.WARNING
    assert findings[0].message.startswith("Item 1 (P001)")
    assert findings[0].path == "NFe.infNFe.det[0].prod.qCom"


def test_negative_quantity_is_error(make_invoice, make_party, make_item, make_ctx):
    findings = _run(make_invoice, make_party, make_ctx, [_good_item(make_item, quantity=Decimal("-2"))])
    assert _codes(findings) == ["ITEM_QCOM_ZERO"]


def test_missing_quantity_and_price_are_not_flagged(make_invoice, make_party, make_item, make_ctx):
    item = _good_item(make_item, quantity=None, unit_price=None)
    assert _run(make_invoice, make_party, make_ctx, [item]) == []


def test_missing_cfop_and_ncm(make_invoice, make_party, make_item, make_ctx):
    item = _good_item(make_item, cfop=None, ncm=None, product_code=None)
    findings = _run(make_invoice, make_party, make_ctx, [item])
    assert _codes(findings) == ["ITEM_CFOP_MISSING", "ITEM_NCM_MISSING"]
    assert all(f.severity == Severity.WARNING for f in findings)
    assert findings[0].message.startswith("Item 1:")


def test_interstate_cfop_between_same_state(make_invoice, make_party, make_item, make_ctx):
    findings = _run(make_invoice, make_party, make_ctx, [_good_item(make_item, cfop="6102")])
    assert _codes(findings) == ["ITEM_CFOP_UF_MISMATCH"]
    assert "SP" in findings[0].message
    assert findings[0].severity == Severity.WARNING


def test_internal_cfop_between_different_states(make_invoice, make_party, make_item, make_ctx):
    findings = _run(make_invoice, make_party, make_ctx, [_good_item(make_item)], emit_uf="SP", dest_uf="RJ")
    assert _codes(findings) == ["ITEM_CFOP_UF_MISMATCH"]
    assert "RJ" in findings[0].message


def test_matching_cfop_scopes_are_accepted(make_invoice, make_party, make_item, make_ctx):
    assert _run(make_invoice, make_party, make_ctx, [_good_item(make_item, cfop="6102")], dest_uf="RJ") == []
    # Export CFOPs are not cross-checked against the UFs.
    assert _run(make_invoice, make_party, make_ctx, [_good_item(make_item, cfop="7102")], dest_uf="SP") == []


def test_uf_comparison_ignores_case_and_padding(make_invoice, make_party, make_item, make_ctx):
    findings = _run(make_invoice, make_party, make_ctx, [_good_item(make_item, cfop="6102")], dest_uf=" sp ")
    assert _codes(findings) == ["ITEM_CFOP_UF_MISMATCH"]


def test_cfop_cross_check_skipped_when_uf_unknown(make_invoice, make_party, make_item, make_ctx):
    item = _good_item(make_item, cfop="6102")
    assert _run(make_invoice, make_party, make_ctx, [item], dest_uf=None) == []
    assert _run(make_invoice, make_party, make_ctx, [item], emit_uf="") == []


def test_ncm_digit_count(make_invoice, make_party, make_item, make_ctx):
    findings = _run(make_invoice, make_party, make_ctx, [_good_item(make_item, ncm="8471301")])
    assert _codes(findings) == ["ITEM_NCM_INVALID"]
    assert "7 digit(s)" in findings[0].message

    # Punctuated NCMs are judged on their digits.
    assert _run(make_invoice, make_party, make_ctx, [_good_item(make_item, ncm="8471.30.12")]) == []


def test_findings_are_grouped_per_item(make_invoice, make_party, make_item, make_ctx):
    items = [
        _good_item(make_item, product_code="A", quantity=Decimal("0"), ncm="123"),
        _good_item(make_item, product_code="B", cfop=None),
    ]
    findings = _run(make_invoice, make_party, make_ctx, items)
    assert _codes(findings) == ["ITEM_QCOM_ZERO", "ITEM_NCM_INVALID", "ITEM_CFOP_MISSING"]
    assert findings[2].path == "NFe.infNFe.det[1].prod.CFOP"
    assert findings[2].message.startswith("Item 2 (B)")


def test_checks_can_be_disabled(make_invoice, make_party, make_item, make_ctx):
    item = _good_item(make_item, cfop="6102", ncm="1")
    findings = _run(
        make_invoice,
        make_party,
        make_ctx,
        [item],
        client_rules={"NFE-ITEM-HEURISTICS": {"check_cfop_jurisdiction": False, "check_ncm": False}},
    )
    assert findings == []


def test_disabled_rule_returns_nothing(make_invoice, make_party, make_item, make_ctx):
    invoice = make_invoice(items=[_good_item(make_item, quantity=Decimal("0"))])
    ctx = make_ctx(invoice, client_rules={"NFE-ITEM-HEURISTICS": {"enabled": False}})
    assert NFE_ITEM_HEURISTICS().run(ctx) == []
