from common.audit_engine.models import Identification, Severity
from common.audit_engine.rules.nfe_essential_blocks import NFE_ESSENTIAL_BLOCKS
from common.audit_engine.rules.nfe_items_present import NFE_ITEMS_PRESENT


def test_all_blocks_present_yields_nothing(make_invoice, make_party, make_item, make_ctx):
    invoice = make_invoice(
        items=[make_item()],
        identification=Identification(number="1"),
        issuer=make_party(),
        recipient=make_party(),
    )
    ctx = make_ctx(invoice)
    assert NFE_ESSENTIAL_BLOCKS().evaluate(ctx) == []
    assert NFE_ITEMS_PRESENT().evaluate(ctx) == []


def test_missing_blocks_severities(make_invoice, make_ctx):
    findings = NFE_ESSENTIAL_BLOCKS().evaluate(make_ctx(make_invoice()))
    by_code = {f.code: f for f in findings}
    assert list(by_code) == ["IDE_MISSING", "EMIT_MISSING", "DEST_MISSING"]
    assert by_code["IDE_MISSING"].severity == Severity.ERROR
    assert by_code["EMIT_MISSING"].severity == Severity.ERROR
    assert by_code["DEST_MISSING"].severity == Severity.WARNING
    assert by_code["DEST_MISSING"].path == "NFe.infNFe.dest"


def test_empty_item_list_is_error(make_invoice, make_ctx):
    findings = NFE_ITEMS_PRESENT().evaluate(make_ctx(make_invoice(items=[])))
    assert [f.code for f in findings] == ["ITEMS_EMPTY"]
    assert findings[0].severity == Severity.ERROR
