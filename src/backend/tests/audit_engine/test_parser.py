from decimal import Decimal

import pytest

from common.audit_engine.parser import (
    DocumentParseError,
    build_invoice,
    decode_document,
    parse_document_tree,
    parse_invoice,
)

from nfe_fixtures import EMIT_CNPJ, VALID_KEY, default_item


def test_tree_keeps_attributes_and_strips_namespaces(make_nfe_xml):
    tree = parse_document_tree(make_nfe_xml())
    proc = tree["nfeProc"]
    assert proc["@versao"] == "4.00"
    inf = proc["NFe"]["infNFe"]
    assert inf["@Id"] == f"NFe{VALID_KEY}"
    assert inf["emit"]["CNPJ"] == EMIT_CNPJ


def test_tree_leaves_stay_text_and_keep_leading_zeros(make_nfe_xml):
    tree = parse_document_tree(make_nfe_xml())
    ender = tree["nfeProc"]["NFe"]["infNFe"]["emit"]["enderEmit"]
    assert ender["CEP"] == "01310100"


def test_tree_self_closing_and_mixed_content():
    tree = parse_document_tree('<root a="1"><empty/><leaf>  x  </leaf>text<b c="2">y</b></root>')
    root = tree["root"]
    assert root["@a"] == "1"
    assert root["empty"] == ""
    assert root["leaf"] == "x"
    assert root["b"] == {"@c": "2", "#text": "y"}


def test_repeated_siblings_become_list():
    tree = parse_document_tree("<r><det>1</det><det>2</det><det>3</det></r>")
    assert tree["r"]["det"] == ["1", "2", "3"]


@pytest.mark.parametrize("text", [
    "<nfeProc><NFe><infNFe>",
    "not xml at all",
    "<a></b>",
])
def test_malformed_markup_raises_parse_error(text):
    with pytest.raises(DocumentParseError):
        parse_document_tree(text)


def test_single_item_is_normalized_to_sequence(make_nfe_xml):
    invoice = parse_invoice(make_nfe_xml())
    assert isinstance(invoice.items, tuple)
    assert len(invoice.items) == 1
    item = invoice.items[0]
    assert item.product_code == "P001"
    assert item.quantity == Decimal("1.0000")
    assert item.v_prod == Decimal("100.00")
    assert item.cfop == "5102"
    assert item.ncm == "84713012"


def test_multiple_items_keep_document_order(make_nfe_xml):
    items = [default_item(cProd=f"P{i}") for i in range(1, 4)]
    invoice = parse_invoice(make_nfe_xml(items=items))
    assert [i.product_code for i in invoice.items] == ["P1", "P2", "P3"]


def test_comma_decimal_separator_is_accepted(make_nfe_xml):
    invoice = parse_invoice(make_nfe_xml(items=[default_item(qCom="2,5")]))
    assert invoice.items[0].quantity == Decimal("2.5")


def test_unparseable_amount_is_treated_as_absent(make_nfe_xml):
    invoice = parse_invoice(make_nfe_xml(items=[default_item(vProd="abc")]))
    assert invoice.items[0].v_prod is None


def test_parties_identification_and_totals(make_nfe_xml):
    invoice = parse_invoice(make_nfe_xml())
    assert invoice.has_nfe_proc is True
    assert invoice.has_inf_nfe is True
    assert invoice.access_key == VALID_KEY
    assert invoice.issuer.cnpj == EMIT_CNPJ
    assert invoice.issuer.uf == "SP"
    assert invoice.recipient.name == "Destinatario Teste SA"
    assert invoice.identification.number == "1"
    assert invoice.identification.issued_at == "2023-01-15T10:00:00-03:00"
    assert invoice.totals.v_nf == Decimal("100.00")


def test_nfe_without_protocol_envelope(make_nfe_xml):
    invoice = parse_invoice(make_nfe_xml(with_proc=False))
    assert invoice.has_nfe_proc is False
    assert invoice.has_inf_nfe is True
    assert invoice.access_key == VALID_KEY


def test_access_key_falls_back_to_protocol(make_nfe_xml):
    invoice = parse_invoice(make_nfe_xml(access_key=None, prot_key=f"{VALID_KEY[:10]}-{VALID_KEY[10:]}99"))
    assert invoice.access_key == VALID_KEY


def test_missing_inf_nfe_keeps_best_effort_metadata(make_nfe_xml):
    invoice = parse_invoice(make_nfe_xml(inf_nfe=False, prot_key=VALID_KEY))
    assert invoice.has_inf_nfe is False
    assert invoice.has_nfe_proc is True
    assert invoice.access_key == VALID_KEY
    assert invoice.items == ()


def test_missing_blocks_map_to_none():
    tree = {"NFe": {"infNFe": {"@Id": "x", "det": ""}}}
    invoice = build_invoice(tree)
    assert invoice.has_inf_nfe is True
    assert invoice.identification is None
    assert invoice.issuer is None
    assert invoice.recipient is None
    assert invoice.totals is None
    assert len(invoice.items) == 1
    assert invoice.items[0].v_prod is None


def _latin1_nfe(make_nfe_xml, name):
    xml = make_nfe_xml(emit={"CNPJ": EMIT_CNPJ, "xNome": name, "CEP": "01310100", "UF": "SP"})
    return xml.replace('encoding="UTF-8"', 'encoding="ISO-8859-1"')


def test_declared_encoding_does_not_garble_text(make_nfe_xml):
    invoice = parse_invoice(_latin1_nfe(make_nfe_xml, "José Ação"))
    assert invoice.issuer.name == "José Ação"


def test_decode_document_follows_declaration_and_bom(make_nfe_xml):
    xml = _latin1_nfe(make_nfe_xml, "José Ação")
    assert decode_document(xml.encode("iso-8859-1")) == xml
    assert decode_document(b"\xef\xbb\xbf" + xml.encode("utf-8")) == xml
    assert decode_document("<a>ção</a>".encode("utf-8")) == "<a>ção</a>"


def test_decode_document_unknown_encoding_falls_back_to_utf8():
    data = '<?xml version="1.0" encoding="x-unknown"?><a>ação</a>'.encode("utf-8")
    assert decode_document(data).endswith("<a>ação</a>")
