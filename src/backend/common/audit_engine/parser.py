"""
NF-e XML parsing.

Two steps:
1. `parse_document_tree` turns markup into a namespace-free nested dict.
2. `build_invoice` maps that tree onto the typed `ParsedInvoice` model.

Tree conventions: attributes are stored under "@name", element text under
"#text" when the element also has attributes or children, repeated siblings
become lists, and leaves stay as stripped strings so identifiers keep their
leading zeros. Numeric coercion happens only when the typed model is built.
"""

from __future__ import annotations

import codecs
import logging
import re
from typing import Any, Dict, List, Optional

from lxml import etree

from .fiscal import to_decimal
from .models import Address, Identification, Item, ParsedInvoice, Party, Totals
from .validators import ACCESS_KEY_LENGTH, only_digits

logger = logging.getLogger(__name__)

ATTRIBUTE_PREFIX = "@"
TEXT_KEY = "#text"

_INF_NFE_ID = re.compile(r"NFe(\d{44})")
_DECLARED_ENCODING = re.compile(rb"""\s*<\?xml[^>]*?encoding\s*=\s*["']([A-Za-z][A-Za-z0-9._-]*)["']""")


class DocumentParseError(ValueError):
    """Raised when the input is not well-formed XML."""


def _xml_parser() -> etree.XMLParser:
    # Input is always handed over as UTF-8 bytes, whatever the declaration says.
    return etree.XMLParser(
        encoding="utf-8",
        resolve_entities=False,
        no_network=True,
        remove_comments=True,
        remove_pis=True,
        huge_tree=False,
    )


def decode_document(data: bytes) -> str:
    """Decode raw XML bytes using the BOM or the declared `encoding=` (UTF-8 otherwise)."""
    if data.startswith(codecs.BOM_UTF8):
        return data.decode("utf-8-sig")
    encoding = "utf-8"
    match = _DECLARED_ENCODING.match(data)
    if match:
        encoding = match.group(1).decode("ascii")
    try:
        return data.decode(encoding)
    except (LookupError, UnicodeDecodeError):
        logger.warning("Could not decode XML as %s; falling back to UTF-8 with replacement", encoding)
        return data.decode("utf-8", errors="replace")


def _local_name(tag: str) -> str:
    return etree.QName(tag).localname


def _element_to_tree(element: etree._Element) -> Any:
    node: Dict[str, Any] = {}
    for name, value in element.attrib.items():
        node[ATTRIBUTE_PREFIX + _local_name(name)] = value.strip()

    for child in element:
        if not isinstance(child.tag, str):
            continue
        key = _local_name(child.tag)
        value = _element_to_tree(child)
        if key not in node:
            node[key] = value
        elif isinstance(node[key], list):
            node[key].append(value)
        else:
            node[key] = [node[key], value]

    text = (element.text or "").strip()
    if not node:
        return text
    if text:
        node[TEXT_KEY] = text
    return node


def parse_document_tree(text: str) -> Dict[str, Any]:
    """Parse XML text into `{root_local_name: content}`."""
    try:
        root = etree.fromstring(text.encode("utf-8"), parser=_xml_parser())
    except etree.XMLSyntaxError as exc:
        raise DocumentParseError(f"Malformed XML: {exc}") from exc
    if root is None:
        raise DocumentParseError("Empty XML document.")
    return {_local_name(root.tag): _element_to_tree(root)}


def as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _block(parent: Any, name: str) -> Optional[Dict[str, Any]]:
    if not isinstance(parent, dict):
        return None
    value = parent.get(name)
    if isinstance(value, list):
        value = value[0] if value else None
    return value if isinstance(value, dict) else None


def _text(parent: Optional[Dict[str, Any]], name: str) -> Optional[str]:
    if parent is None:
        return None
    value = parent.get(name)
    if isinstance(value, dict):
        value = value.get(TEXT_KEY)
    if value is None or isinstance(value, list):
        return None
    text = str(value).strip()
    return text or None


def extract_access_key(proc: Optional[Dict[str, Any]], inf_nfe: Optional[Dict[str, Any]]) -> Optional[str]:
    if inf_nfe is not None:
        match = _INF_NFE_ID.search(str(inf_nfe.get(ATTRIBUTE_PREFIX + "Id", "")))
        if match:
            return match.group(1)

    inf_prot = _block(_block(proc, "protNFe"), "infProt")
    from_prot = only_digits(_text(inf_prot, "chNFe"))[:ACCESS_KEY_LENGTH]
    return from_prot or None


def _address(block: Optional[Dict[str, Any]]) -> Optional[Address]:
    if block is None:
        return None
    return Address(cep=_text(block, "CEP"), uf=_text(block, "UF"), municipality=_text(block, "xMun"))


def _party(block: Optional[Dict[str, Any]], address_tag: str) -> Optional[Party]:
    if block is None:
        return None
    return Party(
        name=_text(block, "xNome"),
        cnpj=_text(block, "CNPJ"),
        cpf=_text(block, "CPF"),
        address=_address(_block(block, address_tag)),
    )


def _identification(block: Optional[Dict[str, Any]]) -> Optional[Identification]:
    if block is None:
        return None
    return Identification(
        number=_text(block, "nNF"),
        series=_text(block, "serie"),
        model=_text(block, "mod"),
        issued_at=_text(block, "dhEmi") or _text(block, "dEmi"),
    )


def _item(det: Any) -> Item:
    prod = _block(det, "prod") if isinstance(det, dict) else None
    return Item(
        product_code=_text(prod, "cProd"),
        description=_text(prod, "xProd"),
        quantity=to_decimal(_text(prod, "qCom")),
        unit_price=to_decimal(_text(prod, "vUnCom")),
        v_prod=to_decimal(_text(prod, "vProd")),
        v_desc=to_decimal(_text(prod, "vDesc")),
        v_frete=to_decimal(_text(prod, "vFrete")),
        v_seg=to_decimal(_text(prod, "vSeg")),
        v_outro=to_decimal(_text(prod, "vOutro")),
        cfop=_text(prod, "CFOP"),
        ncm=_text(prod, "NCM"),
    )


def _totals(block: Optional[Dict[str, Any]]) -> Optional[Totals]:
    if block is None:
        return None
    return Totals(
        v_prod=to_decimal(_text(block, "vProd")),
        v_desc=to_decimal(_text(block, "vDesc")),
        v_frete=to_decimal(_text(block, "vFrete")),
        v_seg=to_decimal(_text(block, "vSeg")),
        v_outro=to_decimal(_text(block, "vOutro")),
        v_nf=to_decimal(_text(block, "vNF")),
    )


def build_invoice(tree: Dict[str, Any]) -> ParsedInvoice:
    """Map a document tree (from `parse_document_tree`) onto `ParsedInvoice`."""
    proc = _block(tree, "nfeProc")
    nfe = _block(proc, "NFe") if proc is not None else _block(tree, "NFe")
    inf_nfe = _block(nfe, "infNFe")

    access_key = extract_access_key(proc, inf_nfe)
    if inf_nfe is None:
        return ParsedInvoice(has_nfe_proc=proc is not None, access_key=access_key)

    return ParsedInvoice(
        has_nfe_proc=proc is not None,
        has_inf_nfe=True,
        access_key=access_key,
        identification=_identification(_block(inf_nfe, "ide")),
        issuer=_party(_block(inf_nfe, "emit"), "enderEmit"),
        recipient=_party(_block(inf_nfe, "dest"), "enderDest"),
        items=tuple(_item(det) for det in as_list(inf_nfe.get("det"))),
        totals=_totals(_block(_block(inf_nfe, "total"), "ICMSTot")),
    )


def parse_invoice(text: str) -> ParsedInvoice:
    tree = parse_document_tree(text)
    invoice = build_invoice(tree)
    logger.debug(
        "Parsed NF-e: nfeProc=%s infNFe=%s items=%d",
        invoice.has_nfe_proc,
        invoice.has_inf_nfe,
        len(invoice.items),
    )
    return invoice
