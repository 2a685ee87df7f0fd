"""Source-agnostic audit engine for NF-e documents.

This package intentionally contains only domain logic:
- Inputs are raw XML text plus an optional per-rule configuration.
- No HTTP or network calls live here; `settings` is the only module that reads
  the environment or files.
"""

from .audit import AuditInput, audit_xml, server_error_report
from .batch import BatchDocument, BatchResult, audit_batch
from .config import AuditRulesConfig
from .context import AuditContext, ItemSums, compute_item_sums
from .models import (
    AuditReport,
    Finding,
    Item,
    ParsedInvoice,
    Party,
    Severity,
    Totals,
)
from .parser import DocumentParseError, decode_document, parse_document_tree, parse_invoice
from .runner import AuditRunner

# Import built-in rules so they self-register with the global registry.
from . import rules as _builtin_rules  # noqa: F401
