# Rules run sorted by their `order` attribute, not by import order.
from .nfe_items_present import NFE_ITEMS_PRESENT
from .nfe_access_key import NFE_ACCESS_KEY
from .nfe_essential_blocks import NFE_ESSENTIAL_BLOCKS
from .nfe_party_documents import NFE_PARTY_DOCUMENTS
from .nfe_party_addresses import NFE_PARTY_ADDRESSES
from .nfe_totals_reconcile import NFE_TOTALS_RECONCILE
from .nfe_item_heuristics import NFE_ITEM_HEURISTICS

__all__ = [
    "NFE_ITEMS_PRESENT",
    "NFE_ACCESS_KEY",
    "NFE_ESSENTIAL_BLOCKS",
    "NFE_PARTY_DOCUMENTS",
    "NFE_PARTY_ADDRESSES",
    "NFE_TOTALS_RECONCILE",
    "NFE_ITEM_HEURISTICS",
]
