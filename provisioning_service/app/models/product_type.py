from enum import Enum
from typing import Optional


class ProductType(str, Enum):
    ROUTER = "router"
    BROADBAND_LINE = "broadband_line"
    HANDSET = "handset"
    UNKNOWN = "unknown"


_KNOWN_PRODUCT_TYPES = {
    "router": ProductType.ROUTER,
    "broadband_line": ProductType.BROADBAND_LINE,
    "handset": ProductType.HANDSET,
}


def resolve_product_type(value: Optional[str]) -> ProductType:
    """Map a free-text product identifier to a ProductType, case-insensitively.

    Anything that is not a known identifier, including None and "", resolves
    to ProductType.UNKNOWN.
    """
    if not value or not isinstance(value, str):
        return ProductType.UNKNOWN
    return _KNOWN_PRODUCT_TYPES.get(value.lower(), ProductType.UNKNOWN)
