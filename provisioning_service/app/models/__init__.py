from .product_type import ProductType, resolve_product_type

__all__ = ["ProductType", "resolve_product_type"]
