"""
Handler registry mapping each known product type to its provisioning handler.
"""

from types import MappingProxyType
from typing import Dict, Iterable, Mapping, NamedTuple, Optional

from ..core.exceptions import UnsupportedProductType
from ..models.product_type import ProductType
from .base import ProductHandler
from .broadband_line import BroadbandLineHandler
from .handset import HandsetHandler
from .router import RouterHandler


class HandlerLookup(NamedTuple):
    """Outcome of a registry lookup: a handler or the reason there is none"""

    handler: Optional[ProductHandler] = None
    error: Optional[UnsupportedProductType] = None

    @property
    def found(self) -> bool:
        return self.handler is not None


class HandlerRegistry:
    """Immutable product type -> handler mapping"""

    def __init__(self, handlers: Iterable[ProductHandler]):
        mapping: Dict[ProductType, ProductHandler] = {}
        for handler in handlers:
            if handler.product_type is ProductType.UNKNOWN:
                raise ValueError("Cannot register a handler for the unknown product type")
            if handler.product_type in mapping:
                raise ValueError(
                    f"Duplicate handler for product type: {handler.product_type.value}"
                )
            mapping[handler.product_type] = handler
        self._handlers: Mapping[ProductType, ProductHandler] = MappingProxyType(mapping)

    @property
    def product_types(self) -> frozenset:
        return frozenset(self._handlers)

    def lookup(self, product_type: ProductType) -> HandlerLookup:
        handler = self._handlers.get(product_type)
        if handler is None:
            return HandlerLookup(error=UnsupportedProductType(product_type.value))
        return HandlerLookup(handler=handler)

    def resolve(self, product_type: ProductType) -> ProductHandler:
        """Return the handler for ``product_type``.

        Raises:
            UnsupportedProductType: nothing is registered for the type.
        """
        result = self.lookup(product_type)
        if result.error is not None:
            raise result.error
        return result.handler  # type: ignore[return-value]


def build_handler_registry(step_delay_scale: float = 1.0) -> HandlerRegistry:
    """Registry with a handler for every known product type"""
    return HandlerRegistry(
        [
            RouterHandler(step_delay_scale),
            BroadbandLineHandler(step_delay_scale),
            HandsetHandler(step_delay_scale),
        ]
    )
