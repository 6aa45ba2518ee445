"""
Provisioning handlers for the Order Provisioning Service.

Handlers:
    - RouterHandler: inventory check, reservation, shipping
    - BroadbandLineHandler: line availability, technician visit, line provisioning
    - HandsetHandler: model availability, SIM activation, device configuration, delivery

Registry:
    - HandlerRegistry: product type -> handler lookup
    - build_handler_registry: registry populated with every handler above
"""

from .base import ProductHandler
from .broadband_line import BroadbandLineHandler
from .handset import HandsetHandler
from .registry import HandlerLookup, HandlerRegistry, build_handler_registry
from .router import RouterHandler

__all__ = [
    "ProductHandler",
    "RouterHandler",
    "BroadbandLineHandler",
    "HandsetHandler",
    "HandlerLookup",
    "HandlerRegistry",
    "build_handler_registry",
]
