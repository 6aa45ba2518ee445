"""
Provisioning Service exception hierarchy
"""

from typing import Optional


class ProvisioningServiceError(Exception):
    """Base class for all provisioning service errors"""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class OrderEventDecodeError(ProvisioningServiceError):
    """Raised when a delivery body cannot be turned into an OrderEvent"""


class UnsupportedProductType(ProvisioningServiceError):
    """Raised when no provisioning handler is registered for a product type"""

    def __init__(self, product_type: object):
        super().__init__(
            f"No handler registered for product type: {product_type}",
            details={"product_type": str(product_type)},
        )
        self.product_type = product_type


class BrokerConnectionError(ProvisioningServiceError):
    """Raised when the RabbitMQ broker cannot be reached"""


class BrokerNotConnectedError(ProvisioningServiceError):
    """Raised when a broker operation is attempted before connecting"""
