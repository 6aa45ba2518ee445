"""
Provisioning Service configuration
"""

from pathlib import Path

from pydantic_settings import BaseSettings
from yarl import URL

ROOT_DIR = Path(__file__).parent.parent.parent.parent
ENV_FILE = ROOT_DIR / "provisioning_service" / ".env"


class ProvisioningServiceSettings(BaseSettings):
    # Application
    APP_NAME: str = "Order Provisioning Service"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"

    # Service specific
    SERVICE_NAME: str = "provisioning-service"
    EVENT_SOURCE: str = "order-provisioning-service"
    HOST: str = "0.0.0.0"
    PORT: int = 8005

    # RabbitMQ
    RABBIT_HOST: str = "localhost"
    RABBIT_PORT: int = 5672
    RABBIT_USER: str = "guest"
    RABBIT_PASSWORD: str = "guest"
    RABBIT_VHOST: str = "/"
    RABBIT_EXCHANGE: str = "orders"
    RABBIT_QUEUE: str = "order.provisioning"
    RABBIT_RESULT_QUEUE: str = "order.provisioning.results"
    RABBIT_PREFETCH_COUNT: int = 4

    # Broker connection retry
    BROKER_MAX_RETRIES: int = 5
    BROKER_RETRY_DELAY: float = 2.0  # seconds, doubled on every attempt
    BROKER_CONNECT_TIMEOUT: float = 30.0

    # Seconds in-flight deliveries get to finish on shutdown
    SHUTDOWN_TIMEOUT: float = 30.0

    # Multiplier applied to the stubbed provisioning step delays
    PROVISIONING_STEP_DELAY_SCALE: float = 1.0

    # Logging
    LOG_LEVEL: str = "INFO"

    @property
    def RABBIT_URL(self) -> str:
        # Credentials are percent-encoded, the path after the first slash is the vhost
        return str(
            URL.build(
                scheme="amqp",
                user=self.RABBIT_USER,
                password=self.RABBIT_PASSWORD,
                host=self.RABBIT_HOST,
                port=self.RABBIT_PORT,
                path="/" + self.RABBIT_VHOST,
            )
        )

    class Config:
        env_file = ENV_FILE
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields from .env file


# Create a singleton instance
_settings_instance = None


def get_settings() -> ProvisioningServiceSettings:
    """Get settings singleton instance"""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = ProvisioningServiceSettings()
    return _settings_instance
