import pytest
from yarl import URL

from provisioning_service.app.core.settings import ProvisioningServiceSettings


class TestRabbitURL:
    """Tests for the AMQP URL assembled from the RabbitMQ settings."""

    def test_default_vhost(self):
        settings = ProvisioningServiceSettings(RABBIT_HOST="rabbit", RABBIT_PORT=5673)

        url = URL(settings.RABBIT_URL)

        assert url.scheme == "amqp"
        assert url.host == "rabbit"
        assert url.port == 5673
        assert url.path[1:] == "/"

    @pytest.mark.parametrize("password", ["p@ss#1", "a/b:c", "100%?x"])
    def test_credentials_with_reserved_characters(self, password):
        settings = ProvisioningServiceSettings(
            RABBIT_HOST="rabbit", RABBIT_USER="svc:user", RABBIT_PASSWORD=password
        )

        url = URL(settings.RABBIT_URL)

        assert url.host == "rabbit"
        assert url.user == "svc:user"
        assert url.password == password

    def test_named_vhost(self):
        settings = ProvisioningServiceSettings(RABBIT_VHOST="provisioning")

        assert URL(settings.RABBIT_URL).path[1:] == "provisioning"
