import pytest

from provisioning_service.app.models.product_type import (
    ProductType,
    resolve_product_type,
)


class TestResolveProductType:
    """Tests for mapping wire product identifiers to ProductType."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("router", ProductType.ROUTER),
            ("ROUTER", ProductType.ROUTER),
            ("Router", ProductType.ROUTER),
            ("broadband_line", ProductType.BROADBAND_LINE),
            ("Broadband_Line", ProductType.BROADBAND_LINE),
            ("handset", ProductType.HANDSET),
            ("HANDSET", ProductType.HANDSET),
        ],
    )
    def test_known_types_are_case_insensitive(self, raw, expected):
        assert resolve_product_type(raw) is expected

    @pytest.mark.parametrize(
        "raw", [None, "", "potato", "broadband line", " router", "unknown", 42]
    )
    def test_anything_else_is_unknown(self, raw):
        assert resolve_product_type(raw) is ProductType.UNKNOWN
