import pytest

from bakehouse.errors import BakehouseError, UnknownStatusError
from bakehouse.order.status import OrderStatus
from bakehouse.order.vocabulary import is_known_status, parse_status, to_document_status


class TestParseStatus:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("pending", OrderStatus.PENDING),
            ("baking", OrderStatus.BAKING),
            ("packed", OrderStatus.PACKED),
            ("confirmed", OrderStatus.PENDING),
            ("preparing", OrderStatus.BAKING),
            ("out_for_delivery", OrderStatus.PACKED),
            ("cancelled", OrderStatus.CANCELLED),
        ],
    )
    def test_both_vocabularies_map_to_canonical(self, value, expected):
        assert parse_status(value) == expected

    def test_normalises_case_and_separators(self):
        assert parse_status("  Out-For-Delivery ") == OrderStatus.PACKED
        assert parse_status("out for delivery") == OrderStatus.PACKED

    def test_passes_enum_through(self):
        assert parse_status(OrderStatus.READY) is OrderStatus.READY

    def test_unknown_string_rejected(self):
        with pytest.raises(UnknownStatusError) as exc:
            parse_status("shipped")
        assert "shipped" in str(exc.value)

    def test_non_string_rejected(self):
        with pytest.raises(UnknownStatusError):
            parse_status(3)

    def test_unknown_status_error_is_value_error(self):
        assert issubclass(UnknownStatusError, ValueError)
        assert issubclass(UnknownStatusError, BakehouseError)


class TestDocumentStatus:
    def test_renders_document_vocabulary(self):
        assert to_document_status(OrderStatus.BAKING) == "preparing"
        assert to_document_status(OrderStatus.PACKED) == "out_for_delivery"
        assert to_document_status(OrderStatus.DELIVERED) == "delivered"

    def test_every_status_has_a_document_name(self):
        for status in OrderStatus:
            assert parse_status(to_document_status(status)) == status

    def test_is_known_status(self):
        assert is_known_status("preparing")
        assert not is_known_status("lost")
