"""Tests for token enums."""

import pytest

from redoroute.model.types import NodeKind, PromotionMode, Role, TransportMode


class TestFromString:
    """Case-insensitive parsing of enum tokens."""

    @pytest.mark.parametrize(
        "token,expected",
        [
            ("async", TransportMode.ASYNC),
            ("FastSync", TransportMode.FASTSYNC),
            (" SYNC ", TransportMode.SYNC),
        ],
    )
    def test_transport_mode_tokens(self, token, expected):
        assert TransportMode.from_string(token) is expected

    def test_member_passthrough(self):
        assert NodeKind.from_string(NodeKind.RELAY) is NodeKind.RELAY

    def test_invalid_token_lists_valid_values(self):
        with pytest.raises(ValueError, match="Valid values are: SYNC, ASYNC, FASTSYNC"):
            TransportMode.from_string("LAZY")

    def test_role_and_promotion_mode(self):
        assert Role.from_string("standby") is Role.STANDBY
        mode = PromotionMode.from_string("reverse_routes")
        assert mode is PromotionMode.REVERSE_ROUTES


def test_members_are_their_tokens():
    """Members compare and format as their uppercase token."""
    assert NodeKind.APPLIANCE == "APPLIANCE"
    assert str(TransportMode.FASTSYNC) == "FASTSYNC"
    assert f"{Role.PRIMARY}" == "PRIMARY"
