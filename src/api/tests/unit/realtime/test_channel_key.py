"""Unit tests for realtime channel keys and order events."""

import pytest

from realtime.domain import ChannelKey, ChannelScope, OrderEvent, OrderEventType

TENANT = "01J9TENANT0000000000000001"
OTHER_TENANT = "01J9TENANT0000000000000002"


class TestChannelKey:
    """Tests for ChannelKey construction and parsing."""

    @pytest.mark.parametrize(
        "wire,scope,resource_id",
        [
            ("room:12", ChannelScope.ROOM, "12"),
            ("kitchen:K1", ChannelScope.KITCHEN, "K1"),
            ("tenant", ChannelScope.TENANT, None),
            (" kitchen:K1 ", ChannelScope.KITCHEN, "K1"),
        ],
    )
    def test_parse(self, wire, scope, resource_id):
        key = ChannelKey.parse(wire, TENANT)

        assert key.tenant_id == TENANT
        assert key.scope is scope
        assert key.resource_id == resource_id

    @pytest.mark.parametrize(
        "wire",
        ["", "kitchen", "kitchen:", "table:4", "tenant:x", "room:a b", "room:../1"],
    )
    def test_parse_rejects(self, wire):
        with pytest.raises(ValueError):
            ChannelKey.parse(wire, TENANT)

    def test_requires_tenant(self):
        with pytest.raises(ValueError, match="tenant"):
            ChannelKey.for_room("", "12")

    def test_same_kitchen_in_two_tenants_differs(self):
        assert ChannelKey.for_kitchen(TENANT, "K1") != ChannelKey.for_kitchen(
            OTHER_TENANT, "K1"
        )

    def test_wire_omits_tenant(self):
        key = ChannelKey.for_room(TENANT, 12)

        assert key.wire == "room:12"
        assert str(key) == f"{TENANT}/room:12"
        assert ChannelKey.for_tenant(TENANT).wire == "tenant"


class TestOrderEvent:
    """Tests for OrderEvent."""

    def test_message_carries_snapshot(self):
        event = OrderEvent.create(
            type=OrderEventType.ORDER_CREATED,
            tenant_id=TENANT,
            order={"id": "9", "status": "PENDING"},
            channels=[ChannelKey.for_tenant(TENANT)],
        )

        assert event.to_message() == {
            "event": "order-created",
            "data": {"id": "9", "status": "PENDING"},
        }

    def test_rejects_foreign_channel(self):
        with pytest.raises(ValueError, match="own tenant"):
            OrderEvent.create(
                type=OrderEventType.ORDER_STATUS_UPDATED,
                tenant_id=TENANT,
                order={},
                channels=[ChannelKey.for_kitchen(OTHER_TENANT, "K1")],
            )
