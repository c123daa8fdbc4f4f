"""Tests for the order status transition table."""

import pytest

from marketplace.order.order import TERMINAL_STATUSES, OrderStatus, can_transition

NON_TERMINAL = [s for s in OrderStatus if s not in TERMINAL_STATUSES]


class TestFromPending:
    @pytest.mark.parametrize("target", [s for s in OrderStatus if s != OrderStatus.PENDING])
    def test_pending_reaches_every_other_status(self, target):
        assert can_transition(OrderStatus.PENDING, target)

    def test_pending_to_pending_is_not_a_move(self):
        assert not can_transition(OrderStatus.PENDING, OrderStatus.PENDING)


class TestNonTerminal:
    @pytest.mark.parametrize("current", [s for s in NON_TERMINAL if s != OrderStatus.PENDING])
    def test_cannot_return_to_pending(self, current):
        assert not can_transition(current, OrderStatus.PENDING)

    @pytest.mark.parametrize("current", [s for s in NON_TERMINAL if s != OrderStatus.PENDING])
    def test_cannot_be_cancelled_after_pending(self, current):
        assert not can_transition(current, OrderStatus.CANCELLED)

    def test_rejected_can_still_progress(self):
        assert can_transition(OrderStatus.REJECTED, OrderStatus.PROCESSING)


class TestTerminal:
    @pytest.mark.parametrize("target", list(OrderStatus))
    def test_cancelled_goes_nowhere(self, target):
        assert not can_transition(OrderStatus.CANCELLED, target)

    @pytest.mark.parametrize("target", [s for s in OrderStatus if s != OrderStatus.DELIVERED])
    def test_delivered_is_final(self, target):
        assert not can_transition(OrderStatus.DELIVERED, target)

    def test_delivered_can_be_restamped(self):
        assert can_transition(OrderStatus.DELIVERED, OrderStatus.DELIVERED)
