from datetime import datetime, timedelta, timezone

import pytest

from app.domain.models import Payment, PaymentStatus, StickerStatus
from app.domain.status_flow import (
    PaymentInfo, TransitionDirection, TRANSITIONS, analyze_payments, can_transition,
    check_order_consistency, correction_direction, evaluate_transition, get_available_transitions,
    get_display_status, get_payment_status_for_order_status, suggest_next_status
)

NOW = datetime(2026, 6, 1, tzinfo=timezone.utc)


def payment(status, minutes=0, amount=6990):
    created = NOW + timedelta(minutes=minutes)
    return Payment(
        id=f"pay-{status.value}-{minutes}",
        user_id="u1",
        sticker_id="s1",
        amount=amount,
        currency="CLP",
        reference=f"SFT-{minutes}",
        status=status,
        created_at=created,
        updated_at=created,
    )


@pytest.mark.parametrize(
    "order_status, payment_status",
    [
        ("ORDERED", PaymentStatus.PENDING),
        ("PAID", PaymentStatus.VERIFIED),
        ("PRINTING", PaymentStatus.PAID),
        ("SHIPPED", PaymentStatus.PAID),
        ("ACTIVE", PaymentStatus.PAID),
        ("LOST", PaymentStatus.PAID),
        ("REJECTED", PaymentStatus.REJECTED),
        ("CANCELLED", PaymentStatus.CANCELLED),
        ("INVALID_STATUS", None),
    ],
)
def test_payment_status_mapping(order_status, payment_status):
    assert get_payment_status_for_order_status(order_status) == payment_status


def test_shipped_to_active_with_pending_payment_is_rejected():
    assert not can_transition(StickerStatus.SHIPPED, StickerStatus.ACTIVE, PaymentStatus.PENDING)

    info = analyze_payments([payment(PaymentStatus.PAID), payment(PaymentStatus.PENDING, 1)])
    decision = evaluate_transition("SHIPPED", "ACTIVE", info)
    assert not decision.allowed
    assert decision.reason


@pytest.mark.parametrize("status", [PaymentStatus.VERIFIED, PaymentStatus.PAID, "PAID"])
def test_shipped_to_active_with_confirmed_payment_is_allowed(status):
    decision = evaluate_transition(StickerStatus.SHIPPED, StickerStatus.ACTIVE, status)

    assert decision.allowed
    assert decision.direction == TransitionDirection.FORWARD
    assert decision.payment_status == PaymentStatus.PAID
    assert not decision.override


def test_transferred_payment_does_not_confirm():
    assert not can_transition("PAID", "PRINTING", PaymentStatus.TRANSFERRED)


def test_unknown_statuses_are_rejected():
    assert not can_transition("SHIPPED", "DELIVERED", PaymentStatus.PAID)
    assert not can_transition("NOPE", "ACTIVE", PaymentStatus.PAID)


def test_skipping_a_step_is_rejected():
    decision = evaluate_transition("ORDERED", "SHIPPED", PaymentStatus.PAID)

    assert not decision.allowed


def test_backward_move_is_an_override():
    decision = evaluate_transition("PRINTING", "PAID", PaymentStatus.PAID)

    assert decision.allowed
    assert decision.direction == TransitionDirection.BACKWARD
    assert decision.override
    assert decision.payment_status == PaymentStatus.VERIFIED


def test_ordered_to_paid_needs_no_payment():
    assert can_transition("ORDERED", "PAID", None)


@pytest.mark.parametrize("source", [StickerStatus.ORDERED, StickerStatus.REJECTED])
def test_cancel_is_allowed_from_ordered_and_rejected(source):
    assert can_transition(source, StickerStatus.CANCELLED, None)


def test_every_status_has_an_exit():
    for status in StickerStatus:
        assert TRANSITIONS[status], status


def test_available_transitions_filter_on_payment():
    pending = PaymentInfo.from_status(PaymentStatus.PENDING)
    paid = PaymentInfo.from_status(PaymentStatus.PAID)

    assert StickerStatus.PRINTING not in [t.status for t in get_available_transitions("PAID", pending)]
    assert StickerStatus.PRINTING in [t.status for t in get_available_transitions("PAID", paid)]
    assert suggest_next_status("PAID", paid) == StickerStatus.PRINTING
    assert suggest_next_status("PAID", pending) is None
    assert get_available_transitions("GARBAGE", paid) == []


def test_analyze_payments_uses_newest_as_latest():
    info = analyze_payments([payment(PaymentStatus.PENDING, 5), payment(PaymentStatus.VERIFIED, 0)])

    assert info.latest_status == PaymentStatus.PENDING
    assert info.has_confirmed_payment and info.has_pending_payment
    assert info.total_amount == 6990 * 2
    assert info.payment_count == 2


def test_active_with_pending_payment_displays_as_shipped():
    info = analyze_payments([payment(PaymentStatus.PAID), payment(PaymentStatus.PENDING, 1)])

    assert get_display_status(StickerStatus.ACTIVE, info).primary_status == StickerStatus.SHIPPED
    report = check_order_consistency(StickerStatus.ACTIVE, info)
    assert not report.is_consistent
    assert report.issues


def test_ordered_with_rejected_payment_displays_as_rejected():
    info = analyze_payments([payment(PaymentStatus.REJECTED)])

    assert get_display_status(StickerStatus.ORDERED, info).primary_status == StickerStatus.REJECTED


def test_consistent_order():
    info = analyze_payments([payment(PaymentStatus.PAID)])

    assert get_display_status(StickerStatus.PRINTING, info).primary_status == StickerStatus.PRINTING
    assert check_order_consistency(StickerStatus.PRINTING, info).is_consistent


@pytest.mark.parametrize(
    "current, target, expected",
    [
        (StickerStatus.ACTIVE, StickerStatus.ORDERED, TransitionDirection.BACKWARD),
        (StickerStatus.SHIPPED, StickerStatus.ORDERED, TransitionDirection.BACKWARD),
        (StickerStatus.ACTIVE, StickerStatus.SHIPPED, TransitionDirection.BACKWARD),
        (StickerStatus.ORDERED, StickerStatus.PAID, TransitionDirection.FORWARD),
        (StickerStatus.ORDERED, StickerStatus.REJECTED, TransitionDirection.SPECIAL),
    ],
)
def test_correction_direction(current, target, expected):
    assert correction_direction(current, target) == expected
