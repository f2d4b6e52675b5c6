from datetime import datetime, timedelta, timezone
from decimal import Decimal

from app.domain.models import CartLineItem, Promotion, PromotionDiscountType
from app.domain.promotions import (
    calculate_discount, discount_amount_for, get_promotion_tiers,
    preview_discount_for_quantity, round_half_up, select_promotion
)

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)
PRICE = 6990


def promo(id, min_quantity, value, priority=0, discount_type=PromotionDiscountType.PERCENTAGE, **kwargs):
    return Promotion(
        id=id,
        name=f"promo {id}",
        min_quantity=min_quantity,
        discount_type=discount_type,
        discount_value=Decimal(str(value)),
        priority=priority,
        created_at=NOW - timedelta(days=30),
        **kwargs
    )


def stickers(quantity, unit_price=PRICE):
    return [CartLineItem(id="sticker", name="Sticker", unit_price=unit_price, quantity=quantity)]


TIERS = [
    promo("p10", 2, 10, priority=1),
    promo("p15", 5, 15, priority=2),
    promo("p20", 10, 20, priority=3),
    promo("p25", 25, 25, priority=4),
]


def test_seven_stickers_take_highest_priority_eligible_tier():
    result = calculate_discount(stickers(7), TIERS, NOW)

    assert result.original_total == 48930
    assert result.total_discount == 7340
    assert result.final_total == 41590
    assert [p.id for p in result.applied_promotions] == ["p15"]
    assert result.applied_promotions[0].applied_to_quantity == 7


def test_single_sticker_gets_no_discount():
    result = calculate_discount(stickers(1), TIERS, NOW)

    assert result.total_discount == 0
    assert result.final_total == result.original_total == PRICE
    assert result.applied_promotions == []


def test_quantity_below_every_threshold_gets_no_discount():
    promotions = [promo("a", 3, 10), promo("b", 4, 50, priority=9)]
    for quantity in (1, 2):
        result = calculate_discount(stickers(quantity), promotions, NOW)
        assert result.total_discount == 0


def test_final_total_is_never_negative_and_matches_difference():
    promotions = [promo("big", 1, 100000, discount_type=PromotionDiscountType.FIXED)]
    for quantity in (1, 2, 5):
        result = calculate_discount(stickers(quantity), promotions, NOW)
        assert result.final_total == result.original_total - result.total_discount
        assert result.final_total >= 0
        assert result.total_discount == result.original_total


def test_mixed_cart_counts_total_quantity():
    cart = [
        CartLineItem(id="a", unit_price=1000, quantity=1),
        CartLineItem(id="b", unit_price=2000, quantity=1),
    ]
    result = calculate_discount(cart, [promo("p", 2, 10)], NOW)

    assert result.original_total == 3000
    assert result.total_discount == 300


def test_empty_cart_is_zero():
    result = calculate_discount([], TIERS, NOW)

    assert (result.original_total, result.total_discount, result.final_total) == (0, 0, 0)


def test_equal_priority_ties_break_on_lowest_id():
    promotions = [promo("b", 2, 30, priority=5), promo("a", 2, 10, priority=5)]

    assert select_promotion(promotions, 3, NOW).id == "a"
    assert select_promotion(list(reversed(promotions)), 3, NOW).id == "a"


def test_inactive_and_out_of_window_promotions_are_ignored():
    promotions = [
        promo("off", 2, 50, priority=10, active=False),
        promo("future", 2, 40, priority=9, start_date=NOW + timedelta(days=1)),
        promo("past", 2, 30, priority=8, end_date=NOW - timedelta(days=1)),
        promo("open", 2, 5, priority=1),
    ]

    assert select_promotion(promotions, 2, NOW).id == "open"


def test_naive_window_dates_are_treated_as_utc():
    promotion = promo("naive", 2, 10, start_date=datetime(2026, 5, 1), end_date=datetime(2026, 7, 1))

    assert select_promotion([promotion], 2, NOW).id == "naive"


def test_percentage_rounds_half_up():
    assert round_half_up(Decimal("7339.5")) == 7340
    assert round_half_up(Decimal("7339.4")) == 7339
    assert discount_amount_for(48930, PromotionDiscountType.PERCENTAGE, Decimal("15")) == 7340


def test_fixed_discount_is_capped_at_subtotal():
    assert discount_amount_for(5000, PromotionDiscountType.FIXED, Decimal("2000")) == 2000
    assert discount_amount_for(5000, PromotionDiscountType.FIXED, Decimal("9000")) == 5000
    assert discount_amount_for(0, PromotionDiscountType.FIXED, Decimal("9000")) == 0


def test_tiers_are_sorted_by_min_quantity():
    shuffled = [TIERS[2], TIERS[0], promo("off", 3, 12, active=False), TIERS[3], TIERS[1]]

    assert [p.id for p in get_promotion_tiers(shuffled, NOW)] == ["p10", "p15", "p20", "p25"]


def test_quantity_preview_returns_the_applied_promotion():
    preview = preview_discount_for_quantity(PRICE, 10, TIERS, NOW)

    assert preview.original_total == 69900
    assert preview.discount_amount == 13980
    assert preview.final_total == 55920
    assert preview.applied_promotion.id == "p20"
