from datetime import timedelta

import pytest

from feirao.config import Settings
from feirao.exceptions import (
    InvalidTimestampError,
    InvalidWindowError,
    NotFoundError,
    ValidationError,
)
from feirao.models import BoostWindow, PlanTier, PresenceFlag, WindowState
from feirao.promotion import PromotionLifecycleManager, build_window, parse_timestamp

from tests.conftest import NOW


def test_activate_boost_uses_plan_catalog(lifecycle, make_listing):
    listing = make_listing()
    window = lifecycle.activate_boost(listing, "premium")

    assert listing.boost is window
    assert window.activated_at == NOW
    assert window.expires_at == NOW + timedelta(days=30)
    assert window.total_bumps == 10
    assert window.bumps_remaining == 10
    assert window.next_bump_at == NOW + timedelta(days=3)
    assert window.state == WindowState.ACTIVE
    assert lifecycle.effective_tier(listing) == PlanTier.PREMIUM


def test_activate_basic_plan_first_bump(lifecycle, make_listing):
    window = lifecycle.activate_boost(make_listing(), "basic")
    assert window.expires_at == NOW + timedelta(days=7)
    assert window.total_bumps == 3
    assert window.next_bump_at == NOW + timedelta(days=2)


def test_activate_boost_with_event_values(lifecycle, make_listing):
    listing = make_listing()
    window = lifecycle.activate_boost(
        listing,
        "advanced",
        activated_at="2025-03-10T12:00:00Z",
        expires_at="2025-03-20T12:00:00",
        total_bumps=2,
        next_bump_at="2025-03-12T12:00:00+00:00",
    )
    assert window.expires_at == NOW + timedelta(days=10)
    assert window.next_bump_at == NOW + timedelta(days=2)
    assert window.total_bumps == 2


def test_free_plan_clears_boost(lifecycle, make_listing):
    listing = make_listing()
    lifecycle.activate_boost(listing, "premium")
    assert lifecycle.activate_boost(listing, "gratis") is None
    assert listing.boost is None
    assert lifecycle.effective_tier(listing) == PlanTier.NONE


def test_expiration_must_follow_activation(lifecycle, make_listing):
    listing = make_listing()
    with pytest.raises(InvalidWindowError):
        lifecycle.activate_boost(listing, "premium", activated_at=NOW, expires_at=NOW)
    with pytest.raises(InvalidWindowError):
        lifecycle.activate_boost(
            listing, "premium", activated_at=NOW, expires_at=NOW - timedelta(days=1)
        )
    assert listing.boost is None


def test_invalid_bump_inputs(lifecycle, make_listing):
    listing = make_listing()
    with pytest.raises(InvalidWindowError):
        lifecycle.activate_boost(listing, "premium", total_bumps=0)
    with pytest.raises(InvalidWindowError):
        lifecycle.activate_boost(
            listing, "premium", next_bump_at=NOW + timedelta(days=40)
        )


def test_malformed_timestamp(lifecycle, make_listing):
    with pytest.raises(InvalidTimestampError):
        lifecycle.activate_boost(make_listing(), "premium", expires_at="amanhã")
    with pytest.raises(InvalidTimestampError):
        parse_timestamp("")
    with pytest.raises(InvalidTimestampError):
        parse_timestamp(12345)


def test_effective_tier_of_expired_window_without_sweep(lifecycle, clock, make_listing):
    listing = make_listing()
    lifecycle.activate_boost(listing, "premium")
    clock.advance(days=31)

    assert listing.boost.state == WindowState.ACTIVE
    assert listing.boost.stored_tier == PlanTier.PREMIUM
    assert lifecycle.effective_tier(listing) == PlanTier.NONE
    assert lifecycle.days_remaining(listing) == 0


def test_last_bump_clears_schedule_and_is_idempotent(lifecycle, make_listing):
    listing = make_listing(
        boost=BoostWindow(
            plan="basic",
            activated_at=NOW - timedelta(days=5),
            expires_at=NOW + timedelta(days=2),
            total_bumps=3,
            bumps_remaining=1,
            next_bump_at=NOW,
        )
    )

    assert lifecycle.sweep_listing(listing) == ["bumped"]
    swept = listing.boost
    assert swept.bumps_remaining == 0
    assert swept.next_bump_at is None
    assert swept.last_bump_at == NOW
    assert swept.state == WindowState.ACTIVE

    assert lifecycle.sweep_listing(listing) == []
    assert listing.boost is swept


def test_bump_reschedules_by_interval(lifecycle, clock, make_listing):
    listing = make_listing()
    lifecycle.activate_boost(listing, "premium")
    clock.advance(days=3, hours=1)

    lifecycle.sweep_listing(listing)
    assert listing.boost.bumps_remaining == 9
    assert listing.boost.next_bump_at == clock.now() + timedelta(days=3)


def test_bump_never_scheduled_past_expiration(lifecycle, clock, make_listing):
    listing = make_listing(
        boost=BoostWindow(
            plan="advanced",
            activated_at=NOW - timedelta(days=13),
            expires_at=NOW + timedelta(days=1),
            total_bumps=5,
            bumps_remaining=3,
            next_bump_at=NOW - timedelta(minutes=1),
        )
    )
    lifecycle.sweep_listing(listing)
    assert listing.boost.bumps_remaining == 2
    assert listing.boost.next_bump_at is None


def test_sweep_expires_window(lifecycle, clock, make_listing):
    listing = make_listing()
    lifecycle.activate_boost(listing, "basic")
    clock.advance(days=7)

    assert lifecycle.sweep_listing(listing) == ["expired"]
    assert listing.boost.state == WindowState.EXPIRED
    assert listing.boost.next_bump_at is None
    # Terminal: ni subidas ni cambios en pasadas siguientes
    assert lifecycle.sweep_listing(listing) == []
    assert lifecycle.effective_tier(listing) == PlanTier.NONE


def test_sweep_collects_stats(lifecycle, clock, make_listing):
    expiring = make_listing()
    bumping = make_listing()
    idle = make_listing()
    lifecycle.activate_boost(expiring, "basic")
    lifecycle.activate_boost(bumping, "premium")
    lifecycle.activate_presence(idle)
    clock.advance(days=7)

    result = lifecycle.sweep([expiring, bumping, idle])
    assert result.processed == 3
    assert result.expired == 1
    assert result.bumped == 1
    assert result.presence_expired == 1
    assert result.errors == 0
    assert result.changed_ids == [expiring.id, bumping.id, idle.id]

    again = lifecycle.sweep([expiring, bumping, idle])
    assert again.changed_ids == []


def test_days_remaining_rounds_up(lifecycle, clock, make_listing):
    listing = make_listing()
    lifecycle.activate_boost(listing, "advanced")
    assert lifecycle.days_remaining(listing) == 15

    clock.advance(days=14, hours=1)
    assert lifecycle.days_remaining(listing) == 1

    clock.advance(days=2)
    assert lifecycle.days_remaining(listing) == 0
    assert lifecycle.days_remaining(make_listing()) == 0


def test_boost_progress(lifecycle, clock, make_listing):
    listing = make_listing()
    lifecycle.activate_boost(listing, "advanced")
    # 15 días restantes sobre 5 subidas * 3 días
    assert lifecycle.boost_progress(listing) == 1.0

    clock.advance(days=9)
    assert lifecycle.boost_progress(listing) == pytest.approx(6 / 15)
    assert lifecycle.boost_progress(make_listing()) == 0.0


def test_boost_status(lifecycle, clock, make_listing):
    listing = make_listing()
    lifecycle.activate_boost(listing, "premium")
    status = lifecycle.boost_status(listing)
    assert status.tier == PlanTier.PREMIUM
    assert status.days_remaining == 30
    assert status.bumps_remaining == 10

    clock.advance(days=40)
    expired = lifecycle.boost_status(listing)
    assert expired.tier == PlanTier.NONE
    assert expired.state == WindowState.EXPIRED
    assert expired.next_bump_at is None

    with pytest.raises(NotFoundError):
        lifecycle.boost_status(make_listing())


def test_custom_bump_interval(clock, make_listing):
    manager = PromotionLifecycleManager(
        clock=clock, settings=Settings(_env_file=None, bump_interval_days=5)
    )
    listing = make_listing()
    manager.activate_boost(listing, "premium")
    clock.advance(days=3)
    manager.sweep_listing(listing)
    assert listing.boost.next_bump_at == clock.now() + timedelta(days=5)


def test_presence_activation_and_countdown(lifecycle, clock, make_listing):
    listing = make_listing()
    flag = lifecycle.activate_presence(listing)
    assert flag.expires_at == NOW + timedelta(hours=6)
    assert lifecycle.is_present(listing)

    clock.advance(hours=4, minutes=30)
    assert lifecycle.presence_time_left(listing) == timedelta(hours=1, minutes=30)


def test_expired_presence_reads_inactive_without_sweep(lifecycle, clock, make_listing):
    listing = make_listing(
        presence=PresenceFlag(active=True, expires_at=NOW - timedelta(seconds=1))
    )
    assert listing.presence.active
    assert not lifecycle.is_present(listing)
    assert lifecycle.presence_time_left(listing) == timedelta(0)

    assert lifecycle.sweep_listing(listing) == ["presence_expired"]
    assert listing.presence.active is False


def test_toggle_presence(lifecycle, make_listing):
    listing = make_listing()
    assert lifecycle.toggle_presence(listing) is True
    assert lifecycle.is_present(listing)
    assert lifecycle.toggle_presence(listing) is False
    assert not lifecycle.is_present(listing)
    assert listing.presence.expires_at == NOW


def test_toggle_after_expiry_reactivates(lifecycle, clock, make_listing):
    listing = make_listing()
    lifecycle.activate_presence(listing)
    clock.advance(hours=7)
    assert lifecycle.toggle_presence(listing) is True
    assert listing.presence.expires_at == clock.now() + timedelta(hours=6)


def test_sweep_of_normal_expiry_reports_no_errors(lifecycle, clock, make_listing):
    listing = make_listing()
    lifecycle.activate_boost(listing, "basic")
    clock.advance(days=8)

    result = lifecycle.sweep([listing])
    assert result.errors == 0
    assert result.expired == 1
    assert result.changed_ids == [listing.id]
    assert listing.boost.state == WindowState.EXPIRED


def test_window_must_end_after_it_starts():
    with pytest.raises(ValueError):
        BoostWindow(
            plan="premium",
            activated_at=NOW + timedelta(days=5),
            expires_at=NOW + timedelta(days=1),
            total_bumps=3,
            bumps_remaining=3,
        )
    with pytest.raises(InvalidWindowError):
        build_window(
            plan="premium",
            activated_at=NOW + timedelta(days=5),
            expires_at=NOW + timedelta(days=1),
            total_bumps=3,
            bumps_remaining=3,
        )


def test_window_next_bump_must_fall_inside(make_listing):
    with pytest.raises(InvalidWindowError):
        build_window(
            plan="basic",
            activated_at=NOW,
            expires_at=NOW + timedelta(days=7),
            total_bumps=3,
            bumps_remaining=3,
            next_bump_at=NOW + timedelta(days=8),
        )
    # Un registro inválido de la base tampoco se acepta
    with pytest.raises(ValueError):
        make_listing(
            boost={
                "plan": "premium",
                "activated_at": "2025-03-15T12:00:00Z",
                "expires_at": "2025-03-11T12:00:00Z",
                "total_bumps": 10,
                "bumps_remaining": 10,
            }
        )


def test_presence_requires_open_fair(lifecycle, make_listing):
    listing = make_listing()
    lifecycle.set_fair_active(False)

    with pytest.raises(ValidationError):
        lifecycle.activate_presence(listing)
    with pytest.raises(ValidationError):
        lifecycle.toggle_presence(listing)
    assert listing.presence is None

    lifecycle.set_fair_active(True)
    assert lifecycle.toggle_presence(listing) is True


def test_closed_fair_still_allows_leaving(lifecycle, make_listing):
    listing = make_listing()
    lifecycle.activate_presence(listing)
    lifecycle.set_fair_active(False)

    assert lifecycle.toggle_presence(listing) is False
    assert not lifecycle.is_present(listing)


def test_fair_state_comes_from_settings(clock):
    manager = PromotionLifecycleManager(
        clock=clock, settings=Settings(_env_file=None, fair_active=False)
    )
    assert manager.fair_active is False
