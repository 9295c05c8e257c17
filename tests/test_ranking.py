from datetime import timedelta

from feirao.discovery import RankingEngine
from feirao.models import BoostWindow, PlanTier

from tests.conftest import NOW


def _window(plan, expires_in=timedelta(days=10)):
    return BoostWindow(
        plan=plan,
        activated_at=NOW - timedelta(days=1),
        expires_at=NOW + expires_in,
        total_bumps=3,
        bumps_remaining=3,
    )


def test_rank_is_stable_within_tier(lifecycle, make_listing):
    a = make_listing(title="A")
    b = make_listing(title="B", boost=_window("premium"))
    c = make_listing(title="C")

    ranked = RankingEngine(lifecycle.effective_tier).rank([a, b, c])
    assert [listing.title for listing in ranked] == ["B", "A", "C"]


def test_rank_orders_by_tier_priority(lifecycle, make_listing):
    listings = [
        make_listing(title="basic", boost=_window("basic")),
        make_listing(title="none"),
        make_listing(title="premium", boost=_window("premium")),
        make_listing(title="advanced", boost=_window("advanced")),
        make_listing(title="premium-2", boost=_window("premium")),
    ]
    ranked = RankingEngine(lifecycle.effective_tier).rank(listings)
    assert [listing.title for listing in ranked] == [
        "premium",
        "premium-2",
        "advanced",
        "basic",
        "none",
    ]


def test_expired_unswept_window_ranks_as_none(lifecycle, make_listing):
    stale = make_listing(title="stale", boost=_window("premium", expires_in=timedelta(hours=-1)))
    free = make_listing(title="free")

    ranked = RankingEngine(lifecycle.effective_tier).rank_entries([stale, free])
    assert [entry.listing.title for entry in ranked] == ["stale", "free"]
    assert all(entry.tier == PlanTier.NONE for entry in ranked)


def test_unrecognized_paid_plan_ranks_with_basic(lifecycle, make_listing):
    featured = make_listing(title="featured", boost=_window("destaque"))
    basic = make_listing(title="basic", boost=_window("basic"))
    none = make_listing(title="none")

    ranked = RankingEngine(lifecycle.effective_tier).rank([none, featured, basic])
    assert [listing.title for listing in ranked] == ["featured", "basic", "none"]


def test_rank_entries_positions(lifecycle, make_listing):
    entries = RankingEngine(lifecycle.effective_tier).rank_entries(
        [make_listing(), make_listing(boost=_window("advanced"))]
    )
    assert [entry.position for entry in entries] == [1, 2]
    assert entries[0].tier == PlanTier.ADVANCED


def test_plan_tier_ordering():
    assert PlanTier.NONE < PlanTier.BASIC < PlanTier.ADVANCED < PlanTier.PREMIUM
    assert PlanTier.from_plan("gratis") == PlanTier.NONE
    assert PlanTier.from_plan("") == PlanTier.NONE
    assert PlanTier.from_plan("Premium") == PlanTier.PREMIUM
    assert PlanTier.from_plan("turbo") == PlanTier.BASIC
