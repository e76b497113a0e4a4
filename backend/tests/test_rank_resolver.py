"""
Tests for rank resolution.

Covers tier selection, admin and custom-title overrides, style bands and
EXP progress.
"""
import pytest

from gallery.schemas.records import ImageRecord, RankTier, UserRecord
from gallery.services.ranking import (
    RankResolver,
    STYLE_ADMIN,
    STYLE_ADVANCED,
    STYLE_BASE,
    STYLE_EXPERT,
    STYLE_MASTER,
    STYLE_NEUTRAL,
    count_posts,
)

TIERS = [
    RankTier(name="Administrator", color="#FF0000", icon="admin.png", required_exp=-1),
    RankTier(name="Newcomer", color="#AAAAAA", icon="new.png", required_exp=0),
    RankTier(name="Painter", color="#00FF00", icon="painter.png", required_exp=100),
    RankTier(name="Visionary", color="#0000FF", icon="visionary.png", required_exp=1000),
]


def make_user(exp=0, role="user", **kw):
    return UserRecord(id=kw.pop("id", "u1"), username="ada", role=role, exp=exp, **kw)


@pytest.fixture
def resolver():
    return RankResolver(advanced_at=500, expert_at=1500, master_at=3000)


@pytest.mark.parametrize("exp,expected", [
    (0, "Newcomer"),
    (99, "Newcomer"),
    (100, "Painter"),
    (999, "Painter"),
    (1000, "Visionary"),
    (50000, "Visionary"),
])
def test_tier_boundaries(resolver, exp, expected):
    info = resolver.resolve(make_user(exp=exp), TIERS)
    assert info.name == expected


def test_tier_selection_is_monotonic(resolver):
    """Higher EXP never selects a tier with a lower threshold."""
    thresholds = []
    for exp in range(0, 1500, 7):
        thresholds.append(resolver.select_tier(exp, TIERS).required_exp)
    assert thresholds == sorted(thresholds)


def test_anonymous_viewer_gets_default_tier(resolver):
    info = resolver.resolve(None, TIERS)
    assert info.name == "Newcomer"
    assert info.color == "#AAAAAA"
    assert info.icon == "new.png"
    assert info.style_class == STYLE_NEUTRAL
    assert info.post_count == 0


def test_anonymous_viewer_without_default_tier_gets_synthesized_member(resolver):
    info = resolver.resolve(None, [])
    assert info.name == "Member"
    assert info.icon == ""


@pytest.mark.parametrize("exp", [0, 150, 5000])
def test_admin_ignores_exp_thresholds(resolver, exp):
    info = resolver.resolve(make_user(exp=exp, role="admin"), TIERS)
    assert info.name == "Administrator"
    assert info.color == "#FF0000"
    assert info.icon == "admin.png"
    assert info.style_class == STYLE_ADMIN


def test_admin_tier_synthesized_when_missing(resolver):
    tiers = [t for t in TIERS if t.required_exp != -1]
    info = resolver.resolve(make_user(exp=2000, role="admin"), tiers)
    assert info.name == "Administrator"
    assert info.color == "#FF4141"
    # Icon borrowed from the default tier
    assert info.icon == "new.png"


def test_admin_custom_title_overrides_admin_tier(resolver):
    user = make_user(role="admin", custom_title="Curator", custom_title_color="#123456")
    info = resolver.resolve(user, TIERS)
    assert info.name == "Curator"
    assert info.color == "#123456"
    assert info.style_class == STYLE_ADMIN


@pytest.mark.parametrize("exp", [0, 120, 4000])
def test_custom_title_and_color_take_precedence(resolver, exp):
    user = make_user(exp=exp, custom_title="Prompt Wizard", custom_title_color="#ABCDEF")
    info = resolver.resolve(user, TIERS)
    assert info.name == "Prompt Wizard"
    assert info.color == "#ABCDEF"


def test_custom_title_without_color_keeps_tier_color(resolver):
    user = make_user(exp=150, custom_title="Prompt Wizard")
    info = resolver.resolve(user, TIERS)
    assert info.name == "Prompt Wizard"
    assert info.color == "#00FF00"
    assert info.icon == "painter.png"


@pytest.mark.parametrize("exp,expected", [
    (0, STYLE_BASE),
    (499, STYLE_BASE),
    (500, STYLE_ADVANCED),
    (1499, STYLE_ADVANCED),
    (1500, STYLE_EXPERT),
    (2999, STYLE_EXPERT),
    (3000, STYLE_MASTER),
])
def test_style_bands_follow_raw_exp(resolver, exp, expected):
    assert resolver.resolve(make_user(exp=exp), TIERS).style_class == expected


def test_custom_title_does_not_suppress_style_band(resolver):
    user = make_user(exp=3200, custom_title="Quiet One")
    assert resolver.resolve(user, TIERS).style_class == STYLE_MASTER


def test_duplicate_thresholds_pick_first_in_input_order(resolver):
    tiers = [
        RankTier(name="Member", required_exp=0),
        RankTier(name="First", required_exp=100),
        RankTier(name="Second", required_exp=100),
    ]
    assert resolver.resolve(make_user(exp=150), tiers).name == "First"


def test_negative_exp_falls_back_to_default(resolver):
    assert resolver.resolve(make_user(exp=-20), TIERS).name == "Newcomer"


def test_missing_default_tier_is_synthesized(resolver):
    tiers = [RankTier(name="Painter", required_exp=100)]
    assert resolver.resolve(make_user(exp=10), tiers).name == "Member"
    assert resolver.resolve(make_user(exp=100), tiers).name == "Painter"


def test_post_count_from_images(resolver):
    images = [
        ImageRecord(id=1, user_id="u1"),
        ImageRecord(id=2, user_id="u1"),
        ImageRecord(id=3, user_id="u2"),
    ]
    assert count_posts("u1", images) == 2
    info = resolver.resolve_with_images(make_user(exp=0), TIERS, images)
    assert info.post_count == 2
    assert resolver.resolve_with_images(None, TIERS, images).post_count == 0


class TestExpProgress:

    def test_progress_midway(self, resolver):
        progress = resolver.progress(make_user(exp=50), TIERS)
        assert progress.current_tier.name == "Newcomer"
        assert progress.next_tier.name == "Painter"
        assert progress.exp_for_next == 100
        assert progress.progress_percent == pytest.approx(50.0)

    def test_progress_at_boundary_starts_at_zero(self, resolver):
        progress = resolver.progress(make_user(exp=100), TIERS)
        assert progress.current_tier.name == "Painter"
        assert progress.progress_percent == pytest.approx(0.0)

    def test_max_tier_is_full(self, resolver):
        progress = resolver.progress(make_user(exp=4000), TIERS)
        assert progress.current_tier.name == "Visionary"
        assert progress.next_tier is None
        assert progress.exp_for_next is None
        assert progress.progress_percent == 100.0

    def test_progress_is_clamped(self, resolver):
        progress = resolver.progress(make_user(exp=-10), TIERS)
        assert 0.0 <= progress.progress_percent <= 100.0
