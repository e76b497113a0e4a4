"""
Tests for rank tier normalization, validation, persistence and the registry.
"""
import pytest

from gallery.core.errors import PermissionDenied, TierConfigurationError
from gallery.models import RankTier as RankTierRow
from gallery.schemas.records import RankTier, UserRecord
from gallery.services.rank_tiers import (
    DEFAULT_TIERS,
    RankTierRegistry,
    RankTierStore,
    admin_tier,
    default_tier,
    normalize_tiers,
    ordinary_tiers,
    validate_tiers,
)

ADMIN = UserRecord(id="a1", username="root", role="admin")
MEMBER = UserRecord(id="m1", username="ada", role="user")


def valid_ladder():
    return [
        RankTier(name="Administrator", color="#FF4141", required_exp=-1),
        RankTier(name="Member", required_exp=0),
        RankTier(name="Sketcher", required_exp=200),
    ]


class TestNormalization:

    def test_normalize_accepts_camel_case_rows(self):
        tiers = normalize_tiers([{"name": "Member", "icon": "", "color": "#fff", "requiredExp": 0}])
        assert tiers == [RankTier(name="Member", icon="", color="#fff", required_exp=0)]

    def test_normalize_skips_unusable_rows(self):
        rows = [
            {"name": "No threshold"},
            {"name": "Bad threshold", "required_exp": "lots"},
            {"name": "Fine", "required_exp": "50"},
        ]
        tiers = normalize_tiers(rows)
        assert [t.name for t in tiers] == ["Fine"]
        assert tiers[0].required_exp == 50

    def test_ordinary_tiers_drop_admin_and_sort_descending(self):
        names = [t.name for t in ordinary_tiers(valid_ladder())]
        assert names == ["Sketcher", "Member"]

    def test_default_and_admin_lookup(self):
        assert default_tier(valid_ladder()).name == "Member"
        assert admin_tier(valid_ladder()).name == "Administrator"


class TestValidation:

    def test_valid_ladder_passes(self):
        validate_tiers(valid_ladder())

    def test_default_ladder_is_valid(self):
        validate_tiers(DEFAULT_TIERS)

    def test_empty_name_rejected(self):
        tiers = valid_ladder() + [RankTier(name="   ", required_exp=900)]
        with pytest.raises(TierConfigurationError, match="empty"):
            validate_tiers(tiers)

    def test_duplicate_threshold_rejected(self):
        tiers = valid_ladder() + [RankTier(name="Twin", required_exp=200)]
        with pytest.raises(TierConfigurationError, match="duplicated"):
            validate_tiers(tiers)

    def test_threshold_below_sentinel_rejected(self):
        tiers = valid_ladder() + [RankTier(name="Abyss", required_exp=-5)]
        with pytest.raises(TierConfigurationError):
            validate_tiers(tiers)

    def test_default_tier_cannot_be_removed(self):
        tiers = [t for t in valid_ladder() if t.required_exp != 0]
        with pytest.raises(TierConfigurationError, match="default"):
            validate_tiers(tiers)

    def test_admin_tier_cannot_be_removed(self):
        tiers = [t for t in valid_ladder() if t.required_exp != -1]
        with pytest.raises(TierConfigurationError, match="administrator"):
            validate_tiers(tiers)


class TestRankTierStore:

    def test_seed_defaults_only_when_empty(self, db):
        store = RankTierStore(db)
        assert store.seed_defaults() is True
        assert store.seed_defaults() is False
        assert len(store.list_all()) == len(DEFAULT_TIERS)

    def test_list_all_sorted_ascending(self, db):
        store = RankTierStore(db)
        store.seed_defaults()
        thresholds = [t.required_exp for t in store.list_all()]
        assert thresholds == sorted(thresholds)
        assert thresholds[0] == -1

    def test_replace_all_as_admin(self, db):
        store = RankTierStore(db)
        store.seed_defaults()
        saved = store.replace_all(ADMIN, valid_ladder())
        assert [t.name for t in saved] == ["Administrator", "Member", "Sketcher"]
        assert db.query(RankTierRow).count() == 3

    def test_replace_all_rejects_non_admin(self, db):
        store = RankTierStore(db)
        store.seed_defaults()
        with pytest.raises(PermissionDenied):
            store.replace_all(MEMBER, valid_ladder())
        assert len(store.list_all()) == len(DEFAULT_TIERS)

    def test_replace_all_rejects_invalid_set_without_writing(self, db):
        store = RankTierStore(db)
        store.seed_defaults()
        bad = valid_ladder() + [RankTier(name="Twin", required_exp=0)]
        with pytest.raises(TierConfigurationError):
            store.replace_all(ADMIN, bad)
        assert len(store.list_all()) == len(DEFAULT_TIERS)


class TestRankTierRegistry:

    def test_snapshot_is_immutable_tuple(self):
        registry = RankTierRegistry(valid_ladder())
        snapshot = registry.snapshot()
        assert isinstance(snapshot, tuple)
        registry.replace([RankTier(name="Member", required_exp=0)])
        # Earlier snapshots are unaffected by later refreshes
        assert len(snapshot) == 3
        assert len(registry.snapshot()) == 1

    def test_load_from_store(self, db):
        store = RankTierStore(db)
        store.seed_defaults()
        registry = RankTierRegistry()
        assert registry.load(store) == tuple(store.list_all())
