"""
Rank tier data: normalization, sorting, validation, persistence and the
in-process snapshot handed to the resolver.

Reads degrade gracefully (bad rows are skipped, missing default/admin tiers
are synthesized). Writes are validated first and rejected with
TierConfigurationError.
"""
import logging
import threading
from typing import Any, Iterable, List, Sequence, Tuple

from sqlalchemy.orm import Session

from gallery.core.errors import PermissionDenied, PersistenceError, TierConfigurationError
from gallery.models import RankTier as RankTierRow
from gallery.schemas.records import (
    ADMIN_COLOR,
    ADMIN_REQUIRED_EXP,
    DEFAULT_REQUIRED_EXP,
    NEUTRAL_COLOR,
    RankTier,
    UserRecord,
)

logger = logging.getLogger(__name__)

# Ladder seeded into an empty rank_tiers table
DEFAULT_TIERS: Tuple[RankTier, ...] = (
    RankTier(name="Administrator", color=ADMIN_COLOR, required_exp=ADMIN_REQUIRED_EXP),
    RankTier(name="Member", color=NEUTRAL_COLOR, required_exp=0),
    RankTier(name="Apprentice", color="#4ADE80", required_exp=100),
    RankTier(name="Creator", color="#38BDF8", required_exp=500),
    RankTier(name="Artisan", color="#A78BFA", required_exp=1500),
    RankTier(name="Master", color="#FACC15", required_exp=3000),
)


def normalize_tiers(rows: Iterable[Any]) -> List[RankTier]:
    """Build RankTier records from ORM rows or dicts, skipping unusable rows."""
    tiers = []
    for row in rows or []:
        if isinstance(row, RankTier):
            tiers.append(row)
            continue
        tier = RankTier.from_row(row)
        if tier is not None:
            tiers.append(tier)
    return tiers


def ordinary_tiers(tiers: Sequence[RankTier]) -> List[RankTier]:
    """
    Tiers reachable through EXP, highest threshold first.

    The sort is stable, so duplicate thresholds keep their input order and the
    first one wins during resolution.
    """
    return sorted(
        (t for t in tiers if t.required_exp >= 0),
        key=lambda t: t.required_exp,
        reverse=True,
    )


def default_tier(tiers: Sequence[RankTier]) -> RankTier:
    for tier in tiers:
        if tier.required_exp == DEFAULT_REQUIRED_EXP:
            return tier
    return RankTier(name="Member", icon="", color=NEUTRAL_COLOR, required_exp=DEFAULT_REQUIRED_EXP)


def admin_tier(tiers: Sequence[RankTier]) -> RankTier:
    for tier in tiers:
        if tier.required_exp == ADMIN_REQUIRED_EXP:
            return tier
    fallback = default_tier(tiers)
    return RankTier(
        name="Administrator",
        icon=fallback.icon,
        color=ADMIN_COLOR,
        required_exp=ADMIN_REQUIRED_EXP,
    )


def validate_tiers(tiers: Sequence[RankTier]) -> None:
    """
    Validate a tier set before it is written.

    Raises:
        TierConfigurationError: empty name, threshold below -1, duplicate
            threshold, or a missing default (0) / administrator (-1) tier.
    """
    seen = set()
    for tier in tiers:
        if not tier.name.strip():
            raise TierConfigurationError("Rank name must not be empty.")
        if tier.required_exp < ADMIN_REQUIRED_EXP:
            raise TierConfigurationError(
                f"Required EXP {tier.required_exp} is invalid; use -1 for the administrator tier or a value >= 0."
            )
        if tier.required_exp in seen:
            raise TierConfigurationError(
                f'Required EXP "{tier.required_exp}" is duplicated. Each rank needs its own threshold.'
            )
        seen.add(tier.required_exp)

    if DEFAULT_REQUIRED_EXP not in seen:
        raise TierConfigurationError("The default rank (0 EXP) cannot be removed.")
    if ADMIN_REQUIRED_EXP not in seen:
        raise TierConfigurationError("The administrator rank cannot be removed.")


class RankTierStore:
    """Rank-tier configuration store backed by the rank_tiers table."""

    def __init__(self, db: Session):
        self.db = db

    def list_all(self) -> List[RankTier]:
        rows = self.db.query(RankTierRow).order_by(RankTierRow.required_exp).all()
        return normalize_tiers(rows)

    def seed_defaults(self) -> bool:
        """Insert DEFAULT_TIERS when the table is empty. Returns True if seeded."""
        if self.db.query(RankTierRow).first() is not None:
            return False
        for tier in DEFAULT_TIERS:
            self.db.add(RankTierRow(**tier.model_dump()))
        self.db.commit()
        logger.info("Seeded %d default rank tiers", len(DEFAULT_TIERS))
        return True

    def replace_all(self, actor: UserRecord, tiers: Sequence[RankTier]) -> List[RankTier]:
        """
        Replace the whole ladder in one transaction. Admin only.
        """
        if actor is None or not actor.is_admin:
            raise PermissionDenied("Only administrators can change the rank system.")

        tiers = list(tiers)
        validate_tiers(tiers)

        try:
            self.db.query(RankTierRow).delete()
            # Flush deletes first so the unique index on required_exp does not trip
            self.db.flush()
            for tier in tiers:
                self.db.add(RankTierRow(**tier.model_dump()))
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to replace rank tiers: {e}", exc_info=True)
            raise PersistenceError("Could not save the rank system.") from e

        logger.info(f"Rank tiers replaced by admin {actor.id} ({len(tiers)} tiers)")
        return self.list_all()


class RankTierRegistry:
    """
    Immutable snapshot of the rank ladder for the process.

    Loaded once at startup and refreshed after an admin write. Callers get the
    tuple by value and pass it into resolver calls.
    """

    def __init__(self, tiers: Iterable[RankTier] = ()):
        self._lock = threading.Lock()
        self._tiers: Tuple[RankTier, ...] = tuple(tiers)

    def snapshot(self) -> Tuple[RankTier, ...]:
        with self._lock:
            return self._tiers

    def replace(self, tiers: Iterable[RankTier]) -> Tuple[RankTier, ...]:
        new_tiers = tuple(tiers)
        with self._lock:
            self._tiers = new_tiers
        return new_tiers

    def load(self, store: RankTierStore) -> Tuple[RankTier, ...]:
        tiers = self.replace(store.list_all())
        logger.info("Loaded %d rank tiers", len(tiers))
        return tiers
