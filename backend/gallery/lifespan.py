"""
Application lifespan management for startup and shutdown events
"""
import logging
from contextlib import asynccontextmanager

from sqlalchemy import text

from gallery.core.config import validate_config
from gallery.core.env import get_env_name, is_local_env
from gallery.db import get_engine, get_session_local, init_db
from gallery.services.profiles import ProfileStore
from gallery.services.rank_tiers import RankTierStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app):
    """Manage application lifespan events"""
    logger.info("Starting Prompt Gallery backend...")
    env = get_env_name()

    validate_config()

    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("Database connection verified")
    except Exception as e:
        if is_local_env():
            logger.warning(f"Database connection failed in {env}: {e}")
        else:
            logger.error(f"Database connection failed in {env}, failing startup: {e}")
            raise

    init_db()

    db = get_session_local()()
    try:
        store = RankTierStore(db)
        store.seed_defaults()
        app.state.tier_registry.load(store)

        profiles = ProfileStore(db).list_all()
        for profile in profiles:
            app.state.exp_mirror.set(profile.id, profile.exp)
        logger.info("Seeded EXP mirror with %d profiles", len(profiles))
    finally:
        db.close()

    logger.info("Startup complete (ENV=%s)", env)
    yield

    logger.info("Shutting down Prompt Gallery backend")
