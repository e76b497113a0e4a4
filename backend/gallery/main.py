import logging
import sys

from dotenv import load_dotenv

# Load .env before settings are read
load_dotenv()

from fastapi import FastAPI

from .core.config import settings
from .exception_handlers import register_exception_handlers
from .lifespan import lifespan
from .middleware.logging import LoggingMiddleware
from .routers import categories, images, leaderboard, notifications, profiles, ranks
from .services.experience import ExpMirror, IdleTickGate
from .services.notifications import NotificationChannel
from .services.rank_tiers import RankTierRegistry

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)

# Use a consistent logger name for all app logs
logger = logging.getLogger("gallery")

app = FastAPI(title="Prompt Gallery API", version="1.0.0", lifespan=lifespan)

# Process-lifetime state, populated by the lifespan handler
app.state.tier_registry = RankTierRegistry()
app.state.exp_mirror = ExpMirror()
app.state.idle_ticks = IdleTickGate()
app.state.notifications = NotificationChannel()

app.add_middleware(LoggingMiddleware)
register_exception_handlers(app)

app.include_router(ranks.router)
app.include_router(leaderboard.router)
app.include_router(profiles.router)
app.include_router(images.router)
app.include_router(categories.router)
app.include_router(notifications.router)


@app.get("/health")
def health():
    return {"ok": True, "env": settings.ENV}
