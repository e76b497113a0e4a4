from pydantic import BaseModel
import os
from typing import Dict


class Settings(BaseModel):
    # Environment: local, dev, staging, prod
    ENV: str = os.getenv("ENV", "dev")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./gallery.db")

    # Bearer tokens are issued by the external auth provider; we only verify them
    JWT_SECRET: str = os.getenv("JWT_SECRET", "dev-secret-change-me")
    ALGORITHM: str = os.getenv("JWT_ALG", "HS256")

    # Leaderboard score weights (post > like > comment > view)
    SCORE_WEIGHT_POST: int = int(os.getenv("SCORE_WEIGHT_POST", "10"))
    SCORE_WEIGHT_LIKE: int = int(os.getenv("SCORE_WEIGHT_LIKE", "5"))
    SCORE_WEIGHT_COMMENT: int = int(os.getenv("SCORE_WEIGHT_COMMENT", "3"))
    SCORE_WEIGHT_VIEW: int = int(os.getenv("SCORE_WEIGHT_VIEW", "1"))

    # EXP awarded per action
    EXP_AWARD_COMMENT: int = int(os.getenv("EXP_AWARD_COMMENT", "10"))
    EXP_AWARD_LIKE: int = int(os.getenv("EXP_AWARD_LIKE", "5"))
    EXP_AWARD_POST: int = int(os.getenv("EXP_AWARD_POST", "50"))
    EXP_AWARD_PROFILE_EDIT: int = int(os.getenv("EXP_AWARD_PROFILE_EDIT", "20"))
    EXP_AWARD_IDLE_TICK: int = int(os.getenv("EXP_AWARD_IDLE_TICK", "1"))
    # Minimum spacing between accepted idle ticks per user
    EXP_IDLE_TICK_INTERVAL_SECONDS: int = int(os.getenv("EXP_IDLE_TICK_INTERVAL_SECONDS", "60"))

    # Username style bands, keyed off raw EXP rather than the active tier
    STYLE_BAND_ADVANCED: int = int(os.getenv("STYLE_BAND_ADVANCED", "500"))
    STYLE_BAND_EXPERT: int = int(os.getenv("STYLE_BAND_EXPERT", "1500"))
    STYLE_BAND_MASTER: int = int(os.getenv("STYLE_BAND_MASTER", "3000"))

    @property
    def database_url(self) -> str:
        return self.DATABASE_URL

    @property
    def score_weights(self) -> Dict[str, int]:
        return {
            "post": self.SCORE_WEIGHT_POST,
            "like": self.SCORE_WEIGHT_LIKE,
            "comment": self.SCORE_WEIGHT_COMMENT,
            "view": self.SCORE_WEIGHT_VIEW,
        }


settings = Settings()


def validate_config():
    """Validate configuration at startup. Raises ValueError if invalid."""
    import logging
    logger = logging.getLogger(__name__)

    weights = [
        settings.SCORE_WEIGHT_POST,
        settings.SCORE_WEIGHT_LIKE,
        settings.SCORE_WEIGHT_COMMENT,
        settings.SCORE_WEIGHT_VIEW,
    ]
    if any(a <= b for a, b in zip(weights, weights[1:])) or weights[-1] < 0:
        error_msg = (
            "Score weights must keep post > like > comment > view >= 0, got "
            f"post={weights[0]} like={weights[1]} comment={weights[2]} view={weights[3]}"
        )
        logger.error(error_msg)
        raise ValueError(error_msg)

    bands = [settings.STYLE_BAND_ADVANCED, settings.STYLE_BAND_EXPERT, settings.STYLE_BAND_MASTER]
    if bands != sorted(set(bands)):
        error_msg = f"Style bands must be strictly increasing, got {bands}"
        logger.error(error_msg)
        raise ValueError(error_msg)

    if settings.ENV == "prod" and settings.JWT_SECRET == "dev-secret-change-me":
        error_msg = "JWT_SECRET must be set in production"
        logger.error(error_msg)
        raise ValueError(error_msg)

    logger.info("Configuration validated")
