"""Application settings loaded from the environment"""
import os
import logging
from dataclasses import dataclass, field
from typing import List
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEV_JWT_SECRET = "dev-secret-change-me"


def _env_bool(name: str, default: bool) -> bool:
    return os.getenv(name, str(default)).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    mongodb_uri: str = "mongodb://localhost:27017"
    db_name: str = "expense_tracker"
    jwt_secret: str = DEV_JWT_SECRET
    jwt_algorithm: str = "HS256"
    jwt_expires_hours: int = 24
    bcrypt_rounds: int = 10
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    max_body_size: int = 64 * 1024
    rate_limit: str = "60/minute"
    rate_limit_enabled: bool = True
    log_level: str = "INFO"
    static_dir: str = "public"

    @classmethod
    def from_env(cls) -> "Settings":
        """Builds settings from environment variables (and a .env file if present)."""
        load_dotenv()  # Searches current dir and parents

        jwt_secret = os.getenv("JWT_SECRET")
        if not jwt_secret:
            logger.warning("JWT_SECRET environment variable not set! Using an insecure development secret.")
            jwt_secret = DEV_JWT_SECRET

        origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

        return cls(
            mongodb_uri=os.getenv("MONGODB_URI", cls.mongodb_uri),
            db_name=os.getenv("DB_NAME", cls.db_name),
            jwt_secret=jwt_secret,
            jwt_algorithm=os.getenv("JWT_ALGORITHM", cls.jwt_algorithm),
            jwt_expires_hours=int(os.getenv("JWT_EXPIRES_HOURS", cls.jwt_expires_hours)),
            bcrypt_rounds=int(os.getenv("BCRYPT_ROUNDS", cls.bcrypt_rounds)),
            cors_origins=origins or ["*"],
            max_body_size=int(os.getenv("MAX_BODY_SIZE", cls.max_body_size)),
            rate_limit=os.getenv("RATE_LIMIT", cls.rate_limit),
            rate_limit_enabled=_env_bool("RATE_LIMIT_ENABLED", cls.rate_limit_enabled),
            log_level=os.getenv("LOG_LEVEL", cls.log_level).upper(),
            static_dir=os.getenv("STATIC_DIR", cls.static_dir),
        )
