import os

from dotenv import load_dotenv


load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}

APP_ENV = os.getenv("APP_ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./scheduler.db")

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", str(7 * 24 * 60)))

FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3001")

# Tile every availability window into back-to-back slots. When disabled, each
# window offers a single slot anchored at its start time.
SLOT_TILING = _get_bool(os.getenv("SLOT_TILING"), default=True)
DEFAULT_SLOT_RANGE_DAYS = int(os.getenv("DEFAULT_SLOT_RANGE_DAYS", "30"))
DEFAULT_TIMEZONE = os.getenv("DEFAULT_TIMEZONE", "UTC")

CONFLICT_POLICY_OVERLAP = "overlap"
CONFLICT_POLICY_EXACT_START = "exact_start"
BOOKING_CONFLICT_POLICY = os.getenv("BOOKING_CONFLICT_POLICY", CONFLICT_POLICY_OVERLAP).strip().lower()

MIN_PASSWORD_LENGTH = 6

def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and JWT_SECRET_KEY == "change-me":
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
    if BOOKING_CONFLICT_POLICY not in {CONFLICT_POLICY_OVERLAP, CONFLICT_POLICY_EXACT_START}:
        raise RuntimeError(f"Unknown BOOKING_CONFLICT_POLICY: {BOOKING_CONFLICT_POLICY!r}")
