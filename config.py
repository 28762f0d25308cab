import logging
import os

from core.errors import ConfigError

_config_log = logging.getLogger("config")


def _as_bool(name: str, default: str = "false") -> bool:
    return str(os.getenv(name, default)).strip().lower() in {"1", "true", "yes", "y", "on"}


def _as_int(name: str, default: int) -> int:
    raw = (os.getenv(name, "") or "").strip()
    if not raw:
        return default
    try:
        return max(1, int(raw))
    except ValueError:
        _config_log.warning("CONFIG WARNING: %s=%r is not an integer; using %s", name, raw, default)
        return default


def _first_env(*names: str) -> str | None:
    for name in names:
        v = (os.getenv(name) or "").strip()
        if v:
            return v
    return None


# ---- Environment ----
ENVIRONMENT = os.getenv("ENVIRONMENT", "prod").strip().lower()

# ---- Object storage (S3 / Cloudflare R2) ----
# R2_* names are accepted so the job can share the app's deployment secrets.
S3_BUCKET = _first_env("S3_BUCKET", "R2_BUCKET_NAME")
S3_ACCESS_KEY_ID = _first_env("S3_ACCESS_KEY_ID", "R2_ACCESS_KEY_ID")
S3_SECRET_ACCESS_KEY = _first_env("S3_SECRET_ACCESS_KEY", "R2_SECRET_ACCESS_KEY")
R2_ACCOUNT_ID = _first_env("R2_ACCOUNT_ID")
S3_ENDPOINT_URL = _first_env("S3_ENDPOINT_URL", "R2_ENDPOINT") or (
    f"https://{R2_ACCOUNT_ID}.r2.cloudflarestorage.com" if R2_ACCOUNT_ID else None
)
S3_REGION = (os.getenv("S3_REGION", "auto") or "auto").strip()

# ---- Cleanup batching ----
# Page size doubles as the DeleteObjects request size, which S3 caps at 1000 keys.
CLEANUP_BATCH_SIZE = min(1000, _as_int("CLEANUP_BATCH_SIZE", 1000))
PREMIUM_CHECK_CHUNK_SIZE = _as_int("PREMIUM_CHECK_CHUNK_SIZE", 25)

# ---- Premium check (Postgres function) ----
PREMIUM_FUNCTION = (os.getenv("PREMIUM_FUNCTION", "user_is_premium") or "user_is_premium").strip()
PREMIUM_PARAM = (os.getenv("PREMIUM_PARAM", "user_id") or "user_id").strip()
# Older deployments declared the function with a prefixed argument name.
PREMIUM_LEGACY_PARAM = (os.getenv("PREMIUM_LEGACY_PARAM", "p_user_id") or "p_user_id").strip()

# ---- Daily prompt seeding ----
SEED_DAILY_PROMPTS = _as_bool("SEED_DAILY_PROMPTS", "true")

# ---- Observability ----
PUSHGATEWAY_URL = (os.getenv("PUSHGATEWAY_URL") or "").strip() or None
PUSHGATEWAY_JOB = (os.getenv("PUSHGATEWAY_JOB", "submission_cleanup") or "submission_cleanup").strip()
LOG_DIR = (os.getenv("LOG_DIR", "logs") or "logs").strip()


# ---------------------------------------------------------------------------
# Startup validation
# ---------------------------------------------------------------------------

def validate_config() -> None:
    """Check required environment variables before touching either store.

    Every missing variable is collected so one failed run lists them all.
    Raises ConfigError; the entrypoint turns that into a non-zero exit.
    """
    errors: list[str] = []
    warnings: list[str] = []

    if ENVIRONMENT != "dev" and not os.getenv("DATABASE_URL"):
        errors.append("DATABASE_URL is not set. Postgres is required outside ENVIRONMENT=dev.")
    if not S3_BUCKET:
        errors.append("S3_BUCKET (or R2_BUCKET_NAME) is not set.")
    if not S3_ACCESS_KEY_ID:
        errors.append("S3_ACCESS_KEY_ID (or R2_ACCESS_KEY_ID) is not set.")
    if not S3_SECRET_ACCESS_KEY:
        errors.append("S3_SECRET_ACCESS_KEY (or R2_SECRET_ACCESS_KEY) is not set.")

    if not S3_ENDPOINT_URL:
        warnings.append(
            "No S3_ENDPOINT_URL / R2_ENDPOINT / R2_ACCOUNT_ID set; boto3 will use the AWS default endpoint."
        )
    if PREMIUM_PARAM == PREMIUM_LEGACY_PARAM:
        warnings.append("PREMIUM_LEGACY_PARAM equals PREMIUM_PARAM; the legacy fallback is effectively off.")

    for w in warnings:
        _config_log.warning("CONFIG WARNING: %s", w)

    if errors:
        for e in errors:
            _config_log.critical("CONFIG ERROR: %s", e)
        raise ConfigError("; ".join(errors))
