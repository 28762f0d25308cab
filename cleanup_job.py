# cleanup_job.py
"""Retention cleanup for daily-prompt submissions.

Run from cron once a day, e.g.:
  15 0 * * * cd /srv/cleanup && python cleanup_job.py

Exit status: 0 when every expired page was handled, 1 on any failure,
2 on configuration errors.
"""
import argparse
import asyncio
import logging
import time
from logging.handlers import RotatingFileHandler
from pathlib import Path

from dotenv import load_dotenv

# ---------------------------------------------------------------------------
# Environment
# ---------------------------------------------------------------------------

load_dotenv()

from pythonjsonlogger.json import JsonFormatter  # noqa: E402

import config  # noqa: E402
from core.cleanup import run_cleanup, utc_today  # noqa: E402
from core.errors import CleanupError, ConfigError  # noqa: E402
from core.prompt_seeding import ensure_daily_prompts  # noqa: E402
from utils import prom  # noqa: E402
from utils.db import dispose_engine  # noqa: E402

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

root_logger = logging.getLogger()


def _make_json_formatter() -> logging.Formatter:
    return JsonFormatter(
        "{asctime}{levelname}{name}{message}",
        style="{",
        rename_fields={"asctime": "timestamp", "levelname": "level"},
    )


def setup_logging(log_dir: str | None = None) -> None:
    """Configure logging once (safe to call twice)."""
    for handler in root_logger.handlers:
        if getattr(handler, "_cleanup_handler", False):
            return

    root_logger.setLevel(logging.INFO)

    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter(LOG_FORMAT))
    console._cleanup_handler = True  # type: ignore[attr-defined]
    root_logger.addHandler(console)

    directory = Path(log_dir or config.LOG_DIR)
    directory.mkdir(parents=True, exist_ok=True)
    json_fmt = _make_json_formatter()

    file = RotatingFileHandler(
        directory / "cleanup.log",
        maxBytes=5_000_000,
        backupCount=5,
        encoding="utf-8",
    )
    file.setFormatter(json_fmt)
    file._cleanup_handler = True  # type: ignore[attr-defined]
    root_logger.addHandler(file)

    errors = RotatingFileHandler(
        directory / "errors.log",
        maxBytes=2_000_000,
        backupCount=3,
        encoding="utf-8",
    )
    errors.setLevel(logging.ERROR)
    errors.setFormatter(json_fmt)
    errors._cleanup_handler = True  # type: ignore[attr-defined]
    root_logger.addHandler(errors)


logger = logging.getLogger("cleanup.job")


def _positive_int(value: str) -> int:
    n = int(value)
    if n < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1, got {n}")
    return n


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Delete expired daily-prompt submissions of non-premium users.")
    parser.add_argument("--skip-seed", action="store_true", help="Do not seed missing daily prompts after cleanup")
    parser.add_argument("--batch-size", type=_positive_int, default=None, help="Rows per page (max 1000)")
    return parser.parse_args(argv)


async def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    setup_logging()

    try:
        config.validate_config()
    except ConfigError as e:
        logger.critical("Cleanup not started: %s", e)
        return 2

    started = time.monotonic()
    cutoff = utc_today()
    ok = False
    try:
        batch_size = min(1000, args.batch_size) if args.batch_size else None
        await run_cleanup(cutoff_date=cutoff, batch_size=batch_size)
        if config.SEED_DAILY_PROMPTS and not args.skip_seed:
            await ensure_daily_prompts(cutoff)
        ok = True
    except CleanupError:
        logger.exception("Cleanup failed")
    except Exception:
        logger.exception("Cleanup failed with an unexpected error")
    finally:
        prom.run_duration_seconds.set(time.monotonic() - started)
        await dispose_engine()

    if ok:
        prom.last_success_unixtime.set_to_current_time()
    prom.push_metrics()
    return 0 if ok else 1


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
