from __future__ import annotations

"""Object storage helper (S3/R2 compatible).

Used by the cleanup job to remove submission originals.

Env vars (see config.py):
  S3_BUCKET / R2_BUCKET_NAME (required)
  S3_ACCESS_KEY_ID / R2_ACCESS_KEY_ID (required)
  S3_SECRET_ACCESS_KEY / R2_SECRET_ACCESS_KEY (required)
  S3_ENDPOINT_URL / R2_ENDPOINT (optional, derived from R2_ACCOUNT_ID)
  S3_REGION (optional, default "auto")
"""

import asyncio
import logging
from typing import Iterable

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

import config
from core.errors import ConfigError, ObjectDeleteError

log = logging.getLogger("object_store")

# DeleteObjects accepts at most this many keys per request.
MAX_KEYS_PER_REQUEST = 1000


def _require(value: str | None, name: str) -> str:
    v = (value or "").strip()
    if not v:
        raise ConfigError(f"{name} is missing")
    return v


def _s3_client():
    return boto3.client(
        "s3",
        endpoint_url=config.S3_ENDPOINT_URL,
        region_name=config.S3_REGION,
        aws_access_key_id=_require(config.S3_ACCESS_KEY_ID, "S3_ACCESS_KEY_ID"),
        aws_secret_access_key=_require(config.S3_SECRET_ACCESS_KEY, "S3_SECRET_ACCESS_KEY"),
        # R2 wants path-style addressing.
        config=BotoConfig(s3={"addressing_style": "path"}),
    )


def unique_keys(keys: Iterable[str | None]) -> list[str]:
    """Drop empty keys and duplicates, keeping first-seen order."""
    seen: set[str] = set()
    out: list[str] = []
    for k in keys:
        if not k or k in seen:
            continue
        seen.add(k)
        out.append(k)
    return out


def _format_errors(errors: list[dict]) -> str:
    return "; ".join(
        f"{e.get('Key') or 'unknown'}: {e.get('Message') or e.get('Code') or 'unspecified error'}"
        for e in errors
    )


async def delete_objects(keys: Iterable[str | None]) -> int:
    """Delete ``keys`` from the bucket with a single DeleteObjects call.

    Returns the number of distinct objects removed (0 without a request when
    there is nothing to delete). Any per-key error raises ObjectDeleteError so
    callers never go on to drop rows whose object may still exist.
    """
    key_list = unique_keys(keys)
    if not key_list:
        return 0
    if len(key_list) > MAX_KEYS_PER_REQUEST:
        raise ObjectDeleteError(
            f"Refusing to delete {len(key_list)} objects in one request (max {MAX_KEYS_PER_REQUEST})"
        )

    bucket = _require(config.S3_BUCKET, "S3_BUCKET")

    def _do_delete() -> dict:
        c = _s3_client()
        return c.delete_objects(
            Bucket=bucket,
            Delete={
                "Objects": [{"Key": k} for k in key_list],
                "Quiet": True,
            },
        )

    try:
        response = await asyncio.to_thread(_do_delete)
    except (BotoCoreError, ClientError) as e:
        raise ObjectDeleteError(f"DeleteObjects request failed for bucket {bucket}: {e}") from e

    errors = response.get("Errors") or []
    if errors:
        raise ObjectDeleteError(
            f"Failed to delete some objects from {bucket}: {_format_errors(errors)}",
            failed_keys=[str(e.get("Key") or "") for e in errors],
        )

    # Quiet mode omits successes, so no "Deleted" list means everything went.
    deleted = response.get("Deleted")
    if deleted is not None:
        return len(deleted)
    return len(key_list)
