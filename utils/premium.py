# utils/premium.py
from __future__ import annotations

import logging
import re

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

import config
from core.errors import EntitlementError, UnknownParameterError
from utils.db import get_sessionmaker

log = logging.getLogger("premium")

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


def _check_identifier(value: str, what: str) -> str:
    v = (value or "").strip()
    if not _IDENTIFIER_RE.match(v):
        raise EntitlementError(f"Invalid {what} {value!r}")
    return v


def is_unknown_parameter_error(message: str, *, function_name: str, param_name: str) -> bool:
    """True when ``message`` reports ``function_name`` called with ``param_name``
    as a signature that does not exist.

    Matches both the Postgres wording
    ``function user_is_premium(p_user_id => unknown) does not exist`` and the
    PostgREST one ``Could not find the function public.user_is_premium(p_user_id)``.
    """
    fn = function_name.split(".")[-1]
    pattern = rf"\b{re.escape(fn)}\s*\([^)]*\b{re.escape(param_name)}\b"
    return re.search(pattern, message or "") is not None


async def _call_function(function_name: str, param_name: str, user_id: str):
    Session = get_sessionmaker()
    async with Session() as session:
        res = await session.execute(
            text(f"SELECT {function_name}({param_name} => :uid)"),
            {"uid": user_id},
        )
        return res.scalar_one()


async def user_is_premium(
    user_id: str,
    *,
    param_name: str | None = None,
    function_name: str | None = None,
) -> bool:
    """Ask the database whether ``user_id`` holds a premium entitlement.

    Raises UnknownParameterError when the function does not accept
    ``param_name`` and EntitlementError for any other failure, including a
    result that is not a boolean.
    """
    fn = _check_identifier(function_name or config.PREMIUM_FUNCTION, "premium function name")
    param = _check_identifier(param_name or config.PREMIUM_PARAM, "premium parameter name")

    try:
        value = await _call_function(fn, param, user_id)
    except SQLAlchemyError as e:
        msg = str(e)
        # str(e) embeds the SQL we sent, which always names fn and param; match the driver message only.
        driver_msg = str(getattr(e, "orig", None) or msg)
        if is_unknown_parameter_error(driver_msg, function_name=fn, param_name=param):
            raise UnknownParameterError(
                f"{fn} does not accept parameter {param!r}: {msg}", param_name=param
            ) from e
        raise EntitlementError(f"{fn} RPC failed for user {user_id}: {msg}") from e

    if not isinstance(value, bool):
        raise EntitlementError(
            f"{fn} RPC returned non-boolean for user {user_id}: {value!r}"
        )
    return value
