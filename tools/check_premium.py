"""Owner-only helper to see how the cleanup job classifies users.

Usage:
  python tools/check_premium.py <USER_ID> [<USER_ID> ...]

Calls the premium database function the same way the cleanup does (including
the legacy parameter fallback). Premium users' submissions are never deleted.
"""

import asyncio
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


async def main():
    if len(sys.argv) < 2:
        print("Usage: python tools/check_premium.py <USER_ID> [<USER_ID> ...]")
        return 2

    from dotenv import load_dotenv
    load_dotenv()

    from core.entitlements import EntitlementCache, EntitlementResolver
    from core.errors import CleanupError
    from utils.db import dispose_engine

    user_ids = [u.strip() for u in sys.argv[1:] if u.strip()]
    resolver = EntitlementResolver(EntitlementCache())
    try:
        await resolver.resolve(user_ids)
    except CleanupError as e:
        print(f"ERROR: {e}")
        return 1
    finally:
        await dispose_engine()

    for uid in user_ids:
        status = "premium (kept)" if resolver.is_exempt(uid) else "free (deletable)"
        print(f"{uid}: {status}")
    return 0

if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
