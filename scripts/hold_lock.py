"""CLI entrypoint to acquire a key, hold it while sleeping, and release it."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from keylock import LockError, LockHeldError, LockSettings, RedisLockManager, with_token
from keylock.utils.logging import get_logger


logger = get_logger("HoldLock")


async def main() -> int:
    parser = argparse.ArgumentParser(description="Acquire a distributed lock, hold it, then release it.")
    parser.add_argument("key", help="Resource name to lock")
    parser.add_argument("--config", type=Path, default=None, help="Path to lock settings YAML")
    parser.add_argument("--token", default=None, help="Ownership token (generated when omitted)")
    parser.add_argument("--work-seconds", type=float, default=5.0, help="How long to hold the lock")
    parser.add_argument("--renew", action="store_true", help="Renew the lease while holding it")
    args = parser.parse_args()

    settings = LockSettings.from_file(args.config) if args.config else LockSettings.from_env()
    manager = RedisLockManager(settings)
    options = [with_token(args.token)] if args.token else []
    lock = manager.lock(args.key, *options)

    try:
        async with lock.hold(renew=args.renew):
            logger.info("Holding %s (token=%s) for %.1fs", lock.key, lock.token, args.work_seconds)
            try:
                await asyncio.wait_for(lock.lost.wait(), args.work_seconds)
            except asyncio.TimeoutError:
                pass
            else:
                logger.error("Lease on %s was lost; aborting work", lock.key)
                return 2
        logger.info("Released %s", lock.key)
        return 0
    except LockHeldError:
        logger.warning("%s is held by another owner", args.key)
        return 1
    except LockError as exc:
        logger.error("Lock operation failed: %s", exc)
        return 3
    finally:
        await manager.close()


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
