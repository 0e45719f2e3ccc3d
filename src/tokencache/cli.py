#!/usr/bin/env python3
"""
Cache maintenance commands.

Meant for shared backends (disk, memcached), e.g. from a deploy hook that
has to drop every cached page of a site in one step.

Usage:
    python -m tokencache.cli [--config PATH] invalidate GROUP
    python -m tokencache.cli [--config PATH] delete KEY
    python -m tokencache.cli [--config PATH] get KEY
"""

from __future__ import annotations

import logging
import sys
from typing import List, Optional

from .config import build_cache, load_config
from .store import StoreError

logger = logging.getLogger(__name__)

COMMANDS = ("invalidate", "delete", "get")
USAGE = "usage: python -m tokencache.cli [--config PATH] {invalidate GROUP | delete KEY | get KEY}"

_MISSING = object()


def run(command: str, target: str, config_path: str) -> int:
    cache = build_cache(load_config(config_path))

    if command == "invalidate":
        # failures are logged by the group engine
        ok = cache.invalidate_group(target)
    else:
        try:
            if command == "get":
                value = cache.get(target, _MISSING)
                if value is _MISSING:
                    logger.info(f"{target}: not cached")
                    return 1
                print(repr(value))
                return 0
            ok = cache.delete(target)
        except StoreError as e:
            logger.error(f"{command} {target} failed: {e}")
            return 1

    if ok:
        logger.info(f"{command} {target}: done")
        return 0
    logger.error(f"{command} {target}: store reported failure")
    return 1


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for manual or hook invocation."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )
    args = list(sys.argv[1:] if argv is None else argv)

    config_path = "config/tokencache.defaults.yml"
    if len(args) >= 2 and args[0] == "--config":
        config_path = args[1]
        args = args[2:]

    if len(args) != 2 or args[0] not in COMMANDS:
        print(USAGE, file=sys.stderr)
        return 2

    try:
        return run(args[0], args[1], config_path)
    except (FileNotFoundError, ValueError) as e:
        logger.error(str(e))
        return 2


if __name__ == "__main__":
    sys.exit(main())
