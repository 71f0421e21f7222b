"""
Per-key mutual exclusion.

Balance mutations are check-then-write. Row locks (select_for_update)
serialize them on databases that support it; these process-local locks
serialize them everywhere else, including SQLite.

Usage:
    with exclusive(account_key("CUST-001"), reward_key("RWD-001")):
        with transaction.atomic():
            ...
"""

import threading
from contextlib import ExitStack, contextmanager

_registry: dict[str, threading.Lock] = {}
_registry_guard = threading.Lock()


def account_key(customer_code: str) -> str:
    return f"account:{customer_code}"


def reward_key(reward_code: str) -> str:
    return f"reward:{reward_code}"


def redemption_key(redemption_code: str) -> str:
    return f"redemption:{redemption_code}"


def _lock_for(key: str) -> threading.Lock:
    with _registry_guard:
        lock = _registry.get(key)
        if lock is None:
            lock = _registry[key] = threading.Lock()
        return lock


@contextmanager
def exclusive(*keys: str):
    """
    Hold the locks for all keys for the duration of the block.

    Keys are deduplicated and acquired in sorted order so that two callers
    asking for overlapping key sets cannot deadlock.
    """
    with ExitStack() as stack:
        for key in sorted(set(keys)):
            stack.enter_context(_lock_for(key))
        yield
