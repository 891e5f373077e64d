# backend/utils/locks.py
import threading
import weakref
from contextlib import contextmanager

# One lock per user id. Cart updates and checkout for the same user run
# one at a time inside this process; other users are never blocked.
# Entries vanish once no caller holds a reference to the lock.
_registry_lock = threading.Lock()
_user_locks = weakref.WeakValueDictionary()


def _lock_for(user_id: str) -> threading.Lock:
    with _registry_lock:
        lock = _user_locks.get(user_id)
        if lock is None:
            lock = threading.Lock()
            _user_locks[user_id] = lock
        return lock


@contextmanager
def user_lock(user_id: str):
    lock = _lock_for(user_id)
    with lock:
        yield
