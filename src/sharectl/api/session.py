import threading
from typing import Optional

from sharectl.shares.manager import ShareManager

_manager: Optional[ShareManager] = None

# Endpoints run in a thread pool; every use of the shared manager holds this.
session_lock = threading.Lock()


def get_share_manager() -> ShareManager:
    """The server's share session, loaded from the config files on first use."""
    global _manager
    with session_lock:
        if _manager is None:
            manager = ShareManager()
            manager.load()
            _manager = manager
        return _manager
