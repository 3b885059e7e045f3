from __future__ import annotations

import threading
from typing import Optional


def thread_count_check(threshold: int) -> Optional[str]:
    """Return an error message when more than ``threshold`` threads are alive."""
    count = threading.active_count()
    if count > threshold:
        return f"too many threads ({count} > {threshold})"
    return None
