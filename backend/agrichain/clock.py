"""Ledger time source."""

import time


def timestamp() -> int:
    """Return the current ledger timestamp in whole epoch seconds."""

    return int(time.time())
