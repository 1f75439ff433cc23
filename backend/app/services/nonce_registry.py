import threading
import uuid

import structlog

logger = structlog.get_logger()


class NonceRegistry:
    """
    In-memory set of outstanding one-time challenges.

    Entries are write-once and removed at most once. Every mutation happens
    under a single lock, so ``consume`` is the only replay defense needed:
    of any number of concurrent calls for the same nonce, exactly one sees it.

    The registry is not durable; its lifetime is the lifetime of the process
    that created it.
    """

    def __init__(self):
        self._outstanding: set[str] = set()
        self._lock = threading.Lock()

    def issue(self) -> str:
        """Generate a fresh nonce, record it as outstanding and return it."""
        while True:
            # uuid4 carries 122 random bits; the loop only guards the set
            nonce = str(uuid.uuid4())
            with self._lock:
                if nonce not in self._outstanding:
                    self._outstanding.add(nonce)
                    size = len(self._outstanding)
                    break

        logger.debug("nonce_registered", outstanding=size)
        return nonce

    def consume(self, nonce: str) -> bool:
        """
        Atomically remove a nonce if it is outstanding.

        Returns True if the nonce was present (and is now gone), False if it
        was never issued or has already been consumed.
        """
        with self._lock:
            try:
                self._outstanding.remove(nonce)
            except KeyError:
                return False
            return True

    def outstanding(self) -> int:
        """Number of issued nonces not yet consumed."""
        with self._lock:
            return len(self._outstanding)

    def clear(self) -> int:
        """Drop every outstanding nonce. Returns how many were dropped."""
        with self._lock:
            dropped = len(self._outstanding)
            self._outstanding.clear()

        logger.info("nonces_cleared", dropped=dropped)
        return dropped
