import logging
import threading
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class SessionDirectory:
    """Live transport handles <-> registered identities.

    One handle per identity: registering an identity again from a new
    connection rebinds it and the old handle becomes stale. Also records
    the single active match each identity is playing, if any.
    """

    def __init__(self, ledger):
        self._ledger = ledger
        self._lock = threading.RLock()
        self._identity_by_handle: Dict[str, str] = {}
        self._handle_by_identity: Dict[str, str] = {}
        self._match_by_identity: Dict[str, str] = {}

    def register(self, handle: str, identity: str):
        account = self._ledger.ensure_account(identity)
        with self._lock:
            previous_identity = self._identity_by_handle.get(handle)
            if previous_identity and previous_identity != identity:
                if self._handle_by_identity.get(previous_identity) == handle:
                    del self._handle_by_identity[previous_identity]
            previous_handle = self._handle_by_identity.get(identity)
            if previous_handle and previous_handle != handle:
                self._identity_by_handle.pop(previous_handle, None)
                logger.info(f"[rebind] identity={identity} old={previous_handle} new={handle}")
            self._identity_by_handle[handle] = identity
            self._handle_by_identity[identity] = handle
        return account

    def lookup(self, handle: str) -> Optional[str]:
        with self._lock:
            return self._identity_by_handle.get(handle)

    def handle_for(self, identity: str) -> Optional[str]:
        with self._lock:
            return self._handle_by_identity.get(identity)

    def unregister(self, handle: str) -> Optional[str]:
        """Drop `handle`; return its identity if the handle was still current."""
        with self._lock:
            identity = self._identity_by_handle.pop(handle, None)
            if identity is None:
                return None
            if self._handle_by_identity.get(identity) != handle:
                return None
            del self._handle_by_identity[identity]
            return identity

    def bind_match(self, identity: str, match_id: str) -> None:
        with self._lock:
            self._match_by_identity[identity] = match_id

    def clear_match(self, identity: str, match_id: Optional[str] = None) -> None:
        with self._lock:
            if match_id is None or self._match_by_identity.get(identity) == match_id:
                self._match_by_identity.pop(identity, None)

    def active_match(self, identity: str) -> Optional[str]:
        with self._lock:
            return self._match_by_identity.get(identity)
