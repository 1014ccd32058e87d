"""
BundleStore contract and the in-memory implementation.

A store holds at most one CredentialBundle per owner. upsert() is the only
write path besides delete(), and it replaces the owner's previous bundle as
one unit: no reader ever sees the old access secret paired with the new
refresh secret, or an owner with zero bundles mid-replace.
"""
import threading
from abc import ABC, abstractmethod
from typing import Optional

from .types import CredentialBundle


class BundleStore(ABC):
    """Persistence contract consumed by the token core."""

    @abstractmethod
    def upsert(self, owner_id: int, bundle: CredentialBundle) -> None:
        """Atomically replace any existing bundle for owner_id with bundle."""

    @abstractmethod
    def find_by_access_secret(self, secret: str) -> Optional[CredentialBundle]:
        """Return the bundle (carrying its owner_id) or None."""

    @abstractmethod
    def find_by_refresh_secret(self, secret: str) -> Optional[CredentialBundle]:
        """Return the bundle (carrying its owner_id) or None."""

    @abstractmethod
    def delete(self, owner_id: int) -> bool:
        """Remove the owner's bundle. Idempotent; True if one existed."""

    @abstractmethod
    def get_for_owner(self, owner_id: int) -> Optional[CredentialBundle]:
        """Return the owner's current bundle, if any."""


class InMemoryBundleStore(BundleStore):
    """Dict-backed store guarded by a single lock.

    Used by tests and by single-process deployments that can afford to lose
    sessions on restart.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._by_owner: dict[int, CredentialBundle] = {}
        self._by_access: dict[str, CredentialBundle] = {}
        self._by_refresh: dict[str, CredentialBundle] = {}

    def upsert(self, owner_id: int, bundle: CredentialBundle) -> None:
        if bundle.owner_id != owner_id:
            raise ValueError("bundle owner does not match owner_id")
        with self._lock:
            self._remove_locked(owner_id)
            self._by_owner[owner_id] = bundle
            self._by_access[bundle.access_secret] = bundle
            self._by_refresh[bundle.refresh_secret] = bundle

    def find_by_access_secret(self, secret: str) -> Optional[CredentialBundle]:
        with self._lock:
            return self._by_access.get(secret)

    def find_by_refresh_secret(self, secret: str) -> Optional[CredentialBundle]:
        with self._lock:
            return self._by_refresh.get(secret)

    def delete(self, owner_id: int) -> bool:
        with self._lock:
            return self._remove_locked(owner_id)

    def get_for_owner(self, owner_id: int) -> Optional[CredentialBundle]:
        with self._lock:
            return self._by_owner.get(owner_id)

    def _remove_locked(self, owner_id: int) -> bool:
        old = self._by_owner.pop(owner_id, None)
        if old is None:
            return False
        self._by_access.pop(old.access_secret, None)
        self._by_refresh.pop(old.refresh_secret, None)
        return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._by_owner)
