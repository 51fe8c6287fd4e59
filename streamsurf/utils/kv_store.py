"""
➡️ But : Stockage clé → valeur avec expiration (codes OTP de réinitialisation).

KeyValueStore : interface minimale put / get / delete.
InMemoryKeyValueStore : implémentation process-locale (perdue au redémarrage, non partagée
entre instances). Pour un déploiement multi-instances, fournir une implémentation
adossée à un cache partagé et l'injecter à la place.
"""

import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional, Protocol, Tuple


class KeyValueStore(Protocol):
    def put(self, key: str, value: str, ttl: timedelta) -> None: ...

    def get(self, key: str) -> Optional[str]: ...

    def delete(self, key: str) -> None: ...


class InMemoryKeyValueStore:
    """Dictionnaire protégé par un verrou ; l'expiration est vérifiée à la lecture."""

    def __init__(self, *, now_fn: Callable[[], datetime] = lambda: datetime.now(timezone.utc)):
        self._items: Dict[str, Tuple[str, datetime]] = {}
        self._lock = threading.Lock()
        self.now_fn = now_fn

    def put(self, key: str, value: str, ttl: timedelta) -> None:
        with self._lock:
            self._items[key] = (value, self.now_fn() + ttl)

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            item = self._items.get(key)
            if item is None:
                return None
            value, expires_at = item
            if self.now_fn() >= expires_at:
                del self._items[key]
                return None
            return value

    def delete(self, key: str) -> None:
        with self._lock:
            self._items.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
