import logging
import threading
from typing import Optional

from cachetools import TTLCache

from api import StoreApi
from catalog import CatalogService
from checkout import CheckoutFlow
from config import Settings, settings as default_settings
from database import ScopedStorage
from session import AuthSession, read_token
from stores import AddressBook, Cart, Wishlist

logger = logging.getLogger(__name__)


class Storefront:
    """State of one shopper's session, built from injected collaborators."""

    def __init__(self, storage, api: StoreApi, catalog: CatalogService, cfg: Settings = default_settings):
        self.storage = storage
        self.cfg = cfg
        self.api = api.with_token(lambda: read_token(storage))
        self.catalog = catalog
        self.cart = Cart(storage)
        self.wishlist = Wishlist(storage)
        self.addresses = AddressBook(storage)
        self.auth = AuthSession(storage, self.api)
        self.checkout: Optional[CheckoutFlow] = None

    def start_checkout(self) -> CheckoutFlow:
        flow = self.checkout
        if flow is None or (flow.confirmed and len(self.cart) > 0):
            email = self.auth.user.email if self.auth.user else None
            flow = self.checkout = CheckoutFlow(self.cart, self.addresses, self.api, email=email, cfg=self.cfg)
        return flow

    def logout(self) -> None:
        self.auth.logout()
        self.checkout = None


class StorefrontRegistry:
    """Live sessions, bounded and expiring when idle.

    State is durable in ``storage``, so an evicted session is rebuilt on its
    next request; only an in-progress checkout is lost.
    """

    def __init__(self, storage, api: StoreApi, catalog: CatalogService, cfg: Settings = default_settings):
        self.storage = storage
        self.api = api
        self.catalog = catalog
        self.cfg = cfg
        self._sessions: TTLCache = TTLCache(maxsize=cfg.SESSION_CACHE_SIZE, ttl=cfg.SESSION_IDLE_SECONDS)
        self._lock = threading.Lock()

    def get(self, session_id: str) -> Storefront:
        with self._lock:
            store = self._sessions.get(session_id)
            if store is None:
                logger.debug("Opening storefront session %s", session_id)
                store = Storefront(ScopedStorage(self.storage, session_id), self.api, self.catalog, self.cfg)
            # re-insert to refresh the idle timer
            self._sessions[session_id] = store
        return store

    def __len__(self) -> int:
        with self._lock:
            self._sessions.expire()
            return len(self._sessions)
