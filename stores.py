"""
Session state containers: cart, wishlist and address book.

Every mutation re-serialises the whole collection to storage under the
store's key and then notifies subscribers. There is no debouncing; the last
write wins.
"""
import json
import logging
from typing import Callable, Generic, List, Optional, Tuple, Type, TypeVar
from uuid import uuid4

from pydantic import BaseModel

from schemas import Address, AddressIn, CartItem, Product

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

REQUIRED_ADDRESS_FIELDS = ("name", "phone", "address", "city", "state", "pincode")


class PersistedStore(Generic[T]):
    key: str = ""
    model: Type[T]

    def __init__(self, storage, key: Optional[str] = None):
        self.storage = storage
        if key:
            self.key = key
        self._listeners: List[Callable] = []
        self._items: List[T] = self._load()

    def _load(self) -> List[T]:
        raw = self.storage.get(self.key)
        if raw is None:
            return []
        try:
            return [self.model.model_validate(x) for x in json.loads(raw)]
        except (ValueError, TypeError) as e:
            logger.warning("Discarding unreadable %r from storage: %s", self.key, e)
            return []

    def _commit(self) -> None:
        self.storage.set(self.key, json.dumps([x.model_dump(mode="json") for x in self._items]))
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def subscribe(self, listener: Callable) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @property
    def items(self) -> List[T]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def clear(self) -> None:
        self._items = []
        self.storage.delete(self.key)
        self._notify()


class Cart(PersistedStore[CartItem]):
    key = "cart"
    model = CartItem

    def _find(self, product_id: int) -> Optional[CartItem]:
        return next((i for i in self._items if i.product.id == product_id), None)

    def get(self, product_id: int) -> Optional[CartItem]:
        return self._find(product_id)

    def __contains__(self, product_id: int) -> bool:
        return self._find(product_id) is not None

    def add(self, product: Product, quantity: int = 1) -> CartItem:
        if quantity < 1:
            raise ValueError("quantity must be a positive integer")
        item = self._find(product.id)
        if item is None:
            item = CartItem(product=product, quantity=quantity)
            self._items.append(item)
        else:
            item.quantity += quantity
        self._commit()
        return item

    def remove(self, product_id: int) -> None:
        item = self._find(product_id)
        if item is None:
            return
        self._items.remove(item)
        self._commit()

    def set_quantity(self, product_id: int, quantity: int) -> None:
        if quantity <= 0:
            self.remove(product_id)
            return
        item = self._find(product_id)
        if item is None:
            return
        item.quantity = quantity
        self._commit()

    @property
    def item_count(self) -> int:
        return sum(i.quantity for i in self._items)

    @property
    def subtotal(self) -> float:
        return sum(i.line_total for i in self._items)


class Wishlist(PersistedStore[Product]):
    key = "wishlist"
    model = Product

    def is_member(self, product_id: int) -> bool:
        return any(p.id == product_id for p in self._items)

    def add(self, product: Product) -> None:
        if self.is_member(product.id):
            return
        self._items.append(product)
        self._commit()

    def remove(self, product_id: int) -> None:
        if not self.is_member(product_id):
            return
        self._items = [p for p in self._items if p.id != product_id]
        self._commit()

    @property
    def item_count(self) -> int:
        return len(self._items)


class AddressBook(PersistedStore[Address]):
    key = "addresses"
    model = Address

    def get(self, address_id: str) -> Optional[Address]:
        return next((a for a in self._items if a.id == address_id), None)

    @property
    def default(self) -> Optional[Address]:
        return next((a for a in self._items if a.is_default), None)

    def add(self, data: AddressIn, make_default: bool = False) -> Tuple[Optional[Address], Optional[str]]:
        """Returns ``(address, None)`` or ``(None, message)`` when a field is missing."""
        if any(not getattr(data, f).strip() for f in REQUIRED_ADDRESS_FIELDS):
            return None, "Please fill all address fields"
        address = Address(id=uuid4().hex[:12], is_default=not self._items, **data.model_dump())
        self._items.append(address)
        if make_default:
            self._set_default(address.id)
        self._commit()
        return address, None

    def remove(self, address_id: str) -> None:
        address = self.get(address_id)
        if address is None:
            return
        self._items.remove(address)
        if address.is_default and self._items:
            self._items[0].is_default = True
        self._commit()

    def _set_default(self, address_id: str) -> None:
        for a in self._items:
            a.is_default = a.id == address_id

    def set_default(self, address_id: str) -> bool:
        if self.get(address_id) is None:
            return False
        self._set_default(address_id)
        self._commit()
        return True
