import logging
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError

from mall.client.storage import LocalStorage
from mall.schemas.common import CamelModel

CART_KEY = "cart"
SAVED_ITEMS_KEY = "savedItems"


class CartItem(CamelModel):
    id: str = ""
    product_id: str
    product_name: str
    product_image: Optional[str] = None
    price: float
    quantity: int
    store_id: str
    store_name: str
    reservation_date: Optional[str] = None
    reservation_time: Optional[str] = None
    reservation_notes: Optional[str] = None
    is_reservation: Optional[bool] = None
    saved_for_later: Optional[bool] = None

    @property
    def is_scheduled_reservation(self) -> bool:
        return bool(self.is_reservation and self.reservation_date and self.reservation_time)

    def identity_key(self) -> str:
        if self.is_scheduled_reservation:
            return f"{self.store_id}-{self.product_id}-{self.reservation_date}-{self.reservation_time}"
        return f"{self.store_id}-{self.product_id}"

    def to_storage(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class CartStore:
    """Device-local cart.

    Non-reservation lines are unique per (productId, storeId) and adding one
    again sums the quantities. Reservations are unique per
    (productId, storeId, date, time) and a repeated one is dropped. Every
    mutation is written back to storage right away.
    """

    def __init__(self, storage: Optional[LocalStorage] = None):
        self.storage = storage or LocalStorage()
        self.items: List[CartItem] = []
        self.saved_items: List[CartItem] = []
        self._load()

    def _load(self):
        stored = self.storage.get_json(CART_KEY)
        if isinstance(stored, list):
            entries = self._parse(stored)
            self.items = [item for item in entries if not item.saved_for_later]
            self.saved_items = [item for item in entries if item.saved_for_later]

        stored_saved = self.storage.get_json(SAVED_ITEMS_KEY)
        if isinstance(stored_saved, list):
            self.saved_items = self._parse(stored_saved)

    @staticmethod
    def _parse(entries: List[Any]) -> List[CartItem]:
        parsed = []
        for entry in entries:
            try:
                parsed.append(CartItem.model_validate(entry))
            except ValidationError as e:
                logging.error(f"CART >>> Skipping unreadable cart entry -> {e.error_count()} error(s)")
        return parsed

    def _persist(self):
        self.storage.set_json(CART_KEY, [item.to_storage() for item in self.items + self.saved_items])
        self.storage.set_json(SAVED_ITEMS_KEY, [item.to_storage() for item in self.saved_items])

    def _find(self, entries: List[CartItem], item_id: str) -> Optional[CartItem]:
        return next((entry for entry in entries if entry.id == item_id), None)

    def add_item(self, item: Union[CartItem, Dict[str, Any]]) -> None:
        if not isinstance(item, CartItem):
            item = CartItem.model_validate(item)

        if item.is_scheduled_reservation:
            for existing in self.items:
                if (
                    existing.product_id == item.product_id
                    and existing.store_id == item.store_id
                    and existing.is_reservation
                    and existing.reservation_date == item.reservation_date
                    and existing.reservation_time == item.reservation_time
                ):
                    return
        else:
            for existing in self.items:
                if existing.product_id == item.product_id and existing.store_id == item.store_id and not existing.is_reservation:
                    existing.quantity += item.quantity
                    self._persist()
                    return

        self.items.append(item.model_copy(update={"id": item.identity_key()}))
        self._persist()

    def remove_item(self, item_id: str) -> None:
        self.items = [item for item in self.items if item.id != item_id]
        self._persist()

    def update_quantity(self, item_id: str, quantity: int) -> None:
        if quantity <= 0:
            self.remove_item(item_id)
            return

        item = self._find(self.items, item_id)
        if item:
            item.quantity = quantity
            self._persist()

    def save_for_later(self, item_id: str) -> None:
        item = self._find(self.items, item_id)
        if not item:
            return

        self.items.remove(item)
        self.saved_items.append(item.model_copy(update={"saved_for_later": True}))
        self._persist()

    def move_to_cart(self, item_id: str) -> None:
        item = self._find(self.saved_items, item_id)
        if not item:
            return

        self.saved_items.remove(item)
        existing = self._find(self.items, item_id)
        if existing is None:
            self.items.append(item.model_copy(update={"saved_for_later": False}))
        elif not existing.is_reservation:
            existing.quantity += item.quantity
        self._persist()

    def clear_cart(self) -> None:
        # Saved-for-later entries survive a cleared cart
        self.items = []
        self._persist()

    def total(self) -> float:
        return sum(item.price * item.quantity for item in self.items)

    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    def to_checkout_items(self) -> List[Dict[str, Any]]:
        return [
            {
                "productId": item.product_id,
                "productName": item.product_name,
                "productImage": item.product_image,
                "quantity": item.quantity,
                "price": item.price,
                "storeId": item.store_id,
                "storeName": item.store_name,
            }
            for item in self.items
        ]
