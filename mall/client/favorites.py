from typing import List, Optional

from mall.client.storage import LocalStorage

FAVORITES_KEY = "favorites"


class FavoritesStore:
    """Favourite store ids kept on the device."""

    def __init__(self, storage: Optional[LocalStorage] = None):
        self.storage = storage or LocalStorage()
        stored = self.storage.get_json(FAVORITES_KEY)
        self.favorites: List[str] = [str(store_id) for store_id in stored] if isinstance(stored, list) else []

    def _persist(self):
        self.storage.set_json(FAVORITES_KEY, self.favorites)

    def add_favorite(self, store_id: str) -> None:
        if store_id not in self.favorites:
            self.favorites.append(store_id)
            self._persist()

    def remove_favorite(self, store_id: str) -> None:
        self.favorites = [favorite for favorite in self.favorites if favorite != store_id]
        self._persist()

    def is_favorite(self, store_id: str) -> bool:
        return store_id in self.favorites

    def toggle_favorite(self, store_id: str) -> bool:
        if self.is_favorite(store_id):
            self.remove_favorite(store_id)
            return False
        self.add_favorite(store_id)
        return True
