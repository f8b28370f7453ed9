"""
JSON-backed item/user directory for the trade-offer exchange.

The authoritative user and item store lives outside this system (user
registration, game CRUD, password handling). The offer service only needs
two lookups from it: who owns an item, and how to address a user.

Design decisions:
- Read fixtures lazily from JSON files (users.json, items.json)
- Lookups raise NotFoundError instead of returning None, so the offer
  service can let them propagate as part of its error taxonomy
- Writes (add_user, add_item) update in-memory state only;
  they exist for demos and tests
"""

import json
import logging
import threading
from pathlib import Path
from typing import Optional

from exchange.errors import NotFoundError
from exchange.models import Item, User

logger = logging.getLogger("directory")


class Directory:
    """
    Directory of users and the items they own.

    In production each of these would be a query against the users/games
    tables; here both are loaded from fixtures on first use.
    """

    def __init__(self, data_dir: Optional[Path] = None):
        """
        Initialize the directory.

        Args:
            data_dir: Path to the directory containing JSON fixtures.
                     Defaults to the fixtures shipped in exchange/data.
        """
        if data_dir is None:
            data_dir = Path(__file__).parent / "data"

        self.data_dir = Path(data_dir)

        self._users: Optional[dict[str, User]] = None
        self._items: Optional[dict[str, Item]] = None
        self._load_lock = threading.Lock()

    # =========================================================================
    # Data Loading (lazy)
    # =========================================================================

    def _load_json(self, filename: str) -> list[dict]:
        """Load a JSON fixture file; a missing file is an empty table."""
        filepath = self.data_dir / filename
        if not filepath.exists():
            logger.warning(f"Fixture not found: {filepath}")
            return []
        with open(filepath, "r", encoding="utf-8") as f:
            return json.load(f)

    def _ensure_loaded(self) -> None:
        if self._users is not None and self._items is not None:
            return
        with self._load_lock:
            if self._users is None:
                self._users = {u["id"]: User(**u) for u in self._load_json("users.json")}
            if self._items is None:
                self._items = {i["id"]: Item(**i) for i in self._load_json("items.json")}

    # =========================================================================
    # Lookups
    # =========================================================================

    def get_user(self, user_id: str) -> User:
        """Get a user by ID, raising NotFoundError if absent."""
        self._ensure_loaded()
        user = self._users.get(user_id)
        if user is None:
            raise NotFoundError(f"User not found: {user_id}")
        return user

    def get_item(self, item_id: str) -> Item:
        """Get an item by ID, raising NotFoundError if absent."""
        self._ensure_loaded()
        item = self._items.get(item_id)
        if item is None:
            raise NotFoundError(f"Item not found: {item_id}")
        return item

    def get_users(self) -> list[User]:
        self._ensure_loaded()
        return list(self._users.values())

    def get_items(self) -> list[Item]:
        self._ensure_loaded()
        return list(self._items.values())

    def get_items_owned_by(self, owner_id: str) -> list[Item]:
        """All items currently owned by a user."""
        self._ensure_loaded()
        return [i for i in self._items.values() if i.owner_id == owner_id]

    # =========================================================================
    # In-memory writes (demos and tests)
    # =========================================================================

    def add_user(self, user: User) -> User:
        self._ensure_loaded()
        self._users[user.id] = user
        return user

    def add_item(self, item: Item) -> Item:
        self._ensure_loaded()
        self._items[item.id] = item
        return item

    def reload(self) -> None:
        """Force reload from the fixture files."""
        self._users = None
        self._items = None
