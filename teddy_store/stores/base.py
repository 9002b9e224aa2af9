from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Protocol

from ..schemas.cart import CartRecord
from ..schemas.wishlist import WishlistEntry


class InsertOutcome(str, Enum):
    CREATED = "created"
    DUPLICATE = "duplicate"


@dataclass
class InsertResult:
    outcome: InsertOutcome
    entry: Optional[WishlistEntry] = None


class CartStore(Protocol):
    """Хранилище корзин: одна запись на владельца"""

    async def fetch_one(self, owner: str) -> Optional[CartRecord]:
        ...

    async def upsert(self, owner: str, record: CartRecord) -> None:
        ...

    async def update(self, owner: str, record: CartRecord) -> bool:
        ...

    async def delete(self, owner: str) -> None:
        ...


class WishlistStore(Protocol):
    """Хранилище избранного: уникальность по (владелец, товар)"""

    async def fetch_all(self, owner: str) -> List[WishlistEntry]:
        ...

    async def insert(self, owner: str, product_id: str) -> InsertResult:
        ...

    async def delete(self, owner: str, entry_id: str) -> bool:
        ...
