from __future__ import annotations
from typing import Iterable, Iterator, List, Optional, Tuple
from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel

# Stored documents and API payloads are camelCase; Python code uses snake_case.
_CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Product(BaseModel):
    """
    One catalog record as written by the catalog import.
    Read-only for the recommendation pipeline.
    """
    tenant_id: str
    id: str
    name: str
    brand: Optional[str] = None
    category: Optional[str] = None
    price: float = 0.0
    is_cannabis: bool = False
    is_available_online: bool = False
    in_stock: int = 0
    thc_percent: Optional[float] = None
    cbd_percent: Optional[float] = None
    strain: Optional[str] = None
    type: Optional[str] = None
    image_url: Optional[str] = None
    shop_url: Optional[str] = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,  # numeric SKUs
        frozen=True,  # immuable = safe
    )

    @model_validator(mode="before")
    @classmethod
    def _legacy_shop_link(cls, data):
        # older imports stored the storefront deep-link as dutchieUrl
        if isinstance(data, dict) and "shopUrl" not in data and "shop_url" not in data and "dutchieUrl" in data:
            data = {**data, "shopUrl": data["dutchieUrl"]}
        return data

    @property
    def is_eligible(self) -> bool:
        return self.is_cannabis is True and self.in_stock > 0 and self.is_available_online is True

    def snapshot(self) -> "ProductSnapshot":
        return ProductSnapshot(
            id=self.id,
            name=self.name,
            brand=self.brand,
            price=self.price,
            thc_percent=self.thc_percent,
            image_url=self.image_url,
            category=self.category,
            strain=self.strain,
            shop_url=self.shop_url,
        )


class ProductSnapshot(BaseModel):
    """What the widget needs to render a product card. No stock or tenant fields."""
    id: str
    name: str
    brand: Optional[str] = None
    price: float
    thc_percent: Optional[float] = None
    image_url: Optional[str] = None
    category: Optional[str] = None
    strain: Optional[str] = None
    shop_url: Optional[str] = None

    model_config = _CAMEL


class Recommendation(BaseModel):
    product: ProductSnapshot
    reason: str = ""

    model_config = _CAMEL


class RecoResult(BaseModel):
    """Pipeline outcome. `degraded` and `discarded` are for logs, not the widget."""
    message: str
    recommendations: List[Recommendation] = []
    suggested_replies: List[str] = []
    degraded: bool = False
    discarded: int = 0
    model_config = {"frozen": True}  # immuable = safe


class CandidateList:
    """
    Request-scoped, immutable list of candidates addressed by 1-based ordinal.

    Ordinal k is position k-1 of this exact list. The same instance must back
    both the prompt and the reconciliation of the answer to that prompt.
    """
    __slots__ = ("_items",)

    def __init__(self, products: Iterable[Product] = ()):
        self._items: Tuple[Product, ...] = tuple(products)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Product]:
        return iter(self._items)

    def __getitem__(self, index):
        return self._items[index]

    def __eq__(self, other) -> bool:
        if isinstance(other, CandidateList):
            return self._items == other._items
        return NotImplemented

    def __repr__(self) -> str:
        return f"CandidateList({[p.id for p in self._items]})"

    @property
    def ids(self) -> list[str]:
        return [p.id for p in self._items]

    def numbered(self) -> Iterator[Tuple[int, Product]]:
        return enumerate(self._items, start=1)

    def resolve(self, ordinal: int) -> Optional[Product]:
        index = ordinal - 1
        if 0 <= index < len(self._items):
            return self._items[index]
        return None

    def resolve_id(self, product_id: str) -> Optional[Product]:
        for p in self._items:
            if p.id == product_id:
                return p
        return None
