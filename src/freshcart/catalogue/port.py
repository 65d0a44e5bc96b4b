"""Catalog port: the product catalog as seen by the order engine.

The catalog itself (products, categories, pricing pages) lives elsewhere.
The engine only tells it when stock leaves the shelf and when a scheduled
sale price starts or stops applying.
"""

from abc import ABC, abstractmethod


class CatalogPort(ABC):
    @abstractmethod
    def decrement_stock(self, product_id: str, quantity: int) -> None:
        """Remove ``quantity`` units of a product from sellable stock."""
        ...

    @abstractmethod
    def start_sale(self, product_id: str, sale_price: float) -> None: ...

    @abstractmethod
    def end_sale(self, product_id: str) -> None: ...
