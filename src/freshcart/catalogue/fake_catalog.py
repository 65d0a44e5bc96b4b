"""In-memory catalog used in development and tests."""

from freshcart.catalogue.port import CatalogPort


class FakeCatalog(CatalogPort):
    def __init__(self) -> None:
        self.stock: dict[str, int] = {}
        self.sale_prices: dict[str, float] = {}
        self.calls: list[dict] = []
        self.should_succeed: bool = True

    def configure(self, should_succeed: bool = True) -> None:
        self.should_succeed = should_succeed

    def set_stock(self, product_id: str, quantity: int) -> None:
        self.stock[product_id] = quantity

    def _record(self, method: str, **kwargs) -> None:
        self.calls.append({"method": method, **kwargs})
        if not self.should_succeed:
            raise RuntimeError(f"Catalog unavailable during {method}")

    def decrement_stock(self, product_id: str, quantity: int) -> None:
        self._record("decrement_stock", product_id=product_id, quantity=quantity)
        self.stock[product_id] = max(self.stock.get(product_id, 0) - quantity, 0)

    def start_sale(self, product_id: str, sale_price: float) -> None:
        self._record("start_sale", product_id=product_id, sale_price=sale_price)
        self.sale_prices[product_id] = sale_price

    def end_sale(self, product_id: str) -> None:
        self._record("end_sale", product_id=product_id)
        self.sale_prices.pop(product_id, None)
