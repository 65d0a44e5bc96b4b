"""Catalog adapter factory. FakeCatalog unless another adapter is installed."""

from freshcart.catalogue.fake_catalog import FakeCatalog
from freshcart.catalogue.port import CatalogPort

_current_catalog: CatalogPort | None = None


def get_catalog() -> CatalogPort:
    global _current_catalog
    if _current_catalog is None:
        _current_catalog = FakeCatalog()
    return _current_catalog


def set_catalog(catalog: CatalogPort) -> None:
    global _current_catalog
    _current_catalog = catalog


def reset_catalog() -> None:
    global _current_catalog
    _current_catalog = None
