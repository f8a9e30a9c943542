import logging
from typing import Dict, List, Optional

from backends import StoreBackend
from errors import FetchError
from schemas import Product

logger = logging.getLogger(__name__)

ALL_CATEGORIES = "All"


class CatalogStore:
    """Products fetched from the store backend.

    The collection is replaced wholesale on every successful load; product
    objects from an earlier load must not be held on to.
    """

    def __init__(self, backend: StoreBackend):
        self._backend = backend
        self._products: List[Product] = []
        self._by_id: Dict[int, Product] = {}
        self.loaded = False
        self.load_error: Optional[str] = None

    @property
    def products(self) -> List[Product]:
        return list(self._products)

    def load(self) -> List[Product]:
        """Fetch and replace the catalog.

        On failure the current products are kept (empty on the first load),
        ``load_error`` is set and FetchError is re-raised.
        """
        try:
            products = self._backend.fetch_products()
        except FetchError as e:
            self.load_error = e.reason
            if self.loaded:
                logger.warning("Catalog refresh failed, keeping %s products: %s",
                               len(self._products), e.reason)
            else:
                logger.error("Initial catalog load failed: %s", e.reason)
            raise

        self._products = list(products)
        self._by_id = {p.id: p for p in self._products}
        self.loaded = True
        self.load_error = None
        logger.info("Loaded %s products", len(self._products))
        return self.products

    def get(self, product_id: int) -> Optional[Product]:
        return self._by_id.get(product_id)

    def stock_of(self, product_id: int) -> int:
        # unknown ids count as sold out
        product = self._by_id.get(product_id)
        return product.stock_quantity if product else 0

    def categories(self) -> List[str]:
        seen: List[str] = []
        for p in self._products:
            if p.category not in seen:
                seen.append(p.category)
        return [ALL_CATEGORIES] + seen

    def search(self, query: str = "", category: str = ALL_CATEGORIES) -> List[Product]:
        """Case-insensitive match on name or category, then category filter."""
        needle = (query or "").lower()
        matches = [
            p for p in self._products
            if needle in p.name.lower() or needle in p.category.lower()
        ]
        if category and category != ALL_CATEGORIES:
            matches = [p for p in matches if p.category == category]
        return matches
