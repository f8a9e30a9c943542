import logging
from typing import Dict, List

from catalog import CatalogStore
from errors import LineNotFound, OutOfStock
from schemas import CartLine, CartTotals

logger = logging.getLogger(__name__)


class CartStore:
    """Line items for the browsing session.

    Every increment is checked against the catalog's stock before it is
    applied, so ``quantity(id) <= stock_of(id)`` holds after each mutation.
    Lines never sit at quantity zero.
    """

    def __init__(self, catalog: CatalogStore):
        self._catalog = catalog
        self._lines: Dict[int, CartLine] = {}

    def lines(self) -> List[CartLine]:
        return list(self._lines.values())

    def is_empty(self) -> bool:
        return not self._lines

    def quantity(self, product_id: int) -> int:
        line = self._lines.get(product_id)
        return line.quantity if line else 0

    def available_stock(self, product_id: int) -> int:
        return self._catalog.stock_of(product_id) - self.quantity(product_id)

    def add(self, product_id: int) -> CartLine:
        """Add one unit, creating the line if needed.

        Raises:
            OutOfStock: nothing left to add; the cart is unchanged.
        """
        product = self._catalog.get(product_id)
        if self.available_stock(product_id) <= 0:
            raise OutOfStock(product_id, product.name if product else None)

        line = self._lines.get(product_id)
        if line is None:
            line = CartLine(
                id=product.id,
                name=product.name,
                category=product.category,
                price=product.price,
                quantity=1,
            )
            self._lines[product_id] = line
        else:
            line.quantity += 1
        logger.debug("Cart add %s -> %s", product_id, line.quantity)
        return line

    def change_quantity(self, product_id: int, delta: int) -> None:
        """Adjust an existing line by ``delta``.

        Raises:
            LineNotFound: the product is not in the cart.
            OutOfStock: a positive delta exceeds what is still available.
        """
        line = self._lines.get(product_id)
        if line is None:
            raise LineNotFound(product_id)
        if delta == 0:
            return
        if delta > 0:
            available = self.available_stock(product_id)
            if available <= 0 or available < delta:
                raise OutOfStock(product_id, line.name)
            line.quantity += delta
            return

        new_quantity = line.quantity + delta
        if new_quantity <= 0:
            del self._lines[product_id]
        else:
            line.quantity = new_quantity

    def remove(self, product_id: int) -> None:
        self._lines.pop(product_id, None)

    def clear(self) -> None:
        self._lines = {}

    def totals(self) -> CartTotals:
        return CartTotals(
            subtotal=sum(line.line_total for line in self._lines.values()),
            count=sum(line.quantity for line in self._lines.values()),
        )
