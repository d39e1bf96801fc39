"""Read-only product lookups against the catalog collections."""
import logging
from typing import Optional, Union

from models import Product, PurchaseCatalog

logger = logging.getLogger(__name__)


class ProductNotFoundError(LookupError):
    """Product referenced by a purchase or payment does not exist."""

    def __init__(self, catalog: str, product_id: str):
        self.catalog = catalog
        self.product_id = product_id
        super().__init__(f"Product {product_id} not found in {catalog}")


class ProductCatalog:
    def __init__(self, db):
        self.db = db

    async def get_product(self, catalog: Union[PurchaseCatalog, str], product_id: str) -> Optional[Product]:
        catalog = PurchaseCatalog(catalog)
        doc = await self.db[catalog.value].find_one({"product_id": product_id}, {"_id": 0})
        if not doc:
            logger.error(f"Product with ID {product_id} not found in {catalog.value}.")
            return None
        return Product(**{**doc, "product_id": product_id, "catalog": catalog})

    async def require_product(self, catalog: Union[PurchaseCatalog, str], product_id: str) -> Product:
        product = await self.get_product(catalog, product_id)
        if product is None:
            raise ProductNotFoundError(PurchaseCatalog(catalog).value, product_id)
        return product
