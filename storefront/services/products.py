import logging
from sqlalchemy.orm import Session
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from typing import List, Optional

from storefront.config import Settings
from storefront.models.products import Product
from storefront.schemas.products import ProductCreate, ProductUpdate, StockFilter
from storefront.services.inventory import InventoryLedger
from storefront.core.exceptions import ResourceNotFoundError, StorageError

logger = logging.getLogger(__name__)

class ProductService:
    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.settings = settings

    def list_products(self, stock_filter: Optional[StockFilter] = None) -> List[Product]:
        """
        List the catalogue.

        - in_stock: stock > 0, by name
        - low_stock: 0 < stock <= LOW_STOCK_THRESHOLD, by stock then name
        - out_of_stock: stock == 0, by name
        - no filter: everything, newest first
        """
        query = self.db.query(Product)

        if stock_filter == StockFilter.IN_STOCK:
            query = query.filter(Product.stock > 0).order_by(Product.name)
        elif stock_filter == StockFilter.LOW_STOCK:
            query = query.filter(
                Product.stock > 0,
                Product.stock <= self.settings.LOW_STOCK_THRESHOLD
            ).order_by(Product.stock, Product.name)
        elif stock_filter == StockFilter.OUT_OF_STOCK:
            query = query.filter(Product.stock == 0).order_by(Product.name)
        else:
            query = query.order_by(Product.created_at.desc(), Product.id.desc())

        return query.all()

    def search_products(self, term: str) -> List[Product]:
        """Case-insensitive substring match on name or description"""
        search_term = f"%{term.strip()}%"
        return self.db.query(Product)\
            .filter(or_(
                Product.name.ilike(search_term),
                Product.description.ilike(search_term)
            ))\
            .order_by(Product.name)\
            .all()

    def get_product(self, product_id: int) -> Product:
        product = self.db.query(Product).filter(Product.id == product_id).first()
        if not product:
            raise ResourceNotFoundError("Product", product_id)
        return product

    def create_product(self, product_data: ProductCreate) -> Product:
        values = product_data.model_dump()
        if not values.get("image"):
            values["image"] = self.settings.DEFAULT_PRODUCT_IMAGE

        db_product = Product(**values)
        self._save(db_product)
        logger.info(f"Created product {db_product.id} ({db_product.name})")
        return db_product

    def update_product(self, product_id: int, product_data: ProductUpdate) -> Product:
        db_product = self.get_product(product_id)
        for key, value in product_data.model_dump().items():
            setattr(db_product, key, value)
        if not db_product.image:
            db_product.image = self.settings.DEFAULT_PRODUCT_IMAGE
        self._save(db_product)
        return db_product

    def delete_product(self, product_id: int) -> None:
        db_product = self.get_product(product_id)
        try:
            self.db.delete(db_product)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(f"Failed to delete product {product_id}") from e
        logger.info(f"Deleted product {product_id}")

    def restock(self, product_id: int, quantity: int) -> Product:
        """Add units back to stock through the inventory ledger"""
        self.get_product(product_id)
        try:
            InventoryLedger(self.db).increment(product_id, quantity)
            self.db.commit()
        except StorageError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(f"Failed to restock product {product_id}") from e
        logger.info(f"Restocked product {product_id} with {quantity} units")
        return self.get_product(product_id)

    def _save(self, db_product: Product) -> None:
        try:
            self.db.add(db_product)
            self.db.commit()
            self.db.refresh(db_product)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to save product: {str(e)}")
            raise StorageError("Failed to save product") from e
