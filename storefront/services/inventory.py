import logging
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.models.products import Product
from storefront.core.exceptions import ResourceNotFoundError, StorageError

logger = logging.getLogger(__name__)

class InventoryLedger:
    """
    The only code allowed to change Product.stock outside admin edits.

    Every mutation is a single UPDATE whose predicate is evaluated by the
    database, so concurrent callers cannot both spend the last unit. The
    ledger never commits; the caller owns the transaction.
    """

    def __init__(self, db: Session):
        self.db = db

    def conditional_decrement(self, product_id: int, quantity: int) -> bool:
        """
        Subtract quantity from stock only if at least that much is available.

        Returns False when stock is insufficient (nothing is changed).

        Raises:
            ValueError: If quantity is not positive
            StorageError: If the product does not exist or the database fails
        """
        if quantity <= 0:
            raise ValueError(f"quantity must be positive, got {quantity}")

        stmt = (
            update(Product)
            .where(Product.id == product_id, Product.stock >= quantity)
            .values(stock=Product.stock - quantity)
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.db.execute(stmt)
            if result.rowcount == 1:
                return True
            exists = self.db.execute(
                select(Product.id).where(Product.id == product_id)
            ).first()
        except SQLAlchemyError as e:
            logger.error(f"Stock decrement failed for product {product_id}: {str(e)}")
            raise StorageError(f"Failed to update stock for product {product_id}") from e

        if exists is None:
            raise StorageError(f"Product {product_id} does not exist")
        return False

    def increment(self, product_id: int, quantity: int) -> None:
        """Add quantity back to stock unconditionally."""
        if quantity <= 0:
            raise ValueError(f"quantity must be positive, got {quantity}")

        stmt = (
            update(Product)
            .where(Product.id == product_id)
            .values(stock=Product.stock + quantity)
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.db.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(f"Stock increment failed for product {product_id}: {str(e)}")
            raise StorageError(f"Failed to update stock for product {product_id}") from e

        if result.rowcount == 0:
            raise StorageError(f"Product {product_id} does not exist")

    def get_available(self, product_id: int) -> int:
        """
        Current stock, for display only.
        The value may be stale by the time a decrement runs.
        """
        try:
            stock = self.db.execute(
                select(Product.stock).where(Product.id == product_id)
            ).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read stock for product {product_id}") from e

        if stock is None:
            raise ResourceNotFoundError("Product", product_id)
        return stock
