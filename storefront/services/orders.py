import logging
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.exc import SQLAlchemyError
from typing import List, Optional

from storefront.models.orders import Order, OrderStatus
from storefront.core.exceptions import ResourceNotFoundError, StorageError

logger = logging.getLogger(__name__)

class OrderService:
    """Read access to committed orders plus the admin status update."""

    def __init__(self, db: Session):
        self.db = db

    def get_order(self, order_id: int) -> Order:
        """Get order by ID with its items loaded"""
        order = self.db.query(Order)\
            .options(selectinload(Order.items))\
            .filter(Order.id == order_id)\
            .first()
        if not order:
            raise ResourceNotFoundError("Order", order_id)
        return order

    def list_orders(self, skip: int = 0, limit: int = 100) -> List[Order]:
        """Get all orders, most recent first"""
        return self.db.query(Order)\
            .order_by(Order.created_at.desc(), Order.id.desc())\
            .offset(skip)\
            .limit(limit)\
            .all()

    def get_by_idempotency_key(self, idempotency_key: str) -> Optional[Order]:
        return self.db.query(Order).filter(Order.idempotency_key == idempotency_key).first()

    def update_order_status(self, order_id: int, status: OrderStatus) -> Order:
        """
        Set the order status.

        No transition rules are enforced here; which states may follow
        which is decided by whoever drives fulfilment.
        """
        order = self.get_order(order_id)
        order.status = OrderStatus(status).value

        try:
            self.db.add(order)
            self.db.commit()
            self.db.refresh(order)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to update status of order {order_id}: {str(e)}")
            raise StorageError("Failed to update order status") from e
        logger.info(f"Order {order_id} status set to {order.status}")
        return order
