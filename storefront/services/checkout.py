import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.config import Settings
from storefront.models.orders import Order, OrderItem, OrderStatus
from storefront.models.products import Product
from storefront.schemas.orders import CheckoutRequest, CustomerInfo, MAX_ITEM_QUANTITY
from storefront.services.inventory import InventoryLedger
from storefront.services.orders import OrderService
from storefront.core.exceptions import InsufficientStockError, StorageError, ValidationError

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
# Largest value a Numeric(10, 2) money column holds
MAX_AMOUNT = Decimal("99999999.99")

CUSTOMER_FIELDS = (
    ("name", "name"),
    ("email", "email"),
    ("address", "address"),
    ("city", "city"),
    ("zip_code", "zipCode"),
)

def to_money(value) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)

def format_order_number(order_id: int, prefix: str = "ORD-", width: int = 6) -> str:
    """ORD-000042 for order 42."""
    return f"{prefix}{order_id:0{width}d}"

@dataclass
class PricedLine:
    """A cart entry priced from the catalogue at checkout time."""
    product_id: int
    product_name: str
    price: Decimal
    quantity: int

    @property
    def total(self) -> Decimal:
        return to_money(self.price * self.quantity)

@dataclass
class CheckoutResult:
    order_id: int
    order_number: str
    replayed: bool = False

class OrderCommitCoordinator:
    """
    Places an order as one all-or-nothing transaction.

    Validating: the request is checked and priced from the catalogue; a
    failure raises ValidationError with nothing written.
    Writing: order header, order items and stock decrements run in order
    inside one transaction. Any failure rolls the whole attempt back.
    """

    def __init__(self, db: Session, settings: Settings, ledger: Optional[InventoryLedger] = None):
        self.db = db
        self.settings = settings
        self.ledger = ledger or InventoryLedger(db)

    def place_order(self, checkout: CheckoutRequest, idempotency_key: Optional[str] = None) -> CheckoutResult:
        """
        Validate, write and commit an order.

        Args:
            checkout: Customer details and cart
            idempotency_key: Optional client token; a repeated key returns the
                order already committed under it instead of placing a new one

        Raises:
            ValidationError: Bad customer data, empty cart, bad quantity or unknown product
            InsufficientStockError: A product ran out; nothing was written
            StorageError: The database failed; nothing was written, safe to retry
        """
        try:
            if idempotency_key:
                replay = self._find_replay(idempotency_key)
                if replay:
                    self.db.rollback()
                    return replay
            lines = self._validate(checkout)
            subtotal, tax, total = self._compute_totals(lines)
        except ValidationError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Checkout validation failed on storage: {str(e)}")
            raise StorageError() from e

        self._check_client_totals(checkout, subtotal, tax, total)

        try:
            order = self._insert_order(checkout.customer, subtotal, tax, total, idempotency_key)
            self._insert_items(order, lines)
            order_id = order.id
            self._decrement_stock(lines)
            self.db.commit()
        except InsufficientStockError as e:
            self.db.rollback()
            logger.warning(f"Checkout aborted, insufficient stock for product {e.product_id} (requested {e.requested})")
            raise
        except StorageError:
            self.db.rollback()
            logger.error("Checkout aborted on storage error, rolled back")
            raise
        except IntegrityError as e:
            self.db.rollback()
            if idempotency_key:
                # Lost a race against a concurrent submission with the same key
                replay = self._find_replay(idempotency_key)
                if replay:
                    self.db.rollback()
                    return replay
            logger.error(f"Checkout aborted on integrity error: {str(e)}")
            raise StorageError() from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Checkout aborted on storage error: {str(e)}")
            raise StorageError() from e

        order_number = self._order_number(order_id)
        logger.info(f"Committed order {order_number} ({len(lines)} items, total {total})")
        return CheckoutResult(order_id=order_id, order_number=order_number)

    def _order_number(self, order_id: int) -> str:
        return format_order_number(
            order_id,
            prefix=self.settings.ORDER_NUMBER_PREFIX,
            width=self.settings.ORDER_NUMBER_WIDTH,
        )

    def _find_replay(self, idempotency_key: str) -> Optional[CheckoutResult]:
        order = OrderService(self.db).get_by_idempotency_key(idempotency_key)
        if order is None:
            return None
        logger.info(f"Replaying order {order.id} for idempotency key {idempotency_key}")
        return CheckoutResult(order_id=order.id, order_number=self._order_number(order.id), replayed=True)

    def _validate(self, checkout: CheckoutRequest) -> List[PricedLine]:
        for attr, label in CUSTOMER_FIELDS:
            value = getattr(checkout.customer, attr)
            if value is None or not value.strip():
                raise ValidationError(f"Customer {label} is required")

        if not checkout.items:
            raise ValidationError("Cart is empty")

        for item in checkout.items:
            if item.quantity <= 0:
                raise ValidationError(f"Quantity for product {item.id} must be greater than zero")
            if item.quantity > MAX_ITEM_QUANTITY:
                raise ValidationError(f"Quantity for product {item.id} cannot exceed {MAX_ITEM_QUANTITY}")

        product_ids = {item.id for item in checkout.items}
        products = {
            p.id: p for p in self.db.query(Product).filter(Product.id.in_(product_ids)).all()
        }

        lines = []
        for item in checkout.items:
            product = products.get(item.id)
            if product is None:
                raise ValidationError(f"Product {item.id} not found")
            lines.append(PricedLine(
                product_id=product.id,
                product_name=product.name,
                price=to_money(product.price),
                quantity=item.quantity,
            ))
        return lines

    def _compute_totals(self, lines: List[PricedLine]) -> Tuple[Decimal, Decimal, Decimal]:
        subtotal = to_money(sum((line.total for line in lines), Decimal("0")))
        tax = to_money(subtotal * self.settings.TAX_RATE)
        if subtotal + tax > MAX_AMOUNT:
            raise ValidationError(f"Order total exceeds the maximum of {MAX_AMOUNT}")
        return subtotal, tax, subtotal + tax

    def _check_client_totals(self, checkout: CheckoutRequest, subtotal: Decimal, tax: Decimal, total: Decimal) -> None:
        submitted = (("subtotal", checkout.subtotal, subtotal), ("tax", checkout.tax, tax), ("total", checkout.total, total))
        for name, client_value, server_value in submitted:
            if client_value is not None and client_value != server_value:
                logger.warning(f"Client {name} {client_value} differs from computed {server_value}, using computed value")

    def _insert_order(self, customer: CustomerInfo, subtotal: Decimal, tax: Decimal, total: Decimal,
                      idempotency_key: Optional[str]) -> Order:
        order = Order(
            customer_name=customer.name.strip(),
            customer_email=customer.email.strip(),
            customer_address=customer.address.strip(),
            customer_city=customer.city.strip(),
            customer_zipcode=customer.zip_code.strip(),
            subtotal=subtotal,
            tax=tax,
            total=total,
            status=OrderStatus.PENDING.value,
            idempotency_key=idempotency_key,
        )
        self.db.add(order)
        self.db.flush()
        return order

    def _insert_items(self, order: Order, lines: List[PricedLine]) -> None:
        for line in lines:
            order.items.append(OrderItem(
                product_id=line.product_id,
                product_name=line.product_name,
                price=line.price,
                quantity=line.quantity,
                total=line.total,
            ))
        self.db.flush()

    def _decrement_stock(self, lines: List[PricedLine]) -> None:
        for line in lines:
            if not self.ledger.conditional_decrement(line.product_id, line.quantity):
                raise InsufficientStockError(line.product_id, line.product_name, line.quantity)
