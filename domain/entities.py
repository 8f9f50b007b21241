"""Domain Entities - Aggregates"""
from pydantic import BaseModel, Field
from uuid import UUID, uuid4
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, Iterable, List

from domain.enums import MenuCategory, OrderStatus, PaymentMethod, ReservationStatus
from domain.value_objects import DeliveryAddress, TimeInterval


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Table(BaseModel):
    """Table Entity, owned by the table registry"""

    table_id: UUID = Field(default_factory=uuid4)
    table_number: int = Field(ge=1)
    capacity: int = Field(ge=1)
    is_available: bool = True
    location: Optional[str] = None
    description: Optional[str] = None

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    class Config:
        from_attributes = True

    def can_seat(self, number_of_guests: int) -> bool:
        return number_of_guests <= self.capacity


class Reservation(BaseModel):
    """Reservation Aggregate Root Entity"""

    # Identity
    reservation_id: UUID = Field(default_factory=uuid4)

    # References to other contexts
    user_id: UUID
    table_id: UUID

    # Value Objects
    interval: TimeInterval
    number_of_guests: int = Field(ge=1)

    status: ReservationStatus = ReservationStatus.PENDING
    notes: Optional[str] = None

    # Metadata
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    class Config:
        from_attributes = True

    # ==================== FACTORY METHOD ====================
    @staticmethod
    def create(
        user_id: UUID,
        table_id: UUID,
        interval: TimeInterval,
        number_of_guests: int,
        notes: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> "Reservation":
        """Create new reservation in PENDING status"""
        timestamp = now or utcnow()
        return Reservation(
            user_id=user_id,
            table_id=table_id,
            interval=interval,
            number_of_guests=number_of_guests,
            notes=notes,
            status=ReservationStatus.PENDING,
            created_at=timestamp,
            updated_at=timestamp
        )

    # ==================== QUERY METHODS ====================
    @property
    def start_time(self) -> datetime:
        return self.interval.start

    @property
    def end_time(self) -> datetime:
        return self.interval.end

    def is_active(self, active_statuses: Iterable[ReservationStatus]) -> bool:
        """Check if reservation takes part in conflict detection"""
        return self.status in set(active_statuses)

    def is_owned_by(self, user_id: UUID) -> bool:
        return self.user_id == user_id


class MenuItem(BaseModel):
    """Menu Item Entity; prices are authoritative for orders"""

    menu_item_id: UUID = Field(default_factory=uuid4)
    name: str = Field(min_length=1)
    description: str
    price: Decimal = Field(ge=0)
    category: MenuCategory = MenuCategory.MAIN_COURSE
    is_available: bool = True
    image_url: str = "no-photo.jpg"
    preparation_time: int = Field(default=15, ge=0)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    class Config:
        from_attributes = True


class OrderItem(BaseModel):
    """Line of an order, priced from the menu at order time"""
    menu_item_id: UUID
    name: str
    qty: int = Field(ge=1)
    price: Decimal = Field(ge=0)
    image: str = "no-photo.jpg"

    class Config:
        frozen = True

    def line_total(self) -> Decimal:
        return self.price * self.qty


class Order(BaseModel):
    """Order Aggregate Root Entity"""

    order_id: UUID = Field(default_factory=uuid4)
    user_id: UUID
    items: List[OrderItem] = Field(min_length=1)
    total_price: Decimal = Field(ge=0)
    status: OrderStatus = OrderStatus.PENDING
    payment_method: PaymentMethod

    is_paid: bool = False
    paid_at: Optional[datetime] = None
    delivery_address: Optional[DeliveryAddress] = None
    delivery_fee: Decimal = Field(default=Decimal("0"), ge=0)
    is_delivered: bool = False
    delivered_at: Optional[datetime] = None

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    class Config:
        from_attributes = True

    @staticmethod
    def create(
        user_id: UUID,
        items: List[OrderItem],
        payment_method: PaymentMethod,
        delivery_address: Optional[DeliveryAddress] = None,
        delivery_fee: Decimal = Decimal("0"),
        now: Optional[datetime] = None
    ) -> "Order":
        """Create new order in PENDING status; the total includes the delivery fee"""
        timestamp = now or utcnow()
        subtotal = sum((item.line_total() for item in items), Decimal("0"))
        return Order(
            user_id=user_id,
            items=items,
            total_price=subtotal + delivery_fee,
            payment_method=payment_method,
            delivery_address=delivery_address,
            delivery_fee=delivery_fee,
            created_at=timestamp,
            updated_at=timestamp
        )

    def is_owned_by(self, user_id: UUID) -> bool:
        return self.user_id == user_id

    def with_payment(self, is_paid: bool, now: datetime) -> "Order":
        """Record a payment flag change; paid_at follows the flag"""
        if is_paid == self.is_paid:
            return self
        return self.model_copy(update={"is_paid": is_paid, "paid_at": now if is_paid else None})

    def with_delivery(self, is_delivered: bool, now: datetime) -> "Order":
        if is_delivered == self.is_delivered:
            return self
        return self.model_copy(
            update={"is_delivered": is_delivered, "delivered_at": now if is_delivered else None}
        )


class InventoryItem(BaseModel):
    """Stock level of one ingredient or supply"""

    inventory_item_id: UUID = Field(default_factory=uuid4)
    item_name: str = Field(min_length=1)
    quantity: float = Field(ge=0)
    unit: str = Field(min_length=1)
    low_stock_threshold: float = Field(default=10, ge=0)
    supplier: Optional[str] = None
    last_restock_date: Optional[datetime] = None

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    class Config:
        from_attributes = True

    def is_low_stock(self) -> bool:
        return self.quantity <= self.low_stock_threshold
