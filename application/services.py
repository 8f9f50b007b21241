"""Application Services - Business use cases"""
import logging
from uuid import UUID
from datetime import datetime
from decimal import Decimal
from typing import FrozenSet, List, Optional, Sequence, Tuple, Union

from domain.auth import User, UserInDB
from domain.clock import Clock
from domain.conflicts import ConflictDetector
from domain.entities import InventoryItem, MenuItem, Order, OrderItem, Reservation, Table, utcnow
from domain.enums import MenuCategory, OrderStatus, PaymentMethod, ReservationStatus, UserRole
from domain.errors import (
    CapacityExceeded, DuplicateEmail, DuplicateInventoryItem, DuplicateMenuItem, DuplicateTableNumber,
    EmptyOrder, Forbidden, InvalidCredentials, InvalidGuestCount, InvalidQuantity, InvalidStatus,
    InventoryItemNotFound, MenuItemNotFound, MenuItemUnavailable, OrderNotFound, PastReservation,
    ReservationNotFound, SlotConflict, TableNotFound, UserNotFound
)
from domain.lifecycle import active_statuses, enters_active_set, parse_status, set_status
from domain.repositories import (
    InventoryRepository, MenuItemRepository, OrderRepository, ReservationRepository,
    TableRepository, UserRepository
)
from domain.value_objects import DeliveryAddress, TimeInterval
from infrastructure.clock import SystemClock
from infrastructure.locking import TableLockRegistry
from infrastructure.security import get_password_hash, verify_password

logger = logging.getLogger(__name__)


class ReservationService:
    """Scheduling operations for table reservations.

    Conflict detection and the write that follows it run inside the
    table's lock, so two requests for overlapping slots on one table can
    never both commit.
    """

    def __init__(self,
                 repository: ReservationRepository,
                 table_repo: TableRepository,
                 clock: Optional[Clock] = None,
                 locks: Optional[TableLockRegistry] = None,
                 active: Optional[FrozenSet[ReservationStatus]] = None):
        self.repository = repository
        self.table_repo = table_repo
        self.clock = clock or SystemClock()
        self.locks = locks or TableLockRegistry()
        self.active = active if active is not None else active_statuses()
        self.detector = ConflictDetector(repository, self.active)

    # ==================== HELPERS ====================
    async def _load_table(self, table_id: UUID) -> Table:
        table = await self.table_repo.find_by_id(table_id)
        if not table:
            raise TableNotFound("Table not found.")
        return table

    async def _load_reservation(self, reservation_id: UUID) -> Reservation:
        reservation = await self.repository.find_by_id(reservation_id)
        if not reservation:
            raise ReservationNotFound("Reservation not found")
        return reservation

    @staticmethod
    def _check_guest_count(number_of_guests: int) -> None:
        if number_of_guests < 1:
            raise InvalidGuestCount("Number of guests must be at least 1.")

    @staticmethod
    def _check_capacity(table: Table, number_of_guests: int) -> None:
        if not table.can_seat(number_of_guests):
            raise CapacityExceeded(
                f"Table {table.table_number} (Capacity: {table.capacity}) "
                f"cannot accommodate {number_of_guests} guests."
            )

    async def _ensure_slot_free(
        self,
        table: Table,
        interval: TimeInterval,
        exclude_reservation_id: Optional[UUID] = None
    ) -> None:
        conflicts = await self.detector.find_conflicts(table.table_id, interval, exclude_reservation_id)
        if conflicts:
            logger.warning(
                "Slot %s - %s on table %s conflicts with %d reservation(s)",
                interval.start.isoformat(), interval.end.isoformat(), table.table_number, len(conflicts)
            )
            raise SlotConflict(
                f"Table {table.table_number} is already booked during this time slot.",
                [c.reservation_id for c in conflicts]
            )

    # ==================== COMMANDS ====================
    async def create_reservation(
        self,
        user_id: UUID,
        table_id: UUID,
        start_time: datetime,
        end_time: datetime,
        number_of_guests: int,
        notes: Optional[str] = None
    ) -> Reservation:
        """Create new reservation in PENDING status"""
        interval = TimeInterval(start=start_time, end=end_time)
        now = self.clock.now()
        if interval.start < now:
            raise PastReservation("Reservation start time cannot be in the past.")
        self._check_guest_count(number_of_guests)

        table = await self._load_table(table_id)
        self._check_capacity(table, number_of_guests)

        async with self.locks.hold(table.table_id):
            await self._ensure_slot_free(table, interval)
            reservation = Reservation.create(
                user_id=user_id,
                table_id=table.table_id,
                interval=interval,
                number_of_guests=number_of_guests,
                notes=notes,
                now=now
            )
            saved = await self.repository.save(reservation)

        logger.info("Reservation %s created on table %s", saved.reservation_id, table.table_number)
        return saved

    async def update_reservation(
        self,
        reservation_id: UUID,
        table_id: Optional[UUID] = None,
        start_time: Optional[datetime] = None,
        end_time: Optional[datetime] = None,
        number_of_guests: Optional[int] = None,
        status: Union[str, ReservationStatus, None] = None,
        notes: Optional[str] = None
    ) -> Reservation:
        """Apply a partial update; fields left as None keep their stored value"""
        snapshot = await self._load_reservation(reservation_id)
        new_status = parse_status(status) if status is not None else None
        if number_of_guests is not None:
            self._check_guest_count(number_of_guests)
        if table_id is not None:
            # unknown tables never get a lock entry
            await self._load_table(table_id)

        while True:
            target_table_id = table_id or snapshot.table_id
            async with self.locks.hold(snapshot.table_id, target_table_id):
                current = await self._load_reservation(reservation_id)
                if current.table_id != snapshot.table_id:
                    # Moved to another table while we waited for the lock
                    snapshot = current
                    continue
                updated = await self._apply_update(
                    current, table_id, start_time, end_time, number_of_guests, new_status, notes
                )
                saved = await self.repository.update(updated)

            logger.info("Reservation %s updated", saved.reservation_id)
            return saved

    async def _apply_update(
        self,
        current: Reservation,
        table_id: Optional[UUID],
        start_time: Optional[datetime],
        end_time: Optional[datetime],
        number_of_guests: Optional[int],
        new_status: Optional[ReservationStatus],
        notes: Optional[str]
    ) -> Reservation:
        now = self.clock.now()
        effective_table_id = table_id or current.table_id
        effective_guests = number_of_guests if number_of_guests is not None else current.number_of_guests

        interval = current.interval
        interval_changed = False
        if start_time is not None or end_time is not None:
            interval = TimeInterval(
                start=start_time or current.start_time,
                end=end_time or current.end_time
            )
            interval_changed = interval != current.interval
            # Historical Confirmed/Completed records may still be corrected
            if (interval_changed
                    and current.status == ReservationStatus.PENDING
                    and interval.start < now):
                raise PastReservation(
                    "Reservation start time cannot be in the past when updating pending reservation."
                )

        table = None
        if table_id is not None or number_of_guests is not None:
            table = await self._load_table(effective_table_id)
            self._check_capacity(table, effective_guests)

        table_changed = effective_table_id != current.table_id
        reactivated = new_status is not None and enters_active_set(current.status, new_status, self.active)
        if table_changed or interval_changed or reactivated:
            if table is None:
                table = await self._load_table(effective_table_id)
            await self._ensure_slot_free(table, interval, current.reservation_id)

        changes = {
            "table_id": effective_table_id,
            "interval": interval,
            "number_of_guests": effective_guests,
            "updated_at": now,
        }
        if notes is not None:
            changes["notes"] = notes
        updated = current.model_copy(update=changes)
        if new_status is not None:
            updated = set_status(updated, new_status, now)
        return updated

    async def update_reservation_status(
        self,
        reservation_id: UUID,
        status: Union[str, ReservationStatus, None]
    ) -> Reservation:
        """Change only the status of a reservation; unknown ids are reported before bad statuses"""
        await self._load_reservation(reservation_id)
        new_status = parse_status(status)
        return await self.update_reservation(reservation_id, status=new_status)

    async def delete_reservation(self, reservation_id: UUID) -> None:
        """Administrative removal, no conflict re-validation"""
        deleted = await self.repository.delete(reservation_id)
        if not deleted:
            raise ReservationNotFound("Reservation not found")
        logger.info("Reservation %s removed", reservation_id)

    # ==================== QUERIES ====================
    async def get_reservation(self, reservation_id: UUID) -> Reservation:
        """Get reservation by ID"""
        return await self._load_reservation(reservation_id)

    async def get_reservation_for(self, caller: User, reservation_id: UUID) -> Reservation:
        """Get reservation by ID if the caller owns it or is staff/admin"""
        reservation = await self._load_reservation(reservation_id)
        if not caller.is_privileged() and not reservation.is_owned_by(caller.user_id):
            logger.warning("User %s denied access to reservation %s", caller.user_id, reservation_id)
            raise Forbidden("Not authorized to view this reservation")
        return reservation

    async def get_all_reservations(self) -> List[Reservation]:
        """Get all reservations sorted by start time"""
        reservations = await self.repository.find_all()
        return sorted(reservations, key=lambda r: r.start_time)

    async def get_reservations_by_user(self, user_id: UUID) -> List[Reservation]:
        """Get all reservations made by a user sorted by start time"""
        reservations = await self.repository.find_by_user_id(user_id)
        return sorted(reservations, key=lambda r: r.start_time)

    async def get_reservations_by_table(self, table_id: UUID) -> List[Reservation]:
        await self._load_table(table_id)
        reservations = await self.repository.find_by_table_id(table_id)
        return sorted(reservations, key=lambda r: r.start_time)

    async def is_table_free(self, table_id: UUID, start_time: datetime, end_time: datetime) -> bool:
        """Whether a new booking for the interval would currently succeed on the table"""
        interval = TimeInterval(start=start_time, end=end_time)
        table = await self._load_table(table_id)
        return await self.detector.is_slot_free(table.table_id, interval)


class TableService:
    """Service for the table registry"""

    def __init__(self, repository: TableRepository):
        self.repository = repository

    async def create_table(
        self,
        table_number: int,
        capacity: int,
        is_available: bool = True,
        location: Optional[str] = None,
        description: Optional[str] = None
    ) -> Table:
        """Create a table with a unique number"""
        if await self.repository.find_by_number(table_number):
            raise DuplicateTableNumber(f"Table number {table_number} already exists")

        table = Table(
            table_number=table_number,
            capacity=capacity,
            is_available=is_available,
            location=location,
            description=description
        )
        saved = await self.repository.save(table)
        logger.info("Table %s created with capacity %s", saved.table_number, saved.capacity)
        return saved

    async def get_table(self, table_id: UUID) -> Table:
        table = await self.repository.find_by_id(table_id)
        if not table:
            raise TableNotFound("Table not found")
        return table

    async def get_all_tables(self) -> List[Table]:
        tables = await self.repository.find_all()
        return sorted(tables, key=lambda t: t.table_number)

    async def update_table(
        self,
        table_id: UUID,
        table_number: Optional[int] = None,
        capacity: Optional[int] = None,
        is_available: Optional[bool] = None,
        location: Optional[str] = None,
        description: Optional[str] = None
    ) -> Table:
        """Update table details; the number stays unique across tables"""
        table = await self.get_table(table_id)

        if table_number is not None and table_number != table.table_number:
            existing = await self.repository.find_by_number(table_number)
            if existing and existing.table_id != table_id:
                raise DuplicateTableNumber(f"Table number {table_number} already exists for another table")

        changes = {"updated_at": utcnow()}
        for field, value in (
            ("table_number", table_number),
            ("capacity", capacity),
            ("is_available", is_available),
            ("location", location),
            ("description", description),
        ):
            if value is not None:
                changes[field] = value

        updated = Table.model_validate({**table.model_dump(), **changes})
        return await self.repository.update(updated)

    async def delete_table(self, table_id: UUID) -> None:
        deleted = await self.repository.delete(table_id)
        if not deleted:
            raise TableNotFound("Table not found")
        logger.info("Table %s removed", table_id)


class UserService:
    """Service for registration and authentication"""

    def __init__(self, repository: UserRepository):
        self.repository = repository

    async def create_user(
        self,
        name: str,
        email: str,
        password: str,
        role: UserRole = UserRole.CUSTOMER
    ) -> UserInDB:
        """Create an account with a unique email"""
        email = email.strip().lower()
        if await self.repository.find_by_email(email):
            raise DuplicateEmail("User with this email already exists")

        user = UserInDB(
            name=name,
            email=email,
            role=role,
            hashed_password=get_password_hash(password)
        )
        saved = await self.repository.save(user)
        logger.info("User %s registered with role %s", saved.user_id, saved.role.value)
        return saved

    async def register(self, name: str, email: str, password: str) -> UserInDB:
        """Self-service registration always yields a customer account"""
        return await self.create_user(name, email, password, UserRole.CUSTOMER)

    async def authenticate(self, email: str, password: str) -> UserInDB:
        user = await self.repository.find_by_email(email)
        if not user or not verify_password(password, user.hashed_password):
            raise InvalidCredentials("Invalid credentials")
        return user

    async def get_user(self, user_id: UUID) -> UserInDB:
        user = await self.repository.find_by_id(user_id)
        if not user:
            raise UserNotFound("User not found")
        return user

    async def ensure_admin(self, name: str, email: str, password: str) -> UserInDB:
        """Seed the bootstrap administrator unless it already exists"""
        existing = await self.repository.find_by_email(email)
        if existing:
            return existing
        return await self.create_user(name, email, password, UserRole.ADMIN)


class MenuService:
    """Service for the menu; item names are unique"""

    def __init__(self, repository: MenuItemRepository):
        self.repository = repository

    async def _ensure_name_free(self, name: str, menu_item_id: Optional[UUID] = None) -> None:
        existing = await self.repository.find_by_name(name)
        if existing and existing.menu_item_id != menu_item_id:
            raise DuplicateMenuItem("Menu item with this name already exists")

    async def create_menu_item(
        self,
        name: str,
        description: str,
        price: Decimal,
        category: MenuCategory = MenuCategory.MAIN_COURSE,
        is_available: bool = True,
        image_url: Optional[str] = None,
        preparation_time: Optional[int] = None
    ) -> MenuItem:
        name = name.strip()
        await self._ensure_name_free(name)

        fields = {
            "name": name,
            "description": description,
            "price": price,
            "category": category,
            "is_available": is_available,
        }
        if image_url is not None:
            fields["image_url"] = image_url
        if preparation_time is not None:
            fields["preparation_time"] = preparation_time
        saved = await self.repository.save(MenuItem(**fields))
        logger.info("Menu item %s added at %s", saved.name, saved.price)
        return saved

    async def get_menu_item(self, menu_item_id: UUID) -> MenuItem:
        item = await self.repository.find_by_id(menu_item_id)
        if not item:
            raise MenuItemNotFound("Menu item not found")
        return item

    async def get_menu(self) -> List[MenuItem]:
        """All menu items grouped by category, then by name"""
        items = await self.repository.find_all()
        order = list(MenuCategory)
        return sorted(items, key=lambda i: (order.index(i.category), i.name))

    async def update_menu_item(
        self,
        menu_item_id: UUID,
        name: Optional[str] = None,
        description: Optional[str] = None,
        price: Optional[Decimal] = None,
        category: Optional[MenuCategory] = None,
        is_available: Optional[bool] = None,
        image_url: Optional[str] = None,
        preparation_time: Optional[int] = None
    ) -> MenuItem:
        item = await self.get_menu_item(menu_item_id)
        if name is not None:
            name = name.strip()
            if name != item.name:
                await self._ensure_name_free(name, menu_item_id)

        changes = {"updated_at": utcnow()}
        for field, value in (
            ("name", name),
            ("description", description),
            ("price", price),
            ("category", category),
            ("is_available", is_available),
            ("image_url", image_url),
            ("preparation_time", preparation_time),
        ):
            if value is not None:
                changes[field] = value

        updated = MenuItem.model_validate({**item.model_dump(), **changes})
        return await self.repository.update(updated)

    async def delete_menu_item(self, menu_item_id: UUID) -> None:
        deleted = await self.repository.delete(menu_item_id)
        if not deleted:
            raise MenuItemNotFound("Menu item not found")
        logger.info("Menu item %s removed", menu_item_id)


class OrderService:
    """Service for food orders.

    Line prices always come from the menu, never from the client, and the
    total is the sum of the lines plus the delivery fee.
    """

    def __init__(self,
                 repository: OrderRepository,
                 menu_repo: MenuItemRepository,
                 clock: Optional[Clock] = None):
        self.repository = repository
        self.menu_repo = menu_repo
        self.clock = clock or SystemClock()

    async def _load_order(self, order_id: UUID) -> Order:
        order = await self.repository.find_by_id(order_id)
        if not order:
            raise OrderNotFound("Order not found")
        return order

    async def _price_line(self, menu_item_id: UUID, qty: int) -> OrderItem:
        if qty < 1:
            raise InvalidQuantity("Quantity must be at least 1.")
        menu_item = await self.menu_repo.find_by_id(menu_item_id)
        if not menu_item:
            raise MenuItemNotFound(f"Menu item not found: {menu_item_id}")
        if not menu_item.is_available:
            raise MenuItemUnavailable(f"{menu_item.name} is currently not available.")
        return OrderItem(
            menu_item_id=menu_item.menu_item_id,
            name=menu_item.name,
            qty=qty,
            price=menu_item.price,
            image=menu_item.image_url
        )

    async def create_order(
        self,
        user_id: UUID,
        lines: Sequence[Tuple[UUID, int]],
        payment_method: PaymentMethod,
        delivery_address: Optional[DeliveryAddress] = None,
        delivery_fee: Optional[Decimal] = None
    ) -> Order:
        """Place an order from (menu_item_id, qty) pairs"""
        if not lines:
            raise EmptyOrder("No order items")

        items = [await self._price_line(menu_item_id, qty) for menu_item_id, qty in lines]
        order = Order.create(
            user_id=user_id,
            items=items,
            payment_method=payment_method,
            delivery_address=delivery_address,
            delivery_fee=delivery_fee or Decimal("0"),
            now=self.clock.now()
        )
        saved = await self.repository.save(order)
        logger.info("Order %s placed with %d line(s), total %s", saved.order_id, len(items), saved.total_price)
        return saved

    async def update_order_status(
        self,
        order_id: UUID,
        status: Union[str, OrderStatus, None] = None,
        is_paid: Optional[bool] = None,
        is_delivered: Optional[bool] = None
    ) -> Order:
        """Staff bookkeeping: status, payment and delivery flags"""
        order = await self._load_order(order_id)
        now = self.clock.now()

        if status is not None:
            try:
                order = order.model_copy(update={"status": OrderStatus(status)})
            except ValueError:
                allowed = ", ".join(s.value for s in OrderStatus)
                raise InvalidStatus(f"Invalid order status provided: {status!r}. Expected one of: {allowed}")
        if is_paid is not None:
            order = order.with_payment(is_paid, now)
        if is_delivered is not None:
            order = order.with_delivery(is_delivered, now)

        updated = await self.repository.update(order.model_copy(update={"updated_at": now}))
        logger.info("Order %s now %s", updated.order_id, updated.status.value)
        return updated

    async def get_order_for(self, caller: User, order_id: UUID) -> Order:
        """Get order by ID if the caller owns it or is staff/admin"""
        order = await self._load_order(order_id)
        if not caller.is_privileged() and not order.is_owned_by(caller.user_id):
            raise Forbidden("Not authorized to view this order")
        return order

    async def get_orders_by_user(self, user_id: UUID) -> List[Order]:
        """Newest first"""
        orders = await self.repository.find_by_user_id(user_id)
        return sorted(orders, key=lambda o: o.created_at, reverse=True)

    async def get_all_orders(self) -> List[Order]:
        orders = await self.repository.find_all()
        return sorted(orders, key=lambda o: o.created_at, reverse=True)


class InventoryService:
    """Service for stock levels; item names are unique"""

    def __init__(self, repository: InventoryRepository):
        self.repository = repository

    async def _ensure_name_free(self, item_name: str, inventory_item_id: Optional[UUID] = None) -> None:
        existing = await self.repository.find_by_name(item_name)
        if existing and existing.inventory_item_id != inventory_item_id:
            raise DuplicateInventoryItem(f'Inventory item "{item_name}" already exists')

    async def create_item(
        self,
        item_name: str,
        quantity: float,
        unit: str,
        low_stock_threshold: Optional[float] = None,
        supplier: Optional[str] = None,
        last_restock_date: Optional[datetime] = None
    ) -> InventoryItem:
        item_name = item_name.strip()
        await self._ensure_name_free(item_name)

        fields = {
            "item_name": item_name,
            "quantity": quantity,
            "unit": unit.strip(),
            "supplier": supplier,
            "last_restock_date": last_restock_date,
        }
        if low_stock_threshold is not None:
            fields["low_stock_threshold"] = low_stock_threshold
        saved = await self.repository.save(InventoryItem(**fields))
        logger.info("Inventory item %s stocked at %s %s", saved.item_name, saved.quantity, saved.unit)
        return saved

    async def get_item(self, inventory_item_id: UUID) -> InventoryItem:
        item = await self.repository.find_by_id(inventory_item_id)
        if not item:
            raise InventoryItemNotFound("Inventory item not found")
        return item

    async def get_all_items(self) -> List[InventoryItem]:
        items = await self.repository.find_all()
        return sorted(items, key=lambda i: i.item_name)

    async def get_low_stock_items(self) -> List[InventoryItem]:
        """Items at or below their restock threshold"""
        return [i for i in await self.get_all_items() if i.is_low_stock()]

    async def update_item(
        self,
        inventory_item_id: UUID,
        item_name: Optional[str] = None,
        quantity: Optional[float] = None,
        unit: Optional[str] = None,
        low_stock_threshold: Optional[float] = None,
        supplier: Optional[str] = None,
        last_restock_date: Optional[datetime] = None
    ) -> InventoryItem:
        item = await self.get_item(inventory_item_id)
        if item_name is not None:
            item_name = item_name.strip()
            if item_name != item.item_name:
                await self._ensure_name_free(item_name, inventory_item_id)

        changes = {"updated_at": utcnow()}
        for field, value in (
            ("item_name", item_name),
            ("quantity", quantity),
            ("unit", unit),
            ("low_stock_threshold", low_stock_threshold),
            ("supplier", supplier),
            ("last_restock_date", last_restock_date),
        ):
            if value is not None:
                changes[field] = value

        updated = InventoryItem.model_validate({**item.model_dump(), **changes})
        if updated.is_low_stock():
            logger.warning("Inventory item %s is low: %s %s", updated.item_name, updated.quantity, updated.unit)
        return await self.repository.update(updated)

    async def delete_item(self, inventory_item_id: UUID) -> None:
        deleted = await self.repository.delete(inventory_item_id)
        if not deleted:
            raise InventoryItemNotFound("Inventory item not found")
        logger.info("Inventory item %s removed", inventory_item_id)
