"""In-Memory Repository Implementations"""
from typing import Optional, List, Dict, Iterable
from uuid import UUID

from domain.auth import UserInDB
from domain.entities import InventoryItem, MenuItem, Order, Reservation, Table
from domain.enums import ReservationStatus
from domain.errors import (
    InventoryItemNotFound, MenuItemNotFound, OrderNotFound, ReservationNotFound, TableNotFound
)
from domain.repositories import (
    InventoryRepository, MenuItemRepository, OrderRepository, ReservationRepository,
    TableRepository, UserRepository
)
from domain.value_objects import TimeInterval


class InMemoryReservationRepository(ReservationRepository):
    """In-memory implementation of ReservationRepository"""

    def __init__(self):
        self._storage: Dict[UUID, Reservation] = {}

    async def save(self, reservation: Reservation) -> Reservation:
        """Save reservation to memory"""
        self._storage[reservation.reservation_id] = reservation
        return reservation

    async def find_by_id(self, reservation_id: UUID) -> Optional[Reservation]:
        """Find reservation by ID"""
        return self._storage.get(reservation_id)

    async def find_by_user_id(self, user_id: UUID) -> List[Reservation]:
        """Find reservations made by a user"""
        return [r for r in self._storage.values() if r.user_id == user_id]

    async def find_by_table_id(self, table_id: UUID) -> List[Reservation]:
        """Find reservations for a table"""
        return [r for r in self._storage.values() if r.table_id == table_id]

    async def find_overlapping(
        self,
        table_id: UUID,
        interval: TimeInterval,
        statuses: Iterable[ReservationStatus]
    ) -> List[Reservation]:
        """Find reservations on a table in one of `statuses` overlapping `interval`"""
        wanted = set(statuses)
        return [
            r for r in self._storage.values()
            if r.table_id == table_id
            and r.status in wanted
            and r.interval.overlaps(interval)
        ]

    async def find_all(self) -> List[Reservation]:
        """Find all reservations"""
        return list(self._storage.values())

    async def update(self, reservation: Reservation) -> Reservation:
        """Update reservation"""
        if reservation.reservation_id in self._storage:
            self._storage[reservation.reservation_id] = reservation
            return reservation
        raise ReservationNotFound("Reservation not found")

    async def delete(self, reservation_id: UUID) -> bool:
        """Delete reservation"""
        if reservation_id in self._storage:
            del self._storage[reservation_id]
            return True
        return False


class InMemoryTableRepository(TableRepository):
    """In-memory implementation of TableRepository"""

    def __init__(self):
        self._storage: Dict[UUID, Table] = {}

    async def save(self, table: Table) -> Table:
        self._storage[table.table_id] = table
        return table

    async def find_by_id(self, table_id: UUID) -> Optional[Table]:
        return self._storage.get(table_id)

    async def find_by_number(self, table_number: int) -> Optional[Table]:
        for table in self._storage.values():
            if table.table_number == table_number:
                return table
        return None

    async def find_all(self) -> List[Table]:
        return list(self._storage.values())

    async def update(self, table: Table) -> Table:
        if table.table_id in self._storage:
            self._storage[table.table_id] = table
            return table
        raise TableNotFound("Table not found")

    async def delete(self, table_id: UUID) -> bool:
        if table_id in self._storage:
            del self._storage[table_id]
            return True
        return False


class InMemoryUserRepository(UserRepository):
    """In-memory implementation of UserRepository, keyed by user id"""

    def __init__(self):
        self._storage: Dict[UUID, UserInDB] = {}

    async def save(self, user: UserInDB) -> UserInDB:
        self._storage[user.user_id] = user
        return user

    async def find_by_id(self, user_id: UUID) -> Optional[UserInDB]:
        return self._storage.get(user_id)

    async def find_by_email(self, email: str) -> Optional[UserInDB]:
        email = email.strip().lower()
        for user in self._storage.values():
            if user.email == email:
                return user
        return None


class InMemoryMenuItemRepository(MenuItemRepository):
    """In-memory implementation of MenuItemRepository"""

    def __init__(self):
        self._storage: Dict[UUID, MenuItem] = {}

    async def save(self, item: MenuItem) -> MenuItem:
        self._storage[item.menu_item_id] = item
        return item

    async def find_by_id(self, menu_item_id: UUID) -> Optional[MenuItem]:
        return self._storage.get(menu_item_id)

    async def find_by_name(self, name: str) -> Optional[MenuItem]:
        name = name.strip()
        for item in self._storage.values():
            if item.name == name:
                return item
        return None

    async def find_all(self) -> List[MenuItem]:
        return list(self._storage.values())

    async def update(self, item: MenuItem) -> MenuItem:
        if item.menu_item_id in self._storage:
            self._storage[item.menu_item_id] = item
            return item
        raise MenuItemNotFound("Menu item not found")

    async def delete(self, menu_item_id: UUID) -> bool:
        return self._storage.pop(menu_item_id, None) is not None


class InMemoryOrderRepository(OrderRepository):
    """In-memory implementation of OrderRepository"""

    def __init__(self):
        self._storage: Dict[UUID, Order] = {}

    async def save(self, order: Order) -> Order:
        self._storage[order.order_id] = order
        return order

    async def find_by_id(self, order_id: UUID) -> Optional[Order]:
        return self._storage.get(order_id)

    async def find_by_user_id(self, user_id: UUID) -> List[Order]:
        return [o for o in self._storage.values() if o.user_id == user_id]

    async def find_all(self) -> List[Order]:
        return list(self._storage.values())

    async def update(self, order: Order) -> Order:
        if order.order_id in self._storage:
            self._storage[order.order_id] = order
            return order
        raise OrderNotFound("Order not found")


class InMemoryInventoryRepository(InventoryRepository):
    """In-memory implementation of InventoryRepository"""

    def __init__(self):
        self._storage: Dict[UUID, InventoryItem] = {}

    async def save(self, item: InventoryItem) -> InventoryItem:
        self._storage[item.inventory_item_id] = item
        return item

    async def find_by_id(self, inventory_item_id: UUID) -> Optional[InventoryItem]:
        return self._storage.get(inventory_item_id)

    async def find_by_name(self, item_name: str) -> Optional[InventoryItem]:
        item_name = item_name.strip()
        for item in self._storage.values():
            if item.item_name == item_name:
                return item
        return None

    async def find_all(self) -> List[InventoryItem]:
        return list(self._storage.values())

    async def update(self, item: InventoryItem) -> InventoryItem:
        if item.inventory_item_id in self._storage:
            self._storage[item.inventory_item_id] = item
            return item
        raise InventoryItemNotFound("Inventory item not found")

    async def delete(self, inventory_item_id: UUID) -> bool:
        return self._storage.pop(inventory_item_id, None) is not None
