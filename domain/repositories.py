"""Domain Repository Interfaces"""
from abc import ABC, abstractmethod
from typing import Optional, List, Iterable
from uuid import UUID

from domain.auth import UserInDB
from domain.entities import InventoryItem, MenuItem, Order, Reservation, Table
from domain.enums import ReservationStatus
from domain.value_objects import TimeInterval


class ReservationRepository(ABC):
    """Repository interface for Reservation Aggregate"""

    @abstractmethod
    async def save(self, reservation: Reservation) -> Reservation:
        """Save reservation"""
        pass

    @abstractmethod
    async def find_by_id(self, reservation_id: UUID) -> Optional[Reservation]:
        """Find reservation by ID"""
        pass

    @abstractmethod
    async def find_by_user_id(self, user_id: UUID) -> List[Reservation]:
        """Find reservations made by a user"""
        pass

    @abstractmethod
    async def find_by_table_id(self, table_id: UUID) -> List[Reservation]:
        """Find reservations for a table"""
        pass

    @abstractmethod
    async def find_overlapping(
        self,
        table_id: UUID,
        interval: TimeInterval,
        statuses: Iterable[ReservationStatus]
    ) -> List[Reservation]:
        """Find reservations on a table in one of `statuses` overlapping `interval`"""
        pass

    @abstractmethod
    async def find_all(self) -> List[Reservation]:
        """Find all reservations"""
        pass

    @abstractmethod
    async def update(self, reservation: Reservation) -> Reservation:
        """Update reservation"""
        pass

    @abstractmethod
    async def delete(self, reservation_id: UUID) -> bool:
        """Delete reservation"""
        pass


class TableRepository(ABC):
    """Repository interface for the table registry"""

    @abstractmethod
    async def save(self, table: Table) -> Table:
        pass

    @abstractmethod
    async def find_by_id(self, table_id: UUID) -> Optional[Table]:
        pass

    @abstractmethod
    async def find_by_number(self, table_number: int) -> Optional[Table]:
        pass

    @abstractmethod
    async def find_all(self) -> List[Table]:
        pass

    @abstractmethod
    async def update(self, table: Table) -> Table:
        pass

    @abstractmethod
    async def delete(self, table_id: UUID) -> bool:
        pass


class UserRepository(ABC):
    """Repository interface for user accounts"""

    @abstractmethod
    async def save(self, user: UserInDB) -> UserInDB:
        pass

    @abstractmethod
    async def find_by_id(self, user_id: UUID) -> Optional[UserInDB]:
        pass

    @abstractmethod
    async def find_by_email(self, email: str) -> Optional[UserInDB]:
        pass


class MenuItemRepository(ABC):
    """Repository interface for the menu"""

    @abstractmethod
    async def save(self, item: MenuItem) -> MenuItem:
        pass

    @abstractmethod
    async def find_by_id(self, menu_item_id: UUID) -> Optional[MenuItem]:
        pass

    @abstractmethod
    async def find_by_name(self, name: str) -> Optional[MenuItem]:
        pass

    @abstractmethod
    async def find_all(self) -> List[MenuItem]:
        pass

    @abstractmethod
    async def update(self, item: MenuItem) -> MenuItem:
        pass

    @abstractmethod
    async def delete(self, menu_item_id: UUID) -> bool:
        pass


class OrderRepository(ABC):
    """Repository interface for Order Aggregate"""

    @abstractmethod
    async def save(self, order: Order) -> Order:
        pass

    @abstractmethod
    async def find_by_id(self, order_id: UUID) -> Optional[Order]:
        pass

    @abstractmethod
    async def find_by_user_id(self, user_id: UUID) -> List[Order]:
        pass

    @abstractmethod
    async def find_all(self) -> List[Order]:
        pass

    @abstractmethod
    async def update(self, order: Order) -> Order:
        pass


class InventoryRepository(ABC):
    """Repository interface for stock items"""

    @abstractmethod
    async def save(self, item: InventoryItem) -> InventoryItem:
        pass

    @abstractmethod
    async def find_by_id(self, inventory_item_id: UUID) -> Optional[InventoryItem]:
        pass

    @abstractmethod
    async def find_by_name(self, item_name: str) -> Optional[InventoryItem]:
        pass

    @abstractmethod
    async def find_all(self) -> List[InventoryItem]:
        pass

    @abstractmethod
    async def update(self, item: InventoryItem) -> InventoryItem:
        pass

    @abstractmethod
    async def delete(self, inventory_item_id: UUID) -> bool:
        pass
