"""Domain Errors

Every error raised by the domain and application layers derives from
DomainError. The API layer maps each class to an HTTP status code.
"""


class DomainError(Exception):
    """Base class for request-scoped business rule violations"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInterval(DomainError):
    pass


class PastReservation(DomainError):
    pass


class CapacityExceeded(DomainError):
    pass


class InvalidStatus(DomainError):
    pass


class SlotConflict(DomainError):
    """Raised when a candidate slot overlaps an active reservation"""

    def __init__(self, message: str, conflicting_ids=()):
        super().__init__(message)
        self.conflicting_ids = list(conflicting_ids)


class TableNotFound(DomainError):
    pass


class ReservationNotFound(DomainError):
    pass


class UserNotFound(DomainError):
    pass


class Forbidden(DomainError):
    pass


class DuplicateTableNumber(DomainError):
    pass


class DuplicateEmail(DomainError):
    pass


class InvalidCredentials(DomainError):
    pass


class InvalidGuestCount(DomainError):
    pass


# ==================== MENU, ORDERS, INVENTORY ====================

class MenuItemNotFound(DomainError):
    pass


class MenuItemUnavailable(DomainError):
    pass


class DuplicateMenuItem(DomainError):
    pass


class EmptyOrder(DomainError):
    pass


class OrderNotFound(DomainError):
    pass


class InventoryItemNotFound(DomainError):
    pass


class DuplicateInventoryItem(DomainError):
    pass


class InvalidQuantity(DomainError):
    pass
