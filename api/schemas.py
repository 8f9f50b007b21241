"""API Schemas - Request and Response DTOs"""
from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from uuid import UUID
from typing import List, Optional

from domain.enums import MenuCategory, OrderStatus, PaymentMethod, UserRole


# ============================================================================
# RESERVATION SCHEMAS
# ============================================================================

class CreateReservationRequest(BaseModel):
    """Create reservation request DTO"""
    table_id: UUID
    start_time: datetime
    end_time: datetime
    number_of_guests: int = Field(ge=1)
    notes: Optional[str] = None


class UpdateReservationRequest(BaseModel):
    """Full update request DTO, every field optional"""
    table_id: Optional[UUID] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    number_of_guests: Optional[int] = Field(None, ge=1)
    status: Optional[str] = None
    notes: Optional[str] = None


class UpdateStatusRequest(BaseModel):
    """Status update request DTO"""
    status: Optional[str] = None


class ReservationResponse(BaseModel):
    """Reservation response DTO"""
    reservation_id: UUID
    user_id: UUID
    table_id: UUID
    start_time: datetime
    end_time: datetime
    number_of_guests: int
    status: str
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class MessageResponse(BaseModel):
    message: str


# ============================================================================
# TABLE SCHEMAS
# ============================================================================

class CreateTableRequest(BaseModel):
    """Create table request DTO"""
    table_number: int = Field(ge=1)
    capacity: int = Field(ge=1)
    is_available: bool = True
    location: Optional[str] = None
    description: Optional[str] = None


class UpdateTableRequest(BaseModel):
    """Update table request DTO"""
    table_number: Optional[int] = Field(None, ge=1)
    capacity: Optional[int] = Field(None, ge=1)
    is_available: Optional[bool] = None
    location: Optional[str] = None
    description: Optional[str] = None


class TableResponse(BaseModel):
    """Table response DTO"""
    table_id: UUID
    table_number: int
    capacity: int
    is_available: bool
    location: Optional[str] = None
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime


# ============================================================================
# AUTH SCHEMAS
# ============================================================================

class RegisterRequest(BaseModel):
    """Customer self-registration DTO"""
    name: str = Field(min_length=1)
    email: str = Field(pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    password: str = Field(min_length=6)


class CreateUserRequest(RegisterRequest):
    """Admin provisioning DTO"""
    role: UserRole = UserRole.STAFF


class LoginRequest(BaseModel):
    email: str
    password: str


class Token(BaseModel):
    """Token response DTO"""
    access_token: str
    token_type: str


class TokenData(BaseModel):
    """Token payload DTO"""
    user_id: Optional[UUID] = None
    role: Optional[UserRole] = None


class UserResponse(BaseModel):
    """User response DTO"""
    user_id: UUID
    name: str
    email: str
    role: UserRole
    disabled: bool


class AuthResponse(UserResponse):
    """User profile together with a fresh access token"""
    access_token: str
    token_type: str = "bearer"


class StatusValuesResponse(BaseModel):
    values: List[str]
    active: List[str]


class AvailabilityResponse(BaseModel):
    table_id: UUID
    start_time: datetime
    end_time: datetime
    available: bool


# ============================================================================
# MENU SCHEMAS
# ============================================================================

class CreateMenuItemRequest(BaseModel):
    """Create menu item request DTO"""
    name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    price: Decimal = Field(ge=0)
    category: MenuCategory = MenuCategory.MAIN_COURSE
    is_available: bool = True
    image_url: Optional[str] = None
    preparation_time: Optional[int] = Field(None, ge=0)


class UpdateMenuItemRequest(BaseModel):
    """Update menu item request DTO"""
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0)
    category: Optional[MenuCategory] = None
    is_available: Optional[bool] = None
    image_url: Optional[str] = None
    preparation_time: Optional[int] = Field(None, ge=0)


class MenuItemResponse(BaseModel):
    """Menu item response DTO"""
    menu_item_id: UUID
    name: str
    description: str
    price: Decimal
    category: MenuCategory
    is_available: bool
    image_url: str
    preparation_time: int
    created_at: datetime
    updated_at: datetime


# ============================================================================
# ORDER SCHEMAS
# ============================================================================

class OrderLineRequest(BaseModel):
    """Only the menu item and quantity are taken from the client"""
    menu_item_id: UUID
    qty: int = Field(ge=1)


class DeliveryAddressSchema(BaseModel):
    street: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None


class CreateOrderRequest(BaseModel):
    """Create order request DTO"""
    items: List[OrderLineRequest]
    payment_method: PaymentMethod
    delivery_address: Optional[DeliveryAddressSchema] = None
    delivery_fee: Decimal = Field(Decimal("0"), ge=0)


class UpdateOrderStatusRequest(BaseModel):
    """Order status update DTO, every field optional"""
    status: Optional[str] = None
    is_paid: Optional[bool] = None
    is_delivered: Optional[bool] = None


class OrderItemResponse(BaseModel):
    menu_item_id: UUID
    name: str
    qty: int
    price: Decimal
    image: str


class OrderResponse(BaseModel):
    """Order response DTO"""
    order_id: UUID
    user_id: UUID
    items: List[OrderItemResponse]
    total_price: Decimal
    status: OrderStatus
    payment_method: PaymentMethod
    is_paid: bool
    paid_at: Optional[datetime] = None
    delivery_address: Optional[DeliveryAddressSchema] = None
    delivery_fee: Decimal
    is_delivered: bool
    delivered_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


# ============================================================================
# INVENTORY SCHEMAS
# ============================================================================

class CreateInventoryItemRequest(BaseModel):
    """Create inventory item request DTO"""
    item_name: str = Field(min_length=1)
    quantity: float = Field(ge=0)
    unit: str = Field(min_length=1)
    low_stock_threshold: Optional[float] = Field(None, ge=0)
    supplier: Optional[str] = None
    last_restock_date: Optional[datetime] = None


class UpdateInventoryItemRequest(BaseModel):
    """Update inventory item request DTO"""
    item_name: Optional[str] = Field(None, min_length=1)
    quantity: Optional[float] = Field(None, ge=0)
    unit: Optional[str] = Field(None, min_length=1)
    low_stock_threshold: Optional[float] = Field(None, ge=0)
    supplier: Optional[str] = None
    last_restock_date: Optional[datetime] = None


class InventoryItemResponse(BaseModel):
    """Inventory item response DTO"""
    inventory_item_id: UUID
    item_name: str
    quantity: float
    unit: str
    low_stock_threshold: float
    low_stock: bool
    supplier: Optional[str] = None
    last_restock_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
