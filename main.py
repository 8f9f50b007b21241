import logging

from fastapi import FastAPI, HTTPException, Depends, Query
from uuid import UUID
from datetime import datetime, timedelta
from typing import List
from fastapi.security import OAuth2PasswordRequestForm

from api.schemas import (
    # Reservation
    CreateReservationRequest, UpdateReservationRequest, UpdateStatusRequest,
    ReservationResponse, MessageResponse, StatusValuesResponse,
    # Table
    CreateTableRequest, UpdateTableRequest, TableResponse,
    # Auth
    RegisterRequest, CreateUserRequest, LoginRequest, Token, UserResponse, AuthResponse,
    # Menu, orders, inventory
    CreateMenuItemRequest, UpdateMenuItemRequest, MenuItemResponse,
    CreateOrderRequest, UpdateOrderStatusRequest, OrderResponse, OrderItemResponse, DeliveryAddressSchema,
    CreateInventoryItemRequest, UpdateInventoryItemRequest, InventoryItemResponse, AvailabilityResponse
)

from api.dependencies import (
    get_current_active_user, get_user_service, require_admin, require_staff
)
from api.errors import register_error_handlers
from infrastructure.security import create_access_token, ACCESS_TOKEN_EXPIRE_MINUTES
from infrastructure.config import get_settings
from domain.auth import User
from domain.errors import InvalidCredentials

from application.services import (
    InventoryService, MenuService, OrderService, ReservationService, TableService, UserService
)
from infrastructure.clock import SystemClock
from infrastructure.locking import TableLockRegistry
from infrastructure.repositories.in_memory_repositories import (
    InMemoryInventoryRepository, InMemoryMenuItemRepository, InMemoryOrderRepository,
    InMemoryReservationRepository, InMemoryTableRepository
)
from domain.enums import ReservationStatus
from domain.lifecycle import active_statuses
from domain.value_objects import DeliveryAddress

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Restaurant Reservation API",
    description="Table reservations with conflict-free scheduling",
    version="1.0.0"
)
register_error_handlers(app)

# Initialize repositories
reservation_repo = InMemoryReservationRepository()
table_repo = InMemoryTableRepository()
menu_repo = InMemoryMenuItemRepository()
order_repo = InMemoryOrderRepository()
inventory_repo = InMemoryInventoryRepository()

# Shared across requests so every request for a table waits on the same lock
table_locks = TableLockRegistry()
clock = SystemClock()
ACTIVE_STATUSES = active_statuses(settings.completed_blocks_slot)

# Dependency injection
def get_reservation_service() -> ReservationService:
    return ReservationService(reservation_repo, table_repo, clock, table_locks, ACTIVE_STATUSES)

def get_menu_service() -> MenuService:
    return MenuService(menu_repo)

def get_order_service() -> OrderService:
    return OrderService(order_repo, menu_repo, clock)

def get_inventory_service() -> InventoryService:
    return InventoryService(inventory_repo)

def get_table_service() -> TableService:
    return TableService(table_repo)

# ============================================================================
# HEALTH & ENUM REFERENCE ENDPOINTS
# ============================================================================

@app.get("/", tags=["Health"])
async def root():
    return {"message": "Restaurant Management API is running..."}

@app.get("/api/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "message": "API is running"}

@app.get("/api/enums/reservation-status", response_model=StatusValuesResponse, tags=["Enum Reference"])
async def get_reservation_statuses():
    """Get all ReservationStatus values and which of them occupy a table"""
    return StatusValuesResponse(
        values=[item.value for item in ReservationStatus],
        active=[item.value for item in ReservationStatus if item in ACTIVE_STATUSES]
    )

# ============================================================================
# AUTH ENDPOINTS
# ============================================================================

def _issue_token(user: User) -> str:
    return create_access_token(
        data={"sub": str(user.user_id), "role": user.role.value},
        expires_delta=timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    )

@app.post("/token", response_model=Token, tags=["Auth"])
async def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    service: UserService = Depends(get_user_service)
):
    """OAuth2 password flow; the username field carries the email"""
    try:
        user = await service.authenticate(form_data.username, form_data.password)
    except InvalidCredentials:
        raise HTTPException(
            status_code=401,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return {"access_token": _issue_token(user), "token_type": "bearer"}

@app.post("/api/auth/register", response_model=AuthResponse, status_code=201, tags=["Auth"])
async def register_user(
    request: RegisterRequest,
    service: UserService = Depends(get_user_service)
):
    """Register a new customer account"""
    user = await service.register(request.name, request.email, request.password)
    return _auth_response(user)

@app.post("/api/auth/login", response_model=AuthResponse, tags=["Auth"])
async def login_user(
    request: LoginRequest,
    service: UserService = Depends(get_user_service)
):
    """Authenticate with email and password"""
    user = await service.authenticate(request.email, request.password)
    return _auth_response(user)

@app.get("/api/auth/profile", response_model=UserResponse, tags=["Auth"])
async def read_profile(current_user: User = Depends(get_current_active_user)):
    return _user_to_response(current_user)

@app.post("/api/auth/users", response_model=UserResponse, status_code=201, tags=["Auth"])
async def create_user(
    request: CreateUserRequest,
    service: UserService = Depends(get_user_service),
    current_user: User = Depends(require_admin)
):
    """Provision an account with any role (admin only)"""
    user = await service.create_user(request.name, request.email, request.password, request.role)
    return _user_to_response(user)

# ============================================================================
# TABLE ENDPOINTS
# ============================================================================

@app.get("/api/tables", response_model=List[TableResponse], tags=["Tables"])
async def get_tables(service: TableService = Depends(get_table_service)):
    """Get all tables"""
    tables = await service.get_all_tables()
    return [_table_to_response(t) for t in tables]

@app.get("/api/tables/{table_id}", response_model=TableResponse, tags=["Tables"])
async def get_table(table_id: UUID, service: TableService = Depends(get_table_service)):
    """Get table by ID"""
    table = await service.get_table(table_id)
    return _table_to_response(table)

@app.post("/api/tables", response_model=TableResponse, status_code=201, tags=["Tables"])
async def create_table(
    request: CreateTableRequest,
    service: TableService = Depends(get_table_service),
    current_user: User = Depends(require_staff)
):
    """Add a new table"""
    table = await service.create_table(
        table_number=request.table_number,
        capacity=request.capacity,
        is_available=request.is_available,
        location=request.location,
        description=request.description
    )
    return _table_to_response(table)

@app.put("/api/tables/{table_id}", response_model=TableResponse, tags=["Tables"])
async def update_table(
    table_id: UUID,
    request: UpdateTableRequest,
    service: TableService = Depends(get_table_service),
    current_user: User = Depends(require_staff)
):
    """Update a table"""
    table = await service.update_table(
        table_id,
        table_number=request.table_number,
        capacity=request.capacity,
        is_available=request.is_available,
        location=request.location,
        description=request.description
    )
    return _table_to_response(table)

@app.delete("/api/tables/{table_id}", response_model=MessageResponse, tags=["Tables"])
async def delete_table(
    table_id: UUID,
    service: TableService = Depends(get_table_service),
    current_user: User = Depends(require_staff)
):
    """Delete a table"""
    await service.delete_table(table_id)
    return {"message": "Table removed"}

@app.get("/api/tables/{table_id}/reservations", response_model=List[ReservationResponse], tags=["Tables"])
async def get_table_reservations(
    table_id: UUID,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(require_staff)
):
    """Get a table's reservations sorted by start time"""
    reservations = await service.get_reservations_by_table(table_id)
    return [_reservation_to_response(r) for r in reservations]

@app.get("/api/tables/{table_id}/availability", response_model=AvailabilityResponse, tags=["Tables"])
async def get_table_availability(
    table_id: UUID,
    start_time: datetime = Query(...),
    end_time: datetime = Query(...),
    service: ReservationService = Depends(get_reservation_service)
):
    """Check whether the table is free for the interval"""
    available = await service.is_table_free(table_id, start_time, end_time)
    return AvailabilityResponse(
        table_id=table_id, start_time=start_time, end_time=end_time, available=available
    )

# ============================================================================
# RESERVATION ENDPOINTS
# ============================================================================

@app.post("/api/reservations", response_model=ReservationResponse, status_code=201, tags=["Reservations"])
async def create_reservation(
    request: CreateReservationRequest,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Create new reservation for the caller"""
    reservation = await service.create_reservation(
        user_id=current_user.user_id,
        table_id=request.table_id,
        start_time=request.start_time,
        end_time=request.end_time,
        number_of_guests=request.number_of_guests,
        notes=request.notes
    )
    return _reservation_to_response(reservation)

@app.get("/api/reservations", response_model=List[ReservationResponse], tags=["Reservations"])
async def get_all_reservations(
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(require_staff)
):
    """Get all reservations sorted by start time"""
    reservations = await service.get_all_reservations()
    return [_reservation_to_response(r) for r in reservations]

@app.get("/api/reservations/myreservations", response_model=List[ReservationResponse], tags=["Reservations"])
async def get_my_reservations(
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get the caller's reservations sorted by start time"""
    reservations = await service.get_reservations_by_user(current_user.user_id)
    return [_reservation_to_response(r) for r in reservations]

@app.get("/api/reservations/{reservation_id}", response_model=ReservationResponse, tags=["Reservations"])
async def get_reservation(
    reservation_id: UUID,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get reservation by ID (owner or staff/admin)"""
    reservation = await service.get_reservation_for(current_user, reservation_id)
    return _reservation_to_response(reservation)

@app.put("/api/reservations/{reservation_id}", response_model=ReservationResponse, tags=["Reservations"])
async def update_reservation(
    reservation_id: UUID,
    request: UpdateReservationRequest,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(require_staff)
):
    """Update reservation details"""
    reservation = await service.update_reservation(
        reservation_id=reservation_id,
        table_id=request.table_id,
        start_time=request.start_time,
        end_time=request.end_time,
        number_of_guests=request.number_of_guests,
        status=request.status,
        notes=request.notes
    )
    return _reservation_to_response(reservation)

@app.put("/api/reservations/{reservation_id}/status", response_model=ReservationResponse, tags=["Reservations"])
async def update_reservation_status(
    reservation_id: UUID,
    request: UpdateStatusRequest,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(require_staff)
):
    """Update reservation status"""
    reservation = await service.update_reservation_status(reservation_id, request.status)
    return _reservation_to_response(reservation)

@app.delete("/api/reservations/{reservation_id}", response_model=MessageResponse, tags=["Reservations"])
async def delete_reservation(
    reservation_id: UUID,
    service: ReservationService = Depends(get_reservation_service),
    current_user: User = Depends(require_staff)
):
    """Delete a reservation"""
    await service.delete_reservation(reservation_id)
    return {"message": "Reservation removed"}

# ============================================================================
# MENU ENDPOINTS
# ============================================================================

@app.get("/api/menuitems", response_model=List[MenuItemResponse], tags=["Menu"])
async def get_menu_items(service: MenuService = Depends(get_menu_service)):
    """Get the whole menu"""
    items = await service.get_menu()
    return [_menu_item_to_response(i) for i in items]

@app.get("/api/menuitems/{menu_item_id}", response_model=MenuItemResponse, tags=["Menu"])
async def get_menu_item(menu_item_id: UUID, service: MenuService = Depends(get_menu_service)):
    item = await service.get_menu_item(menu_item_id)
    return _menu_item_to_response(item)

@app.post("/api/menuitems", response_model=MenuItemResponse, status_code=201, tags=["Menu"])
async def create_menu_item(
    request: CreateMenuItemRequest,
    service: MenuService = Depends(get_menu_service),
    current_user: User = Depends(require_staff)
):
    """Add a new menu item"""
    item = await service.create_menu_item(**request.model_dump())
    return _menu_item_to_response(item)

@app.put("/api/menuitems/{menu_item_id}", response_model=MenuItemResponse, tags=["Menu"])
async def update_menu_item(
    menu_item_id: UUID,
    request: UpdateMenuItemRequest,
    service: MenuService = Depends(get_menu_service),
    current_user: User = Depends(require_staff)
):
    item = await service.update_menu_item(menu_item_id, **request.model_dump())
    return _menu_item_to_response(item)

@app.delete("/api/menuitems/{menu_item_id}", response_model=MessageResponse, tags=["Menu"])
async def delete_menu_item(
    menu_item_id: UUID,
    service: MenuService = Depends(get_menu_service),
    current_user: User = Depends(require_staff)
):
    await service.delete_menu_item(menu_item_id)
    return {"message": "Menu item removed"}

# ============================================================================
# ORDER ENDPOINTS
# ============================================================================

@app.post("/api/orders", response_model=OrderResponse, status_code=201, tags=["Orders"])
async def create_order(
    request: CreateOrderRequest,
    service: OrderService = Depends(get_order_service),
    current_user: User = Depends(get_current_active_user)
):
    """Place an order; prices are taken from the menu"""
    address = None
    if request.delivery_address is not None:
        address = DeliveryAddress(**request.delivery_address.model_dump())
    order = await service.create_order(
        user_id=current_user.user_id,
        lines=[(line.menu_item_id, line.qty) for line in request.items],
        payment_method=request.payment_method,
        delivery_address=address,
        delivery_fee=request.delivery_fee
    )
    return _order_to_response(order)

@app.get("/api/orders", response_model=List[OrderResponse], tags=["Orders"])
async def get_all_orders(
    service: OrderService = Depends(get_order_service),
    current_user: User = Depends(require_staff)
):
    """Get all orders, newest first"""
    orders = await service.get_all_orders()
    return [_order_to_response(o) for o in orders]

@app.get("/api/orders/myorders", response_model=List[OrderResponse], tags=["Orders"])
async def get_my_orders(
    service: OrderService = Depends(get_order_service),
    current_user: User = Depends(get_current_active_user)
):
    orders = await service.get_orders_by_user(current_user.user_id)
    return [_order_to_response(o) for o in orders]

@app.get("/api/orders/{order_id}", response_model=OrderResponse, tags=["Orders"])
async def get_order(
    order_id: UUID,
    service: OrderService = Depends(get_order_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get order by ID (owner or staff/admin)"""
    order = await service.get_order_for(current_user, order_id)
    return _order_to_response(order)

@app.put("/api/orders/{order_id}", response_model=OrderResponse, tags=["Orders"])
async def update_order_status(
    order_id: UUID,
    request: UpdateOrderStatusRequest,
    service: OrderService = Depends(get_order_service),
    current_user: User = Depends(require_staff)
):
    """Update order status, payment and delivery flags"""
    order = await service.update_order_status(
        order_id,
        status=request.status,
        is_paid=request.is_paid,
        is_delivered=request.is_delivered
    )
    return _order_to_response(order)

# ============================================================================
# INVENTORY ENDPOINTS
# ============================================================================

@app.get("/api/inventory", response_model=List[InventoryItemResponse], tags=["Inventory"])
async def get_inventory(
    service: InventoryService = Depends(get_inventory_service),
    current_user: User = Depends(require_staff)
):
    items = await service.get_all_items()
    return [_inventory_item_to_response(i) for i in items]

@app.get("/api/inventory/low-stock", response_model=List[InventoryItemResponse], tags=["Inventory"])
async def get_low_stock_inventory(
    service: InventoryService = Depends(get_inventory_service),
    current_user: User = Depends(require_staff)
):
    """Items at or below their restock threshold"""
    items = await service.get_low_stock_items()
    return [_inventory_item_to_response(i) for i in items]

@app.get("/api/inventory/{inventory_item_id}", response_model=InventoryItemResponse, tags=["Inventory"])
async def get_inventory_item(
    inventory_item_id: UUID,
    service: InventoryService = Depends(get_inventory_service),
    current_user: User = Depends(require_staff)
):
    item = await service.get_item(inventory_item_id)
    return _inventory_item_to_response(item)

@app.post("/api/inventory", response_model=InventoryItemResponse, status_code=201, tags=["Inventory"])
async def create_inventory_item(
    request: CreateInventoryItemRequest,
    service: InventoryService = Depends(get_inventory_service),
    current_user: User = Depends(require_staff)
):
    item = await service.create_item(**request.model_dump())
    return _inventory_item_to_response(item)

@app.put("/api/inventory/{inventory_item_id}", response_model=InventoryItemResponse, tags=["Inventory"])
async def update_inventory_item(
    inventory_item_id: UUID,
    request: UpdateInventoryItemRequest,
    service: InventoryService = Depends(get_inventory_service),
    current_user: User = Depends(require_staff)
):
    item = await service.update_item(inventory_item_id, **request.model_dump())
    return _inventory_item_to_response(item)

@app.delete("/api/inventory/{inventory_item_id}", response_model=MessageResponse, tags=["Inventory"])
async def delete_inventory_item(
    inventory_item_id: UUID,
    service: InventoryService = Depends(get_inventory_service),
    current_user: User = Depends(require_staff)
):
    await service.delete_item(inventory_item_id)
    return {"message": "Inventory item removed"}

# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def _reservation_to_response(reservation) -> ReservationResponse:
    """Convert Reservation entity to ReservationResponse"""
    return ReservationResponse(
        reservation_id=reservation.reservation_id,
        user_id=reservation.user_id,
        table_id=reservation.table_id,
        start_time=reservation.interval.start,
        end_time=reservation.interval.end,
        number_of_guests=reservation.number_of_guests,
        status=reservation.status.value,
        notes=reservation.notes,
        created_at=reservation.created_at,
        updated_at=reservation.updated_at
    )

def _table_to_response(table) -> TableResponse:
    """Convert Table entity to TableResponse"""
    return TableResponse(
        table_id=table.table_id,
        table_number=table.table_number,
        capacity=table.capacity,
        is_available=table.is_available,
        location=table.location,
        description=table.description,
        created_at=table.created_at,
        updated_at=table.updated_at
    )

def _user_to_response(user) -> UserResponse:
    """Convert User entity to UserResponse"""
    return UserResponse(
        user_id=user.user_id,
        name=user.name,
        email=user.email,
        role=user.role,
        disabled=user.disabled
    )

def _menu_item_to_response(item) -> MenuItemResponse:
    return MenuItemResponse(**item.model_dump())

def _order_to_response(order) -> OrderResponse:
    """Convert Order entity to OrderResponse"""
    address = order.delivery_address
    return OrderResponse(
        order_id=order.order_id,
        user_id=order.user_id,
        items=[OrderItemResponse(**item.model_dump()) for item in order.items],
        total_price=order.total_price,
        status=order.status,
        payment_method=order.payment_method,
        is_paid=order.is_paid,
        paid_at=order.paid_at,
        delivery_address=DeliveryAddressSchema(**address.model_dump()) if address else None,
        delivery_fee=order.delivery_fee,
        is_delivered=order.is_delivered,
        delivered_at=order.delivered_at,
        created_at=order.created_at,
        updated_at=order.updated_at
    )

def _inventory_item_to_response(item) -> InventoryItemResponse:
    return InventoryItemResponse(**item.model_dump(), low_stock=item.is_low_stock())

def _auth_response(user) -> AuthResponse:
    return AuthResponse(
        user_id=user.user_id,
        name=user.name,
        email=user.email,
        role=user.role,
        disabled=user.disabled,
        access_token=_issue_token(user)
    )

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
