"""
Operations API Routes

Orders, inventory, deliveries, quality checks and production requests.
Each resource has its own router; they are mounted side by side.
"""

from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional

from pharmatrack.api.deps import get_current_principal, require_roles
from pharmatrack.domain.auth.models import UserRole
from pharmatrack.domain.operations.models import LocationKind
from pharmatrack.domain.operations.service import (
    OrderService, InventoryService, DeliveryService,
    QualityCheckService, ProductionRequestService
)
from pharmatrack.infrastructure.database import get_db
from pharmatrack.api.v1.operations.schemas import (
    OrderCreate, OrderStatusUpdate, OrderResponse,
    InventoryCreate, InventoryUpdate, InventoryResponse,
    DeliveryCreate, DeliveryStatusUpdate, DeliveryResponse,
    QualityCheckCreate, QualityCheckResponse,
    ProductionRequestCreate, ProductionRequestStatusUpdate, ProductionRequestResponse
)

orders_router = APIRouter()
inventory_router = APIRouter()
deliveries_router = APIRouter()
quality_router = APIRouter()
production_router = APIRouter()

SUPPLY_CHAIN_ROLES = (UserRole.MANUFACTURER, UserRole.DISTRIBUTOR, UserRole.PHARMACY)


# ==================== Orders ====================

@orders_router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
def create_order(
    order_data: OrderCreate,
    db = Depends(get_db),
    principal = Depends(get_current_principal)
):
    return OrderService(db).create_order(order_data.model_dump())


@orders_router.get("", response_model=List[OrderResponse])
def list_orders(
    customer_id: Optional[str] = Query(None),
    pharmacy_id: Optional[str] = Query(None),
    db = Depends(get_db),
    principal = Depends(get_current_principal)
):
    """Orders, newest first; customers only ever see their own"""
    service = OrderService(db)
    if principal.role == UserRole.CUSTOMER:
        return service.get_orders_by_customer(principal.subject)
    if customer_id:
        return service.get_orders_by_customer(customer_id)
    if pharmacy_id:
        return service.get_orders_by_pharmacy(pharmacy_id)
    return service.get_orders()


@orders_router.patch("/{order_id}/status", response_model=OrderResponse)
def update_order_status(
    order_id: str,
    update_data: OrderStatusUpdate,
    db = Depends(get_db),
    principal = Depends(require_roles(UserRole.PHARMACY, UserRole.DISTRIBUTOR))
):
    return OrderService(db).update_order_status(order_id, update_data.status, update_data.notes)


# ==================== Inventory ====================

@inventory_router.post("", response_model=InventoryResponse, status_code=status.HTTP_201_CREATED)
def create_inventory_item(
    item_data: InventoryCreate,
    db = Depends(get_db),
    principal = Depends(require_roles(*SUPPLY_CHAIN_ROLES))
):
    return InventoryService(db).create_item(item_data.model_dump())


@inventory_router.get("", response_model=List[InventoryResponse])
def list_inventory(
    location: Optional[LocationKind] = Query(None),
    search: Optional[str] = Query(None, description="Drug name, batch number or location name"),
    db = Depends(get_db),
    principal = Depends(get_current_principal)
):
    service = InventoryService(db)
    if search:
        return service.search_inventory(search)
    return service.get_inventory(location)


@inventory_router.patch("/{item_id}", response_model=InventoryResponse)
def update_inventory_item(
    item_id: str,
    update_data: InventoryUpdate,
    db = Depends(get_db),
    principal = Depends(require_roles(*SUPPLY_CHAIN_ROLES))
):
    return InventoryService(db).update_inventory(item_id, update_data.model_dump(exclude_unset=True))


# ==================== Deliveries ====================

@deliveries_router.post("", response_model=DeliveryResponse, status_code=status.HTTP_201_CREATED)
def create_delivery(
    delivery_data: DeliveryCreate,
    db = Depends(get_db),
    principal = Depends(require_roles(UserRole.PHARMACY, UserRole.DISTRIBUTOR))
):
    return DeliveryService(db).create_delivery(delivery_data.model_dump())


@deliveries_router.get("", response_model=List[DeliveryResponse])
def list_deliveries(
    db = Depends(get_db),
    principal = Depends(get_current_principal)
):
    return DeliveryService(db).get_deliveries()


@deliveries_router.patch("/{delivery_id}/status", response_model=DeliveryResponse)
def update_delivery_status(
    delivery_id: str,
    update_data: DeliveryStatusUpdate,
    db = Depends(get_db),
    principal = Depends(require_roles(UserRole.PHARMACY, UserRole.DISTRIBUTOR))
):
    return DeliveryService(db).update_delivery_status(delivery_id, update_data.status)


# ==================== Quality checks ====================

@quality_router.post("", response_model=QualityCheckResponse, status_code=status.HTTP_201_CREATED)
def create_quality_check(
    check_data: QualityCheckCreate,
    db = Depends(get_db),
    principal = Depends(require_roles(UserRole.MANUFACTURER))
):
    return QualityCheckService(db).create_quality_check(check_data.model_dump())


@quality_router.get("", response_model=List[QualityCheckResponse])
def list_quality_checks(
    drug_batch_number: Optional[str] = Query(None),
    db = Depends(get_db),
    principal = Depends(get_current_principal)
):
    return QualityCheckService(db).get_quality_checks(drug_batch_number)


# ==================== Production requests ====================

@production_router.post("", response_model=ProductionRequestResponse, status_code=status.HTTP_201_CREATED)
def create_production_request(
    request_data: ProductionRequestCreate,
    db = Depends(get_db),
    principal = Depends(require_roles(UserRole.DISTRIBUTOR))
):
    return ProductionRequestService(db).create_production_request(request_data.model_dump())


@production_router.get("", response_model=List[ProductionRequestResponse])
def list_production_requests(
    db = Depends(get_db),
    principal = Depends(require_roles(UserRole.MANUFACTURER, UserRole.DISTRIBUTOR))
):
    return ProductionRequestService(db).get_production_requests()


@production_router.patch("/{request_id}/status", response_model=ProductionRequestResponse)
def update_production_request_status(
    request_id: str,
    update_data: ProductionRequestStatusUpdate,
    db = Depends(get_db),
    principal = Depends(require_roles(UserRole.MANUFACTURER))
):
    """Move a request along; completing it stamps the actual completion date"""
    return ProductionRequestService(db).update_production_request_status(
        request_id, update_data.status, update_data.expected_completion_date
    )
