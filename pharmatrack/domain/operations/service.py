"""
Operations Service Layer

Business logic for orders, inventory, deliveries, quality checks and
production requests.
"""

from typing import Optional, List, Dict, Any
from datetime import datetime, timezone

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from pharmatrack.core.exceptions import NotFoundError, handle_database_error
from pharmatrack.domain.operations.models import (
    Order, OrderStatus, InventoryItem, LocationKind,
    Delivery, DeliveryStatus, QualityCheck,
    ProductionRequest, ProductionRequestStatus
)
from pharmatrack.domain.operations.repository import (
    OrderRepository, InventoryRepository, DeliveryRepository,
    QualityCheckRepository, ProductionRequestRepository
)
from pharmatrack.services.identifiers import generate_record_id, generate_tracking_number


def _now() -> datetime:
    return datetime.now(timezone.utc)


class _OperationsService:
    def __init__(self, db):
        self.db = db

    def _write(self, operation: str, fn, *args):
        try:
            return fn(*args)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise handle_database_error(e, operation)


class OrderService(_OperationsService):
    """Service layer for customer orders"""

    def __init__(self, db):
        super().__init__(db)
        self.repo = OrderRepository(db)

    def create_order(self, order_data: Dict[str, Any]) -> Order:
        now = _now()
        data = dict(order_data)
        data.update({
            "id": generate_record_id("ORD", now),
            "order_date": now,
            "status": OrderStatus.PENDING,
        })
        order = self._write("creating order", self.repo.create, data)
        logger.info(f"Order {order.id} placed by {order.customer_name} with {order.pharmacy_name}")
        return order

    def get_orders(self) -> List[Order]:
        return self.repo.get_all()

    def get_orders_by_customer(self, customer_id: str) -> List[Order]:
        return self.repo.get_all(customer_id=customer_id)

    def get_orders_by_pharmacy(self, pharmacy_id: str) -> List[Order]:
        return self.repo.get_all(pharmacy_id=pharmacy_id)

    def update_order_status(self, order_id: str, status: OrderStatus, notes: Optional[str] = None) -> Order:
        status = OrderStatus(status)
        order = self.repo.get_by_id(order_id)
        if not order:
            raise NotFoundError(message="Order not found", details={"order_id": order_id})

        update_data: Dict[str, Any] = {"status": status}
        if notes:
            update_data["notes"] = notes
        order = self._write("updating order", self.repo.update, order, update_data)
        logger.info(f"Order {order_id} is now {status.value}")
        return order


class InventoryService(_OperationsService):
    """Service layer for stock levels"""

    def __init__(self, db):
        super().__init__(db)
        self.repo = InventoryRepository(db)

    def create_item(self, item_data: Dict[str, Any]) -> InventoryItem:
        now = _now()
        data = dict(item_data)
        data.setdefault("reserved_quantity", 0)
        data.update({
            "id": generate_record_id("INV", now),
            "available_quantity": data["quantity"] - data["reserved_quantity"],
            "last_updated": now,
        })
        item = self._write("creating inventory item", self.repo.create, data)
        logger.info(f"Inventory {item.id} added for {item.drug_batch_number} at {item.location_name}")
        return item

    def get_inventory(self, location: Optional[LocationKind] = None) -> List[InventoryItem]:
        return self.repo.get_all(location=location)

    def search_inventory(self, term: str) -> List[InventoryItem]:
        return self.repo.search(term)

    def update_inventory(self, item_id: str, updates: Dict[str, Any]) -> InventoryItem:
        """Apply partial updates; available quantity is always recomputed"""
        item = self.repo.get_by_id(item_id)
        if not item:
            raise NotFoundError(message="Inventory item not found", details={"inventory_id": item_id})

        data = {k: v for k, v in updates.items() if k not in ("id", "available_quantity", "last_updated")}
        quantity = data.get("quantity", item.quantity)
        reserved = data.get("reserved_quantity", item.reserved_quantity)
        data["available_quantity"] = quantity - reserved
        data["last_updated"] = _now()

        return self._write("updating inventory", self.repo.update, item, data)


class DeliveryService(_OperationsService):
    """Service layer for deliveries"""

    def __init__(self, db):
        super().__init__(db)
        self.repo = DeliveryRepository(db)

    def create_delivery(self, delivery_data: Dict[str, Any]) -> Delivery:
        now = _now()
        data = dict(delivery_data)
        data.setdefault("status", DeliveryStatus.SCHEDULED)
        data.update({
            "id": generate_record_id("DEL", now),
            "tracking_number": generate_tracking_number(now),
        })
        delivery = self._write("creating delivery", self.repo.create, data)
        logger.info(f"Delivery {delivery.id} scheduled with tracking number {delivery.tracking_number}")
        return delivery

    def get_deliveries(self) -> List[Delivery]:
        return self.repo.get_all()

    def update_delivery_status(self, delivery_id: str, status: DeliveryStatus) -> Delivery:
        delivery = self.repo.get_by_id(delivery_id)
        if not delivery:
            raise NotFoundError(message="Delivery not found", details={"delivery_id": delivery_id})

        update_data: Dict[str, Any] = {"status": status}
        if status == DeliveryStatus.DELIVERED:
            update_data["actual_date"] = _now()
        return self._write("updating delivery", self.repo.update, delivery, update_data)


class QualityCheckService(_OperationsService):
    """Service layer for quality checks"""

    def __init__(self, db):
        super().__init__(db)
        self.repo = QualityCheckRepository(db)

    def create_quality_check(self, check_data: Dict[str, Any]) -> QualityCheck:
        data = dict(check_data)
        data["id"] = generate_record_id("QC")
        check = self._write("creating quality check", self.repo.create, data)
        outcome = "passed" if check.is_passed else "failed"
        logger.info(f"Quality check {check.id} for {check.drug_batch_number} {outcome} ({check.quality_score})")
        return check

    def get_quality_checks(self, drug_batch_number: Optional[str] = None) -> List[QualityCheck]:
        return self.repo.get_all(drug_batch_number=drug_batch_number)


class ProductionRequestService(_OperationsService):
    """Service layer for production requests"""

    def __init__(self, db):
        super().__init__(db)
        self.repo = ProductionRequestRepository(db)

    def create_production_request(self, request_data: Dict[str, Any]) -> ProductionRequest:
        now = _now()
        data = dict(request_data)
        data.update({
            "id": generate_record_id("PR", now),
            "requested_at": now,
            "status": ProductionRequestStatus.PENDING,
        })
        request = self._write("creating production request", self.repo.create, data)
        logger.info(f"Production request {request.id} for {request.requested_quantity} x {request.drug_name}")
        return request

    def get_production_requests(self) -> List[ProductionRequest]:
        return self.repo.get_all()

    def update_production_request_status(
        self,
        request_id: str,
        status: ProductionRequestStatus,
        expected_date: Optional[datetime] = None
    ) -> ProductionRequest:
        request = self.repo.get_by_id(request_id)
        if not request:
            raise NotFoundError(message="Production request not found", details={"request_id": request_id})

        update_data: Dict[str, Any] = {"status": status}
        if expected_date:
            update_data["expected_completion_date"] = expected_date
        if status == ProductionRequestStatus.COMPLETED:
            update_data["actual_completion_date"] = _now()
        return self._write("updating production request", self.repo.update, request, update_data)
