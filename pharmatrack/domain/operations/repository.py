"""
Operations Repository Layer

Provides data access for orders, inventory, deliveries, quality checks and
production requests.
"""

from typing import Optional, List
from sqlalchemy import or_
from sqlalchemy.orm import Session

from pharmatrack.domain.operations.models import (
    Order, InventoryItem, LocationKind, Delivery, QualityCheck, ProductionRequest
)


class OrderRepository:
    """Repository for order data access operations"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, order_data: dict) -> Order:
        order = Order(**order_data)
        self.db.add(order)
        self.db.commit()
        self.db.refresh(order)
        return order

    def get_by_id(self, order_id: str) -> Optional[Order]:
        return self.db.query(Order).filter(Order.id == order_id).first()

    def get_all(self, customer_id: Optional[str] = None, pharmacy_id: Optional[str] = None) -> List[Order]:
        query = self.db.query(Order)
        if customer_id:
            query = query.filter(Order.customer_id == customer_id)
        if pharmacy_id:
            query = query.filter(Order.pharmacy_id == pharmacy_id)
        return query.order_by(Order.order_date.desc()).all()

    def update(self, order: Order, update_data: dict) -> Order:
        for field, value in update_data.items():
            setattr(order, field, value)
        self.db.commit()
        self.db.refresh(order)
        return order


class InventoryRepository:
    """Repository for inventory data access operations"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, item_data: dict) -> InventoryItem:
        item = InventoryItem(**item_data)
        self.db.add(item)
        self.db.commit()
        self.db.refresh(item)
        return item

    def get_by_id(self, item_id: str) -> Optional[InventoryItem]:
        return self.db.query(InventoryItem).filter(InventoryItem.id == item_id).first()

    def get_all(self, location: Optional[LocationKind] = None) -> List[InventoryItem]:
        query = self.db.query(InventoryItem)
        if location:
            query = query.filter(InventoryItem.location == location)
        return query.order_by(InventoryItem.id).all()

    def search(self, term: str) -> List[InventoryItem]:
        pattern = f"%{term}%"
        return self.db.query(InventoryItem).filter(
            or_(
                InventoryItem.drug_name.ilike(pattern),
                InventoryItem.drug_batch_number.ilike(pattern),
                InventoryItem.location_name.ilike(pattern)
            )
        ).order_by(InventoryItem.id).all()

    def update(self, item: InventoryItem, update_data: dict) -> InventoryItem:
        for field, value in update_data.items():
            setattr(item, field, value)
        self.db.commit()
        self.db.refresh(item)
        return item


class DeliveryRepository:
    """Repository for delivery data access operations"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, delivery_data: dict) -> Delivery:
        delivery = Delivery(**delivery_data)
        self.db.add(delivery)
        self.db.commit()
        self.db.refresh(delivery)
        return delivery

    def get_by_id(self, delivery_id: str) -> Optional[Delivery]:
        return self.db.query(Delivery).filter(Delivery.id == delivery_id).first()

    def get_all(self) -> List[Delivery]:
        return self.db.query(Delivery).order_by(Delivery.scheduled_date.desc()).all()

    def update(self, delivery: Delivery, update_data: dict) -> Delivery:
        for field, value in update_data.items():
            setattr(delivery, field, value)
        self.db.commit()
        self.db.refresh(delivery)
        return delivery


class QualityCheckRepository:
    """Repository for quality check data access operations"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, check_data: dict) -> QualityCheck:
        check = QualityCheck(**check_data)
        self.db.add(check)
        self.db.commit()
        self.db.refresh(check)
        return check

    def get_all(self, drug_batch_number: Optional[str] = None) -> List[QualityCheck]:
        query = self.db.query(QualityCheck)
        if drug_batch_number:
            query = query.filter(QualityCheck.drug_batch_number == drug_batch_number)
        return query.order_by(QualityCheck.check_date.desc()).all()


class ProductionRequestRepository:
    """Repository for production request data access operations"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, request_data: dict) -> ProductionRequest:
        request = ProductionRequest(**request_data)
        self.db.add(request)
        self.db.commit()
        self.db.refresh(request)
        return request

    def get_by_id(self, request_id: str) -> Optional[ProductionRequest]:
        return self.db.query(ProductionRequest).filter(ProductionRequest.id == request_id).first()

    def get_all(self) -> List[ProductionRequest]:
        return self.db.query(ProductionRequest).order_by(ProductionRequest.requested_at.desc()).all()

    def update(self, request: ProductionRequest, update_data: dict) -> ProductionRequest:
        for field, value in update_data.items():
            setattr(request, field, value)
        self.db.commit()
        self.db.refresh(request)
        return request
