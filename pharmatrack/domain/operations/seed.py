"""
Sample orders, stock, deliveries, quality checks and production requests
for a fresh database. Dates are relative to the seeding time and line up
with the demo drug batches.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

from loguru import logger
from sqlalchemy.orm import Session

from pharmatrack.core.config import settings
from pharmatrack.domain.drugs.seed import CATALOGUE_START, DEMO_CATALOGUE, SEED_WINDOW_DAYS
from pharmatrack.domain.operations.models import (
    Order, OrderStatus, InventoryItem, LocationKind, Delivery, DeliveryStatus,
    QualityCheck, ProductionRequest, ProductionRequestStatus
)


def seed_operations(db: Session, now: Optional[datetime] = None) -> bool:
    """Insert the sample records unless orders already exist"""
    if db.query(Order).first() is not None:
        return False

    now = now or datetime.now(timezone.utc)
    window_start = now - timedelta(days=SEED_WINDOW_DAYS)
    catalogue = {f"BATCH-MED{row[0]}": row for row in DEMO_CATALOGUE}

    def produced(batch: str) -> datetime:
        return window_start + timedelta(days=(catalogue[batch][4] - CATALOGUE_START).days)

    def expiry(batch: str) -> datetime:
        return produced(batch) + timedelta(days=settings.DEFAULT_SHELF_LIFE_DAYS)

    def day(n: int) -> datetime:
        return window_start + timedelta(days=n)

    customer = {
        "customer_id": "cust-001",
        "customer_name": "Customer User",
        "customer_email": "customer@pharmatrackindia.com",
    }
    db.add_all([
        Order(id="ORD-001", **customer, pharmacy_id="pharm-001", pharmacy_name="Apollo Pharmacy",
              drug_batch_number="BATCH-MED001", drug_name="Paracetamol 500mg", quantity=2,
              total_price=50, status=OrderStatus.CONFIRMED, order_date=day(0),
              expected_delivery_date=day(5), tracking_number="TRK-001-2024"),
        Order(id="ORD-002", **customer, pharmacy_id="pharm-002", pharmacy_name="MedPlus Pharmacy",
              drug_batch_number="BATCH-MED002", drug_name="Ibuprofen 400mg", quantity=1,
              total_price=30, status=OrderStatus.PROCESSING, order_date=day(1),
              expected_delivery_date=day(7), tracking_number="TRK-002-2024"),
        Order(id="ORD-003", **customer, pharmacy_id="pharm-003", pharmacy_name="PharmEasy",
              drug_batch_number="BATCH-MED003", drug_name="Diclofenac 50mg", quantity=3,
              total_price=105, status=OrderStatus.PENDING, order_date=day(2),
              expected_delivery_date=day(10), tracking_number="TRK-003-2024"),
    ])

    stock = [
        ("INV-001", "BATCH-MED001", "Paracetamol 500mg", LocationKind.PHARMACY, "pharm-001", "Apollo Pharmacy", 100, 5, 25, 0),
        ("INV-002", "BATCH-MED002", "Ibuprofen 400mg", LocationKind.DISTRIBUTOR, "dist-001", "MedPlus Distribution Ltd.", 500, 10, 30, 1),
        ("INV-003", "BATCH-MED003", "Diclofenac 50mg", LocationKind.DISTRIBUTOR, "dist-002", "Alliance Healthcare India", 300, 8, 35, 2),
        ("INV-004", "BATCH-MED004", "Naproxen 250mg", LocationKind.PHARMACY, "pharm-002", "MedPlus Pharmacy", 75, 3, 40, 3),
        ("INV-005", "BATCH-MED005", "Aspirin 100mg", LocationKind.PHARMACY, "pharm-003", "PharmEasy", 200, 12, 15, 4),
    ]
    db.add_all([
        InventoryItem(
            id=item_id, drug_batch_number=batch, drug_name=name, location=kind,
            location_id=location_id, location_name=location_name, quantity=quantity,
            reserved_quantity=reserved, available_quantity=quantity - reserved,
            unit_price=price, last_updated=day(updated), expiry_date=expiry(batch),
            is_expired=False,
        )
        for item_id, batch, name, kind, location_id, location_name, quantity, reserved, price, updated in stock
    ])

    db.add(Delivery(
        id="DEL-001", order_id="ORD-001", from_location="pharm-001", to_location="cust-001",
        from_location_name="Apollo Pharmacy", to_location_name="Customer User",
        drug_batch_number="BATCH-MED001", drug_name="Paracetamol 500mg", quantity=2,
        status=DeliveryStatus.SCHEDULED, scheduled_date=day(5),
        tracking_number="TRK-001-2024", notes="Scheduled for delivery",
    ))

    db.add_all([
        QualityCheck(id="QC-001", drug_batch_number="BATCH-MED001", manufacturer_id="mfg-001",
                     manufacturer_name="Cipla Ltd.", check_date=produced("BATCH-MED001") - timedelta(days=5),
                     quality_score=95, is_passed=True, notes="All quality parameters met",
                     inspector_name="Dr. Rajesh Kumar"),
        QualityCheck(id="QC-002", drug_batch_number="BATCH-MED011", manufacturer_id="mfg-002",
                     manufacturer_name="Sun Pharmaceutical Industries Ltd.",
                     check_date=produced("BATCH-MED011") - timedelta(days=5),
                     quality_score=92, is_passed=True, notes="Quality standards maintained",
                     inspector_name="Dr. Priya Sharma"),
        QualityCheck(id="QC-003", drug_batch_number="BATCH-MED021", manufacturer_id="mfg-003",
                     manufacturer_name="Dr. Reddy's Laboratories Ltd.",
                     check_date=produced("BATCH-MED021") - timedelta(days=5),
                     quality_score=98, is_passed=True, notes="Excellent quality parameters",
                     inspector_name="Dr. Amit Patel"),
    ])

    db.add_all([
        ProductionRequest(id="PR-001", distributor_id="dist-001", distributor_name="MedPlus Distribution Ltd.",
                          drug_name="Amoxicillin 500mg", requested_quantity=1000, requested_at=day(0),
                          status=ProductionRequestStatus.APPROVED, expected_completion_date=day(31),
                          notes="High demand in market"),
        ProductionRequest(id="PR-002", distributor_id="dist-002", distributor_name="Alliance Healthcare India",
                          drug_name="Azithromycin 250mg", requested_quantity=800, requested_at=day(1),
                          status=ProductionRequestStatus.PENDING, expected_completion_date=day(36),
                          notes="Seasonal demand increase"),
        ProductionRequest(id="PR-003", distributor_id="dist-003", distributor_name="McKesson India",
                          drug_name="Ciprofloxacin 500mg", requested_quantity=1200, requested_at=day(2),
                          status=ProductionRequestStatus.IN_PRODUCTION, expected_completion_date=day(26),
                          notes="Emergency stock requirement"),
    ])

    db.commit()
    logger.info("Seeded sample orders, inventory, deliveries, quality checks and production requests")
    return True
