from pharmatrack.domain.auth.models import User, UserSession
from pharmatrack.domain.drugs.models import Drug, DrugEvent
from pharmatrack.domain.operations.models import (
    Order, InventoryItem, Delivery, QualityCheck, ProductionRequest
)
from pharmatrack.domain.tracking.models import QRScan
