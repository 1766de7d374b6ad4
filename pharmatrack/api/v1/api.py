from fastapi import APIRouter
from pharmatrack.api.v1.auth import routes as auth
from pharmatrack.api.v1.drugs import routes as drugs
from pharmatrack.api.v1.tracking import routes as tracking
from pharmatrack.api.v1.imports import routes as imports
from pharmatrack.api.v1.operations import routes as operations

api_router = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(drugs.router, prefix="/drugs", tags=["drugs"])
api_router.include_router(tracking.router, prefix="/tracking", tags=["tracking"])
api_router.include_router(imports.router, prefix="/imports", tags=["imports"])
api_router.include_router(operations.orders_router, prefix="/orders", tags=["orders"])
api_router.include_router(operations.inventory_router, prefix="/inventory", tags=["inventory"])
api_router.include_router(operations.deliveries_router, prefix="/deliveries", tags=["deliveries"])
api_router.include_router(operations.quality_router, prefix="/quality-checks", tags=["quality-checks"])
api_router.include_router(operations.production_router, prefix="/production-requests", tags=["production-requests"])
