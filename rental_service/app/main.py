import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shared.core.config import settings
from shared.core.database import Base, rental_engine
from shared.exception_handler import setup_exception_handlers
from shared.wrappers.response_wrapper import JsonResponseMiddleware
from .models import (
    drivers, vehicles, rental_contracts, payments, app_settings, notifications,
    vehicle_maintenance, vehicle_costs,
)
from .router import (
    contracts_router,
    dashboard_router,
    driver_portal_router,
    drivers_router,
    jobs_router,
    notifications_router,
    payments_router,
    settings_router,
    vehicles_router,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s]: %(message)s",
)

# Create all tables
Base.metadata.create_all(bind=rental_engine)

app = FastAPI(title="Rental Service API")

origins = [origin.strip() for origin in settings.CORS_ORIGINS.split(",") if origin.strip()]

# 1️⃣ CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 2️⃣ Custom JSON response wrapper middleware
app.add_middleware(JsonResponseMiddleware)

# Register exception handlers
setup_exception_handlers(app)

# Include routers
app.include_router(drivers_router.router)
app.include_router(vehicles_router.router)
app.include_router(contracts_router.router)
app.include_router(payments_router.router)
app.include_router(driver_portal_router.router)
app.include_router(settings_router.router)
app.include_router(notifications_router.router)
app.include_router(jobs_router.router)
app.include_router(dashboard_router.router)


@app.get("/api/rental/health")
def health():
    return {"status": "healthy"}
