import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cpq.config import settings
from cpq.database import Base, engine
from cpq.routes import (
    customers,
    dashboard,
    licenses,
    order_items,
    orders,
    pocs,
    products,
    quotes,
    users,
)

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

# Create app
app = FastAPI(title=settings.app_name)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -------------------------------------------------
# API Routes
# -------------------------------------------------
app.include_router(users.router)
app.include_router(customers.router)
app.include_router(pocs.router)
app.include_router(products.router)
app.include_router(quotes.router)
app.include_router(orders.router)
app.include_router(order_items.router)
app.include_router(licenses.router)
app.include_router(dashboard.router)


# -------------------------------------------------
# Global Health Check
# -------------------------------------------------
@app.get("/health")
def health_check():
    return {
        "status": "ok",
        "services": {
            "api": "ok"
        }
    }


# Create DB tables
Base.metadata.create_all(bind=engine)

logger.info("%s started (%s)", settings.app_name, settings.environment)
