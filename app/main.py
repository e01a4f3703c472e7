# =============================================================================
# app/main.py - FastAPI Application Entry Point
# =============================================================================
# This is the main entry point for the Pharmaceutical Surplus Marketplace API.
# It configures the FastAPI application with middleware, routers, and handlers.
#
# Usage:
#   uvicorn app.main:app --reload
#   python -m app.main            (binds API_HOST:API_PORT)
# =============================================================================

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import settings
from app.exceptions import (
    MarketplaceException,
    http_exception_handler,
    marketplace_exception_handler,
    supabase_exception_handler,
    validation_exception_handler,
)
from app.routers import (
    admin,
    documents,
    health,
    inventory_analyses,
    ledger,
    notifications,
    point_charge_requests,
    points,
    products,
    profiles,
    purchase_requests,
    sales_approval_reports,
    sales_lists,
)
from app.auth import routes as auth_routes
from lib.supabase_client import SupabaseClientError

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Logs startup configuration and shutdown. Supabase and Celery clients are
    created lazily on first use.
    """
    logger.info(f"Starting Marketplace API in {settings.ENVIRONMENT} mode")
    logger.info(f"CORS origins: {settings.cors_origins_list}")
    logger.info(
        f"Commission rate: {settings.COMMISSION_RATE:.2%}, "
        f"points per won: {settings.POINTS_PER_WON}"
    )

    yield

    logger.info("Shutting down Marketplace API")


# Create FastAPI application
app = FastAPI(
    title="Pharmaceutical Surplus Marketplace API",
    description="""
## Brokered marketplace for surplus pharmaceuticals

Licensed pharmacies list surplus stock, other members request to buy it, and
an administrator approves every listing and every purchase.

### How It Works

1. **Register** - Sign up with Supabase Auth, then create a profile and upload
   the pharmacy license and business registration
2. **List Surplus** - Submit a sales list of products with expiry dates and prices
3. **Request to Buy** - Buyers request a quantity of an active product
4. **Approve** - An admin approves the request; stock is reduced, a purchase
   order and a sales approval report for the seller are created
5. **Reveal Buyer** - The seller spends points to see who the buyer is

### Points

Points are charged by admins (directly or by approving a member's charge
request) and spent to reveal buyer information. Every balance change is
recorded in the ledger.

### Inventory Analysis

Upload an inventory sheet and a sales history sheet to find expiring items
and dead stock, then export the result as an Excel workbook.
""",
    version=health.API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {"name": "Auth", "description": "Verify JWT tokens and load the caller's profile"},
        {"name": "Profiles", "description": "Member profiles and license verification"},
        {"name": "Admin", "description": "Admin provisioning and account maintenance"},
        {"name": "Points", "description": "Point balances, admin charges, buyer info reveal"},
        {"name": "Point Charge Requests", "description": "Member requests for point top-ups"},
        {"name": "Ledger", "description": "Deposit and transaction history"},
        {"name": "Sales Lists", "description": "Seller submissions of surplus products"},
        {"name": "Products", "description": "The public product catalogue"},
        {"name": "Purchase Requests", "description": "Buyer requests and admin approval"},
        {"name": "Sales Approval Reports", "description": "Reports issued to sellers after approval"},
        {"name": "Inventory Analyses", "description": "Expiring and dead stock analysis"},
        {"name": "Documents", "description": "License and business registration uploads"},
        {"name": "Notifications", "description": "Admin notification emails"},
        {"name": "Health", "description": "API health and readiness checks"},
    ],
)


# =============================================================================
# Middleware
# =============================================================================

# CORS middleware - allows cross-origin requests
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list if settings.is_production else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Exception Handlers
# =============================================================================

@app.exception_handler(MarketplaceException)
async def handle_marketplace_exception(request: Request, exc: MarketplaceException):
    """Handle custom marketplace exceptions."""
    return await marketplace_exception_handler(request, exc)


@app.exception_handler(StarletteHTTPException)
async def handle_http_exception(request: Request, exc: StarletteHTTPException):
    return await http_exception_handler(request, exc)


@app.exception_handler(RequestValidationError)
async def handle_validation_exception(request: Request, exc: RequestValidationError):
    return await validation_exception_handler(request, exc)


@app.exception_handler(SupabaseClientError)
async def handle_supabase_exception(request: Request, exc: SupabaseClientError):
    logger.error(f"Supabase error on {request.method} {request.url.path}: {exc}")
    return await supabase_exception_handler(request, exc)


@app.exception_handler(Exception)
async def handle_general_exception(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "An unexpected error occurred",
            "code": "UNKNOWN_ERROR",
        }
    )


# =============================================================================
# Routers
# =============================================================================

# Authentication endpoints
app.include_router(
    auth_routes.router,
    prefix="/api/v1/auth",
    tags=["Auth"]
)

# Health check endpoints
app.include_router(
    health.router,
    prefix="/api/v1",
    tags=["Health"]
)

# Member profiles
app.include_router(
    profiles.router,
    prefix="/api/v1/profiles",
    tags=["Profiles"]
)

# Admin maintenance
app.include_router(
    admin.router,
    prefix="/api/v1/admin",
    tags=["Admin"]
)

# Points
app.include_router(
    points.router,
    prefix="/api/v1/points",
    tags=["Points"]
)

app.include_router(
    point_charge_requests.router,
    prefix="/api/v1/point-charge-requests",
    tags=["Point Charge Requests"]
)

app.include_router(
    ledger.router,
    prefix="/api/v1/ledger",
    tags=["Ledger"]
)

# Marketplace
app.include_router(
    sales_lists.router,
    prefix="/api/v1/sales-lists",
    tags=["Sales Lists"]
)

app.include_router(
    products.router,
    prefix="/api/v1/products",
    tags=["Products"]
)

app.include_router(
    purchase_requests.router,
    prefix="/api/v1/purchase-requests",
    tags=["Purchase Requests"]
)

app.include_router(
    sales_approval_reports.router,
    prefix="/api/v1/sales-approval-reports",
    tags=["Sales Approval Reports"]
)

# Tools
app.include_router(
    inventory_analyses.router,
    prefix="/api/v1/inventory-analyses",
    tags=["Inventory Analyses"]
)

app.include_router(
    documents.router,
    prefix="/api/v1/documents",
    tags=["Documents"]
)

app.include_router(
    notifications.router,
    prefix="/api/v1/notifications",
    tags=["Notifications"]
)


# =============================================================================
# Root Endpoint
# =============================================================================

@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint - returns API info.
    """
    return {
        "name": "Pharmaceutical Surplus Marketplace API",
        "version": health.API_VERSION,
        "docs": "/docs",
        "health": "/api/v1/health",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.is_development,
    )
