import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from bookstore.database import create_db_and_tables
from bookstore.config import settings
from bookstore.errors import BookstoreError
from bookstore.routes import (
    admin_orders,
    admin_settings,
    cart,
    checkout,
    health,
    payments,
    rentals,
    user_orders,
)

from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager


logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Run DB creation ONLY in local
    if settings.ENV == "local":
        create_db_and_tables()
    yield

app = FastAPI(title="Bookstore Checkout & Rentals API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(BookstoreError)
async def bookstore_error_handler(request: Request, exc: BookstoreError):
    if exc.status_code >= 500:
        # internals stay in the log
        logger.error(f"{request.method} {request.url.path} failed: {exc.message} {exc.payload}")
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    logger.info(f"{request.method} {request.url.path} rejected ({exc.status_code}): {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder({"detail": exc.message, **exc.payload}),
    )


app.include_router(cart.router, prefix="/cart", tags=["Cart"])
app.include_router(checkout.router , prefix="/checkout", tags=["Checkout"])
app.include_router(user_orders.router, prefix="/orders", tags=["Orders"])
app.include_router(payments.router, prefix="/orders", tags=["Payments"])
app.include_router(rentals.router, prefix="/rentals", tags=["Rentals"])
app.include_router(admin_orders.router, prefix="/admin", tags=["Admin Orders"])
app.include_router(admin_settings.router, prefix="/admin/settings", tags=["Admin Settings"])
app.include_router(health.router, prefix="/health", tags=["Health"])

@app.get("/")
def root():
    return {
        "cart": [
            "/cart", "/cart/add", "/cart/update/{id}",
            "/cart/remove/{id}", "/cart/clear"
        ],
        "checkout": [
            "/checkout/summary", "/checkout/place-order"
        ],
        "orders": [
            "/orders", "/orders/{order_id}", "/orders/{order_id}/track",
            "/orders/{order_id}/payment-callback"
        ],
        "rentals": [
            "/rentals/books/{book_id}/digital", "/rentals/{license_id}/read",
            "/rentals/{license_id}/end", "/rentals/{license_id}/security-event",
            "/rentals/books/{book_id}/hardcopy-pricing", "/rentals/books/{book_id}/hardcopy",
            "/rentals/hardcopy/{license_id}", "/rentals/active", "/rentals/history",
            "/rentals/{license_id}/logs"
        ],
        "admin": [
            "/admin/orders", "/admin/orders/{order_id}/status",
            "/admin/hardcopy-rentals/{license_id}/ship",
            "/admin/hardcopy-rentals/{license_id}/return",
            "/admin/settings/exchange-rate", "/admin/settings/shipping/{currency}"
        ]
    }
