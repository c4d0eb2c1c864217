import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from gamestore.config import get_settings
from gamestore.database import create_db_and_tables
from gamestore.exceptions import PaymentWorkflowError
from gamestore.routes import checkout, health, payments, user_orders

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Run DB creation ONLY in local
    if settings.ENV == "local":
        create_db_and_tables()
    yield

app = FastAPI(title="Gamestore Payments API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)


@app.exception_handler(PaymentWorkflowError)
async def payment_workflow_error_handler(request: Request, exc: PaymentWorkflowError):
    logger.error(f"{request.url.path} failed: {exc}")
    return JSONResponse(status_code=500, content={"error": str(exc)})


app.include_router(payments.router, prefix="/payments", tags=["Payments"])
app.include_router(checkout.router, prefix="/checkout", tags=["Checkout"])
app.include_router(user_orders.router, prefix="/orders", tags=["Orders"])
app.include_router(health.router, prefix="/health", tags=["Health"])


@app.get("/")
def root():
    return {
        "payment_endpoints": [
            "/payments/create-payment",
            "/payments/create-mercadopago-payment",
            "/payments/verify-payment",
        ],
        "checkout_endpoints": [
            "/checkout/orders",
        ],
        "order_endpoints": [
            "/orders/mine", "/orders/{order_number}", "/orders/{order_number}/timeline",
        ],
    }
