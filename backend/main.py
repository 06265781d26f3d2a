from fastapi import FastAPI, Request
from dotenv import load_dotenv

load_dotenv()
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from database import Base, engine
from datetime import datetime
import os
import routers.accounting_heads as accounting_heads
import routers.app_config as app_config
import routers.batch as batch
import routers.batch_inventory_consumption as batch_inventory_consumption
import routers.expenses as expenses
import routers.financial_reports as financial_reports
import routers.income as income
import routers.inventory_items as inventory_items
from exceptions import (
    ConflictError,
    InsufficientStockError,
    InvoiceCapacityError,
    LedgerError,
    NotFoundError,
    TransportError,
    ValidationError,
)
import logging
from fastapi.openapi.utils import get_openapi


LOG_DIR = os.getenv("LOG_DIR", "logs")
os.makedirs(LOG_DIR, exist_ok=True) # Create the log directory if it doesn't exist
LOG_LEVEL = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)

# Create a unique log file name based on current date/time
current_time_str = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
LOG_FILE = os.path.join(LOG_DIR, f"app_{current_time_str}.log")

# Configure the root logger
logging.basicConfig(
    level=LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    filename=LOG_FILE, # Log to a file
    filemode='a' # Append to the file if it exists
)

# Also add a StreamHandler to output logs to the console
console_handler = logging.StreamHandler()
console_handler.setLevel(LOG_LEVEL)
console_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
logging.getLogger().addHandler(console_handler) # Add to the root logger

# Get a logger for this module (app.main)
logger = logging.getLogger(__name__)
logger.info("Application starting up...")
# --- End Logging Configuration ---


# Create database tables
Base.metadata.create_all(bind=engine)


app = FastAPI()


allowed_origins_str = os.getenv(
    "CORS_ALLOWED_ORIGINS",
    "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000"
)

# Split the string into a list, stripping any whitespace
allowed_origins = [origin.strip() for origin in allowed_origins_str.split(',')]

# Enable CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Ledger error mapping ---
# Most specific classes first; the base class catches anything else.
ERROR_STATUS_CODES = (
    (InsufficientStockError, 409),
    (InvoiceCapacityError, 409),
    (ValidationError, 400),
    (NotFoundError, 404),
    (ConflictError, 409),
    (TransportError, 503),
    (LedgerError, 400),
)


def status_code_for(exc: LedgerError) -> int:
    for exc_class, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, exc_class):
            return status_code
    return 400


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected ({exc.code}): {exc.message}")
    return JSONResponse(status_code=status_code, content={"detail": exc.message, "code": exc.code})


def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title="Himalayan Flavours Ledger API",
        version="1.0.0",
        description="Batch cost/profit accounting and inventory ledger for Himalayan Flavours",
        routes=app.routes,
    )
    openapi_schema["components"]["securitySchemes"] = {
        "BearerAuth": {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
        }
    }
    # Apply security globally to all endpoints
    openapi_schema["security"] = [{"BearerAuth": []}]
    app.openapi_schema = openapi_schema
    return app.openapi_schema

app.openapi = custom_openapi


app.include_router(accounting_heads.router)
app.include_router(app_config.router)
app.include_router(batch.router)
app.include_router(batch_inventory_consumption.router)
app.include_router(expenses.router)
app.include_router(income.router)
app.include_router(inventory_items.router)
app.include_router(financial_reports.router)

@app.get("/")
async def test_route():
    return {"message": "Welcome to the Himalayan Flavours ledger API!"}
