"""FastAPI application entry point."""
import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from farmconnect.config import settings
from farmconnect.database import Base, engine
from farmconnect.errors import ContactRequestError

# Import routers
from farmconnect.routers import users, products, contact_requests, notifications

# Import all models so Base.metadata knows about them
from farmconnect.models.user import User                                # noqa: F401
from farmconnect.models.product import Product                          # noqa: F401
from farmconnect.models.contact_request import ContactRequest           # noqa: F401
from farmconnect.models.activity import ContactRequestActivity          # noqa: F401
from farmconnect.models.notification import Notification                # noqa: F401

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="FarmConnect",
    description="Farmer-to-buyer marketplace — contact request negotiation between buyers and farmers",
    version="0.1.0",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(users.router, prefix="/api/users", tags=["Users"])
app.include_router(products.router, prefix="/api/products", tags=["Products"])
app.include_router(contact_requests.router, prefix="/api/contact-requests", tags=["ContactRequests"])
app.include_router(notifications.router, prefix="/api/notifications", tags=["Notifications"])


@app.exception_handler(ContactRequestError)
def handle_contact_request_error(request: Request, exc: ContactRequestError):
    """Map domain errors to their HTTP status with a {"detail": ...} body."""
    logger.info("%s %s -> %d %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.on_event("startup")
def on_startup():
    """Create database tables on startup (for SQLite dev mode)."""
    if settings.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)


@app.get("/api/health")
def health_check():
    return {"status": "ok"}
