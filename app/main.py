from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from .auth import router as auth_router
from .admin import router as admin_router
from .user import router as user_router, subscription_router
from .booking import router as booking_router
from .vehicle import router as vehicle_router
from .warehouse import router as warehouse_router, operations_router as warehouse_operations_router
from .agent import router as office_accounts_router, agents_router
from .team import router as team_router
from .analytics import router as analytics_router
from .notification import router as notification_router
from .core.database import engine, Base
from .core.config import CORS_ORIGINS, DEBUG
import logging

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if DEBUG else logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create tables when starting up
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created successfully")
    except Exception as e:
        logger.error(f"Error creating database tables: {str(e)}")
        raise
    yield

app = FastAPI(title="CourierHub Logistics Console API", lifespan=lifespan)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Exception handler for generic exceptions
@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.method} {request.url.path}: {str(exc)}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )

# Health check endpoints
@app.get("/health")
def health_check():
    return {"status": "healthy"}

@app.get("/api/health")
def api_health_check():
    return {"status": "healthy"}

# Include routers
app.include_router(auth_router)
app.include_router(user_router)
app.include_router(subscription_router)
app.include_router(booking_router)
app.include_router(vehicle_router)
app.include_router(warehouse_router)
app.include_router(warehouse_operations_router)
app.include_router(office_accounts_router)
app.include_router(agents_router)
app.include_router(team_router)
app.include_router(analytics_router)
app.include_router(notification_router)
app.include_router(admin_router)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=True, log_level="info")
