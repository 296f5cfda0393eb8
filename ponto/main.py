import logging
import os

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from . import config
from .database import Base, engine
from .routes import auth, bank_hours, employees, medical_certificates, payroll, time_records, vacations
from .utils.auth import STAFF_ROLES, role_required

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title="Ponto - Time Clock API")

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Replace with actual frontend URL in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth.router, prefix="/api/auth", tags=["authentication"])
app.include_router(time_records.router, prefix="/api/time-records", tags=["time records"])
app.include_router(vacations.router, prefix="/api/vacations", tags=["vacations"])
app.include_router(medical_certificates.router, prefix="/api/medical-certificates", tags=["medical certificates"])
app.include_router(
    bank_hours.router,
    prefix="/api/bank-hours",
    tags=["bank hours"],
    dependencies=[Depends(role_required(STAFF_ROLES))],
)
app.include_router(
    employees.router,
    prefix="/api/employees",
    tags=["employees"],
    dependencies=[Depends(role_required(STAFF_ROLES))],
)
app.include_router(
    payroll.router,
    prefix="/api/payroll",
    tags=["payroll"],
    dependencies=[Depends(role_required(STAFF_ROLES))],
)

os.makedirs(config.MEDIA_ROOT, exist_ok=True)
app.mount("/media", StaticFiles(directory=config.MEDIA_ROOT), name="media")

@app.on_event("startup")
async def startup_event():
    logger.info("Creating tables...")
    Base.metadata.create_all(bind=engine)
    logger.info("Application started.")

@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Application stopped.")

@app.get("/")
async def root():
    return {"message": "Welcome to the Ponto time clock API!"}

@app.get("/api/health")
async def health():
    return {"success": True, "data": {"status": "OK"}}
