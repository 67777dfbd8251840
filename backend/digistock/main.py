"""
DigiStock - FastAPI Application

Main entry point for the DigiStock livestock movement backend.

Workflows:
- PoliceClearance: PENDING → APPROVED | REJECTED
- MovementPermit: APPROVED → IN_TRANSIT → COMPLETED (or CANCELLED)
- CheckpointVerification: append-only scan records, flagged not rejected
- OwnershipTransfer: PENDING → CONFIRMED → COMPLETED (or CANCELLED)
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import LOG_LEVEL
from .database import init_db
from .routers import (
    analytics_router, clearances_router, livestock_router, permits_router, transfers_router,
)

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize database on startup."""
    init_db()
    yield

# Create FastAPI app
app = FastAPI(
    lifespan=lifespan,
    title="DigiStock",
    description="""
    DigiStock - Livestock Movement Control

    ## Documents
    1. **Police Clearance**: attests an animal/owner pair is not linked to theft
    2. **Movement Permit**: authorizes moving a cleared animal between two locations
    3. **Checkpoint Verification**: audit trail of permit scans in the field
    4. **Ownership Transfer**: two-party confirmed change of owner of record
    5. **Analytics**: clearance and permit counts for admins and police

    ## Key Principles
    - Status transitions are only accepted from their declared source states
    - Document numbers are unique per scope (PC-XX-000001, DG-YYYY-000001)
    - Validity is derived at read time, never stored
    - A flagged checkpoint scan is recorded, not rejected
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(clearances_router)
app.include_router(permits_router)
app.include_router(transfers_router)
app.include_router(livestock_router)
app.include_router(analytics_router)


@app.get("/")
async def root():
    """Root endpoint - API information."""
    return {
        "name": "DigiStock",
        "version": "1.0.0",
        "description": "Livestock clearance, movement permit and ownership transfer service",
        "docs": "/docs",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": "1.0.0"}


# For running with: python -m digistock.main
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8001)
