from fastapi import FastAPI, Depends, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session
from sqlalchemy import text
from typing import List
import logging

from adperf import __version__
from adperf.config import get_settings, get_cors_origins
from adperf.database import get_db, engine, Base
from adperf.routers import performance

# Register models with Base.metadata before create_all
import adperf.models  # noqa: F401


settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

cors_allow_origins: List[str] = get_cors_origins(settings)

if cors_allow_origins:
    logger.info("Allowing CORS origins: %s", cors_allow_origins)


# Create tables
Base.metadata.create_all(bind=engine)

app = FastAPI(title="Ad Performance API", version=__version__)

# Allow the dashboard frontend and localhost during development
app.add_middleware(
    CORSMiddleware,
    allow_origin_regex=r"https?://localhost(:\d+)?$",
    allow_origins=cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/api")
def api_info():
    """API information endpoint"""
    return {"message": "Ad Performance API", "version": __version__}


@app.get("/health")
def health_check(db: Session = Depends(get_db)):
    """Check if API and database are working"""
    try:
        db.execute(text("SELECT 1"))
        return {"status": "healthy", "database": "connected"}
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Database error: {str(e)}")


app.include_router(performance.router)
