import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Imports de l'application
from vocab_srs.api.v1.api import api_router
from vocab_srs.core.config import settings
from vocab_srs.db import session as db_session
from vocab_srs.db.base import Base

# --- Configuration du logging ---
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# --- Initialisation de l'application FastAPI ---
app = FastAPI(
    title="Vocab SRS API",
    openapi_url="/api/v1/openapi.json",
)


def _sanitize_origin(origin: str | None) -> str | None:
    if not origin:
        return None
    value = origin.strip()
    if not value:
        return None
    if not value.startswith("http"):
        value = f"https://{value}"
    return value.rstrip("/")


def _build_cors_origins() -> list[str]:
    base_origins = {_sanitize_origin(o) for o in settings.BACKEND_CORS_ORIGINS}

    additional = os.getenv("ADDITIONAL_CORS_ORIGINS")
    if additional:
        for origin in additional.split(","):
            base_origins.add(_sanitize_origin(origin))

    allow_origins = sorted({origin for origin in base_origins if origin})
    logger.info("CORS origins configurés: %s", allow_origins)
    return allow_origins


# --- Configuration des Middlewares ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=_build_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["Authorization", "Content-Type"],
)

app.include_router(api_router, prefix="/api/v1")


# --- Événement de Démarrage ---
@app.on_event("startup")
def startup():
    logger.info("Vérification et création des tables de la base de données...")
    Base.metadata.create_all(bind=db_session.engine)
    logger.info("Les tables de la base de données sont prêtes.")


# --- Route Racine ---
@app.get("/")
def read_root():
    return {"message": "Welcome to Vocab SRS API!"}
