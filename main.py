# apps/api/main.py

import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv
load_dotenv(dotenv_path=os.path.join(os.path.dirname(__file__), ".env"), override=True)

from app.routers import coast


# ---------- Boot ----------

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("coast-api")

# FastAPI app (create ONCE)
app = FastAPI(title="Coast FIRE API")

# CORS: allow both localhost & 127.0.0.1 plus explicit APP_BASE_URL
_default_webs = ["http://127.0.0.1:3000", "http://localhost:3000"]
_app_base = os.getenv("APP_BASE_URL")
allow_origins = _default_webs if not _app_base else list(set(_default_webs + [_app_base]))

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(coast.router)

logger.info("Coast FIRE API ready; CORS origins: %s", allow_origins)


# ---------- Probes ----------
@app.get("/")
def root():
    return {"ok": True, "service": "coast-fire-api", "cors": allow_origins}

@app.get("/health")
def health():
    return {"ok": True}
