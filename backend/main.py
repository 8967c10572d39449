import os
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

from routes import upload, intelligence, sessions
from services.session_recorder import flush_pending_writes


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Let background session writes finish before the worker exits.
    await flush_pending_writes()


app = FastAPI(title="ExamForge API", lifespan=lifespan)

# Allow localhost in dev and any Vercel deployment in production.
# Set ALLOWED_ORIGINS env var to a comma-separated list to restrict origins.
_raw_origins = os.getenv("ALLOWED_ORIGINS", "http://localhost:3000")
ALLOWED_ORIGINS = [o.strip() for o in _raw_origins.split(",")]

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_origin_regex=r"^https://[a-zA-Z0-9-]+\.vercel\.app$",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition"],
)

app.include_router(upload.router, prefix="/api")
app.include_router(intelligence.router, prefix="/api")
app.include_router(sessions.router, prefix="/api")


@app.get("/api/health")
def health_check():
    return {"status": "ok"}
