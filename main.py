from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import os
import logging

from db import init_db
from assessment.routes import router as assessment_router
from dotenv import load_dotenv

load_dotenv()

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
logging.info("App starting with DATABASE_URL")

app = FastAPI(title="School Assessment Backend")

CORS_ALLOW_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",")
    if origin.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

init_db()

app.include_router(assessment_router)


@app.get("/health", tags=["meta"], summary="Health check")
def health():
    return {"status": "ok"}
