"""examtutor – FastAPI app entry point."""

from fastapi import FastAPI

from .ask import router as ask_router
from .ingest import router as ingest_router
from .questions import router as questions_router

app = FastAPI(title="Exam Tutor")
app.include_router(ingest_router)
app.include_router(ask_router)
app.include_router(questions_router)
