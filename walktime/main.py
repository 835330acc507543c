"""FastAPI application setup for Walktime."""

from fastapi import FastAPI

from .api import router as api_router

app = FastAPI(title="Walktime")

# API routes
app.include_router(api_router, prefix="/v1")
