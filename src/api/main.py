"""
FastAPI application entry-point.
"""
from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.routers import datasets, tables

app = FastAPI(
    title="Procurement List Views",
    version="0.1.0",
    description="Filter / sort / paginate engine behind the procurement dashboard tables",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(tables.router, prefix="/tables", tags=["Tables"])
app.include_router(datasets.router, prefix="/datasets", tags=["Datasets"])


@app.get("/health")
def health():
    return {"status": "ok"}
