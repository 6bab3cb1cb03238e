"""
Ticket Filter Rules - FastAPI Application

Main entry point for the filter rule administration and evaluation API.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ticketfilter import __version__
from ticketfilter.config import settings
from ticketfilter.domain.registry import build_default_registry
from ticketfilter.logging import setup_logging
from ticketfilter.api import rule_groups, filter_rules, matches, catalog, evaluations

setup_logging()

# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Ordered filter rules that classify ticket events and act on them",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc"
)

# Condition and action kinds; extensions register providers on this object
app.state.registry = build_default_registry()

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(rule_groups.router, prefix=settings.api_v1_prefix)
app.include_router(filter_rules.router, prefix=settings.api_v1_prefix)
app.include_router(matches.router, prefix=settings.api_v1_prefix)
app.include_router(catalog.router, prefix=settings.api_v1_prefix)
app.include_router(evaluations.router, prefix=settings.api_v1_prefix)


@app.get("/")
def root():
    """Root endpoint."""
    return {
        "name": settings.app_name,
        "version": __version__,
        "status": "operational",
        "docs": "/docs"
    }


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
