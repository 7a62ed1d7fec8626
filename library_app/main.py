"""
Main application entry point.
"""

import logging
import os

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from library_app.api.v1.book_endpoints import router as book_router
from library_app.api.v1.user_endpoints import router as user_router
from library_app.domain.errors import StoreUnavailableError

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Library Catalog API",
    description="Book catalog with a concurrency-safe borrow/return workflow.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

@app.exception_handler(StoreUnavailableError)
async def store_unavailable_handler(request: Request, exc: StoreUnavailableError) -> JSONResponse:
    """Answer 503 when the store fails outside an endpoint body, e.g. while a dependency is built."""
    logger.error("Store unavailable during %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": str(exc)},
    )

# Include API routers
app.include_router(book_router, prefix="/api/v1", tags=["books"])
app.include_router(user_router, prefix="/api/v1", tags=["users"])

@app.get("/")
def read_root():
    """Root endpoint."""
    return {
        "message": "Welcome to the Library Catalog API",
        "docs": "/docs",
        "health": "/api/v1/health"
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("library_app.main:app", host="0.0.0.0", port=8000, reload=True)
