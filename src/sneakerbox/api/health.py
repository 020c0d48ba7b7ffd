"""Health check endpoint.

Learn: Simple GET endpoint that verifies the server is running
and the database is reachable through the app's StorageClient.
"""

from fastapi import APIRouter, Depends

from sneakerbox import __version__
from sneakerbox.db.engine import StorageClient, get_storage

router = APIRouter()


@router.get("/health")
async def health_check(storage: StorageClient = Depends(get_storage)):
    """Check server health and database connectivity."""
    checks = {"server": "ok", "version": __version__}

    try:
        await storage.ping()
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = f"error: {type(e).__name__}"

    status = "healthy" if checks["database"] == "ok" else "degraded"
    return {"status": status, **checks}
