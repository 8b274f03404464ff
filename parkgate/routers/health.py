# parkgate/routers/health.py
"""
System health check endpoint.
Returns status of backend + store + gate link + capacity.
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
from sqlalchemy import text
from parkgate.database import get_db
from datetime import datetime, timezone

router = APIRouter()


@router.get("/health", summary="System health check")
def health_check(request: Request, db: Session = Depends(get_db)):
    """
    Returns:
    - Backend status
    - Database connectivity
    - Gate link status (degraded when the controller is not detected)
    - Capacity per partition
    """
    result = {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "backend": "ok",
        "database": "unknown",
        "gate": {},
        "capacity": [],
    }

    # Check database
    try:
        db.execute(text("SELECT 1"))
        result["database"] = "ok"
    except Exception as e:
        result["database"] = f"error: {str(e)}"
        result["status"] = "degraded"

    gate = getattr(request.app.state, "gate", None)
    if gate is not None:
        result["gate"] = gate.status()
        if not gate.link.available:
            result["status"] = "degraded"

    controller = getattr(request.app.state, "admission", None)
    if controller is not None and result["database"] == "ok":
        try:
            result["capacity"] = controller.occupancy()
        except Exception as e:
            result["capacity"] = f"error: {str(e)}"
            result["status"] = "degraded"

    return result
