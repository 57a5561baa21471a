"""Health check endpoints."""

from __future__ import annotations

import logging
import shutil
import time

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from explorer.api.dependencies import get_compiler
from explorer.compiler.solc import SourceCompiler
from explorer.core.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check() -> dict:
    """Quick liveness probe."""
    return {"status": "healthy", "service": "chain-explorer"}


@router.get("/health/ready")
async def readiness_check(
    db: AsyncSession = Depends(get_db),
    compiler: SourceCompiler = Depends(get_compiler),
) -> JSONResponse:
    """Readiness check: verifies the database and the solc binary."""
    checks: dict[str, dict] = {}
    overall = True
    start = time.perf_counter()

    # ── Database ─────────────────────────────────────────────────────
    try:
        result = await db.execute(text("SELECT 1"))
        result.scalar()
        checks["database"] = {"status": "up"}
    except Exception as e:
        logger.warning("Database readiness check failed: %s", e)
        checks["database"] = {"status": "down", "error": str(e)}
        overall = False

    # ── solc ─────────────────────────────────────────────────────────
    binary = getattr(compiler, "binary", None)
    path = shutil.which(binary) if binary else None
    if path or getattr(compiler, "solc_version", ""):
        checks["solc"] = {"status": "up", "path": path or binary}
    else:
        checks["solc"] = {"status": "down", "note": f"{binary} not found on PATH"}
        overall = False

    elapsed = (time.perf_counter() - start) * 1000
    return JSONResponse(
        status_code=200 if overall else 503,
        content={
            "status": "ready" if overall else "degraded",
            "checks": checks,
            "duration_ms": round(elapsed, 1),
        },
    )
