from __future__ import annotations

from typing import Dict

from fastapi import APIRouter, HTTPException, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from api.services.liveness import thread_count_check

router = APIRouter(tags=["probes"])


@router.get("/health")
def health(request: Request) -> Dict[str, str]:
    """Liveness: fails once the process holds too many threads."""
    error = thread_count_check(request.app.state.liveness_thread_threshold)
    if error:
        raise HTTPException(status_code=503, detail={"thread-threshold": error})
    return {"status": "ok"}


@router.get("/metrics")
def metrics(request: Request) -> Response:
    # Recorder registry only; the process-global default registry is not exposed
    registry = request.app.state.recorder.registry
    return Response(content=generate_latest(registry), media_type=CONTENT_TYPE_LATEST)
