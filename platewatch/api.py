"""
Platewatch FastAPI Server

Read-only view of the detection store and the watchlist, plus settings and
watchlist refresh controls.
"""

from typing import Any, Dict, List, Optional

import cv2
from fastapi import FastAPI, HTTPException, status
from fastapi.responses import Response
from pydantic import BaseModel

from platewatch.detection_store import DetectionStore
from platewatch.plates.watchlist_store import Watchlist
from platewatch.settings import ScannerSettings


class BoundingBoxOut(BaseModel):
    x: float
    y: float
    width: float
    height: float


class RecognizedItemOut(BaseModel):
    """Recognition log entry"""
    id: str
    text: str
    bbox: BoundingBoxOut
    is_match: bool
    timestamp: float


class DebugCropOut(BaseModel):
    """Debug crop metadata (pixels at /debug/crops/{id}.jpg)"""
    id: str
    timestamp: float
    recognized_text: Optional[str] = None
    width: int
    height: int


class WatchlistStatus(BaseModel):
    count: int
    last_update: str
    entries: List[str]


def create_app(store: DetectionStore, watchlist: Watchlist, settings: ScannerSettings) -> FastAPI:
    """Build the API around live scanner objects"""
    app = FastAPI(
        title="Platewatch API",
        description="Plate watchlist scanner: detections, debug crops and watchlist status",
        version="1.0.0",
    )

    @app.get("/health")
    async def health():
        return {
            "status": "ok",
            "store_running": store.is_running,
            "debug_mode": settings.debug_mode,
        }

    @app.get("/detections", response_model=List[RecognizedItemOut])
    async def list_detections(q: str = "", limit: int = 100):
        """Recognition log, newest-first, optionally filtered by text"""
        return [item.to_dict() for item in store.search(q)[:limit]]

    @app.get("/detections/matches", response_model=List[RecognizedItemOut])
    async def list_matches():
        return [item.to_dict() for item in store.matches()]

    @app.get("/debug/crops", response_model=List[DebugCropOut])
    async def list_debug_crops():
        return [crop.to_dict() for crop in store.debug_crops]

    @app.get("/debug/crops/{crop_id}.jpg")
    async def get_debug_crop(crop_id: str):
        crop = store.get_crop(crop_id)
        if crop is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Crop {crop_id} not found"
            )

        ok, encoded = cv2.imencode(".jpg", crop.image, [cv2.IMWRITE_JPEG_QUALITY, 90])
        if not ok:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to encode crop"
            )
        return Response(content=encoded.tobytes(), media_type="image/jpeg")

    @app.get("/watchlist", response_model=WatchlistStatus)
    async def get_watchlist():
        return WatchlistStatus(
            count=watchlist.count,
            last_update=watchlist.last_update_string(),
            entries=list(watchlist.entries),
        )

    @app.post("/watchlist/refresh", status_code=status.HTTP_202_ACCEPTED)
    async def refresh_watchlist():
        watchlist.refresh()
        return {"status": "refreshing"}

    @app.get("/settings")
    async def get_settings():
        return settings.to_dict()

    @app.put("/settings")
    async def update_settings(updates: Dict[str, Any]):
        try:
            changed = settings.update(**updates)
        except (ValueError, TypeError) as e:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=str(e)
            )
        return {"status": "updated", "changed": sorted(changed), "settings": settings.to_dict()}

    return app
