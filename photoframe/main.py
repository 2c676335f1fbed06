from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, HTTPException, Response
from fastapi.middleware.cors import CORSMiddleware

from photoframe.config import get_settings
from photoframe.middlewares.body_guard import BodyGuardMiddleware
from photoframe.schemas import (
    MediaEntryCollection,
    MediaEntryOut,
    SaveToGalleryError,
    SaveToGalleryRequest,
    SaveToGalleryResponse,
)
from photoframe.services.errors import status_for
from photoframe.services.gallery import GallerySaver

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logging.getLogger("uvicorn").setLevel(settings.log_level)
logging.getLogger("uvicorn.error").setLevel(settings.log_level)
logging.getLogger("uvicorn.access").setLevel(settings.log_level)

logger = logging.getLogger("photoframe")

app = FastAPI(title="PhotoFrame Gallery API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=settings.allowed_origins != ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

if settings.guard.enabled:
    app.add_middleware(BodyGuardMiddleware, max_bytes=settings.guard.max_body_bytes)
    logger.info("BodyGuardMiddleware ready", extra={"max_body_bytes": settings.guard.max_body_bytes})


@app.get("/", include_in_schema=False)
def root() -> dict[str, Any]:
    return {"service": "photoframe-gallery", "ok": True}


@app.head("/", include_in_schema=False)
def root_head() -> Response:
    return Response(status_code=200)


@app.get("/health")
def health() -> dict[str, bool]:
    return {"ok": True}


# Plain ``def`` routes run on the worker thread pool, so blocking file and
# index I/O never stalls the event loop.
@app.post("/api/gallery/save", response_model=SaveToGalleryResponse)
def save_to_gallery(request_data: SaveToGalleryRequest) -> SaveToGalleryResponse:
    saver = GallerySaver.from_settings()
    result = saver.save(request_data.base64_data, request_data.file_name)
    if not result.success:
        raise HTTPException(
            status_code=status_for(result.error),
            detail=SaveToGalleryError(error=result.error or "error", message=result.message).model_dump(),
        )

    logger.info(
        "gallery save completed",
        extra={"path": str(result.path), "uri": result.uri},
    )
    return SaveToGalleryResponse(success=True, message=result.message)


@app.get("/api/gallery/entries", response_model=MediaEntryCollection)
def list_gallery_entries() -> MediaEntryCollection:
    saver = GallerySaver.from_settings()
    try:
        entries = saver.platform.media_index.entries(relative_path=saver.config.relative_path)
    except OSError as exc:
        logger.exception("Failed to read media index")
        raise HTTPException(status_code=500, detail="Media index unavailable") from exc

    return MediaEntryCollection(
        entries=[MediaEntryOut.model_validate(entry.to_dict()) for entry in entries]
    )
