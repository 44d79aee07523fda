from fastapi import Request, UploadFile, HTTPException
from fastapi.responses import Response
from typing import Dict, Any, List, NoReturn, Optional
import io

from PIL import Image

from dal.image_dal import ImageDAL
from models.image_record import ImageRecord
from services.gallery_service import GalleryService
from utils.database_cleaner import DatabaseCleaner
from utils.errors import GalleryError, SourceUnreadable, StorageUnavailable, WriteFailed


def raise_for_gallery_error(exc: GalleryError) -> NoReturn:
    """Translate a typed catalog/ingestion failure into an HTTPException."""
    if isinstance(exc, SourceUnreadable):
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    if isinstance(exc, StorageUnavailable):
        raise HTTPException(status_code=503, detail=f"Image catalog unavailable: {exc}") from exc
    if isinstance(exc, WriteFailed):
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    raise HTTPException(status_code=500, detail=str(exc)) from exc


async def list_images(request: Request) -> List[Dict[str, Any]]:
    """Return every catalogued image in insertion order."""
    image_dal = ImageDAL(request.app.state.db_initializer)
    try:
        records = await image_dal.list_all()
    except GalleryError as exc:
        raise_for_gallery_error(exc)
    return [record.to_dict() for record in records]


async def upload_image(request: Request, file: UploadFile, external_ref: Optional[str] = None) -> Dict[str, Any]:
    """Handle a picked image upload: save it to disk, then catalogue it.

    Args:
        request: FastAPI Request object (used to access app.state for shared clients).
        file: Uploaded image file; its bytes are copied as-is.
        external_ref: Optional destination id to link the image to.

    Returns:
        The created record as a dict: id, local_path, external_ref.
    """
    gallery = GalleryService(request.app.state.db_initializer)
    try:
        record = await gallery.add_image(file, external_ref=external_ref or None)
    except GalleryError as exc:
        raise_for_gallery_error(exc)
    return record.to_dict()


async def capture_image(request: Request, file: UploadFile, external_ref: Optional[str] = None) -> Dict[str, Any]:
    """Handle a camera capture: decode the raster, re-encode it as JPEG, and catalogue it."""
    raw = await file.read()
    if not raw:
        raise HTTPException(status_code=400, detail="Captured image is empty.")
    try:
        image = Image.open(io.BytesIO(raw))
        image.load()
    except OSError as exc:
        raise HTTPException(status_code=400, detail="Captured bytes are not a supported image format") from exc

    gallery = GalleryService(request.app.state.db_initializer)
    try:
        record = await gallery.add_captured_image(image, external_ref=external_ref or None)
    except GalleryError as exc:
        raise_for_gallery_error(exc)
    return record.to_dict()


async def _require_image(request: Request, image_id: int) -> ImageRecord:
    image_dal = ImageDAL(request.app.state.db_initializer)
    try:
        record = await image_dal.get_by_id(int(image_id))
    except GalleryError as exc:
        raise_for_gallery_error(exc)
    if record is None:
        raise HTTPException(status_code=404, detail="Image not found")
    return record


async def get_image(request: Request, image_id: int) -> Dict[str, Any]:
    record = await _require_image(request, image_id)
    return record.to_dict()


async def get_image_by_ref(request: Request, external_ref: str) -> Dict[str, Any]:
    """Return the first image linked to `external_ref`."""
    image_dal = ImageDAL(request.app.state.db_initializer)
    try:
        record = await image_dal.get_by_external_ref(external_ref)
    except GalleryError as exc:
        raise_for_gallery_error(exc)
    if record is None:
        raise HTTPException(status_code=404, detail="No image linked to this reference")
    return record.to_dict()


async def delete_image(request: Request, image_id: int) -> Dict[str, Any]:
    """Delete an image row and, best effort, its backing file.

    Deleting an id that is already gone is not an error; `removed` is 0.
    """
    image_dal = ImageDAL(request.app.state.db_initializer)
    try:
        record = await image_dal.get_by_id(int(image_id))
        if record is None:
            return {"id": image_id, "removed": 0}
        removed = await GalleryService(request.app.state.db_initializer).remove_image(record)
    except GalleryError as exc:
        raise_for_gallery_error(exc)
    return {"id": image_id, "removed": removed}


async def get_thumbnail(request: Request, image_id: int) -> Response:
    """Controller to render the preview thumbnail for a stored image.

    Args:
        request: FastAPI Request (to access app.state.db_initializer).
        image_id: Integer id of the image row.

    Returns:
        FastAPI `Response` with `content` set to raw PNG bytes and
        `media_type` set to `image/png`.

    Raises:
        HTTPException(404) if the image row or its backing file is not found.
    """
    record = await _require_image(request, image_id)
    preview = await GalleryService(request.app.state.db_initializer).render_preview(record)
    if preview is None:
        raise HTTPException(status_code=404, detail="Image file not available for this record")

    return Response(content=preview, media_type="image/png")


async def remove_orphaned_files(request: Request) -> Dict[str, Any]:
    cleaner = DatabaseCleaner(request.app.state.db_initializer)
    try:
        removed = await cleaner.remove_orphaned_files()
    except GalleryError as exc:
        raise_for_gallery_error(exc)
    return {"removed": removed}
