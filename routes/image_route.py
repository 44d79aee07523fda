from typing import Optional

from fastapi import APIRouter, File, Form, HTTPException, Request, UploadFile

from controllers.image_controller import (
	capture_image,
	delete_image,
	get_image,
	get_image_by_ref,
	get_thumbnail,
	list_images,
	remove_orphaned_files,
	upload_image,
)

router = APIRouter(prefix="/images")


@router.get("")
async def list_images_route(request: Request):
	"""Return every catalogued image in insertion order."""
	try:
		return await list_images(request)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("", status_code=201)
async def upload_image_route(
	request: Request,
	file: UploadFile = File(...),
	external_ref: Optional[str] = Form(None),
):
	"""Save a picked image and add it to the gallery."""
	try:
		return await upload_image(request, file, external_ref)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/capture", status_code=201)
async def capture_image_route(
	request: Request,
	file: UploadFile = File(...),
	external_ref: Optional[str] = Form(None),
):
	"""Encode a captured photo as JPEG and add it to the gallery."""
	try:
		return await capture_image(request, file, external_ref)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/maintenance/orphans")
async def remove_orphans_route(request: Request):
	"""Delete image files that no catalog row references."""
	try:
		return await remove_orphaned_files(request)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/by-ref/{external_ref}")
async def get_image_by_ref_route(request: Request, external_ref: str):
	try:
		return await get_image_by_ref(request, external_ref)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/{image_id}")
async def get_image_route(request: Request, image_id: int):
	try:
		return await get_image(request, image_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.delete("/{image_id}")
async def delete_image_route(request: Request, image_id: int):
	"""Delete an image row, then its file if still present."""
	try:
		return await delete_image(request, image_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/{image_id}/thumbnail")
async def get_image_thumbnail(request: Request, image_id: int):
	"""Return the PNG thumbnail bytes for the specified image id."""
	try:
		return await get_thumbnail(request, image_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))
