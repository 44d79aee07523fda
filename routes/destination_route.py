"""FastAPI routes for the destination list."""

from typing import Optional

from fastapi import APIRouter, File, Form, HTTPException, Request, UploadFile

from controllers.destination_controller import (
	create_destination,
	delete_destination,
	get_destination,
	list_destinations,
)

router = APIRouter(prefix="/destinations")


@router.get("")
async def list_destinations_route(request: Request):
	try:
		return await list_destinations(request)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("", status_code=201)
async def create_destination_route(
	request: Request,
	name: str = Form(...),
	description: str = Form(...),
	file: Optional[UploadFile] = File(None),
):
	try:
		return await create_destination(request, name, description, file)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/{destination_id}")
async def get_destination_route(request: Request, destination_id: str):
	try:
		return await get_destination(request, destination_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.delete("/{destination_id}")
async def delete_destination_route(request: Request, destination_id: str):
	try:
		return await delete_destination(request, destination_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))
