"""Destination list helpers backed by the in-memory store."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import HTTPException, Request, UploadFile

from controllers.image_controller import raise_for_gallery_error
from services.destination_store import DestinationStore
from services.gallery_service import GalleryService
from utils.errors import GalleryError


async def list_destinations(request: Request) -> List[Dict[str, Any]]:
	store: DestinationStore = request.app.state.destination_store
	return [entry.to_dict() for entry in store.list()]


async def create_destination(
	request: Request,
	name: str,
	description: str,
	file: Optional[UploadFile] = None,
) -> Dict[str, Any]:
	"""Create a destination, saving and cataloguing its picture when one is uploaded.

	The catalogued image carries the new destination id as its external ref.
	If the picture cannot be saved the destination is discarded.
	"""
	store: DestinationStore = request.app.state.destination_store
	try:
		entry = store.create(name, description)
	except ValueError as exc:
		raise HTTPException(status_code=400, detail=str(exc)) from exc

	if file is None:
		return entry.to_dict()

	gallery = GalleryService(request.app.state.db_initializer)
	try:
		record = await gallery.add_image(file, external_ref=entry.destination_id)
	except GalleryError as exc:
		store.delete(entry.destination_id)
		raise_for_gallery_error(exc)

	store.attach_image(entry.destination_id, record.local_path)
	result = entry.to_dict()
	result["image_id"] = record.id
	return result


async def get_destination(request: Request, destination_id: str) -> Dict[str, Any]:
	store: DestinationStore = request.app.state.destination_store
	try:
		entry = store.get(destination_id)
	except KeyError as exc:
		raise HTTPException(status_code=404, detail=str(exc)) from exc
	return entry.to_dict()


async def delete_destination(request: Request, destination_id: str) -> Dict[str, Any]:
	"""Remove a destination from the list. Linked images stay in the gallery."""
	store: DestinationStore = request.app.state.destination_store
	try:
		entry = store.delete(destination_id)
	except KeyError as exc:
		raise HTTPException(status_code=404, detail=str(exc)) from exc
	return {"destination_id": entry.destination_id, "deleted": True}
