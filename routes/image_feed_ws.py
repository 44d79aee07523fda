"""WebSocket endpoint pushing the live image listing to gallery clients."""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from typing import AsyncIterator, List

from fastapi import APIRouter, Depends, HTTPException, WebSocket
from starlette.websockets import WebSocketDisconnect

from dal.image_dal import ImageDAL
from models.image_record import ImageRecord
from utils.database_init import AsyncDatabaseInitializer
from utils.errors import StorageUnavailable

LOGGER = logging.getLogger(__name__)

router = APIRouter()


def _require_db_initializer(websocket: WebSocket) -> AsyncDatabaseInitializer:
	db_initializer = getattr(websocket.app.state, "db_initializer", None)
	if db_initializer is None:
		raise HTTPException(status_code=500, detail="Image catalog unavailable")
	return db_initializer


async def _wait_for_disconnect(websocket: WebSocket) -> None:
	# Client frames carry nothing; keep reading only to notice the disconnect.
	while True:
		try:
			await websocket.receive_text()
		except (WebSocketDisconnect, RuntimeError):
			return


async def _next_snapshot(feed: AsyncIterator[List[ImageRecord]]) -> List[ImageRecord]:
	return await feed.__anext__()


@router.websocket("/ws/images")
async def image_feed_socket(websocket: WebSocket, db_initializer: AsyncDatabaseInitializer = Depends(_require_db_initializer)):
	"""Send an `images.snapshot` frame on connect and after every catalog change."""
	await websocket.accept()
	feed = ImageDAL(db_initializer).watch_all()
	disconnected = asyncio.create_task(_wait_for_disconnect(websocket))
	try:
		while True:
			next_snapshot = asyncio.create_task(_next_snapshot(feed))
			await asyncio.wait({next_snapshot, disconnected}, return_when=asyncio.FIRST_COMPLETED)
			if disconnected.done():
				next_snapshot.cancel()
				with contextlib.suppress(asyncio.CancelledError, StorageUnavailable):
					await next_snapshot
				break
			try:
				records = next_snapshot.result()
			except StorageUnavailable as exc:
				LOGGER.error("Live image listing failed: %s", exc)
				await websocket.send_text(json.dumps({"type": "error", "detail": "Image catalog unavailable"}))
				break
			await websocket.send_text(
				json.dumps({"type": "images.snapshot", "images": [record.to_dict() for record in records]})
			)
	except WebSocketDisconnect:
		pass
	finally:
		disconnected.cancel()
		with contextlib.suppress(asyncio.CancelledError):
			await disconnected
		await feed.aclose()
	if disconnected.cancelled():
		with contextlib.suppress(RuntimeError):
			await websocket.close()
