"""Simple in-memory store for destination entries."""

from __future__ import annotations

from typing import Dict, List, Optional
from uuid import uuid4

from models.destination import DestinationEntry

DEFAULT_DESTINATIONS = (
	("Tumpak Sewu", "Air terjun tercantik di Jawa Timur.", None),
	("Gunung Bromo", "Matahari terbitnya bagus banget.", "gunung_bromo"),
)


class DestinationStore:
	"""Manage the recommendation list of destinations.

	Entries live only for the life of the process. Their ids are what
	catalogued images store as `external_ref`.
	"""

	def __init__(self, seed_defaults: bool = True) -> None:
		self._entries: Dict[str, DestinationEntry] = {}
		if seed_defaults:
			for name, description, default_image in DEFAULT_DESTINATIONS:
				self.create(name, description, default_image=default_image)

	def create(
		self,
		name: str,
		description: str,
		image_path: Optional[str] = None,
		default_image: Optional[str] = None,
	) -> DestinationEntry:
		"""Create a destination; name and description must not be blank."""
		name, description = name.strip(), description.strip()
		if not name or not description:
			raise ValueError("Destination name and description are required.")
		entry = DestinationEntry(
			destination_id=uuid4().hex,
			name=name,
			description=description,
			image_path=image_path,
			default_image=default_image,
		)
		self._entries[entry.destination_id] = entry
		return entry

	def get(self, destination_id: str) -> DestinationEntry:
		"""Return a destination or raise KeyError if missing."""
		entry = self._entries.get(destination_id)
		if entry is None:
			raise KeyError(f"Destination {destination_id} not found")
		return entry

	def attach_image(self, destination_id: str, image_path: str) -> DestinationEntry:
		"""Point a destination at a catalogued image file."""
		entry = self.get(destination_id)
		entry.image_path = image_path
		return entry

	def list(self) -> List[DestinationEntry]:
		return list(self._entries.values())

	def delete(self, destination_id: str) -> DestinationEntry:
		"""Remove a destination and return it; raises KeyError if missing."""
		entry = self.get(destination_id)
		del self._entries[destination_id]
		return entry
