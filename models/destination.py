"""Destination ("tempat wisata") models kept in transient in-process state."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional


@dataclass
class DestinationEntry:
	"""A travel destination shown in the recommendation list.

	`image_path` points at an `ImageRecord.local_path` for uploaded photos;
	`default_image` names a bundled asset for the seeded entries.
	"""

	destination_id: str
	name: str
	description: str
	image_path: Optional[str] = None
	default_image: Optional[str] = None

	def to_dict(self) -> Dict[str, Any]:
		return asdict(self)
