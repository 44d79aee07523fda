from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional


@dataclass
class ImageRecord:
    """In-memory representation of a row in the `images` catalog table.

    Attributes:
        id: Primary key assigned by the store (None for new records).
        local_path: Absolute path of the backing image file. The file may have
            been removed out-of-band, so readers must not assume it exists.
        external_ref: Optional id of the destination entry this image belongs to.
    """

    id: Optional[int]
    local_path: str
    external_ref: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
