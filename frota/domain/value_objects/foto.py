"""
Photo attachment metadata returned by the upload collaborator.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..exceptions import ValidationError


@dataclass(frozen=True)
class Foto:
    url: str
    name: Optional[str] = None
    size: Optional[int] = None
    filename: Optional[str] = None

    def __post_init__(self):
        if not self.url:
            raise ValidationError("URL da foto é obrigatória", "fotos")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Foto':
        """Build from either stored metadata or an upload response (originalName)."""
        if not isinstance(data, dict):
            raise ValidationError("Foto inválida", "fotos")
        return cls(
            url=data.get("url") or "",
            name=data.get("name") or data.get("originalName"),
            size=data.get("size"),
            filename=data.get("filename"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"url": self.url, "name": self.name, "size": self.size, "filename": self.filename}
