"""
Odometer Value Object - initial kilometer reading.
"""

from dataclasses import dataclass
from typing import Union

from ..exceptions import ValidationError


@dataclass(frozen=True)
class Odometro:
    """Non-negative integer odometer reading (km)."""

    value: int

    def __post_init__(self):
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValidationError("KM inicial deve ser um número inteiro", "km_inicial")
        if self.value < 0:
            raise ValidationError("KM inicial deve ser um número positivo", "km_inicial")

    @classmethod
    def parse(cls, raw: Union[int, str, None]) -> 'Odometro':
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            raise ValidationError("KM inicial é obrigatório", "km_inicial")
        if isinstance(raw, str):
            text = raw.strip()
            if not text.isdigit():
                raise ValidationError("KM inicial deve ser numérico", "km_inicial")
            return cls(int(text))
        return cls(raw)

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return f"{self.value:,} km".replace(",", ".")
