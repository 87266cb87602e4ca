"""
Fuel level Value Object - percentage of the tank at checklist time.
"""

from dataclasses import dataclass
from typing import Union

from ..exceptions import ValidationError


@dataclass(frozen=True)
class NivelCombustivel:
    """
    Immutable fuel percentage, an integer from 0 to 100.

    Usage:
        nivel = NivelCombustivel.parse("80")
        print(nivel.value)    # 80
    """

    value: int

    MIN = 0
    MAX = 100

    def __post_init__(self):
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValidationError("Percentual de combustível deve ser um número inteiro", "combustivel_percentual")
        if not self.MIN <= self.value <= self.MAX:
            raise ValidationError(
                f"Percentual de combustível deve estar entre {self.MIN} e {self.MAX}",
                "combustivel_percentual",
            )

    @classmethod
    def parse(cls, raw: Union[int, str, None]) -> 'NivelCombustivel':
        """Parse user input. Only plain digit strings and ints are accepted."""
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            raise ValidationError("Percentual de combustível é obrigatório", "combustivel_percentual")
        if isinstance(raw, str):
            text = raw.strip()
            if not text.isdigit():
                raise ValidationError("Percentual de combustível deve ser numérico", "combustivel_percentual")
            return cls(int(text))
        return cls(raw)

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return f"{self.value}%"
