"""
Schedule Value Objects - time of day and weekday sets used by automation rules.
"""

import re
import unicodedata
from dataclasses import dataclass
from datetime import date, datetime, time
from enum import IntEnum
from typing import FrozenSet, Iterable, List, Union

from ..exceptions import ValidationError


class DiaSemana(IntEnum):
    """Weekdays numbered like date.weekday() (Monday = 0)."""
    SEGUNDA = 0
    TERCA = 1
    QUARTA = 2
    QUINTA = 3
    SEXTA = 4
    SABADO = 5
    DOMINGO = 6

    @property
    def label_pt(self) -> str:
        labels = {
            self.SEGUNDA: "Segunda-feira",
            self.TERCA: "Terça-feira",
            self.QUARTA: "Quarta-feira",
            self.QUINTA: "Quinta-feira",
            self.SEXTA: "Sexta-feira",
            self.SABADO: "Sábado",
            self.DOMINGO: "Domingo",
        }
        return labels[self]

    @classmethod
    def parse(cls, raw: Union[int, str]) -> 'DiaSemana':
        """Accept weekday numbers or Portuguese/English names and abbreviations."""
        if isinstance(raw, bool):
            raise ValidationError(f"Dia da semana inválido: {raw}", "dias_semana")
        if isinstance(raw, int):
            try:
                return cls(raw)
            except ValueError:
                raise ValidationError(f"Dia da semana inválido: {raw}", "dias_semana")

        key = _strip_accents(str(raw)).strip().lower()
        if key.isdigit():
            return cls.parse(int(key))
        for prefix, dia in _NAME_PREFIXES:
            if key.startswith(prefix):
                return dia
        raise ValidationError(f"Dia da semana inválido: {raw}", "dias_semana")

    @classmethod
    def of(cls, day: date) -> 'DiaSemana':
        return cls(day.weekday())


_NAME_PREFIXES = (
    ("seg", DiaSemana.SEGUNDA), ("mon", DiaSemana.SEGUNDA),
    ("ter", DiaSemana.TERCA), ("tue", DiaSemana.TERCA),
    ("qua", DiaSemana.QUARTA), ("wed", DiaSemana.QUARTA),
    ("qui", DiaSemana.QUINTA), ("thu", DiaSemana.QUINTA),
    ("sex", DiaSemana.SEXTA), ("fri", DiaSemana.SEXTA),
    ("sab", DiaSemana.SABADO), ("sat", DiaSemana.SABADO),
    ("dom", DiaSemana.DOMINGO), ("sun", DiaSemana.DOMINGO),
)


def _strip_accents(text: str) -> str:
    return "".join(
        c for c in unicodedata.normalize("NFKD", text) if not unicodedata.combining(c)
    )


@dataclass(frozen=True)
class Horario:
    """
    Time of day in HH:MM.

    Usage:
        h = Horario.parse("7:00")
        str(h)            # "07:00"
        h.on(date(2025, 1, 6))  # datetime(2025, 1, 6, 7, 0)
    """

    hour: int
    minute: int

    PATTERN = re.compile(r'^(\d{1,2}):(\d{2})(?::(\d{2}))?$')

    def __post_init__(self):
        if not 0 <= self.hour <= 23 or not 0 <= self.minute <= 59:
            raise ValidationError(f"Horário inválido: {self.hour:02d}:{self.minute:02d}", "horario")

    @classmethod
    def parse(cls, raw: str) -> 'Horario':
        if not raw or not str(raw).strip():
            raise ValidationError("Horário é obrigatório", "horario")
        match = cls.PATTERN.match(str(raw).strip())
        if not match:
            raise ValidationError(f"Horário deve estar no formato HH:MM: {raw}", "horario")
        return cls(int(match.group(1)), int(match.group(2)))

    def as_time(self) -> time:
        return time(self.hour, self.minute)

    def on(self, day: date) -> datetime:
        """Combine with a calendar date into the expected datetime."""
        return datetime.combine(day, self.as_time())

    def __str__(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


@dataclass(frozen=True)
class DiasSemana:
    """Immutable non-empty set of weekdays."""

    dias: FrozenSet[DiaSemana]

    def __post_init__(self):
        if not self.dias:
            raise ValidationError("Selecione ao menos um dia da semana", "dias_semana")

    @classmethod
    def parse(cls, raw: Iterable[Union[int, str]]) -> 'DiasSemana':
        if raw is None or isinstance(raw, (str, bytes)):
            raise ValidationError("Dias da semana devem ser uma lista", "dias_semana")
        return cls(frozenset(DiaSemana.parse(item) for item in raw))

    def includes(self, day: date) -> bool:
        return DiaSemana.of(day) in self.dias

    def as_list(self) -> List[int]:
        """Sorted weekday numbers, the stored representation."""
        return sorted(int(d) for d in self.dias)

    def __str__(self) -> str:
        return ", ".join(DiaSemana(d).label_pt for d in self.as_list())
