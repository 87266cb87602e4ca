"""
Automation Rule - recurring schedule that produces pending solicitations.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from ..exceptions import ValidationError
from ..value_objects import DiasSemana, Horario
from .checklist import AlaServico, TipoChecklist


@dataclass(frozen=True)
class Ocorrencia:
    """One (rule, calendar date) occurrence; the idempotency key of generation."""
    automacao_id: UUID
    data: date
    data_prevista: datetime


@dataclass(frozen=True)
class RegraAutomacao:
    """
    Automation rule as seen by the generator.

    A rule may be stored incomplete while inactive. Before it can be activated
    or used to generate it needs a time of day, at least one weekday and a
    vehicle.
    """
    id: Optional[UUID]
    nome: str = ""
    ativo: bool = False
    unidade_id: Optional[UUID] = None
    viatura_id: Optional[UUID] = None
    template_id: Optional[UUID] = None
    horario: Optional[Horario] = None
    dias_semana: Optional[DiasSemana] = None
    ala_servico: Optional[AlaServico] = None
    tipo_checklist: TipoChecklist = TipoChecklist.DIARIO

    REQUIRED_FOR_GENERATION = ("horario", "dias_semana", "viatura_id")

    @classmethod
    def from_model(cls, model) -> 'RegraAutomacao':
        """
        Build from a ChecklistAutomacao row.

        Malformed stored schedule values are treated as missing so that a
        single bad row is reported instead of aborting a whole pass.
        """
        try:
            horario = Horario.parse(model.horario) if model.horario else None
        except ValidationError:
            horario = None
        try:
            dias = DiasSemana.parse(model.dias_semana) if model.dias_semana else None
        except ValidationError:
            dias = None

        return cls(
            id=model.id,
            nome=model.nome or "",
            ativo=bool(model.ativo),
            unidade_id=model.unidade_id,
            viatura_id=model.viatura_id,
            template_id=model.template_id,
            horario=horario,
            dias_semana=dias,
            ala_servico=AlaServico(model.ala_servico) if model.ala_servico else None,
            tipo_checklist=TipoChecklist(model.tipo_checklist or TipoChecklist.DIARIO),
        )

    @staticmethod
    def parse_payload(data: Dict[str, Any], partial: bool = False) -> Dict[str, Any]:
        """
        Validate a create/update request and return normalized column values.

        With partial=True only the keys present in `data` are returned.
        """
        values: Dict[str, Any] = {}

        def present(key: str) -> bool:
            return key in data if partial else True

        if present("nome"):
            nome = (data.get("nome") or "").strip()
            if not nome:
                raise ValidationError("Nome da automação é obrigatório", "nome")
            values["nome"] = nome
        if present("horario"):
            raw = data.get("horario")
            values["horario"] = str(Horario.parse(raw)) if raw not in (None, "") else None
        if present("dias_semana"):
            raw = data.get("dias_semana")
            values["dias_semana"] = DiasSemana.parse(raw).as_list() if raw else []
        if present("viatura_id"):
            values["viatura_id"] = _parse_uuid(data.get("viatura_id"), "viatura_id")
        if present("template_id"):
            values["template_id"] = _parse_uuid(data.get("template_id"), "template_id")
        if present("ala_servico"):
            raw = data.get("ala_servico")
            values["ala_servico"] = AlaServico.parse(raw) if raw else None
        if present("tipo_checklist"):
            raw = data.get("tipo_checklist")
            values["tipo_checklist"] = TipoChecklist.parse(raw) if raw else TipoChecklist.DIARIO
        if "ativo" in data:
            values["ativo"] = bool(data.get("ativo"))
        return values

    def missing_fields(self) -> List[str]:
        return [name for name in self.REQUIRED_FOR_GENERATION if not getattr(self, name)]

    def validate_for_generation(self) -> None:
        missing = self.missing_fields()
        if missing:
            labels = {"horario": "horário", "dias_semana": "dias da semana", "viatura_id": "viatura"}
            raise ValidationError(
                "Automação incompleta: informe " + ", ".join(labels[m] for m in missing),
                missing[0],
            )

    def occurrence_on(self, day: date, force: bool = False) -> Optional[Ocorrencia]:
        """
        Occurrence of this rule on `day`, or None when `day` is not one of its
        weekdays. `force` ignores the weekday (on-demand generation).
        """
        self.validate_for_generation()
        if not force and not self.dias_semana.includes(day):
            return None
        return Ocorrencia(automacao_id=self.id, data=day, data_prevista=self.horario.on(day))


def _parse_uuid(raw: Any, field: str) -> Optional[UUID]:
    if raw in (None, ""):
        return None
    if isinstance(raw, UUID):
        return raw
    try:
        return UUID(str(raw))
    except ValueError:
        raise ValidationError(f"Identificador inválido: {raw}", field)
