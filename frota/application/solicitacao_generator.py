"""
Solicitation generator - turns active automation rules into pending solicitations.

Each occurrence (rule, calendar date) yields at most one live solicitation:
the generator checks before inserting, and the partial unique index on
(automacao_id, data_referencia) rejects a concurrent pass that slips past
the check. A cancelled solicitation does not hold its occurrence, so the
next pass creates a fresh pending one. Every rule is committed on its own
so one bad rule cannot undo or block the others.
"""
import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional

from sqlalchemy.exc import IntegrityError

from ..domain.entities import RegraAutomacao, SolicitacaoStatus
from ..domain.exceptions import AutomacaoNotFoundError
from ..models_db import ChecklistSolicitacao
from .authorization import require_capability
from .parsing import parse_uuid

logger = logging.getLogger(__name__)


@dataclass
class GenerationReport:
    """Result of a generation pass."""
    data: date
    criadas: List[str] = field(default_factory=list)
    ignoradas: List[str] = field(default_factory=list)
    erros: List[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "data": self.data.isoformat(),
            "criadas": len(self.criadas),
            "ignoradas": len(self.ignoradas),
            "erros": self.erros,
            "solicitacoes": self.criadas,
        }


class SolicitacaoGenerator:
    def __init__(self, uow):
        self._uow = uow

    def run(self, now: Optional[datetime] = None, unidade_id=None) -> GenerationReport:
        """
        Periodic pass over every active rule (optionally one unit).

        A failure while handling one rule is rolled back and recorded in
        the report; the remaining rules are still processed.
        """
        now = now or datetime.now()
        report = GenerationReport(data=now.date())

        for model in self._uow.automacoes.list_active(unidade_id):
            automacao_id = str(model.id)
            try:
                self._run_rule(model, report)
            except Exception as e:
                self._uow.rollback()
                logger.error(f"Erro ao gerar solicitação da automação {automacao_id}: {e}", exc_info=True)
                report.erros.append({"automacao_id": automacao_id, "erro": str(e)})

        logger.info(
            f"Geração de solicitações {report.data}: {len(report.criadas)} criadas, "
            f"{len(report.ignoradas)} ignoradas, {len(report.erros)} erros"
        )
        return report

    def _run_rule(self, model, report):
        regra = RegraAutomacao.from_model(model)
        missing = regra.missing_fields()
        if missing:
            logger.warning(f"Automação {regra.id} ignorada: campos ausentes {missing}")
            report.erros.append({"automacao_id": str(regra.id), "erro": f"Campos ausentes: {', '.join(missing)}"})
            return

        ocorrencia = regra.occurrence_on(report.data)
        if ocorrencia is not None:
            self._generate(regra, ocorrencia, report)

    def generate_now(self, automacao_id, usuario, unidade_id, now: Optional[datetime] = None) -> GenerationReport:
        """
        On-demand generation for today's occurrence of one rule, ignoring its
        weekdays.

        Raises:
            PermissionDeniedError, AutomacaoNotFoundError, ValidationError (incomplete rule).
        """
        require_capability(usuario, "can_manage_automacoes")
        model = self._uow.automacoes.get_for_unidade(parse_uuid(automacao_id, "automacao_id"), unidade_id)
        if not model:
            raise AutomacaoNotFoundError(str(automacao_id))

        now = now or datetime.now()
        report = GenerationReport(data=now.date())
        regra = RegraAutomacao.from_model(model)
        ocorrencia = regra.occurrence_on(report.data, force=True)
        self._generate(regra, ocorrencia, report, criada_por_id=usuario.id)

        logger.info(f"Geração manual da automação {automacao_id} por {usuario.id}: {report.to_dict()}")
        return report

    def _generate(self, regra, ocorrencia, report, criada_por_id=None):
        key = f"{regra.id}:{ocorrencia.data.isoformat()}"
        if self._uow.solicitacoes.exists_for_occurrence(regra.id, ocorrencia.data):
            report.ignoradas.append(key)
            return

        solicitacao = ChecklistSolicitacao(
            id=uuid.uuid4(),
            unidade_id=regra.unidade_id,
            viatura_id=regra.viatura_id,
            template_id=regra.template_id,
            automacao_id=regra.id,
            tipo_checklist=regra.tipo_checklist,
            ala_servico=regra.ala_servico,
            data_prevista=ocorrencia.data_prevista,
            data_referencia=ocorrencia.data,
            status=SolicitacaoStatus.PENDENTE,
            criada_por_id=criada_por_id,
        )
        try:
            self._uow.solicitacoes.add(solicitacao)
            self._uow.commit()
        except IntegrityError:
            # Outra execução criou a mesma ocorrência primeiro
            self._uow.rollback()
            logger.info(f"Ocorrência {key} já criada por execução concorrente")
            report.ignoradas.append(key)
            return

        report.criadas.append(str(solicitacao.id))
