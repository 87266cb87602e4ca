"""Service for the solicitation lifecycle (list, manual create, start, cancel, delete, fulfil)."""
import logging
import uuid
from datetime import datetime

from ..domain.entities import AlaServico, SolicitacaoStatus, TipoChecklist, ensure_transition, require_motivo
from ..domain.exceptions import (
    SolicitacaoNotFoundError, TemplateNotFoundError, ValidationError, ViaturaNotFoundError,
)
from ..models_db import ChecklistSolicitacao
from .authorization import require_capability
from .parsing import parse_date, parse_uuid

logger = logging.getLogger(__name__)


class SolicitacaoService:
    """
    Every mutation re-reads the row and applies a conditional update on the
    current status, so decisions are never taken on a stale cached copy.
    """

    def __init__(self, uow):
        self._uow = uow

    def list(self, unidade_id, status=None, viatura_id=None, data=None):
        """
        Args:
            status: a status value, a comma-separated list of them, or None for all.
            data: calendar date (or ISO string) of the occurrence.
        """
        statuses = None
        if status:
            raw = status.split(",") if isinstance(status, str) else [status]
            try:
                statuses = [SolicitacaoStatus(s.strip() if isinstance(s, str) else s) for s in raw]
            except ValueError:
                raise ValidationError(f"Status inválido: {status}", "status")
        return self._uow.solicitacoes.list(
            unidade_id,
            statuses=statuses,
            viatura_id=parse_uuid(viatura_id, "viatura_id"),
            data_referencia=parse_date(data),
        )

    def get(self, solicitacao_id, unidade_id) -> ChecklistSolicitacao:
        solicitacao = self._uow.solicitacoes.get_fresh(parse_uuid(solicitacao_id, "solicitacao_id"), unidade_id)
        if not solicitacao:
            raise SolicitacaoNotFoundError(str(solicitacao_id))
        return solicitacao

    def create(self, data, usuario, unidade_id) -> ChecklistSolicitacao:
        """Manual solicitation, not tied to any automation rule."""
        require_capability(usuario, "can_create_solicitacao")

        viatura_id = parse_uuid(data.get("viatura_id"), "viatura_id")
        if not viatura_id:
            raise ValidationError("Viatura é obrigatória", "viatura_id")
        if not self._uow.viaturas.get_for_unidade(viatura_id, unidade_id):
            raise ViaturaNotFoundError(str(viatura_id))

        template_id = parse_uuid(data.get("template_id"), "template_id")
        if template_id and not self._uow.templates.get_with_itens(template_id, unidade_id):
            raise TemplateNotFoundError(str(template_id))

        data_prevista = _parse_datetime(data.get("data_prevista"))
        solicitacao = ChecklistSolicitacao(
            id=uuid.uuid4(),
            unidade_id=unidade_id,
            viatura_id=viatura_id,
            template_id=template_id,
            automacao_id=None,
            tipo_checklist=TipoChecklist.parse(data.get("tipo_checklist") or TipoChecklist.DIARIO.value),
            ala_servico=AlaServico.parse(data["ala_servico"]) if data.get("ala_servico") else None,
            data_prevista=data_prevista,
            data_referencia=data_prevista.date(),
            status=SolicitacaoStatus.PENDENTE,
            criada_por_id=usuario.id,
        )
        self._uow.solicitacoes.add(solicitacao)
        self._uow.commit()
        logger.info(f"Solicitação manual {solicitacao.id} criada por {usuario.id}")
        return solicitacao

    def start(self, solicitacao_id, usuario, unidade_id) -> dict:
        """
        Claim a pending solicitation for filling out and return the wizard prefill.

        Starting is not exclusive and does not change the status; it only
        records who opened it last. A checklist already in progress for this
        solicitation is returned for continuation.
        """
        solicitacao = self.get(solicitacao_id, unidade_id)
        if solicitacao.status != SolicitacaoStatus.PENDENTE:
            ensure_transition(solicitacao.status, SolicitacaoStatus.ATENDIDA)

        agora = datetime.utcnow()
        if not self._uow.solicitacoes.mark_started(
            solicitacao.id, {"iniciada_em": agora, "iniciada_por_id": usuario.id}
        ):
            # Mudou de status entre a leitura e a escrita
            self._uow.rollback()
            atual = self.get(solicitacao_id, unidade_id)
            ensure_transition(atual.status, SolicitacaoStatus.ATENDIDA)
        self._uow.commit()

        em_andamento = self._uow.checklists.get_in_progress_for_solicitacao(solicitacao.id)
        logger.info(f"Solicitação {solicitacao.id} iniciada por {usuario.id}")
        return {
            "solicitacao_id": str(solicitacao.id),
            "viatura_id": str(solicitacao.viatura_id),
            "template_id": str(solicitacao.template_id) if solicitacao.template_id else None,
            "tipo_checklist": solicitacao.tipo_checklist.value,
            "ala_servico": solicitacao.ala_servico.value if solicitacao.ala_servico else None,
            "data_prevista": solicitacao.data_prevista.isoformat(),
            "checklist_id": str(em_andamento.id) if em_andamento else None,
        }

    def cancel(self, solicitacao_id, motivo, usuario, unidade_id) -> ChecklistSolicitacao:
        require_capability(usuario, "can_cancel_solicitacao", "Seu perfil não pode cancelar solicitações.")
        motivo = require_motivo(motivo)
        solicitacao = self.get(solicitacao_id, unidade_id)
        ensure_transition(solicitacao.status, SolicitacaoStatus.CANCELADA)

        updated = self._uow.solicitacoes.transition_status(solicitacao.id, SolicitacaoStatus.PENDENTE, {
            "status": SolicitacaoStatus.CANCELADA,
            "motivo_cancelamento": motivo,
            "cancelada_em": datetime.utcnow(),
            "cancelada_por_id": usuario.id,
        })
        if not updated:
            self._uow.rollback()
            atual = self.get(solicitacao_id, unidade_id)
            ensure_transition(atual.status, SolicitacaoStatus.CANCELADA)
        self._uow.commit()
        logger.info(f"Solicitação {solicitacao.id} cancelada por {usuario.id}")
        return self.get(solicitacao_id, unidade_id)

    def delete(self, solicitacao_id, usuario, unidade_id) -> None:
        require_capability(usuario, "can_delete_solicitacao", "Apenas Administrador ou Chefe podem excluir solicitações.")
        solicitacao = self.get(solicitacao_id, unidade_id)
        if solicitacao.status != SolicitacaoStatus.PENDENTE or not self._uow.solicitacoes.delete_pending(solicitacao.id):
            self._uow.rollback()
            atual = self.get(solicitacao_id, unidade_id)
            ensure_transition(atual.status, SolicitacaoStatus.CANCELADA)
        self._uow.commit()
        logger.info(f"Solicitação {solicitacao_id} excluída por {usuario.id}")

    def fulfill(self, solicitacao_id, checklist_id) -> bool:
        """
        Mark pending -> atendida. At most once: only the first caller wins,
        later calls are logged and return False. Does not commit.
        """
        updated = self._uow.solicitacoes.transition_status(solicitacao_id, SolicitacaoStatus.PENDENTE, {
            "status": SolicitacaoStatus.ATENDIDA,
            "checklist_id": checklist_id,
            "atendida_em": datetime.utcnow(),
        })
        if updated:
            logger.info(f"Solicitação {solicitacao_id} atendida pelo checklist {checklist_id}")
        else:
            logger.warning(f"Solicitação {solicitacao_id} não estava pendente; atendimento ignorado")
        return updated


def _parse_datetime(raw) -> datetime:
    """ISO 'YYYY-MM-DDTHH:MM[:SS]'; defaults to now when omitted."""
    if isinstance(raw, datetime):
        return raw
    if raw in (None, ""):
        return datetime.now().replace(second=0, microsecond=0)
    try:
        return datetime.fromisoformat(str(raw).strip())
    except ValueError:
        raise ValidationError(f"Data prevista inválida: {raw}", "data_prevista")
