"""Service for vehicle checklists: persistence, finalization through the credential gate, cancel, delete."""
import logging
import math
import uuid
from datetime import datetime

from ..domain.entities import (
    AlaServico, ChecklistStatus, ItemChecklist, SituacaoChecklist, SolicitacaoStatus,
    TipoChecklist, require_motivo, validate_itens,
)
from ..domain.exceptions import (
    BusinessRuleViolationError, ChecklistAlreadyFinalizedError, ChecklistNotFoundError,
    SolicitacaoNotFoundError, TemplateNotFoundError, ValidationError, ViaturaNotFoundError,
)
from ..domain.value_objects import NivelCombustivel, Odometro
from ..models_db import ChecklistViatura
from .authorization import require_capability
from .parsing import parse_date, parse_uuid
from .credential_gate import CredentialGate
from .solicitacao_service import SolicitacaoService

logger = logging.getLogger(__name__)

MAX_PER_PAGE = 100


class ChecklistService:
    def __init__(self, uow, gate=None):
        self._uow = uow
        self._gate = gate or CredentialGate(uow)
        self._solicitacoes = SolicitacaoService(uow)

    # --- lookups ------------------------------------------------------------

    def list_templates(self, unidade_id, tipo_viatura=None):
        return self._uow.templates.list(unidade_id, tipo_viatura=tipo_viatura)

    def get_template(self, template_id, unidade_id):
        template = self._uow.templates.get_with_itens(parse_uuid(template_id, "template_id"), unidade_id)
        if not template:
            raise TemplateNotFoundError(str(template_id))
        return template

    def list_viaturas(self, unidade_id, tipo=None, busca=None, incluir_inativas=False):
        return self._uow.viaturas.list(
            unidade_id, ativo=None if incluir_inativas else True, tipo=tipo, busca=busca
        )

    def list(self, unidade_id, page=1, per_page=20, status=None, viatura_id=None,
             data_inicio=None, data_fim=None) -> dict:
        page = max(int(page or 1), 1)
        per_page = min(max(int(per_page or 20), 1), MAX_PER_PAGE)
        try:
            status = ChecklistStatus(status) if status else None
        except ValueError:
            raise ValidationError(f"Status inválido: {status}", "status")

        rows, total = self._uow.checklists.list_paginated(
            unidade_id,
            page=page,
            per_page=per_page,
            status=status,
            viatura_id=parse_uuid(viatura_id, "viatura_id"),
            data_inicio=parse_date(data_inicio, "data_inicio"),
            data_fim=parse_date(data_fim, "data_fim"),
        )
        return {
            "checklists": [c.to_dict() for c in rows],
            "total": total,
            "page": page,
            "per_page": per_page,
            "pages": math.ceil(total / per_page) if total else 0,
        }

    def get(self, checklist_id, unidade_id) -> ChecklistViatura:
        checklist = self._uow.checklists.get_fresh(parse_uuid(checklist_id, "checklist_id"), unidade_id)
        if not checklist:
            raise ChecklistNotFoundError(str(checklist_id))
        return checklist

    # --- writes -------------------------------------------------------------

    def create(self, data, usuario, unidade_id) -> ChecklistViatura:
        """
        Persist a new in-progress checklist.

        When linked to a solicitation the solicitation must still be pending
        and the vehicle and checklist type must be the ones it asked for.
        """
        viatura_id = parse_uuid(data.get("viatura_id"), "viatura_id")
        if not viatura_id:
            raise ValidationError("Viatura é obrigatória", "viatura_id")
        if not self._uow.viaturas.get_for_unidade(viatura_id, unidade_id):
            raise ViaturaNotFoundError(str(viatura_id))

        template_id = parse_uuid(data.get("template_id"), "template_id")
        if template_id and not self._uow.templates.get_with_itens(template_id, unidade_id):
            raise TemplateNotFoundError(str(template_id))

        tipo = TipoChecklist.parse(data.get("tipo_checklist") or TipoChecklist.DIARIO.value)
        solicitacao_id = parse_uuid(data.get("solicitacao_id"), "solicitacao_id")
        if solicitacao_id:
            self._check_solicitacao(solicitacao_id, unidade_id, viatura_id, tipo)

        itens = _parse_itens(data.get("itens"))
        checklist = ChecklistViatura(
            id=uuid.uuid4(),
            unidade_id=unidade_id,
            viatura_id=viatura_id,
            template_id=template_id,
            usuario_id=usuario.id,
            solicitacao_id=solicitacao_id,
            km_inicial=int(Odometro.parse(data.get("km_inicial"))),
            combustivel_percentual=int(NivelCombustivel.parse(data.get("combustivel_percentual"))),
            ala_servico=_parse_ala(data.get("ala_servico")),
            tipo_checklist=tipo,
            data_hora=datetime.utcnow(),
            status=ChecklistStatus.EM_ANDAMENTO,
            situacao=SituacaoChecklist.from_statuses(i.status for i in itens),
            observacoes_gerais=data.get("observacoes_gerais") or None,
        )
        self._uow.checklists.replace_items(checklist, itens)
        self._uow.checklists.add(checklist)
        self._uow.commit()
        logger.info(f"Checklist {checklist.id} criado por {usuario.id} (solicitação {solicitacao_id})")
        return checklist

    def update(self, checklist_id, data, usuario, unidade_id) -> ChecklistViatura:
        """Edit an in-progress checklist; finalized or cancelled ones are read-only."""
        checklist = self.get(checklist_id, unidade_id)
        self._ensure_editable(checklist)

        if "viatura_id" in data or "tipo_checklist" in data:
            viatura_id = parse_uuid(data.get("viatura_id"), "viatura_id") or checklist.viatura_id
            tipo = TipoChecklist.parse(data.get("tipo_checklist") or checklist.tipo_checklist.value)
            if checklist.solicitacao_id and (viatura_id != checklist.viatura_id or tipo != checklist.tipo_checklist):
                raise ValidationError("Viatura e tipo são definidos pela solicitação", "viatura_id")
            if not self._uow.viaturas.get_for_unidade(viatura_id, unidade_id):
                raise ViaturaNotFoundError(str(viatura_id))
            checklist.viatura_id = viatura_id
            checklist.tipo_checklist = tipo
        if "km_inicial" in data:
            checklist.km_inicial = int(Odometro.parse(data.get("km_inicial")))
        if "combustivel_percentual" in data:
            checklist.combustivel_percentual = int(NivelCombustivel.parse(data.get("combustivel_percentual")))
        if "ala_servico" in data:
            checklist.ala_servico = _parse_ala(data.get("ala_servico"))
        if "observacoes_gerais" in data:
            checklist.observacoes_gerais = data.get("observacoes_gerais") or None
        if "itens" in data:
            itens = _parse_itens(data.get("itens"))
            self._uow.checklists.replace_items(checklist, itens)
            checklist.situacao = SituacaoChecklist.from_statuses(i.status for i in itens)

        self._uow.commit()
        logger.info(f"Checklist {checklist.id} atualizado por {usuario.id}")
        return checklist

    def finalize(self, checklist_id, usuario_autenticacao, senha, usuario, unidade_id) -> dict:
        """
        Finalize behind the credential gate.

        Order: gate, status check, conditional em_andamento -> finalizado,
        fulfil the linked solicitation (at most once), single commit. A gate
        failure raises before anything is written.

        Returns:
            {"checklist": ChecklistViatura, "solicitacao_atendida": bool}
        """
        autenticado = self._gate.validate(usuario_autenticacao, senha, operador=usuario)

        checklist = self.get(checklist_id, unidade_id)
        self._ensure_editable(checklist)
        validate_itens(ItemChecklist.from_payload(i.to_dict()) for i in checklist.itens)

        finalizado = self._uow.checklists.transition_status(checklist.id, [ChecklistStatus.EM_ANDAMENTO], {
            "status": ChecklistStatus.FINALIZADO,
            "usuario_autenticacao": autenticado.nome,
            "finalizado_em": datetime.utcnow(),
        })
        if not finalizado:
            self._uow.rollback()
            self._ensure_editable(self.get(checklist_id, unidade_id))
            raise ChecklistAlreadyFinalizedError(str(checklist_id))

        atendida = False
        if checklist.solicitacao_id:
            atendida = self._solicitacoes.fulfill(checklist.solicitacao_id, checklist.id)

        self._uow.commit()
        logger.info(f"Checklist {checklist.id} finalizado (autenticação de {autenticado.id})")
        return {"checklist": self.get(checklist_id, unidade_id), "solicitacao_atendida": atendida}

    def cancel(self, checklist_id, motivo, usuario, unidade_id) -> ChecklistViatura:
        require_capability(usuario, "can_cancel_checklist", "Seu perfil não pode cancelar checklists.")
        motivo = require_motivo(motivo)
        checklist = self.get(checklist_id, unidade_id)
        ChecklistStatus(checklist.status).ensure_can_transition_to(ChecklistStatus.CANCELADO)

        cancelado = self._uow.checklists.transition_status(
            checklist.id,
            [ChecklistStatus.EM_ANDAMENTO, ChecklistStatus.FINALIZADO],
            {"status": ChecklistStatus.CANCELADO, "cancelamento_motivo": motivo, "cancelado_em": datetime.utcnow()},
        )
        if not cancelado:
            self._uow.rollback()
            atual = self.get(checklist_id, unidade_id)
            ChecklistStatus(atual.status).ensure_can_transition_to(ChecklistStatus.CANCELADO)
        self._uow.commit()
        logger.info(f"Checklist {checklist.id} cancelado por {usuario.id}")
        return self.get(checklist_id, unidade_id)

    def delete(self, checklist_id, usuario, unidade_id) -> None:
        require_capability(usuario, "can_delete_checklist", "Apenas Administrador ou Chefe podem excluir checklists.")
        checklist = self.get(checklist_id, unidade_id)
        self._uow.checklists.delete(checklist)
        self._uow.commit()
        logger.info(f"Checklist {checklist_id} excluído por {usuario.id}")

    # --- helpers ------------------------------------------------------------

    def _ensure_editable(self, checklist):
        status = ChecklistStatus(checklist.status)
        if status == ChecklistStatus.FINALIZADO:
            raise ChecklistAlreadyFinalizedError(str(checklist.id))
        if not status.is_editable:
            raise BusinessRuleViolationError("CHECKLIST_CANCELADO", "Checklist cancelado não pode ser alterado")

    def _check_solicitacao(self, solicitacao_id, unidade_id, viatura_id, tipo):
        solicitacao = self._uow.solicitacoes.get_fresh(solicitacao_id, unidade_id)
        if not solicitacao:
            raise SolicitacaoNotFoundError(str(solicitacao_id))
        if solicitacao.status != SolicitacaoStatus.PENDENTE:
            raise BusinessRuleViolationError(
                "SOLICITACAO_NAO_PENDENTE", f"Solicitação está {solicitacao.status.label_pt.lower()}"
            )
        if solicitacao.viatura_id != viatura_id or solicitacao.tipo_checklist != tipo:
            raise ValidationError("Viatura e tipo devem ser os da solicitação", "viatura_id")


def _parse_itens(raw):
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValidationError("Itens devem ser uma lista", "itens")
    itens = [ItemChecklist.from_payload(item, ordem) for ordem, item in enumerate(raw)]
    validate_itens(itens)
    return itens


def _parse_ala(raw):
    if not raw:
        raise ValidationError("Ala de serviço é obrigatória", "ala_servico")
    return AlaServico.parse(raw)


