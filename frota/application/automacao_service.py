"""Service for the automation rule store (create, edit, toggle, delete)."""
import logging
import uuid

from ..domain.entities import RegraAutomacao
from ..domain.exceptions import AutomacaoNotFoundError, TemplateNotFoundError, ViaturaNotFoundError
from ..models_db import ChecklistAutomacao
from .authorization import require_capability
from .parsing import parse_uuid

logger = logging.getLogger(__name__)


class AutomacaoService:
    """Rules may be saved incomplete while inactive; activation requires a complete rule."""

    def __init__(self, uow):
        self._uow = uow

    def list(self, unidade_id, ativo=None):
        return self._uow.automacoes.list(unidade_id, ativo=ativo)

    def get(self, automacao_id, unidade_id) -> ChecklistAutomacao:
        automacao = self._uow.automacoes.get_for_unidade(parse_uuid(automacao_id, "automacao_id"), unidade_id)
        if not automacao:
            raise AutomacaoNotFoundError(str(automacao_id))
        return automacao

    def create(self, data, usuario, unidade_id) -> ChecklistAutomacao:
        require_capability(usuario, "can_manage_automacoes")
        values = RegraAutomacao.parse_payload(data)
        self._check_references(values, unidade_id)

        automacao = ChecklistAutomacao(
            id=uuid.uuid4(),
            unidade_id=unidade_id,
            criado_por_id=usuario.id,
            ativo=values.pop("ativo", False),
            **values,
        )
        if automacao.ativo:
            RegraAutomacao.from_model(automacao).validate_for_generation()

        self._uow.automacoes.add(automacao)
        self._uow.commit()
        logger.info(f"Automação {automacao.id} criada por {usuario.id}")
        return automacao

    def update(self, automacao_id, data, usuario, unidade_id) -> ChecklistAutomacao:
        require_capability(usuario, "can_manage_automacoes")
        automacao = self.get(automacao_id, unidade_id)
        values = RegraAutomacao.parse_payload(data, partial=True)
        self._check_references(values, unidade_id)

        for key, value in values.items():
            setattr(automacao, key, value)
        if automacao.ativo:
            RegraAutomacao.from_model(automacao).validate_for_generation()

        self._uow.commit()
        logger.info(f"Automação {automacao.id} atualizada por {usuario.id}")
        return automacao

    def toggle(self, automacao_id, usuario, unidade_id, ativo=None) -> ChecklistAutomacao:
        """Flip the active flag, or set it when `ativo` is given."""
        require_capability(usuario, "can_manage_automacoes")
        automacao = self.get(automacao_id, unidade_id)
        novo = (not automacao.ativo) if ativo is None else bool(ativo)
        if novo:
            RegraAutomacao.from_model(automacao).validate_for_generation()
        automacao.ativo = novo
        self._uow.commit()
        logger.info(f"Automação {automacao.id} {'ativada' if novo else 'desativada'} por {usuario.id}")
        return automacao

    def delete(self, automacao_id, usuario, unidade_id) -> int:
        """Delete the rule. Solicitations it generated are kept and detached."""
        require_capability(usuario, "can_manage_automacoes")
        automacao = self.get(automacao_id, unidade_id)
        detached = self._uow.automacoes.delete(automacao)
        self._uow.commit()
        logger.info(f"Automação {automacao_id} excluída por {usuario.id} ({detached} solicitações desvinculadas)")
        return detached

    def _check_references(self, values, unidade_id):
        if values.get("viatura_id") and not self._uow.viaturas.get_for_unidade(values["viatura_id"], unidade_id):
            raise ViaturaNotFoundError(str(values["viatura_id"]))
        if values.get("template_id") and not self._uow.templates.get_with_itens(values["template_id"], unidade_id):
            raise TemplateNotFoundError(str(values["template_id"]))
