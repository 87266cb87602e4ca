"""Repository for ChecklistAutomacao (automation rule) entities."""
from typing import Optional, List
import uuid

from sqlalchemy import update
from sqlalchemy.orm import joinedload

from ..models_db import ChecklistAutomacao, ChecklistSolicitacao


class AutomacaoRepository:
    def __init__(self, session):
        self._session = session

    def get_by_id(self, id: uuid.UUID) -> Optional[ChecklistAutomacao]:
        return self._session.get(ChecklistAutomacao, id)

    def get_for_unidade(self, id: uuid.UUID, unidade_id: uuid.UUID) -> Optional[ChecklistAutomacao]:
        return self._session.query(ChecklistAutomacao).filter(
            ChecklistAutomacao.id == id,
            ChecklistAutomacao.unidade_id == unidade_id,
        ).first()

    def list(self, unidade_id: uuid.UUID, ativo: Optional[bool] = None) -> List[ChecklistAutomacao]:
        query = self._session.query(ChecklistAutomacao).options(
            joinedload(ChecklistAutomacao.viatura),
        ).filter(ChecklistAutomacao.unidade_id == unidade_id)
        if ativo is not None:
            query = query.filter(ChecklistAutomacao.ativo == ativo)
        return query.order_by(ChecklistAutomacao.horario, ChecklistAutomacao.nome).all()

    def list_active(self, unidade_id: Optional[uuid.UUID] = None) -> List[ChecklistAutomacao]:
        """Active rules across all units, or one unit when given."""
        query = self._session.query(ChecklistAutomacao).filter(
            ChecklistAutomacao.ativo == True,  # noqa: E712
        )
        if unidade_id:
            query = query.filter(ChecklistAutomacao.unidade_id == unidade_id)
        return query.order_by(ChecklistAutomacao.created_at).all()

    def add(self, automacao: ChecklistAutomacao) -> ChecklistAutomacao:
        self._session.add(automacao)
        return automacao

    def delete(self, automacao: ChecklistAutomacao) -> int:
        """Delete the rule; its solicitations stay, detached. Returns how many were detached."""
        result = self._session.execute(
            update(ChecklistSolicitacao)
            .where(ChecklistSolicitacao.automacao_id == automacao.id)
            .values(automacao_id=None)
            .execution_options(synchronize_session=False)
        )
        self._session.delete(automacao)
        return result.rowcount
