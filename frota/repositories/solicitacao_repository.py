"""Repository for ChecklistSolicitacao (work item) entities."""
from datetime import date
from typing import Any, Dict, Iterable, Optional, List
import uuid

from sqlalchemy import delete, update
from sqlalchemy.orm import joinedload

from ..domain.entities import SolicitacaoStatus
from ..models_db import ChecklistSolicitacao


class SolicitacaoRepository:
    def __init__(self, session):
        self._session = session

    def get_by_id(self, id: uuid.UUID) -> Optional[ChecklistSolicitacao]:
        return self._session.get(ChecklistSolicitacao, id)

    def get_fresh(self, id: uuid.UUID, unidade_id: Optional[uuid.UUID] = None) -> Optional[ChecklistSolicitacao]:
        """Re-read from the database, overwriting anything cached in the session."""
        query = self._session.query(ChecklistSolicitacao).options(
            joinedload(ChecklistSolicitacao.viatura),
        ).filter(ChecklistSolicitacao.id == id)
        if unidade_id:
            query = query.filter(ChecklistSolicitacao.unidade_id == unidade_id)
        return query.populate_existing().first()

    def exists_for_occurrence(self, automacao_id: uuid.UUID, data_referencia: date) -> bool:
        """Whether the occurrence already has a pending or fulfilled solicitation."""
        ocupantes = [s for s in SolicitacaoStatus if s.occupies_occurrence]
        query = self._session.query(ChecklistSolicitacao.id).filter(
            ChecklistSolicitacao.automacao_id == automacao_id,
            ChecklistSolicitacao.data_referencia == data_referencia,
            ChecklistSolicitacao.status.in_(ocupantes),
        )
        return query.first() is not None

    def list(
        self,
        unidade_id: uuid.UUID,
        statuses: Optional[Iterable[SolicitacaoStatus]] = None,
        viatura_id: Optional[uuid.UUID] = None,
        data_referencia: Optional[date] = None,
        limit: int = 200,
    ) -> List[ChecklistSolicitacao]:
        query = self._session.query(ChecklistSolicitacao).options(
            joinedload(ChecklistSolicitacao.viatura),
        ).filter(ChecklistSolicitacao.unidade_id == unidade_id)
        if statuses:
            query = query.filter(ChecklistSolicitacao.status.in_(list(statuses)))
        if viatura_id:
            query = query.filter(ChecklistSolicitacao.viatura_id == viatura_id)
        if data_referencia:
            query = query.filter(ChecklistSolicitacao.data_referencia == data_referencia)
        return query.order_by(
            ChecklistSolicitacao.data_prevista, ChecklistSolicitacao.created_at
        ).limit(limit).populate_existing().all()

    def transition_status(
        self,
        id: uuid.UUID,
        expected: SolicitacaoStatus,
        values: Dict[str, Any],
    ) -> bool:
        """
        Conditional update: applies `values` only while the row still has the
        `expected` status. Returns False when another writer got there first.
        """
        result = self._session.execute(
            update(ChecklistSolicitacao)
            .where(ChecklistSolicitacao.id == id, ChecklistSolicitacao.status == expected)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def mark_started(self, id: uuid.UUID, values: Dict[str, Any]) -> bool:
        return self.transition_status(id, SolicitacaoStatus.PENDENTE, values)

    def add(self, solicitacao: ChecklistSolicitacao) -> ChecklistSolicitacao:
        self._session.add(solicitacao)
        return solicitacao

    def delete_pending(self, id: uuid.UUID) -> bool:
        """Hard delete, only while still pending."""
        result = self._session.execute(
            delete(ChecklistSolicitacao)
            .where(ChecklistSolicitacao.id == id, ChecklistSolicitacao.status == SolicitacaoStatus.PENDENTE)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
