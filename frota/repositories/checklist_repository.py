"""Repository for ChecklistViatura entities and their items."""
from datetime import date, datetime, time
from typing import Any, Dict, Iterable, Optional, List, Tuple
import uuid

from sqlalchemy import update
from sqlalchemy.orm import joinedload, selectinload

from ..domain.entities import ChecklistStatus, ItemChecklist
from ..models_db import ChecklistItem, ChecklistViatura


class ChecklistRepository:
    def __init__(self, session):
        self._session = session

    def get_by_id(self, id: uuid.UUID) -> Optional[ChecklistViatura]:
        return self._session.get(ChecklistViatura, id)

    def get_fresh(self, id: uuid.UUID, unidade_id: Optional[uuid.UUID] = None) -> Optional[ChecklistViatura]:
        """Load checklist with items, overwriting anything cached in the session."""
        query = self._session.query(ChecklistViatura).options(
            selectinload(ChecklistViatura.itens),
            joinedload(ChecklistViatura.viatura),
            joinedload(ChecklistViatura.usuario),
        ).filter(ChecklistViatura.id == id)
        if unidade_id:
            query = query.filter(ChecklistViatura.unidade_id == unidade_id)
        return query.populate_existing().first()

    def get_in_progress_for_solicitacao(self, solicitacao_id: uuid.UUID) -> Optional[ChecklistViatura]:
        return self._session.query(ChecklistViatura).filter(
            ChecklistViatura.solicitacao_id == solicitacao_id,
            ChecklistViatura.status == ChecklistStatus.EM_ANDAMENTO,
        ).order_by(ChecklistViatura.created_at.desc()).first()

    def list_paginated(
        self,
        unidade_id: uuid.UUID,
        page: int = 1,
        per_page: int = 20,
        status: Optional[ChecklistStatus] = None,
        viatura_id: Optional[uuid.UUID] = None,
        data_inicio: Optional[date] = None,
        data_fim: Optional[date] = None,
    ) -> Tuple[List[ChecklistViatura], int]:
        query = self._session.query(ChecklistViatura).filter(ChecklistViatura.unidade_id == unidade_id)
        if status:
            query = query.filter(ChecklistViatura.status == status)
        if viatura_id:
            query = query.filter(ChecklistViatura.viatura_id == viatura_id)
        if data_inicio:
            query = query.filter(ChecklistViatura.data_hora >= datetime.combine(data_inicio, time.min))
        if data_fim:
            query = query.filter(ChecklistViatura.data_hora <= datetime.combine(data_fim, time.max))

        total = query.count()
        rows = query.options(
            joinedload(ChecklistViatura.viatura),
            joinedload(ChecklistViatura.usuario),
        ).order_by(ChecklistViatura.data_hora.desc()).offset((page - 1) * per_page).limit(per_page).all()
        return rows, total

    def replace_items(self, checklist: ChecklistViatura, itens: Iterable[ItemChecklist]) -> None:
        checklist.itens.clear()
        for ordem, item in enumerate(itens):
            checklist.itens.append(ChecklistItem(
                nome_item=item.nome_item,
                categoria=item.categoria,
                tipo=item.tipo,
                obrigatorio=item.obrigatorio,
                status=item.status,
                observacoes=item.observacoes or None,
                valor=item.valor,
                fotos=[f.to_dict() for f in item.fotos],
                ordem=ordem,
            ))

    def transition_status(
        self,
        id: uuid.UUID,
        expected: Iterable[ChecklistStatus],
        values: Dict[str, Any],
    ) -> bool:
        """Conditional status update; False when the row is no longer in an expected status."""
        result = self._session.execute(
            update(ChecklistViatura)
            .where(ChecklistViatura.id == id, ChecklistViatura.status.in_(list(expected)))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def add(self, checklist: ChecklistViatura) -> ChecklistViatura:
        self._session.add(checklist)
        return checklist

    def delete(self, checklist: ChecklistViatura) -> None:
        self._session.delete(checklist)
