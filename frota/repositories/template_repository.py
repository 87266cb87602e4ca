"""Repository for ChecklistTemplate entities."""
from typing import Optional, List
import uuid

from sqlalchemy import or_
from sqlalchemy.orm import selectinload

from ..models_db import ChecklistTemplate, TemplateCategoria


class TemplateRepository:
    def __init__(self, session):
        self._session = session

    def _visible(self, unidade_id: uuid.UUID):
        # Templates sem unidade são compartilhados por todas
        return or_(ChecklistTemplate.unidade_id == unidade_id, ChecklistTemplate.unidade_id.is_(None))

    def get_by_id(self, id: uuid.UUID) -> Optional[ChecklistTemplate]:
        return self._session.get(ChecklistTemplate, id)

    def get_with_itens(self, id: uuid.UUID, unidade_id: uuid.UUID) -> Optional[ChecklistTemplate]:
        """Load template with categories and items eagerly."""
        return self._session.query(ChecklistTemplate).options(
            selectinload(ChecklistTemplate.categorias).selectinload(TemplateCategoria.itens),
        ).filter(
            ChecklistTemplate.id == id,
            self._visible(unidade_id),
        ).first()

    def list(self, unidade_id: uuid.UUID, tipo_viatura: Optional[str] = None) -> List[ChecklistTemplate]:
        query = self._session.query(ChecklistTemplate).filter(
            self._visible(unidade_id),
            ChecklistTemplate.ativo == True,  # noqa: E712
        )
        if tipo_viatura:
            query = query.filter(ChecklistTemplate.tipo_viatura == tipo_viatura)
        return query.order_by(ChecklistTemplate.nome).all()

    def add(self, template: ChecklistTemplate) -> ChecklistTemplate:
        self._session.add(template)
        return template
