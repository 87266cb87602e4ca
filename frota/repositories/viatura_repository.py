"""Repository for Viatura entities."""
from typing import Optional, List
import uuid

from sqlalchemy import or_

from ..models_db import Viatura


class ViaturaRepository:
    def __init__(self, session):
        self._session = session

    def get_by_id(self, id: uuid.UUID) -> Optional[Viatura]:
        return self._session.get(Viatura, id)

    def get_for_unidade(self, id: uuid.UUID, unidade_id: uuid.UUID) -> Optional[Viatura]:
        return self._session.query(Viatura).filter(
            Viatura.id == id,
            Viatura.unidade_id == unidade_id,
        ).first()

    def list(
        self,
        unidade_id: uuid.UUID,
        ativo: Optional[bool] = True,
        tipo: Optional[str] = None,
        busca: Optional[str] = None,
    ) -> List[Viatura]:
        query = self._session.query(Viatura).filter(Viatura.unidade_id == unidade_id)
        if ativo is not None:
            query = query.filter(Viatura.ativo == ativo)
        if tipo:
            query = query.filter(Viatura.tipo == tipo)
        if busca:
            like = f"%{busca.strip()}%"
            query = query.filter(or_(Viatura.prefixo.ilike(like), Viatura.placa.ilike(like)))
        return query.order_by(Viatura.prefixo).all()

    def add(self, viatura: Viatura) -> Viatura:
        self._session.add(viatura)
        return viatura
