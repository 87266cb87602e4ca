"""Repository for Usuario entities."""
from typing import Optional, List
import uuid

from sqlalchemy import func, or_

from ..models_db import Usuario


class UsuarioRepository:
    def __init__(self, session):
        self._session = session

    def get_by_id(self, id: uuid.UUID) -> Optional[Usuario]:
        return self._session.get(Usuario, id)

    def get_by_email(self, email: str) -> Optional[Usuario]:
        return self._session.query(Usuario).filter(
            func.lower(Usuario.email) == (email or "").strip().lower()
        ).first()

    def find_active_by_identity(self, identity: str) -> List[Usuario]:
        """Active users whose name or email equals `identity`, ignoring case."""
        key = (identity or "").strip().lower()
        if not key:
            return []
        return self._session.query(Usuario).filter(
            or_(func.lower(Usuario.nome) == key, func.lower(Usuario.email) == key),
            Usuario.ativo == True,  # noqa: E712
        ).order_by(Usuario.created_at).all()

    def add(self, usuario: Usuario) -> Usuario:
        self._session.add(usuario)
        return usuario
