"""
User roles (perfis) and what each one may do in the checklist engine.
"""

from enum import Enum


class Perfil(str, Enum):
    """Role hierarchy, highest first."""
    ADMINISTRADOR = "Administrador"
    COMANDANTE = "Comandante"
    CHEFE = "Chefe"
    AUXILIARES = "Auxiliares"
    OPERADOR = "Operador"

    @property
    def can_manage_automacoes(self) -> bool:
        """Create/edit/toggle/delete automation rules and generate on demand."""
        return self in (self.ADMINISTRADOR, self.COMANDANTE, self.CHEFE)

    @property
    def can_create_solicitacao(self) -> bool:
        return self.can_manage_automacoes

    @property
    def can_cancel_solicitacao(self) -> bool:
        return self != self.OPERADOR

    @property
    def can_delete_solicitacao(self) -> bool:
        return self in (self.ADMINISTRADOR, self.CHEFE)

    @property
    def can_cancel_checklist(self) -> bool:
        return self in (self.ADMINISTRADOR, self.COMANDANTE, self.CHEFE)

    @property
    def can_delete_checklist(self) -> bool:
        return self in (self.ADMINISTRADOR, self.CHEFE)

    @property
    def can_switch_unidade(self) -> bool:
        return self == self.ADMINISTRADOR
