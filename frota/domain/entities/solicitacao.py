"""
Solicitation (work item) status workflow.
"""

from enum import Enum
from typing import List, Optional

from ..exceptions import InvalidStatusTransitionError, ValidationError


class SolicitacaoStatus(str, Enum):
    """
    Solicitation status workflow.

    pendente -> atendida   (checklist finalized through the credential gate)
    pendente -> cancelada  (authorized role, with reason)

    Deletion is a hard removal, not a status.
    """
    PENDENTE = "pendente"
    ATENDIDA = "atendida"
    CANCELADA = "cancelada"

    @property
    def label_pt(self) -> str:
        labels = {
            self.PENDENTE: "Pendente",
            self.ATENDIDA: "Atendida",
            self.CANCELADA: "Cancelada",
        }
        return labels[self]

    @property
    def is_terminal(self) -> bool:
        return self in (self.ATENDIDA, self.CANCELADA)

    @property
    def occupies_occurrence(self) -> bool:
        """Whether a solicitation in this status blocks regeneration of its occurrence."""
        return self in (self.PENDENTE, self.ATENDIDA)

    @property
    def can_transition_to(self) -> List['SolicitacaoStatus']:
        transitions = {
            self.PENDENTE: [self.ATENDIDA, self.CANCELADA],
            self.ATENDIDA: [],
            self.CANCELADA: [],
        }
        return transitions.get(self, [])


def ensure_transition(current: SolicitacaoStatus, target: SolicitacaoStatus) -> None:
    """Raise if current -> target is not an allowed solicitation transition."""
    current = SolicitacaoStatus(current)
    target = SolicitacaoStatus(target)
    if target not in current.can_transition_to:
        raise InvalidStatusTransitionError(current.value, target.value, entity_type="Solicitação")


def require_motivo(motivo: Optional[str]) -> str:
    """Cancellation reasons are mandatory and stored trimmed."""
    text = str(motivo).strip() if motivo is not None else ""
    if not text:
        raise ValidationError("Motivo do cancelamento é obrigatório", "motivo")
    return text
