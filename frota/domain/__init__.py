# Domain Layer - Pure business logic, no dependencies on infrastructure

# Exceptions
from .exceptions import (
    DomainError,
    ValidationError,
    NotFoundError,
    AuthenticationError,
    PermissionDeniedError,
    ConflictError,
    BusinessRuleViolationError,
    InvalidStatusTransitionError,
    NetworkError,
    ViaturaNotFoundError,
    TemplateNotFoundError,
    AutomacaoNotFoundError,
    SolicitacaoNotFoundError,
    ChecklistNotFoundError,
    ChecklistAlreadyFinalizedError,
)

# Value Objects
from .value_objects import (
    NivelCombustivel,
    Odometro,
    DiaSemana,
    DiasSemana,
    Horario,
    Foto,
)

# Entities
from .entities import (
    Perfil,
    SolicitacaoStatus,
    ChecklistStatus,
    ItemStatus,
    SituacaoChecklist,
    AlaServico,
    TipoChecklist,
    TipoItem,
    TemplateChecklist,
    ItemChecklist,
    RegraAutomacao,
    Ocorrencia,
)

__all__ = [
    # Exceptions
    'DomainError',
    'ValidationError',
    'NotFoundError',
    'AuthenticationError',
    'PermissionDeniedError',
    'ConflictError',
    'BusinessRuleViolationError',
    'InvalidStatusTransitionError',
    'NetworkError',
    'ViaturaNotFoundError',
    'TemplateNotFoundError',
    'AutomacaoNotFoundError',
    'SolicitacaoNotFoundError',
    'ChecklistNotFoundError',
    'ChecklistAlreadyFinalizedError',
    # Value Objects
    'NivelCombustivel',
    'Odometro',
    'DiaSemana',
    'DiasSemana',
    'Horario',
    'Foto',
    # Entities
    'Perfil',
    'SolicitacaoStatus',
    'ChecklistStatus',
    'ItemStatus',
    'SituacaoChecklist',
    'AlaServico',
    'TipoChecklist',
    'TipoItem',
    'TemplateChecklist',
    'ItemChecklist',
    'RegraAutomacao',
    'Ocorrencia',
]
