# Domain Entities
from .usuario import Perfil
from .solicitacao import SolicitacaoStatus, ensure_transition, require_motivo
from .checklist import (
    AlaServico,
    CategoriaTemplate,
    ChecklistStatus,
    ItemChecklist,
    ItemStatus,
    SituacaoChecklist,
    TemplateChecklist,
    TemplateItem,
    TipoChecklist,
    TipoItem,
    validate_itens,
)
from .automacao import Ocorrencia, RegraAutomacao

__all__ = [
    'Perfil',
    'SolicitacaoStatus',
    'ensure_transition',
    'require_motivo',
    'AlaServico',
    'CategoriaTemplate',
    'ChecklistStatus',
    'ItemChecklist',
    'ItemStatus',
    'SituacaoChecklist',
    'TemplateChecklist',
    'TemplateItem',
    'TipoChecklist',
    'TipoItem',
    'validate_itens',
    'Ocorrencia',
    'RegraAutomacao',
]
