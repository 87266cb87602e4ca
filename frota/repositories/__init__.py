from .unit_of_work import UnitOfWork
from .usuario_repository import UsuarioRepository
from .viatura_repository import ViaturaRepository
from .template_repository import TemplateRepository
from .automacao_repository import AutomacaoRepository
from .solicitacao_repository import SolicitacaoRepository
from .checklist_repository import ChecklistRepository
