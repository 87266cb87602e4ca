"""
Unit of Work pattern for managing database transactions.

Provides a single entry point for all repositories within a request,
ensuring consistent transaction management.
"""
from .usuario_repository import UsuarioRepository
from .viatura_repository import ViaturaRepository
from .template_repository import TemplateRepository
from .automacao_repository import AutomacaoRepository
from .solicitacao_repository import SolicitacaoRepository
from .checklist_repository import ChecklistRepository


class UnitOfWork:
    """
    Aggregates all repositories and manages the database session lifecycle.

    Usage:
        uow = UnitOfWork(session)
        regra = uow.automacoes.get_by_id(automacao_id)
        uow.solicitacoes.add(solicitacao)
        uow.commit()
    """

    def __init__(self, session):
        self.session = session
        self.usuarios = UsuarioRepository(session)
        self.viaturas = ViaturaRepository(session)
        self.templates = TemplateRepository(session)
        self.automacoes = AutomacaoRepository(session)
        self.solicitacoes = SolicitacaoRepository(session)
        self.checklists = ChecklistRepository(session)

    def commit(self):
        self.session.commit()

    def rollback(self):
        self.session.rollback()

    def flush(self):
        self.session.flush()

    def close(self):
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            self.rollback()
        self.close()
        return False
