"""
Simple Dependency Injection container using Flask's g object.

No external DI framework needed - just factory functions that create
services with their dependencies, cached per-request in Flask g.
"""
from flask import g

from . import database
from .repositories.unit_of_work import UnitOfWork


def get_uow() -> UnitOfWork:
    """Get or create UnitOfWork for the current request."""
    if 'uow' not in g:
        g.uow = UnitOfWork(database.get_session())
    return g.uow


def get_credential_gate():
    from .application.credential_gate import CredentialGate
    return CredentialGate(get_uow())


def get_checklist_service():
    """Get ChecklistService for the current request."""
    from .application.checklist_service import ChecklistService
    return ChecklistService(get_uow(), gate=get_credential_gate())


def get_solicitacao_service():
    """Get SolicitacaoService for the current request."""
    from .application.solicitacao_service import SolicitacaoService
    return SolicitacaoService(get_uow())


def get_automacao_service():
    """Get AutomacaoService for the current request."""
    from .application.automacao_service import AutomacaoService
    return AutomacaoService(get_uow())


def get_solicitacao_generator():
    """Get SolicitacaoGenerator (used by the on-demand route and the cron endpoint)."""
    from .application.solicitacao_generator import SolicitacaoGenerator
    return SolicitacaoGenerator(get_uow())


def teardown_uow(exception=None):
    """
    Teardown handler for Flask app context.

    Register with: app.teardown_appcontext(teardown_uow)
    """
    uow = g.pop('uow', None)
    if uow:
        if exception:
            uow.rollback()
        uow.close()
