"""
Unit tests for the dependency injection container (frota/container.py).

Tests cover:
- get_uow: creates/reuses UnitOfWork per request
- service factories: wired to the request's UnitOfWork
- teardown_uow: closes UoW, rollback on exception
"""

from unittest.mock import MagicMock, patch

from flask import g


class TestGetUow:
    """Tests for get_uow() factory function."""

    @patch('frota.container.UnitOfWork')
    @patch('frota.container.database.get_session')
    def test_creates_uow_on_first_call(self, mock_get_session, mock_uow_cls, app):
        mock_session = MagicMock()
        mock_get_session.return_value = mock_session

        from frota.container import get_uow

        with app.test_request_context():
            result = get_uow()

            assert result is mock_uow_cls.return_value
            mock_uow_cls.assert_called_once_with(mock_session)

    @patch('frota.container.UnitOfWork')
    @patch('frota.container.database.get_session')
    def test_reuses_uow_on_second_call(self, mock_get_session, mock_uow_cls, app):
        from frota.container import get_uow

        with app.test_request_context():
            assert get_uow() is get_uow()
            mock_get_session.assert_called_once()
            mock_uow_cls.assert_called_once()


class TestServiceFactories:

    def test_services_share_request_uow(self, app):
        from frota.application.automacao_service import AutomacaoService
        from frota.application.checklist_service import ChecklistService
        from frota.application.credential_gate import CredentialGate
        from frota.application.solicitacao_generator import SolicitacaoGenerator
        from frota.application.solicitacao_service import SolicitacaoService
        from frota.container import (
            get_automacao_service, get_checklist_service, get_credential_gate, get_solicitacao_generator,
            get_solicitacao_service, get_uow,
        )

        with app.test_request_context():
            uow = get_uow()
            checklists = get_checklist_service()

            assert isinstance(checklists, ChecklistService)
            assert checklists._uow is uow
            assert isinstance(checklists._gate, CredentialGate)
            assert isinstance(get_credential_gate(), CredentialGate)
            assert isinstance(get_solicitacao_service(), SolicitacaoService)
            assert isinstance(get_automacao_service(), AutomacaoService)
            assert get_automacao_service()._uow is uow
            assert isinstance(get_solicitacao_generator(), SolicitacaoGenerator)


class TestTeardownUow:

    def test_closes_uow(self, app):
        from frota.container import teardown_uow

        with app.test_request_context():
            uow = MagicMock()
            g.uow = uow

            teardown_uow()

            uow.close.assert_called_once()
            uow.rollback.assert_not_called()
            assert 'uow' not in g

    def test_rolls_back_on_exception(self, app):
        from frota.container import teardown_uow

        with app.test_request_context():
            uow = MagicMock()
            g.uow = uow

            teardown_uow(RuntimeError("falhou"))

            uow.rollback.assert_called_once()
            uow.close.assert_called_once()

    def test_noop_without_uow(self, app):
        from frota.container import teardown_uow

        with app.test_request_context():
            teardown_uow()
