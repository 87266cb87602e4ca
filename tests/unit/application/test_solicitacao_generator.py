"""Tests for SolicitacaoGenerator."""
import uuid
from datetime import date, datetime

import pytest
from sqlalchemy.exc import OperationalError

from frota.application.solicitacao_generator import GenerationReport, SolicitacaoGenerator
from frota.application.solicitacao_service import SolicitacaoService
from frota.domain import AutomacaoNotFoundError, PermissionDeniedError, ValidationError
from frota.domain.entities import Perfil, RegraAutomacao, SolicitacaoStatus
from frota.models_db import ChecklistSolicitacao
from frota.repositories.unit_of_work import UnitOfWork

MONDAY = datetime(2024, 1, 1, 6, 0)
TUESDAY = datetime(2024, 1, 2, 6, 0)


def _solicitacoes(session, automacao_id):
    return session.query(ChecklistSolicitacao).populate_existing().filter_by(automacao_id=automacao_id).all()


class TestGeneratorRun:

    @pytest.fixture
    def env(self, db_session, unidade_factory, automacao_factory, usuario_factory):
        unidade = unidade_factory.create(db_session)
        automacao = automacao_factory.create(db_session, unidade=unidade, dias_semana=[0], horario='07:00')
        chefe = usuario_factory.create(db_session, unidade=unidade, perfil=Perfil.CHEFE)
        uow = UnitOfWork(db_session)
        return {
            'uow': uow,
            'generator': SolicitacaoGenerator(uow),
            'automacao': automacao,
            'unidade': unidade,
            'chefe': chefe,
        }

    def test_creates_pending_solicitation_on_matching_weekday(self, db_session, env):
        report = env['generator'].run(now=MONDAY)

        assert len(report.criadas) == 1
        [solicitacao] = _solicitacoes(db_session, env['automacao'].id)
        assert solicitacao.status == SolicitacaoStatus.PENDENTE
        assert solicitacao.data_referencia == date(2024, 1, 1)
        assert solicitacao.data_prevista == datetime(2024, 1, 1, 7, 0)
        assert solicitacao.viatura_id == env['automacao'].viatura_id
        assert solicitacao.ala_servico == env['automacao'].ala_servico

    def test_idempotent_within_the_day(self, db_session, env):
        env['generator'].run(now=MONDAY)
        second = env['generator'].run(now=MONDAY.replace(hour=6, minute=5))

        assert second.criadas == []
        assert len(second.ignoradas) == 1
        assert len(_solicitacoes(db_session, env['automacao'].id)) == 1

    def test_nothing_on_other_weekdays(self, db_session, env):
        report = env['generator'].run(now=TUESDAY)
        assert report.criadas == [] and report.ignoradas == []

    def test_generates_before_scheduled_time(self, db_session, env):
        # A passagem das 00:05 já cria a ocorrência das 07:00
        report = env['generator'].run(now=datetime(2024, 1, 1, 0, 5))
        assert len(report.criadas) == 1

    def test_inactive_rules_ignored(self, db_session, env, automacao_factory):
        inativa = automacao_factory.create(db_session, unidade=env['unidade'], ativo=False, dias_semana=[0])
        env['generator'].run(now=MONDAY)
        assert _solicitacoes(db_session, inativa.id) == []

    def test_cancelled_occurrence_regenerated_by_next_pass(self, db_session, env):
        env['generator'].run(now=MONDAY)
        [solicitacao] = _solicitacoes(db_session, env['automacao'].id)
        SolicitacaoService(env['uow']).cancel(solicitacao.id, "Viatura baixada", env['chefe'], env['unidade'].id)

        report = env['generator'].run(now=MONDAY.replace(hour=6, minute=10))
        third = env['generator'].run(now=MONDAY.replace(hour=6, minute=15))

        assert len(report.criadas) == 1
        assert third.criadas == []
        statuses = sorted(s.status.value for s in _solicitacoes(db_session, env['automacao'].id))
        assert statuses == ["cancelada", "pendente"]

    def test_failing_rule_does_not_block_others(self, db_session, env, automacao_factory, monkeypatch):
        outra = automacao_factory.create(db_session, unidade=env['unidade'], dias_semana=[0])
        repo = env['uow'].solicitacoes
        original = repo.exists_for_occurrence

        def flaky(automacao_id, data_referencia):
            if automacao_id == env['automacao'].id:
                raise OperationalError("SELECT", {}, Exception("db hiccup"))
            return original(automacao_id, data_referencia)

        monkeypatch.setattr(repo, 'exists_for_occurrence', flaky)

        report = env['generator'].run(now=MONDAY)

        assert len(report.criadas) == 1
        assert [e['automacao_id'] for e in report.erros] == [str(env['automacao'].id)]
        assert "db hiccup" in report.erros[0]['erro']
        assert len(_solicitacoes(db_session, outra.id)) == 1
        assert _solicitacoes(db_session, env['automacao'].id) == []

    def test_invalid_stored_rule_does_not_block_others(self, db_session, env, automacao_factory, monkeypatch):
        quebrada = automacao_factory.create(db_session, unidade=env['unidade'], dias_semana=[0])
        original = RegraAutomacao.from_model

        def from_model(model):
            if model.id == quebrada.id:
                raise ValidationError("Dia da semana inválido", "dias_semana")
            return original(model)

        monkeypatch.setattr(RegraAutomacao, 'from_model', staticmethod(from_model))

        report = env['generator'].run(now=MONDAY)

        assert len(report.criadas) == 1
        assert report.erros == [{"automacao_id": str(quebrada.id), "erro": "Dia da semana inválido"}]

    def test_incomplete_active_rule_reported(self, db_session, env, automacao_factory):
        quebrada = automacao_factory.create(db_session, unidade=env['unidade'], horario=None)

        report = env['generator'].run(now=MONDAY)

        assert len(report.criadas) == 1
        assert report.erros == [{"automacao_id": str(quebrada.id), "erro": "Campos ausentes: horario"}]

    def test_concurrent_insert_is_skipped(self, db_session, env, monkeypatch):
        env['generator'].run(now=MONDAY)
        # Simula outra execução que passou pela checagem ao mesmo tempo
        monkeypatch.setattr(env['uow'].solicitacoes, 'exists_for_occurrence', lambda *a, **k: False)

        report = env['generator'].run(now=MONDAY)

        assert report.criadas == []
        assert len(report.ignoradas) == 1
        assert len(_solicitacoes(db_session, env['automacao'].id)) == 1

    def test_run_scoped_to_unidade(self, db_session, env, automacao_factory):
        automacao_factory.create(db_session, dias_semana=[0])
        report = env['generator'].run(now=MONDAY, unidade_id=env['unidade'].id)
        assert len(report.criadas) == 1

    def test_report_to_dict(self):
        report = GenerationReport(data=date(2024, 1, 1), criadas=["a", "b"], ignoradas=["c"])
        assert report.to_dict() == {
            "data": "2024-01-01", "criadas": 2, "ignoradas": 1, "erros": [], "solicitacoes": ["a", "b"],
        }


class TestGenerateNow:

    @pytest.fixture
    def env(self, db_session, unidade_factory, automacao_factory, usuario_factory):
        unidade = unidade_factory.create(db_session)
        automacao = automacao_factory.create(db_session, unidade=unidade, dias_semana=[0])
        uow = UnitOfWork(db_session)
        return {
            'uow': uow,
            'generator': SolicitacaoGenerator(uow),
            'automacao': automacao,
            'unidade': unidade,
            'chefe': usuario_factory.create(db_session, unidade=unidade, perfil=Perfil.CHEFE),
            'operador': usuario_factory.create(db_session, unidade=unidade, perfil=Perfil.OPERADOR),
        }

    def test_ignores_weekdays(self, db_session, env):
        report = env['generator'].generate_now(env['automacao'].id, env['chefe'], env['unidade'].id, now=TUESDAY)

        assert len(report.criadas) == 1
        [solicitacao] = _solicitacoes(db_session, env['automacao'].id)
        assert solicitacao.data_referencia == date(2024, 1, 2)
        assert solicitacao.criada_por_id == env['chefe'].id

    def test_skips_pending_occurrence(self, db_session, env):
        env['generator'].run(now=MONDAY)
        report = env['generator'].generate_now(env['automacao'].id, env['chefe'], env['unidade'].id, now=MONDAY)
        assert report.criadas == []
        assert len(report.ignoradas) == 1

    def test_regenerates_cancelled_occurrence(self, db_session, env):
        env['generator'].run(now=MONDAY)
        [cancelada] = _solicitacoes(db_session, env['automacao'].id)
        SolicitacaoService(env['uow']).cancel(cancelada.id, "engano", env['chefe'], env['unidade'].id)

        report = env['generator'].generate_now(env['automacao'].id, env['chefe'], env['unidade'].id, now=MONDAY)

        assert len(report.criadas) == 1
        statuses = sorted(s.status.value for s in _solicitacoes(db_session, env['automacao'].id))
        assert statuses == ["cancelada", "pendente"]

    def test_operador_cannot_generate(self, env):
        with pytest.raises(PermissionDeniedError):
            env['generator'].generate_now(env['automacao'].id, env['operador'], env['unidade'].id)

    def test_rule_from_other_unidade(self, env):
        with pytest.raises(AutomacaoNotFoundError):
            env['generator'].generate_now(env['automacao'].id, env['chefe'], uuid.uuid4())

    def test_incomplete_rule_rejected(self, db_session, env, automacao_factory):
        incompleta = automacao_factory.create(
            db_session, unidade=env['unidade'], ativo=False, dias_semana=[],
        )
        with pytest.raises(ValidationError) as exc:
            env['generator'].generate_now(incompleta.id, env['chefe'], env['unidade'].id)
        assert exc.value.field == "dias_semana"
