"""Tests for ChecklistService: create/update rules, finalization behind the gate, cancel and delete."""
import uuid
from datetime import date

import pytest

from frota.application.checklist_service import ChecklistService
from frota.domain import (
    AuthenticationError, BusinessRuleViolationError, ChecklistAlreadyFinalizedError, ChecklistNotFoundError,
    InvalidStatusTransitionError, PermissionDeniedError, ValidationError, ViaturaNotFoundError,
)
from frota.domain.entities import ChecklistStatus, Perfil, SituacaoChecklist, SolicitacaoStatus, TipoChecklist
from frota.models_db import ChecklistSolicitacao, ChecklistViatura
from frota.repositories.unit_of_work import UnitOfWork


ITENS = [
    {'categoria': 'Motor', 'nome_item': 'Nível de óleo', 'status': 'ok'},
    {'categoria': 'Motor', 'nome_item': 'Freios', 'status': 'com_alteracao', 'observacoes': 'Pastilha gasta'},
]


class TestChecklistService:

    @pytest.fixture
    def env(self, db_session, unidade_factory, viatura_factory, usuario_factory, solicitacao_factory):
        unidade = unidade_factory.create(db_session)
        viatura = viatura_factory.create(db_session, unidade=unidade)
        return {
            'session': db_session,
            'service': ChecklistService(UnitOfWork(db_session)),
            'unidade': unidade,
            'viatura': viatura,
            'solicitacao': solicitacao_factory.create(db_session, unidade=unidade, viatura=viatura),
            'operador': usuario_factory.create(db_session, unidade=unidade, email='operador@cbm.test'),
            'chefe': usuario_factory.create(db_session, unidade=unidade, perfil=Perfil.CHEFE),
            'comandante': usuario_factory.create(db_session, unidade=unidade, perfil=Perfil.COMANDANTE),
        }

    def _payload(self, env, **overrides):
        payload = {
            'viatura_id': str(env['viatura'].id),
            'km_inicial': '12500',
            'combustivel_percentual': 80,
            'ala_servico': 'alpha',
            'tipo_checklist': 'Diário',
            'itens': [dict(i) for i in ITENS],
        }
        payload.update(overrides)
        return payload

    def _create(self, env, **overrides):
        return env['service'].create(self._payload(env, **overrides), env['operador'], env['unidade'].id)

    def _finalize(self, env, checklist, senha='senha123'):
        return env['service'].finalize(
            checklist.id, 'operador@cbm.test', senha, env['operador'], env['unidade'].id,
        )

    def _status(self, env, model, id):
        return env['session'].query(model).populate_existing().filter_by(id=id).one().status

    # --- create -------------------------------------------------------------

    def test_create(self, env):
        checklist = self._create(env)

        assert checklist.status == ChecklistStatus.EM_ANDAMENTO
        assert checklist.km_inicial == 12500
        assert checklist.situacao == SituacaoChecklist.COM_ALTERACAO
        assert [i.nome_item for i in checklist.itens] == ['Nível de óleo', 'Freios']
        assert checklist.usuario_id == env['operador'].id

    def test_create_without_alteracao(self, env):
        checklist = self._create(env, itens=[ITENS[0]])
        assert checklist.situacao == SituacaoChecklist.SEM_ALTERACAO

    def test_alteracao_requires_note(self, env):
        itens = [{'categoria': 'Motor', 'nome_item': 'Freios', 'status': 'com_alteracao', 'observacoes': '  '}]
        with pytest.raises(ValidationError) as exc:
            self._create(env, itens=itens)
        assert exc.value.field == 'itens'

    @pytest.mark.parametrize('overrides, field', [
        ({'combustivel_percentual': 101}, 'combustivel_percentual'),
        ({'km_inicial': -1}, 'km_inicial'),
        ({'ala_servico': ''}, 'ala_servico'),
        ({'viatura_id': None}, 'viatura_id'),
    ])
    def test_create_validation(self, env, overrides, field):
        with pytest.raises(ValidationError) as exc:
            self._create(env, **overrides)
        assert exc.value.field == field

    def test_viatura_of_other_unidade(self, env, viatura_factory):
        alheia = viatura_factory.create(env['session'])
        with pytest.raises(ViaturaNotFoundError):
            self._create(env, viatura_id=str(alheia.id))

    def test_create_linked_to_solicitacao(self, env):
        checklist = self._create(env, solicitacao_id=str(env['solicitacao'].id))
        assert checklist.solicitacao_id == env['solicitacao'].id
        # Criar não atende a solicitação; só a finalização
        assert self._status(env, ChecklistSolicitacao, env['solicitacao'].id) == SolicitacaoStatus.PENDENTE

    def test_linked_must_match_viatura_and_tipo(self, env, viatura_factory):
        outra = viatura_factory.create(env['session'], unidade=env['unidade'])
        with pytest.raises(ValidationError):
            self._create(env, solicitacao_id=str(env['solicitacao'].id), viatura_id=str(outra.id))
        with pytest.raises(ValidationError):
            self._create(env, solicitacao_id=str(env['solicitacao'].id), tipo_checklist='Semanal')

    def test_linked_solicitacao_must_be_pending(self, env, solicitacao_factory):
        cancelada = solicitacao_factory.create(
            env['session'], unidade=env['unidade'], viatura=env['viatura'],
            status=SolicitacaoStatus.CANCELADA, motivo_cancelamento='Baixada',
        )
        with pytest.raises(BusinessRuleViolationError) as exc:
            self._create(env, solicitacao_id=str(cancelada.id))
        assert exc.value.code == 'BUSINESS_RULE_SOLICITACAO_NAO_PENDENTE'

    # --- update -------------------------------------------------------------

    def test_update_fields_and_items(self, env):
        checklist = self._create(env)
        updated = env['service'].update(
            checklist.id, {'km_inicial': 13000, 'itens': [ITENS[0]]}, env['operador'], env['unidade'].id,
        )
        assert updated.km_inicial == 13000
        assert len(updated.itens) == 1
        assert updated.situacao == SituacaoChecklist.SEM_ALTERACAO

    def test_linked_viatura_is_locked(self, env, viatura_factory):
        checklist = self._create(env, solicitacao_id=str(env['solicitacao'].id))
        outra = viatura_factory.create(env['session'], unidade=env['unidade'])
        with pytest.raises(ValidationError):
            env['service'].update(
                checklist.id, {'viatura_id': str(outra.id)}, env['operador'], env['unidade'].id,
            )

    def test_finalized_is_read_only(self, env):
        checklist = self._create(env)
        self._finalize(env, checklist)
        with pytest.raises(ChecklistAlreadyFinalizedError):
            env['service'].update(checklist.id, {'km_inicial': 1}, env['operador'], env['unidade'].id)

    # --- finalize -----------------------------------------------------------

    def test_finalize_fulfils_solicitacao(self, env):
        checklist = self._create(env, solicitacao_id=str(env['solicitacao'].id))

        result = self._finalize(env, checklist)

        assert result['solicitacao_atendida'] is True
        assert result['checklist'].status == ChecklistStatus.FINALIZADO
        assert result['checklist'].usuario_autenticacao == env['operador'].nome
        solicitacao = env['session'].query(ChecklistSolicitacao).populate_existing().filter_by(
            id=env['solicitacao'].id
        ).one()
        assert solicitacao.status == SolicitacaoStatus.ATENDIDA
        assert solicitacao.checklist_id == checklist.id

    def test_solicitacao_fulfilled_at_most_once(self, env):
        primeiro = self._create(env, solicitacao_id=str(env['solicitacao'].id))
        segundo = self._create(env, solicitacao_id=str(env['solicitacao'].id))

        assert self._finalize(env, primeiro)['solicitacao_atendida'] is True
        result = self._finalize(env, segundo)

        assert result['solicitacao_atendida'] is False
        assert result['checklist'].status == ChecklistStatus.FINALIZADO
        solicitacao = env['session'].query(ChecklistSolicitacao).populate_existing().filter_by(
            id=env['solicitacao'].id
        ).one()
        assert solicitacao.checklist_id == primeiro.id

    def test_wrong_password_changes_nothing(self, env):
        checklist = self._create(env, solicitacao_id=str(env['solicitacao'].id))
        with pytest.raises(AuthenticationError):
            self._finalize(env, checklist, senha='errada')
        assert self._status(env, ChecklistViatura, checklist.id) == ChecklistStatus.EM_ANDAMENTO
        assert self._status(env, ChecklistSolicitacao, env['solicitacao'].id) == SolicitacaoStatus.PENDENTE

    def test_other_users_credentials_rejected(self, env):
        checklist = self._create(env, solicitacao_id=str(env['solicitacao'].id))
        with pytest.raises(AuthenticationError):
            env['service'].finalize(
                checklist.id, env['chefe'].email, 'senha123', env['operador'], env['unidade'].id,
            )
        assert self._status(env, ChecklistViatura, checklist.id) == ChecklistStatus.EM_ANDAMENTO
        assert self._status(env, ChecklistSolicitacao, env['solicitacao'].id) == SolicitacaoStatus.PENDENTE

    def test_second_finalize_rejected(self, env):
        checklist = self._create(env)
        self._finalize(env, checklist)
        with pytest.raises(ChecklistAlreadyFinalizedError):
            self._finalize(env, checklist)

    def test_finalize_cancelled(self, env):
        checklist = self._create(env)
        env['service'].cancel(checklist.id, 'Viatura baixada', env['chefe'], env['unidade'].id)
        with pytest.raises(BusinessRuleViolationError):
            self._finalize(env, checklist)

    # --- cancel / delete ----------------------------------------------------

    def test_cancel(self, env):
        checklist = self._create(env)
        cancelado = env['service'].cancel(checklist.id, ' Pane elétrica ', env['comandante'], env['unidade'].id)
        assert cancelado.status == ChecklistStatus.CANCELADO
        assert cancelado.cancelamento_motivo == 'Pane elétrica'
        assert cancelado.cancelado_em is not None

    def test_cancel_finalized(self, env):
        checklist = self._create(env)
        self._finalize(env, checklist)
        assert env['service'].cancel(
            checklist.id, 'Lançado errado', env['chefe'], env['unidade'].id
        ).status == ChecklistStatus.CANCELADO

    def test_cancel_requires_motivo(self, env):
        checklist = self._create(env)
        with pytest.raises(ValidationError) as exc:
            env['service'].cancel(checklist.id, '   ', env['chefe'], env['unidade'].id)
        assert exc.value.field == 'motivo'

    def test_cancel_twice(self, env):
        checklist = self._create(env)
        env['service'].cancel(checklist.id, 'Primeiro', env['chefe'], env['unidade'].id)
        with pytest.raises(InvalidStatusTransitionError):
            env['service'].cancel(checklist.id, 'Segundo', env['chefe'], env['unidade'].id)

    def test_operador_cannot_cancel(self, env):
        checklist = self._create(env)
        with pytest.raises(PermissionDeniedError):
            env['service'].cancel(checklist.id, 'Motivo', env['operador'], env['unidade'].id)

    def test_delete(self, env):
        checklist = self._create(env)
        env['service'].delete(checklist.id, env['chefe'], env['unidade'].id)
        assert env['session'].query(ChecklistViatura).count() == 0

    def test_comandante_cannot_delete(self, env):
        checklist = self._create(env)
        with pytest.raises(PermissionDeniedError):
            env['service'].delete(checklist.id, env['comandante'], env['unidade'].id)

    # --- reads --------------------------------------------------------------

    def test_get_other_unidade(self, env):
        checklist = self._create(env)
        with pytest.raises(ChecklistNotFoundError):
            env['service'].get(checklist.id, uuid.uuid4())

    def test_list_pagination(self, env, checklist_factory):
        for _ in range(3):
            checklist_factory.create(env['session'], unidade=env['unidade'], viatura=env['viatura'])
        checklist_factory.create(
            env['session'], unidade=env['unidade'], viatura=env['viatura'], status=ChecklistStatus.CANCELADO,
        )

        page = env['service'].list(env['unidade'].id, page=2, per_page=3)
        assert page['total'] == 4
        assert page['pages'] == 2
        assert len(page['checklists']) == 1

        em_andamento = env['service'].list(env['unidade'].id, status='em_andamento')
        assert em_andamento['total'] == 3

    def test_list_rejects_bad_filters(self, env):
        with pytest.raises(ValidationError):
            env['service'].list(env['unidade'].id, status='arquivado')
        with pytest.raises(ValidationError):
            env['service'].list(env['unidade'].id, data_inicio='ontem')

    def test_list_date_range(self, env, checklist_factory):
        checklist_factory.create(env['session'], unidade=env['unidade'], viatura=env['viatura'])
        assert env['service'].list(env['unidade'].id, data_fim=date(2000, 1, 1).isoformat())['total'] == 0
        assert env['service'].list(env['unidade'].id, data_inicio='2000-01-01')['total'] == 1

    def test_tipo_of_linked_checklist(self, env):
        checklist = self._create(env, solicitacao_id=str(env['solicitacao'].id))
        assert checklist.tipo_checklist == TipoChecklist.DIARIO
