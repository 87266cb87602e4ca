"""Solicitation lifecycle and automation rule endpoints."""

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from .auth import current_unidade_id
from .container import get_automacao_service, get_solicitacao_generator, get_solicitacao_service

solicitacao_bp = Blueprint('solicitacao', __name__, url_prefix='/api/checklist')


def _json_body():
    return request.get_json(silent=True) or {}


# --- solicitações ------------------------------------------------------------

@solicitacao_bp.route('/solicitacoes')
@login_required
def list_solicitacoes():
    solicitacoes = get_solicitacao_service().list(
        current_unidade_id(),
        status=request.args.get('status'),
        viatura_id=request.args.get('viatura_id'),
        data=request.args.get('data'),
    )
    return jsonify({'solicitacoes': [s.to_dict() for s in solicitacoes]})


@solicitacao_bp.route('/solicitacoes', methods=['POST'])
@login_required
def create_solicitacao():
    solicitacao = get_solicitacao_service().create(_json_body(), current_user, current_unidade_id())
    return jsonify(solicitacao.to_dict()), 201


@solicitacao_bp.route('/solicitacoes/<uuid:solicitacao_id>/iniciar', methods=['POST'])
@login_required
def iniciar_solicitacao(solicitacao_id):
    prefill = get_solicitacao_service().start(solicitacao_id, current_user, current_unidade_id())
    return jsonify(prefill)


@solicitacao_bp.route('/solicitacoes/<uuid:solicitacao_id>/cancelar', methods=['PUT'])
@login_required
def cancelar_solicitacao(solicitacao_id):
    solicitacao = get_solicitacao_service().cancel(
        solicitacao_id, _json_body().get('motivo'), current_user, current_unidade_id()
    )
    return jsonify(solicitacao.to_dict())


@solicitacao_bp.route('/solicitacoes/<uuid:solicitacao_id>', methods=['DELETE'])
@login_required
def delete_solicitacao(solicitacao_id):
    get_solicitacao_service().delete(solicitacao_id, current_user, current_unidade_id())
    return jsonify({'success': True})


# --- automações --------------------------------------------------------------

@solicitacao_bp.route('/automacoes')
@login_required
def list_automacoes():
    ativo = request.args.get('ativo')
    automacoes = get_automacao_service().list(
        current_unidade_id(), ativo=None if ativo is None else ativo == 'true'
    )
    return jsonify({'automacoes': [a.to_dict() for a in automacoes]})


@solicitacao_bp.route('/automacoes', methods=['POST'])
@login_required
def create_automacao():
    automacao = get_automacao_service().create(_json_body(), current_user, current_unidade_id())
    return jsonify(automacao.to_dict()), 201


@solicitacao_bp.route('/automacoes/<uuid:automacao_id>', methods=['PUT'])
@login_required
def update_automacao(automacao_id):
    automacao = get_automacao_service().update(automacao_id, _json_body(), current_user, current_unidade_id())
    return jsonify(automacao.to_dict())


@solicitacao_bp.route('/automacoes/<uuid:automacao_id>/ativar', methods=['PUT'])
@login_required
def ativar_automacao(automacao_id):
    automacao = get_automacao_service().toggle(
        automacao_id, current_user, current_unidade_id(), ativo=_json_body().get('ativo')
    )
    return jsonify(automacao.to_dict())


@solicitacao_bp.route('/automacoes/<uuid:automacao_id>', methods=['DELETE'])
@login_required
def delete_automacao(automacao_id):
    detached = get_automacao_service().delete(automacao_id, current_user, current_unidade_id())
    return jsonify({'success': True, 'solicitacoes_desvinculadas': detached})


@solicitacao_bp.route('/automacoes/<uuid:automacao_id>/gerar-solicitacoes', methods=['POST'])
@login_required
def gerar_solicitacoes(automacao_id):
    report = get_solicitacao_generator().generate_now(automacao_id, current_user, current_unidade_id())
    return jsonify(report.to_dict())
