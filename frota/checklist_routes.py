"""
Checklist API: templates, vehicles, the credential gate and the checklist
lifecycle (create, update, finalize, cancel, delete).
"""

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from .auth import current_unidade_id
from .container import get_checklist_service, get_credential_gate
from .infrastructure.security import credential_limit

checklist_bp = Blueprint('checklist', __name__, url_prefix='/api/checklist')


def _json_body():
    return request.get_json(silent=True) or {}


# --- lookups ---------------------------------------------------------------

@checklist_bp.route('/templates')
@login_required
def list_templates():
    templates = get_checklist_service().list_templates(
        current_unidade_id(), tipo_viatura=request.args.get('tipo_viatura')
    )
    return jsonify({'templates': [t.to_dict(with_itens=False) for t in templates]})


@checklist_bp.route('/templates/<uuid:template_id>')
@login_required
def get_template(template_id):
    template = get_checklist_service().get_template(template_id, current_unidade_id())
    return jsonify(template.to_dict())


@checklist_bp.route('/frota/viaturas')
@login_required
def list_viaturas():
    viaturas = get_checklist_service().list_viaturas(
        current_unidade_id(),
        tipo=request.args.get('tipo'),
        busca=request.args.get('busca'),
        incluir_inativas=request.args.get('incluir_inativas') == 'true',
    )
    return jsonify({'viaturas': [v.to_dict() for v in viaturas]})


# --- credential gate -------------------------------------------------------

@checklist_bp.route('/validar-credenciais', methods=['POST'])
@login_required
@credential_limit()
def validar_credenciais():
    data = _json_body()
    usuario = get_credential_gate().validate(data.get('usuario'), data.get('senha'), operador=current_user)
    return jsonify({'valid': True, 'usuario': usuario.to_dict()})


# --- checklists ------------------------------------------------------------

@checklist_bp.route('/viaturas')
@login_required
def list_checklists():
    args = request.args
    result = get_checklist_service().list(
        current_unidade_id(),
        page=args.get('page', 1, type=int),
        per_page=args.get('per_page', 20, type=int),
        status=args.get('status'),
        viatura_id=args.get('viatura_id'),
        data_inicio=args.get('data_inicio'),
        data_fim=args.get('data_fim'),
    )
    return jsonify(result)


@checklist_bp.route('/viaturas/<uuid:checklist_id>')
@login_required
def get_checklist(checklist_id):
    checklist = get_checklist_service().get(checklist_id, current_unidade_id())
    return jsonify(checklist.to_dict(with_itens=True))


@checklist_bp.route('/viaturas', methods=['POST'])
@login_required
def create_checklist():
    checklist = get_checklist_service().create(_json_body(), current_user, current_unidade_id())
    return jsonify(checklist.to_dict(with_itens=True)), 201


@checklist_bp.route('/viaturas/<uuid:checklist_id>', methods=['PUT'])
@login_required
def update_checklist(checklist_id):
    checklist = get_checklist_service().update(checklist_id, _json_body(), current_user, current_unidade_id())
    return jsonify(checklist.to_dict(with_itens=True))


@checklist_bp.route('/viaturas/<uuid:checklist_id>/finalizar', methods=['POST'])
@login_required
@credential_limit()
def finalizar_checklist(checklist_id):
    data = _json_body()
    result = get_checklist_service().finalize(
        checklist_id,
        data.get('usuario_autenticacao') or data.get('usuario'),
        data.get('senha'),
        current_user,
        current_unidade_id(),
    )
    return jsonify({
        **result['checklist'].to_dict(with_itens=True),
        'solicitacao_atendida': result['solicitacao_atendida'],
    })


@checklist_bp.route('/viaturas/<uuid:checklist_id>/cancelar', methods=['PUT'])
@login_required
def cancelar_checklist(checklist_id):
    checklist = get_checklist_service().cancel(
        checklist_id, _json_body().get('motivo'), current_user, current_unidade_id()
    )
    return jsonify(checklist.to_dict())


@checklist_bp.route('/viaturas/<uuid:checklist_id>', methods=['DELETE'])
@login_required
def delete_checklist(checklist_id):
    get_checklist_service().delete(checklist_id, current_user, current_unidade_id())
    return jsonify({'success': True})
