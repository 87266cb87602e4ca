import logging
import uuid

from flask import Blueprint, jsonify, request
from flask_login import LoginManager, current_user, login_required, login_user, logout_user
from werkzeug.security import check_password_hash

from . import database
from .domain.entities import Perfil
from .domain.exceptions import ValidationError
from .infrastructure.security import login_limit
from .models_db import Usuario
from .repositories import UsuarioRepository

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__)
login_manager = LoginManager()
login_manager.session_protection = 'basic'


@login_manager.user_loader
def load_user(user_id):
    try:
        return database.db_session.get(Usuario, uuid.UUID(user_id))
    except ValueError:
        logger.debug(f"[load_user] ID inválido na sessão: {user_id}")
        return None


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({'error': 'Autenticação necessária', 'code': 'UNAUTHENTICATED'}), 401


def current_unidade_id():
    """
    Unidade de trabalho da requisição: a do usuário, ou a do cabeçalho
    X-Unidade-ID quando o perfil pode alternar entre unidades.
    """
    header = request.headers.get('X-Unidade-ID')
    if header and Perfil(current_user.perfil).can_switch_unidade:
        try:
            return uuid.UUID(header)
        except ValueError:
            raise ValidationError('Unidade inválida no cabeçalho X-Unidade-ID', 'unidade_id')
    if not current_user.unidade_id:
        raise ValidationError('Usuário sem unidade vinculada', 'unidade_id')
    return current_user.unidade_id


@auth_bp.route('/login', methods=['POST'])
@login_limit()
def login():
    data = request.get_json(silent=True) or request.form
    email = (data.get('email') or '').strip()
    senha = data.get('senha') or data.get('password') or ''
    remember = bool(data.get('remember'))

    usuario = UsuarioRepository(database.db_session).get_by_email(email) if email else None
    if (not usuario or not usuario.ativo or not usuario.senha_hash
            or not check_password_hash(usuario.senha_hash, senha)):
        logger.info("Falha de login")
        return jsonify({'error': 'Email ou senha incorretos.', 'code': 'AUTHENTICATION_FAILED'}), 401

    login_user(usuario, remember=remember)
    logger.info(f"Login do usuário {usuario.id}")
    return jsonify({'usuario': usuario.to_dict()})


@auth_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    logout_user()
    return jsonify({'success': True})


@auth_bp.route('/me')
@login_required
def me():
    return jsonify({'usuario': current_user.to_dict()})
