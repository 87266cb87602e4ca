"""Application factory."""
import logging
import os

from dotenv import load_dotenv
from flask import Flask, jsonify
from flask_login import current_user
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix

from . import database
from .config import config
from .domain.exceptions import (
    AuthenticationError, BusinessRuleViolationError, ConflictError, DomainError,
    NotFoundError, PermissionDeniedError, ValidationError,
)
from .error_codes import ErrorCode
from .logging_config import configure_logging

logger = logging.getLogger("frota-app")

# Ordem importa: subclasses antes das bases
STATUS_BY_ERROR = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (PermissionDeniedError, 403),
    (NotFoundError, 404),
    (ConflictError, 409),
    (BusinessRuleViolationError, 422),
)


def _status_for(error: DomainError) -> int:
    for error_type, status in STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return status
    return 400


def create_app(overrides=None) -> Flask:
    load_dotenv()
    overrides = overrides or {}
    if not overrides.get("TESTING"):
        configure_logging(os.getenv("LOG_LEVEL", "INFO"))

    app = Flask(__name__)
    app.config['SECRET_KEY'] = config.SECRET_KEY
    app.config['RATELIMIT_ENABLED'] = True
    app.config.update(overrides)

    # Cloud Run Load Balancer Fix
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    from .auth import auth_bp, login_manager
    from .infrastructure.security import init_limiter
    login_manager.init_app(app)
    init_limiter(app)

    database_url = app.config.get('DATABASE_URL')
    if database_url or database.db_session is None:
        database.init_db(database_url)
        logger.info("✅ Banco de dados inicializado com sucesso")

    from .checklist_routes import checklist_bp
    from .cron_routes import cron_bp
    from .solicitacao_routes import solicitacao_bp

    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(checklist_bp)
    app.register_blueprint(solicitacao_bp)
    app.register_blueprint(cron_bp)

    _register_error_handlers(app)

    from .container import teardown_uow

    @app.teardown_appcontext
    def shutdown_session(exception=None):
        teardown_uow(exception)
        if database.db_session is not None:
            database.db_session.remove()

    @app.route('/health')
    def health():
        return jsonify({'status': 'ok'})

    return app


def _register_error_handlers(app):
    @app.errorhandler(DomainError)
    def handle_domain_error(e):
        status = _status_for(e)
        error_info = ErrorCode.get_error(e)
        if status == 403:
            logger.warning(f"{e.code} ({status}) para usuário {getattr(current_user, 'id', None)}: {e.message}")
        else:
            logger.info(f"{e.code} ({status}): {e.message}")
        return jsonify({
            'error': e.message,
            'code': e.code,
            'field': getattr(e, 'field', None),
            'error_code': error_info['code'],
            'user_msg': error_info['user_msg'],
        }), status

    @app.errorhandler(429)
    def handle_rate_limit(e):
        error_info = ErrorCode.ERR_2003
        return jsonify({
            'error': getattr(e, 'description', None) or error_info['admin_msg'],
            'code': 'RATE_LIMITED',
            'error_code': error_info['code'],
            'user_msg': error_info['user_msg'],
        }), 429

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        if isinstance(e, HTTPException):
            return jsonify({'error': e.description, 'code': e.name.upper().replace(' ', '_')}), e.code
        logger.error(f"💥 ERRO 500 DETECTADO: {e}", exc_info=True)
        error_info = ErrorCode.get_error(e)
        return jsonify({
            'error': error_info['admin_msg'],
            'code': 'INTERNAL_ERROR',
            'error_code': error_info['code'],
            'user_msg': error_info['user_msg'],
        }), 500
