import logging

from flask import Blueprint, jsonify, request

from .config_helper import get_config
from .container import get_solicitacao_generator
from .application.parsing import parse_uuid

cron_bp = Blueprint('cron', __name__)
logger = logging.getLogger(__name__)


def _check_cron_auth():
    """Cloud Scheduler header, or the shared secret (query string or X-Cron-Secret)."""
    is_cron = request.headers.get('X-Appengine-Cron') == 'true'
    secret = request.args.get('secret') or request.headers.get('X-Cron-Secret')
    valid_secret = get_config('CRON_SECRET')
    return is_cron or bool(secret and valid_secret and secret == valid_secret)


@cron_bp.route('/api/cron/gerar-solicitacoes', methods=['GET', 'POST'])
def cron_gerar_solicitacoes():
    """
    Periodic generation pass, scheduled externally (e.g. every 5 minutes).
    Optional ?unidade_id= limits the pass to one unit.
    """
    if not _check_cron_auth():
        return jsonify({'error': 'Unauthorized'}), 401

    unidade_id = request.args.get('unidade_id')
    if unidade_id:
        unidade_id = parse_uuid(unidade_id, 'unidade_id')

    report = get_solicitacao_generator().run(unidade_id=unidade_id)
    status_code = 207 if report.erros else 200
    logger.info(f"Cron de geração: {report.to_dict()}")
    return jsonify({'status': 'ok' if not report.erros else 'partial', **report.to_dict()}), status_code
