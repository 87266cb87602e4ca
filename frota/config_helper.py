import os
import logging

from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


def get_config(key, default=None):
    """
    Busca configuracao com prioridade:
    1. Tabela AppConfig no banco de dados
    2. Variavel de ambiente (os.getenv)
    3. Valor default
    """
    from . import database
    from .models_db import AppConfig

    if database.db_session is not None:
        try:
            entry = database.db_session.get(AppConfig, key)
            if entry and entry.value is not None and entry.value.strip() != '':
                return entry.value
        except SQLAlchemyError as e:
            # Tabela ausente ou banco indisponível: segue para a variável de ambiente
            database.db_session.rollback()
            logger.debug(f"AppConfig indisponível para '{key}': {e}")

    return os.getenv(key, default)
