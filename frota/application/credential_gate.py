"""Credential re-authentication gate used before a checklist is finalized."""
import logging

from werkzeug.security import check_password_hash

from ..domain.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Usuário ou senha incorretos."


class CredentialGate:
    """
    Confirms the person finalizing a checklist by name-or-email and password.

    Stateless per call; nothing is written. Every failure raises the same
    AuthenticationError so callers cannot tell which part was wrong.
    """

    def __init__(self, uow):
        self._uow = uow

    def validate(self, identity, password, operador=None):
        """
        Args:
            identity: user name or email (case-insensitive).
            password: plain password.
            operador: optional Usuario; when given the credentials must be theirs.

        Returns:
            The authenticated Usuario.
        """
        if not (identity or "").strip() or not password:
            raise AuthenticationError(INVALID_CREDENTIALS)

        for usuario in self._uow.usuarios.find_active_by_identity(identity):
            if usuario.senha_hash and check_password_hash(usuario.senha_hash, password):
                if operador is not None and usuario.id != operador.id:
                    logger.warning(f"Credenciais de outro usuário informadas por {operador.id}")
                    raise AuthenticationError(INVALID_CREDENTIALS)
                logger.info(f"Credenciais validadas para usuário {usuario.id}")
                return usuario

        logger.info("Falha na validação de credenciais")
        raise AuthenticationError(INVALID_CREDENTIALS)
