"""
Domain exceptions - Business-level errors.

These exceptions represent business rule violations and domain-specific errors.
They are raised by entities and application services and translated to HTTP
responses by the error handler registered in the app factory.
"""


class DomainError(Exception):
    """Base exception for all domain errors."""

    def __init__(self, message: str, code: str = "DOMAIN_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)


class ValidationError(DomainError):
    """Raised when validation fails."""

    def __init__(self, message: str, field: str = None):
        self.field = field
        code = f"VALIDATION_ERROR_{field.upper()}" if field else "VALIDATION_ERROR"
        super().__init__(message, code)


class NotFoundError(DomainError):
    """Raised when an entity is not found."""

    def __init__(self, entity_type: str, identifier: str = None):
        self.entity_type = entity_type
        self.identifier = identifier
        message = f"{entity_type} não encontrado(a)"
        if identifier:
            message = f"{entity_type} '{identifier}' não encontrado(a)"
        super().__init__(message, f"{_slug(entity_type)}_NOT_FOUND")


class AuthenticationError(DomainError):
    """Raised when the credential gate rejects a user/password pair."""

    def __init__(self, message: str = "Usuário ou senha incorretos."):
        super().__init__(message, "AUTHENTICATION_FAILED")


class PermissionDeniedError(DomainError):
    """Raised when the user's role lacks rights for an action."""

    def __init__(self, message: str = "Acesso não autorizado para seu perfil."):
        super().__init__(message, "PERMISSION_DENIED")


class ConflictError(DomainError):
    """Raised when an action collides with work already done (duplicates, double submits)."""

    def __init__(self, message: str, code: str = "CONFLICT"):
        super().__init__(message, code)


class BusinessRuleViolationError(DomainError):
    """Raised when a business rule is violated."""

    def __init__(self, rule: str, message: str):
        self.rule = rule
        super().__init__(message, f"BUSINESS_RULE_{rule.upper()}")


class NetworkError(DomainError):
    """Raised by the API client when the backend cannot be reached."""

    def __init__(self, message: str = "Não foi possível conectar ao servidor."):
        super().__init__(message, "NETWORK_ERROR")


# Specific domain errors

class InvalidStatusTransitionError(BusinessRuleViolationError):
    """Raised when an invalid status transition is attempted."""

    def __init__(self, current_status: str, target_status: str, entity_type: str = None):
        self.current_status = current_status
        self.target_status = target_status
        self.entity_type = entity_type
        message = f"Não é possível mudar de '{current_status}' para '{target_status}'"
        if entity_type:
            message = f"{entity_type}: {message}"
        super().__init__("STATUS_TRANSITION", message)


class ViaturaNotFoundError(NotFoundError):
    def __init__(self, viatura_id: str = None):
        super().__init__("Viatura", viatura_id)


class TemplateNotFoundError(NotFoundError):
    def __init__(self, template_id: str = None):
        super().__init__("Template", template_id)


class AutomacaoNotFoundError(NotFoundError):
    def __init__(self, automacao_id: str = None):
        super().__init__("Automação", automacao_id)


class SolicitacaoNotFoundError(NotFoundError):
    def __init__(self, solicitacao_id: str = None):
        super().__init__("Solicitação", solicitacao_id)


class ChecklistNotFoundError(NotFoundError):
    def __init__(self, checklist_id: str = None):
        super().__init__("Checklist", checklist_id)


class ChecklistAlreadyFinalizedError(ConflictError):
    """Raised when finalize is requested for a checklist that is already finalized."""

    def __init__(self, checklist_id: str):
        self.checklist_id = checklist_id
        super().__init__(f"Checklist '{checklist_id}' já foi finalizado", "ALREADY_FINALIZED")


def _slug(text: str) -> str:
    replacements = str.maketrans("ÁÀÂÃÉÊÍÓÔÕÚÇáàâãéêíóôõúç", "AAAAEEIOOOUCaaaaeeiooouc")
    return text.translate(replacements).upper().replace(" ", "_")
