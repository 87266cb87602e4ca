"""Role checks shared by the application services."""
from ..domain.entities import Perfil
from ..domain.exceptions import PermissionDeniedError


def require_capability(usuario, capability: str, message: str = None) -> Perfil:
    """Raise PermissionDeniedError unless the user's role has `capability` (a Perfil flag)."""
    perfil = Perfil(usuario.perfil)
    if not getattr(perfil, capability):
        raise PermissionDeniedError(message or "Acesso não autorizado para seu perfil.")
    return perfil
