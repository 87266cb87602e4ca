# Security module - rate limiting utilities
from .rate_limiter import limiter, init_limiter, login_limit, credential_limit

__all__ = [
    'limiter',
    'init_limiter',
    'login_limit',
    'credential_limit',
]
