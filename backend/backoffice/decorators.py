# Overview: Request authentication and role decorators for API routes.

from functools import wraps

from flask import current_app, g, request

from .errors import AuthenticationError, AuthorizationError
from .permissions import allowed_roles, is_allowed
from .services import session_service


def require_auth(f):
    """
    Require a valid token (bearer header or auth cookie) for an active user.

    Sets g.current_user. Every failure is the same 401 "Unauthorized".
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        settings = current_app.extensions["auth_settings"]
        user = session_service.resolve_user(request, settings.cookie_name)
        if user is None:
            raise AuthenticationError()

        g.current_user = user
        return f(*args, **kwargs)

    return decorated_function


def require_roles(*roles: str):
    """Allow only the listed roles. Must be applied after @require_auth."""
    allowed = frozenset(roles)

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user = getattr(g, "current_user", None)
            if user is None:
                raise AuthenticationError()
            if not is_allowed(user.role, allowed):
                current_app.logger.info(
                    "Denied %s %s for user %s (role %s)",
                    request.method, request.path, user.id, user.role,
                )
                raise AuthorizationError()
            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_action(resource: str, action: str):
    """Allow the roles listed for (resource, action) in RESOURCE_PERMISSIONS."""
    return require_roles(*allowed_roles(resource, action))
