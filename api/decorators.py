"""
Flask route decorators for bundle authentication.

Provides:
- bundle_required: Require a valid access secret plus its anti-forgery secret
"""
from functools import wraps

from flask import g, request

from api.extensions import get_services
from core.errors import InvalidCredential


def read_credential_headers() -> tuple[str, str]:
    """Return (access secret, anti-forgery secret) from their separate headers."""
    auth = get_services().settings.auth
    return (
        request.headers.get(auth.access_header, ""),
        request.headers.get(auth.csrf_header, ""),
    )


def bundle_required(f):
    """Decorator to require a valid credential bundle for endpoint.

    Sets g.current_user_id and g.current_user on success. Credential
    failures propagate as CredentialError and are rendered as 401 by the
    registered error handlers.
    """
    @wraps(f)
    def decorated(*args, **kwargs):
        services = get_services()
        access, anti_forgery = read_credential_headers()

        owner_id = services.sessions.authorize(access, anti_forgery)

        user = services.users.get_by_id(owner_id)
        if user is None:
            # User row removed after the bundle was read
            raise InvalidCredential()

        g.current_user_id = owner_id
        g.current_user = user["username"]
        return f(*args, **kwargs)
    return decorated
