from functools import wraps

from flask import current_app, g, request

from certchain_app.crypto_utils import read_session_token
from certchain_app.errors import Forbidden, Unauthorized
from certchain_app.services import services


def _bearer_token():
    header = request.headers.get("Authorization", "")
    if not header.startswith("Bearer "):
        return None
    return header[len("Bearer "):].strip() or None


def require_account(*roles):
    """Resolve the bearer token to an active account, optionally restricted to ``roles``."""

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            token = _bearer_token()
            if token is None:
                raise Unauthorized("Missing token")
            svc = services()
            claims = read_session_token(token, svc.cipher, current_app.config["SESSION_TOKEN_TTL"])
            account = svc.accounts.get(claims.get("sub"))
            if account is None:
                raise Unauthorized()
            if not account.is_active:
                raise Forbidden("Account is inactive")
            if roles and account.role not in roles:
                raise Forbidden()
            g.current_account = account
            return view(*args, **kwargs)

        return wrapper

    return decorator


def current_account():
    return g.current_account
