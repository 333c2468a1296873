from __future__ import annotations
from functools import wraps
from flask import request, g, current_app


def session_required():
    """
    Run the SessionGuard on the Authorization header and the refresh cookie.
    On success the access token claims are available as g.current_claims.
    Every rejection raises UnauthorizedError with the same message (401).
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            guard = current_app.extensions["session_auth"].guard
            g.current_claims = guard.admit(
                request.headers.get("Authorization"),
                request.cookies.get(current_app.config["REFRESH_COOKIE_NAME"]),
            )
            return fn(*args, **kwargs)

        return wrapper

    return decorator
