# utils/auth.py
from functools import wraps
from flask import abort
from flask_login import current_user


def roles_required(*roles):
    """401 for anonymous callers, 403 unless the user holds one of ``roles``."""
    allowed = ", ".join(r.value for r in roles)

    def deco(fn):
        @wraps(fn)
        def inner(*a, **kw):
            if not current_user.is_authenticated:
                abort(401, description="Login required.")
            if not current_user.is_active:
                abort(403, description="This account has been disabled.")
            if not current_user.has_role(*roles):
                abort(403, description=f"Requires role: {allowed}.")
            return fn(*a, **kw)

        return inner

    return deco
