# app/utils/guards.py

from __future__ import annotations

from functools import wraps
from typing import Any, Callable

from flask import abort
from flask_login import current_user, login_required

ADMIN_ROLES = ("admin", "super_admin")


def admin_required(view: Callable[..., Any]) -> Callable[..., Any]:
    """
    Allow only admin and super_admin.
    Returns 403 for all other logged-in roles.
    """
    @wraps(view)
    @login_required
    def wrapped(*args, **kwargs):
        role = getattr(current_user, "role", None)
        if role not in ADMIN_ROLES:
            abort(403)
        return view(*args, **kwargs)

    return wrapped
