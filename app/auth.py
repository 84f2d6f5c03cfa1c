# app/auth.py
from __future__ import annotations

from urllib.parse import urljoin, urlparse

from flask import Blueprint, current_app, flash, redirect, render_template, request, url_for
from flask_login import current_user, login_user, logout_user
from sqlalchemy.exc import SQLAlchemyError

from .extensions import db, limiter
from .models import User, utcnow_naive
from .utils.passwords import verify_password

auth = Blueprint("auth", __name__, url_prefix="/admin")


# =========================================================
# Helpers
# =========================================================
def _is_safe_next(target: str) -> bool:
    """
    Allow only same-host redirects AND block redirect loops into login/logout.
    """
    if not target:
        return False

    blocked_prefixes = ("/admin/login", "/admin/logout")
    if target.startswith(blocked_prefixes):
        return False

    ref = urlparse(request.host_url)
    test = urlparse(urljoin(request.host_url, target))
    return test.scheme in ("http", "https") and ref.netloc == test.netloc


def _next_or_dashboard() -> str:
    nxt = request.args.get("next") or request.form.get("next") or ""
    if nxt and _is_safe_next(nxt):
        return nxt
    return url_for("admin.dashboard")


# =========================================================
# Login / Logout
# =========================================================
@auth.route("/login", methods=["GET", "POST"])
@limiter.limit("5 per minute", methods=["POST"])
def login():
    if getattr(current_user, "is_authenticated", False):
        return redirect(url_for("admin.dashboard"))

    next_url = request.args.get("next") or request.form.get("next") or ""

    if request.method == "POST":
        email = (request.form.get("email") or "").strip().lower()
        password = request.form.get("password") or ""

        if not email or not password:
            flash("Email and password are required.", "danger")
            return render_template("admin/login.html", next=next_url), 400

        user = User.query.filter(db.func.lower(User.email) == email).first()

        if user and user.is_active is False:
            flash("This account is inactive.", "danger")
            return render_template("admin/login.html", next=next_url), 403

        if not user or not verify_password(user.password_hash, password):
            current_app.logger.warning("Failed admin login for %s", email)
            flash("Invalid email or password.", "danger")
            return render_template("admin/login.html", next=next_url), 401

        login_user(user)

        user.last_login_at = utcnow_naive()
        try:
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            current_app.logger.exception("Could not stamp last_login_at for user %s", user.id)

        return redirect(_next_or_dashboard())

    return render_template("admin/login.html", next=next_url)


@auth.route("/logout")
def logout():
    """
    logout must NOT be login_required, otherwise Flask-Login redirects to
    login?next=logout and you get a loop after a successful login.
    """
    logout_user()
    flash("You have been logged out.", "success")
    return redirect(url_for("auth.login"))
