# modules/auth/routes.py
import logging

from flask import Blueprint, flash, redirect, request, url_for
from flask_login import LoginManager, login_required

from models import AdminUser, db
from modules.admin.gate import AUTHENTICATED
from modules.admin.routes import admin_gate, render_console, render_login
from modules.admin.schemas import LOGIN_FORM, echo_form_values, validate_password_change

from .identity import AuthError

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__, template_folder="../../templates/auth")
login_manager = LoginManager()
login_manager.login_view = "auth.login"
login_manager.login_message = "Please sign in to manage your portfolio."
login_manager.login_message_category = "error"


@login_manager.user_loader
def load_user(user_id):
    try:
        return db.session.get(AdminUser, str(user_id))
    except Exception:
        return None


# ---------------------------
# Login / Logout
# ---------------------------
@auth_bp.route("/login", methods=["GET", "POST"])
def login():
    gate = admin_gate()
    if request.method == "GET":
        if gate.check() == AUTHENTICATED:
            return redirect(url_for("admin.index"))
        return render_login()

    errors = gate.sign_in(request.form)
    if gate.state == AUTHENTICATED:
        # sign_in already bulk-loaded every collection
        return render_console()

    form = echo_form_values(LOGIN_FORM, request.form)
    return render_login(errors=errors, form=form, status=400 if errors else 401)


@auth_bp.route("/logout", methods=["GET", "POST"])
def logout():
    gate = admin_gate()
    if gate.check() == AUTHENTICATED:
        gate.sign_out()
    return redirect(url_for("auth.login"))


# ---------------------------
# Password change
# ---------------------------
@auth_bp.route("/password", methods=["POST"])
@login_required
def change_password():
    gate = admin_gate()
    gate.check()
    identity = gate.client.identity

    values, errors = validate_password_change(request.form)
    if not errors and not identity.verify_password(values["current_password"]):
        errors = {"current_password": "Current password is incorrect"}
    if errors:
        gate.load_all()
        return render_console(active="password", password_errors=errors, status=400)

    try:
        identity.update_password(values["new_password"])
    except AuthError:
        logger.exception("Password change failed")
        flash("Failed to update password", "error")
        return redirect(url_for("admin.index", tab="password"))

    flash("Password updated successfully", "success")
    return redirect(url_for("admin.index", tab="password"))
