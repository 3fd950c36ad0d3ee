# modules/admin/routes.py
from __future__ import annotations

from flask import (
    Blueprint,
    abort,
    current_app,
    flash,
    g,
    redirect,
    render_template,
    request,
    url_for,
)
from flask_login import login_required

from modules.common.client import get_client

from .gate import AUTHENTICATED, AdminSession
from .managers import EntityManager
from .schemas import LOGIN_FORM, PASSWORD_FORM, SCHEMAS, to_form_values

admin_bp = Blueprint("admin", __name__, template_folder="../../templates/admin")

TABS = list(SCHEMAS.keys()) + ["password"]


# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------
def admin_gate() -> AdminSession:
    """One gate per request, notifying through flash()."""
    if "admin_gate" not in g:
        g.admin_gate = AdminSession(get_client(), current_app._get_current_object(), notify=flash)
    return g.admin_gate


@admin_bp.teardown_app_request
def _close_gate(exc):
    gate = g.pop("admin_gate", None)
    if gate is not None:
        gate.close()


def _manager(collection: str) -> EntityManager:
    manager = admin_gate().managers.get(collection)
    if manager is None:
        abort(404)
    return manager


def _tab(value: str | None) -> str:
    return value if value in TABS else "profile"


def render_login(errors=None, form=None, status: int = 200):
    return (
        render_template(
            "admin/login.html",
            schema=LOGIN_FORM,
            form=form or to_form_values(LOGIN_FORM, None),
            errors=errors or {},
        ),
        status,
    )


def render_console(active: str | None = None, password_errors=None, status: int = 200):
    gate = admin_gate()
    return (
        render_template(
            "admin/console.html",
            gate=gate,
            schemas=SCHEMAS,
            managers=gate.managers,
            stats=gate.stats(),
            active=_tab(active or request.args.get("tab")),
            password_schema=PASSWORD_FORM,
            password_form=to_form_values(PASSWORD_FORM, None),
            password_errors=password_errors or {},
        ),
        status,
    )


# ---------------------------------------------------------------------
# Console
# ---------------------------------------------------------------------
@admin_bp.route("/", methods=["GET"], endpoint="index")
def index():
    gate = admin_gate()
    if gate.check() != AUTHENTICATED:
        return render_login()
    gate.load_all()
    return render_console()


@admin_bp.route("/<collection>", methods=["POST"], endpoint="submit")
@login_required
def submit(collection: str):
    gate = admin_gate()
    manager = _manager(collection)
    gate.check()
    gate.load_all()
    if collection in gate.failed:
        flash(f"Could not load {manager.schema.title.lower()}, nothing was saved", "error")
        return redirect(url_for("admin.index", tab=collection))

    record_id = (request.form.get("id") or "").strip()
    if record_id and not manager.schema.singleton:
        record = manager.find(record_id)
        if record is None:
            flash(f"{manager.schema.label} not found", "error")
            return redirect(url_for("admin.index", tab=collection))
        manager.edit(record)

    saved = manager.submit(request.form, request.files.get("media"))
    if saved is None and manager.errors:
        return render_console(active=collection, status=400)
    return redirect(url_for("admin.index", tab=collection))


@admin_bp.route("/<collection>/<record_id>/edit", methods=["GET"], endpoint="edit")
@login_required
def edit(collection: str, record_id: str):
    gate = admin_gate()
    manager = _manager(collection)
    gate.check()
    gate.load_all()

    record = manager.find(record_id)
    if record is None:
        flash(f"{manager.schema.label} not found", "error")
        return redirect(url_for("admin.index", tab=collection))
    manager.edit(record)
    return render_console(active=collection)


@admin_bp.route("/<collection>/cancel", methods=["GET", "POST"], endpoint="cancel")
@login_required
def cancel(collection: str):
    # Edit state never outlives a request; only the collection needs checking
    _manager(collection)
    return redirect(url_for("admin.index", tab=collection))


@admin_bp.route("/<collection>/<record_id>/delete", methods=["POST"], endpoint="delete")
@login_required
def delete(collection: str, record_id: str):
    manager = _manager(collection)
    confirmed = (request.form.get("confirm") or "").lower() in ("1", "yes", "true", "on")
    if not confirmed:
        flash("Please confirm the deletion.", "warning")
        return redirect(url_for("admin.index", tab=collection))
    manager.delete(record_id, confirmed=True)
    return redirect(url_for("admin.index", tab=collection))
