# modules/portfolio/routes.py

import logging

from flask import (
    Blueprint,
    abort,
    current_app,
    redirect,
    render_template,
    request,
    send_from_directory,
)

from modules.common.client import get_client
from modules.common.storage import StorageError
from modules.common.store import StoreError

from .contact import build_whatsapp_link, validate_contact
from .helpers import PROJECTS_ON_PAGE
from .loader import load_portfolio

logger = logging.getLogger(__name__)

portfolio_bp = Blueprint("portfolio", __name__, template_folder="../../templates/portfolio")

PAGE_KEY = "/"


def _render_page(contact_values=None, contact_errors=None, contact_notice=None):
    snapshot = load_portfolio(get_client(), current_app._get_current_object())
    html = render_template(
        "portfolio/index.html",
        snap=snapshot,
        profile=snapshot.profile,
        projects_on_page=PROJECTS_ON_PAGE,
        contact_values=contact_values or {},
        contact_errors=contact_errors or {},
        contact_notice=contact_notice,
    )
    return html, snapshot


# ---------------------------
# Public page
# ---------------------------
@portfolio_bp.route("/", methods=["GET"], endpoint="index")
def index():
    pages = get_client().pages
    html = pages.get(PAGE_KEY)
    if html is not None:
        return html
    html, snapshot = _render_page()
    # A page missing sections is served but not kept
    if not snapshot.failed:
        pages.set(PAGE_KEY, html)
    return html


@portfolio_bp.route("/contact", methods=["POST"], endpoint="contact")
def contact():
    values, errors = validate_contact(request.form)
    if errors:
        html, _ = _render_page(contact_values=values, contact_errors=errors)
        return html, 400

    try:
        profile = get_client().tables.select_single("profile")
    except StoreError:
        logger.exception("Contact: failed to read profile")
        profile = None

    link = build_whatsapp_link((profile or {}).get("phone"), values)
    if link is None:
        notice = "Contact number is not configured yet. Please try again later."
        html, _ = _render_page(contact_values=values, contact_notice=notice)
        return html, 400
    return redirect(link)


# ---------------------------
# Object storage (public URLs)
# ---------------------------
@portfolio_bp.route("/storage/<bucket>/<path:filename>", methods=["GET"], endpoint="storage")
def storage(bucket, filename):
    try:
        directory = get_client().storage.bucket_dir(bucket)
    except StorageError:
        abort(404)
    return send_from_directory(directory, filename)
