import io

from models import AdminUser, db
from modules.common.client import get_client
from modules.common.store import TableStore, StoreError

PROJECT = {"title": "Kasir Pintar", "description": "POS for small shops", "technologies": "Flutter, Dart"}


def _profile(app, **extra):
    with app.app_context():
        values = {"name": "Ayu Lestari", "title": "Mobile Developer", "bio": "I build apps.", **extra}
        return get_client(app).tables.insert("profile", values)


# ---------------------------
# Public page
# ---------------------------
def test_empty_portfolio_renders_placeholders(http):
    resp = http.get("/")
    html = resp.get_data(as_text=True)
    assert resp.status_code == 200
    assert 'id="demo-notice"' in html
    assert "My Portfolio" in html
    assert "No projects have been added yet." in html


def test_public_page_renders_content(app, http):
    _profile(app, github_url="https://github.com/ayu")
    with app.app_context():
        tables = get_client(app).tables
        for i in range(8):
            tables.insert("projects", {"title": f"Project {i}", "description": "d", "technologies": ["Dart"], "featured": i == 7})

    html = http.get("/").get_data(as_text=True)

    assert "Ayu Lestari" in html
    assert 'id="demo-notice"' not in html
    assert html.count('class="card project"') == 6
    assert "Featured" in html
    assert "Project 0" not in html


def test_public_page_survives_a_failed_section(app, http):
    _profile(app)

    class Broken(TableStore):
        def list(self, table):
            if table == "skills":
                raise StoreError("skills down")
            return super().list(table)

    get_client(app).tables = Broken(db)
    resp = http.get("/")
    assert resp.status_code == 200
    assert "Ayu Lestari" in resp.get_data(as_text=True)
    assert "No skills have been added yet." in resp.get_data(as_text=True)


def test_degraded_page_is_not_cached(app, http):
    _profile(app)
    with app.app_context():
        get_client(app).tables.insert("skills", {"name": "Dart", "category": "Language"})

    class Broken(TableStore):
        def list(self, table):
            if table == "skills":
                raise StoreError("skills down")
            return super().list(table)

    client = get_client(app)
    healthy = client.tables
    client.tables = Broken(db)
    assert "No skills have been added yet." in http.get("/").get_data(as_text=True)

    client.tables = healthy
    html = http.get("/").get_data(as_text=True)
    assert "No skills have been added yet." not in html
    assert "Dart" in html


def test_public_page_is_cached_until_revalidated(app, http):
    http.get("/")
    with app.app_context():
        get_client(app).tables.insert("projects", {"title": "Hidden", "description": "d", "technologies": ["Go"]})

    assert "Hidden" not in http.get("/").get_data(as_text=True)
    get_client(app).revalidate("/")
    assert "Hidden" in http.get("/").get_data(as_text=True)


# ---------------------------
# Contact
# ---------------------------
def test_contact_requires_every_field(app, http):
    _profile(app, phone="+62 812 3456 7890")
    resp = http.post("/contact", data={"name": "Budi", "email": "", "subject": "Hi", "message": ""})
    html = resp.get_data(as_text=True)
    assert resp.status_code == 400
    assert "Email is required" in html
    assert "Message is required" in html


def test_contact_redirects_to_whatsapp(app, http):
    _profile(app, phone="+62 812 3456 7890")
    resp = http.post(
        "/contact",
        data={"name": "Budi", "email": "budi@example.com", "subject": "Hi", "message": "Let's talk"},
    )
    assert resp.status_code == 302
    assert resp.headers["Location"].startswith("https://wa.me/6281234567890?text=")


def test_contact_without_phone(app, http):
    _profile(app)
    resp = http.post(
        "/contact",
        data={"name": "Budi", "email": "budi@example.com", "subject": "Hi", "message": "Let's talk"},
    )
    assert resp.status_code == 400
    assert "Contact number is not configured yet" in resp.get_data(as_text=True)


# ---------------------------
# Admin
# ---------------------------
def test_admin_shows_login_when_signed_out(http):
    html = http.get("/admin/").get_data(as_text=True)
    assert 'id="login-form"' in html


def test_login_validation_and_bad_credentials(http, admin):
    resp = http.post("/admin/auth/login", data={"email": "nope", "password": "1"})
    assert resp.status_code == 400
    assert "Invalid email address" in resp.get_data(as_text=True)

    resp = http.post("/admin/auth/login", data={"email": admin["email"], "password": "wrong-password"})
    assert resp.status_code == 401
    assert "Invalid login credentials" in resp.get_data(as_text=True)


def test_login_opens_console(signed_in):
    html = signed_in.get("/admin/").get_data(as_text=True)
    assert "Admin Dashboard" in html
    assert 'id="admin-stats"' in html


def test_mutations_require_login(http):
    resp = http.post("/admin/projects", data=PROJECT)
    assert resp.status_code == 302
    assert "/admin/auth/login" in resp.headers["Location"]


def test_submit_validation_errors_render_inline(signed_in):
    resp = signed_in.post("/admin/projects", data=dict(PROJECT, title=""))
    assert resp.status_code == 400
    assert "Project title is required" in resp.get_data(as_text=True)


def test_submit_creates_and_revalidates(signed_in):
    signed_in.get("/")
    resp = signed_in.post("/admin/projects", data=PROJECT)
    assert resp.status_code == 302

    console = signed_in.get("/admin/?tab=projects").get_data(as_text=True)
    assert "Project added successfully!" in console
    assert "Kasir Pintar" in signed_in.get("/").get_data(as_text=True)


def test_edit_and_update_through_console(app, signed_in):
    signed_in.post("/admin/projects", data=PROJECT)
    with app.app_context():
        record = get_client(app).tables.list("projects")[0]

    form = signed_in.get(f"/admin/projects/{record['id']}/edit").get_data(as_text=True)
    assert 'value="Flutter, Dart"' in form

    signed_in.post("/admin/projects", data=dict(PROJECT, id=record["id"], title="Kasir Pro"))
    with app.app_context():
        rows = get_client(app).tables.list("projects")
    assert [(r["id"], r["title"]) for r in rows] == [(record["id"], "Kasir Pro")]


def test_delete_needs_confirmation(app, signed_in):
    signed_in.post("/admin/skills", data={"name": "Dart", "category": "Language"})
    with app.app_context():
        skill_id = get_client(app).tables.list("skills")[0]["id"]

    signed_in.post(f"/admin/skills/{skill_id}/delete")
    with app.app_context():
        assert len(get_client(app).tables.list("skills")) == 1

    signed_in.post(f"/admin/skills/{skill_id}/delete", data={"confirm": "yes"})
    with app.app_context():
        assert get_client(app).tables.list("skills") == []


def test_upload_is_served_from_storage(signed_in):
    data = dict(PROJECT, media=(io.BytesIO(b"png-bytes"), "shot.png", "image/png"))
    signed_in.post("/admin/projects", data=data, content_type="multipart/form-data")

    html = signed_in.get("/").get_data(as_text=True)
    start = html.index("/storage/projects/")
    url = html[start : html.index('"', start)]
    resp = signed_in.get(url)
    assert resp.status_code == 200
    assert resp.data == b"png-bytes"


def test_profile_submit_aborts_when_profile_cannot_load(app, signed_in):
    _profile(app)

    class Flaky(TableStore):
        calls = 0

        def select_single(self, table):
            Flaky.calls += 1
            if Flaky.calls == 1:
                raise StoreError("profile down")
            return super().select_single(table)

    get_client(app).tables = Flaky(db)
    resp = signed_in.post("/admin/profile", data={"name": "Ayu", "title": "Lead Developer", "bio": "I build apps."})
    assert resp.status_code == 302

    with app.app_context():
        rows = get_client(app).tables.select("profile")
    assert len(rows) == 1
    assert rows[0]["title"] == "Mobile Developer"
    assert "Could not load profile, nothing was saved" in signed_in.get("/admin/?tab=profile").get_data(as_text=True)


def test_cancel_returns_to_tab(signed_in):
    resp = signed_in.get("/admin/skills/cancel")
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/admin/?tab=skills")
    assert signed_in.get("/admin/nope/cancel").status_code == 404


def test_unknown_collection_is_404(signed_in):
    assert signed_in.post("/admin/users", data={}).status_code == 404


def test_logout_returns_to_login(signed_in):
    signed_in.post("/admin/auth/logout")
    assert 'id="login-form"' in signed_in.get("/admin/").get_data(as_text=True)


def test_change_password(app, signed_in, admin):
    resp = signed_in.post(
        "/admin/auth/password",
        data={"current_password": admin["password"], "new_password": "brandnew1", "confirm_password": "other123"},
    )
    assert resp.status_code == 400
    assert "Passwords don&#39;t match" in resp.get_data(as_text=True)

    resp = signed_in.post(
        "/admin/auth/password",
        data={"current_password": "not-my-password", "new_password": "brandnew1", "confirm_password": "brandnew1"},
    )
    assert resp.status_code == 400
    assert "Current password is incorrect" in resp.get_data(as_text=True)

    resp = signed_in.post(
        "/admin/auth/password",
        data={"current_password": admin["password"], "new_password": "brandnew1", "confirm_password": "brandnew1"},
    )
    assert resp.status_code == 302
    with app.app_context():
        assert AdminUser.query.filter_by(email=admin["email"]).first().check_password("brandnew1")
