# modules/admin/schemas.py
"""
Typed form schemas for the admin console.

Each collection is described once by an EntitySchema: its fields, which of
them are required, their kind (text, url, date, list ...) and where its
media upload goes. `validate_form` is the single routine that turns a
submitted form into store values, or into one error message per bad field.
"""

import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Optional, Tuple
from urllib.parse import urlparse

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

TEXT_KINDS = ("text", "textarea", "email", "url", "password")


@dataclass(frozen=True)
class FieldSpec:
    name: str
    label: str
    kind: str = "text"  # text | textarea | email | url | password | date | int | float | bool | list
    required: bool = False
    message: Optional[str] = None  # custom "required" message
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    min_length: Optional[int] = None
    placeholder: str = ""
    default: Any = None  # stored when the field is left blank


@dataclass(frozen=True)
class EntitySchema:
    key: str  # table name, also the URL segment under /admin/
    label: str  # singular, used in notifications
    title: str  # console tab title
    fields: Tuple[FieldSpec, ...] = field(default_factory=tuple)
    media_field: Optional[str] = None
    bucket: Optional[str] = None
    singleton: bool = False

    def field_names(self):
        return [f.name for f in self.fields]


# ---------------------------
# Coercion helpers
# ---------------------------
def split_list(raw) -> list:
    """'Flutter, Dart, ,Firebase' -> ['Flutter', 'Dart', 'Firebase']"""
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        return [str(x).strip() for x in raw if str(x).strip()]
    return [p.strip() for p in str(raw).split(",") if p.strip()]


def join_list(values) -> str:
    return ", ".join(values or [])


def parse_date(raw: str) -> date:
    """Accepts YYYY-MM-DD, or YYYY-MM (month inputs) as the 1st of that month."""
    s = (raw or "").strip()
    if len(s) == 7:
        s = f"{s}-01"
    return date.fromisoformat(s)


def _is_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _is_blank(value) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple)):
        return not value
    return False


def _coerce(spec: FieldSpec, raw) -> Any:
    """Raw form value -> python value. Raises ValueError with a user message."""
    if spec.kind == "bool":
        if isinstance(raw, bool):
            return raw
        return str(raw or "").strip().lower() in ("1", "true", "on", "yes")

    if spec.kind == "list":
        return split_list(raw)

    text = raw.strip() if isinstance(raw, str) else raw
    if _is_blank(text):
        return spec.default

    if spec.kind in TEXT_KINDS:
        text = str(text)
        if spec.kind == "email" and not EMAIL_RE.match(text):
            raise ValueError("Invalid email address")
        if spec.kind == "url" and not _is_url(text):
            raise ValueError("Invalid url")
        if spec.min_length and len(text) < spec.min_length:
            raise ValueError(f"{spec.label} must be at least {spec.min_length} characters")
        return text

    if spec.kind == "date":
        if isinstance(text, date):
            return text
        try:
            return parse_date(str(text))
        except ValueError:
            raise ValueError(f"{spec.label} must be a valid date") from None

    if spec.kind in ("int", "float"):
        try:
            number = int(str(text)) if spec.kind == "int" else float(str(text))
        except ValueError:
            raise ValueError(f"{spec.label} must be a number") from None
        if spec.minimum is not None and number < spec.minimum:
            raise ValueError(_range_message(spec))
        if spec.maximum is not None and number > spec.maximum:
            raise ValueError(_range_message(spec))
        return number

    raise ValueError(f"Unsupported field kind: {spec.kind}")


def _range_message(spec: FieldSpec) -> str:
    def fmt(n):
        return f"{n:g}" if isinstance(n, float) else str(n)

    if spec.minimum is not None and spec.maximum is not None:
        return f"{spec.label} must be between {fmt(spec.minimum)} and {fmt(spec.maximum)}"
    if spec.minimum is not None:
        return f"{spec.label} must be at least {fmt(spec.minimum)}"
    return f"{spec.label} must be at most {fmt(spec.maximum)}"


def validate_form(schema: EntitySchema, form) -> Tuple[Dict[str, Any], Dict[str, str]]:
    """
    Validate a submitted form against `schema`.

    Returns (values, errors). `errors` maps field name to exactly one
    message; when it is non-empty `values` must not be written anywhere.
    Fields absent from the schema (including the media field) are ignored.
    """
    values: Dict[str, Any] = {}
    errors: Dict[str, str] = {}
    form = form or {}

    for spec in schema.fields:
        raw = form.get(spec.name)
        if spec.required and spec.kind != "bool" and _is_blank(split_list(raw) if spec.kind == "list" else raw):
            errors[spec.name] = spec.message or f"{spec.label} is required"
            continue
        try:
            values[spec.name] = _coerce(spec, raw)
        except ValueError as e:
            errors[spec.name] = str(e)

    return values, errors


def to_form_values(schema: EntitySchema, record: Optional[dict]) -> Dict[str, Any]:
    """Record -> strings the console form renders. None gives a blank form."""
    out: Dict[str, Any] = {}
    record = record or {}
    for spec in schema.fields:
        value = record.get(spec.name)
        if spec.kind == "bool":
            out[spec.name] = bool(value)
        elif spec.kind == "list":
            out[spec.name] = join_list(value)
        elif spec.kind == "date" and isinstance(value, date):
            out[spec.name] = value.isoformat()
        elif value is None:
            out[spec.name] = ""
        else:
            out[spec.name] = str(value)
    return out


def echo_form_values(schema: EntitySchema, form) -> Dict[str, Any]:
    """Submitted form -> values to re-render after a failed validation."""
    out: Dict[str, Any] = {}
    form = form or {}
    for spec in schema.fields:
        if spec.kind == "bool":
            out[spec.name] = _coerce(spec, form.get(spec.name))
        elif spec.kind == "password":
            out[spec.name] = ""
        else:
            raw = form.get(spec.name)
            out[spec.name] = raw.strip() if isinstance(raw, str) else ""
    return out


# ---------------------------------------------------------------------
# Collections
# ---------------------------------------------------------------------
PROFILE = EntitySchema(
    key="profile",
    label="Profile",
    title="Profile",
    singleton=True,
    media_field="avatar_url",
    bucket="avatars",
    fields=(
        FieldSpec("name", "Name", required=True, message="Name is required"),
        FieldSpec("title", "Title", required=True, message="Title is required", placeholder="Mobile Developer"),
        FieldSpec("bio", "Bio", kind="textarea", required=True, message="Bio is required"),
        FieldSpec("location", "Location"),
        FieldSpec("email", "Email", kind="email"),
        FieldSpec("phone", "Phone", placeholder="+62 812 3456 7890"),
        FieldSpec("github_url", "GitHub URL", kind="url"),
        FieldSpec("linkedin_url", "LinkedIn URL", kind="url"),
        FieldSpec("website_url", "Website URL", kind="url"),
        FieldSpec("resume_url", "Resume URL", kind="url"),
        FieldSpec("years_of_experience", "Years of experience", kind="int", minimum=0, default=0),
    ),
)

SKILLS = EntitySchema(
    key="skills",
    label="Skill",
    title="Skills",
    media_field="icon_url",
    bucket="skills",
    fields=(
        FieldSpec("name", "Name", required=True, message="Skill name is required"),
        FieldSpec("category", "Category", required=True, message="Category is required", placeholder="Mobile"),
    ),
)

EDUCATION = EntitySchema(
    key="education",
    label="Education",
    title="Education",
    fields=(
        FieldSpec("institution", "Institution", required=True, message="Institution name is required"),
        FieldSpec("degree", "Degree", required=True, message="Degree is required"),
        FieldSpec("field_of_study", "Field of study", required=True, message="Field of study is required"),
        FieldSpec("start_date", "Start date", kind="date", required=True, message="Start date is required"),
        FieldSpec("end_date", "End date", kind="date"),
        FieldSpec("gpa", "GPA", kind="float", minimum=0.0, maximum=4.0),
        FieldSpec("description", "Description", kind="textarea"),
    ),
)

EXPERIENCE = EntitySchema(
    key="experience",
    label="Experience",
    title="Experience",
    fields=(
        FieldSpec("company", "Company", required=True, message="Company name is required"),
        FieldSpec("position", "Position", required=True, message="Position is required"),
        FieldSpec("start_date", "Start date", kind="date", required=True, message="Start date is required"),
        FieldSpec("end_date", "End date", kind="date"),
        FieldSpec("description", "Description", kind="textarea", required=True, message="Description is required"),
        FieldSpec(
            "technologies",
            "Technologies",
            kind="list",
            required=True,
            message="Technologies are required",
            placeholder="Flutter, Dart, Firebase",
        ),
    ),
)

PROJECTS = EntitySchema(
    key="projects",
    label="Project",
    title="Projects",
    media_field="image_url",
    bucket="projects",
    fields=(
        FieldSpec("title", "Title", required=True, message="Project title is required"),
        FieldSpec("description", "Description", kind="textarea", required=True, message="Description is required"),
        FieldSpec(
            "technologies",
            "Technologies",
            kind="list",
            required=True,
            message="Technologies are required",
            placeholder="Flutter, Dart, Firebase",
        ),
        FieldSpec("github_url", "GitHub URL", kind="url"),
        FieldSpec("live_url", "Live URL", kind="url"),
        FieldSpec("featured", "Featured", kind="bool"),
    ),
)

CERTIFICATES = EntitySchema(
    key="certificates",
    label="Certificate",
    title="Certificates",
    media_field="image_url",
    bucket="certificates",
    fields=(
        FieldSpec("title", "Title", required=True, message="Certificate title is required"),
        FieldSpec("issuer", "Issuer", required=True, message="Issuer is required"),
        FieldSpec("issue_date", "Issue date", kind="date", required=True, message="Issue date is required"),
        FieldSpec("expiry_date", "Expiry date", kind="date"),
        FieldSpec("credential_id", "Credential ID"),
        FieldSpec("credential_url", "Credential URL", kind="url"),
    ),
)

# Console tab order
SCHEMAS = {s.key: s for s in (PROFILE, SKILLS, EXPERIENCE, PROJECTS, EDUCATION, CERTIFICATES)}


# ---------------------------------------------------------------------
# Auth forms
# ---------------------------------------------------------------------
LOGIN_FORM = EntitySchema(
    key="login",
    label="Login",
    title="Admin Login",
    fields=(
        FieldSpec("email", "Email", kind="email", required=True, message="Email is required"),
        FieldSpec("password", "Password", kind="password", required=True, message="Password is required", min_length=6),
    ),
)

PASSWORD_FORM = EntitySchema(
    key="password",
    label="Password",
    title="Change Password",
    fields=(
        FieldSpec("current_password", "Current password", kind="password", required=True, min_length=6),
        FieldSpec("new_password", "New password", kind="password", required=True, min_length=6),
        FieldSpec("confirm_password", "Confirm password", kind="password", required=True, min_length=6),
    ),
)


def validate_password_change(form) -> Tuple[Dict[str, Any], Dict[str, str]]:
    values, errors = validate_form(PASSWORD_FORM, form)
    if not errors and values["new_password"] != values["confirm_password"]:
        errors["confirm_password"] = "Passwords don't match"
    return values, errors
