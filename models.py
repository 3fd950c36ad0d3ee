import uuid
from datetime import datetime

from flask_login import UserMixin
from flask_sqlalchemy import SQLAlchemy
from werkzeug.security import check_password_hash, generate_password_hash

db = SQLAlchemy()


def _new_id() -> str:
    return str(uuid.uuid4())


def _plain(value):
    if isinstance(value, list):
        return list(value)
    return value


class RecordMixin:
    """
    Shared shape for the six content collections.

    `id` is assigned once by the store and never rewritten; `created_at`
    is the insertion time and drives the default ordering of projects.
    """

    # Columns an admin form is allowed to write. Everything else
    # (id, created_at) belongs to the store.
    WRITABLE: tuple = ()

    def to_dict(self) -> dict:
        out = {"id": self.id, "created_at": self.created_at}
        for name in self.WRITABLE:
            out[name] = _plain(getattr(self, name))
        return out

    def apply(self, values: dict) -> None:
        for name, value in (values or {}).items():
            if name in self.WRITABLE:
                setattr(self, name, value)


# ---------------------------------------------------------------------
# Admin identity (the only account that can sign in to /admin)
# ---------------------------------------------------------------------
class AdminUser(UserMixin, db.Model):
    __tablename__ = "admin_user"

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    last_login_at = db.Column(db.DateTime, nullable=True)

    # helpers
    def set_password(self, pw: str):
        self.password_hash = generate_password_hash(pw)

    def check_password(self, pw: str) -> bool:
        return check_password_hash(self.password_hash, pw)

    def __repr__(self):
        return f"<AdminUser {self.id} {self.email}>"


# ---------------------------------------------------------------------
# Profile (singleton: zero or one row)
# ---------------------------------------------------------------------
class Profile(RecordMixin, db.Model):
    __tablename__ = "profile"

    WRITABLE = (
        "name",
        "title",
        "bio",
        "location",
        "email",
        "phone",
        "github_url",
        "linkedin_url",
        "website_url",
        "avatar_url",
        "resume_url",
        "years_of_experience",
        "updated_at",
    )

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    name = db.Column(db.String(120), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    bio = db.Column(db.Text, nullable=False)
    location = db.Column(db.String(120), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(32), nullable=True)
    github_url = db.Column(db.String(500), nullable=True)
    linkedin_url = db.Column(db.String(500), nullable=True)
    website_url = db.Column(db.String(500), nullable=True)
    avatar_url = db.Column(db.String(500), nullable=True)
    resume_url = db.Column(db.String(500), nullable=True)
    years_of_experience = db.Column(db.Integer, default=0, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Profile {self.id} {self.name}>"


# ---------------------------------------------------------------------
# Skills (ordered by name)
# ---------------------------------------------------------------------
class Skill(RecordMixin, db.Model):
    __tablename__ = "skills"

    WRITABLE = ("name", "category", "icon_url")

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    name = db.Column(db.String(120), nullable=False, index=True)
    category = db.Column(db.String(120), nullable=False)
    icon_url = db.Column(db.String(500), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Skill {self.id} {self.name}>"


# ---------------------------------------------------------------------
# Education (ordered by start_date desc; end_date NULL = ongoing)
# ---------------------------------------------------------------------
class Education(RecordMixin, db.Model):
    __tablename__ = "education"

    WRITABLE = (
        "institution",
        "degree",
        "field_of_study",
        "start_date",
        "end_date",
        "gpa",
        "description",
    )

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    institution = db.Column(db.String(200), nullable=False)
    degree = db.Column(db.String(200), nullable=False)
    field_of_study = db.Column(db.String(200), nullable=False)
    start_date = db.Column(db.Date, nullable=False, index=True)
    end_date = db.Column(db.Date, nullable=True)
    gpa = db.Column(db.Float, nullable=True)
    description = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Education {self.id} {self.institution[:30]}>"


# ---------------------------------------------------------------------
# Experience (ordered by start_date desc; end_date NULL = present)
# ---------------------------------------------------------------------
class Experience(RecordMixin, db.Model):
    __tablename__ = "experience"

    WRITABLE = (
        "company",
        "position",
        "start_date",
        "end_date",
        "description",
        "technologies",
    )

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    company = db.Column(db.String(200), nullable=False)
    position = db.Column(db.String(200), nullable=False)
    start_date = db.Column(db.Date, nullable=False, index=True)
    end_date = db.Column(db.Date, nullable=True)
    description = db.Column(db.Text, nullable=False)
    technologies = db.Column(db.JSON, default=list, nullable=False)  # ["Flutter", "Dart"]
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Experience {self.id} {self.company[:30]}>"


# ---------------------------------------------------------------------
# Projects (ordered by created_at desc)
# ---------------------------------------------------------------------
class Project(RecordMixin, db.Model):
    __tablename__ = "projects"

    WRITABLE = (
        "title",
        "description",
        "technologies",
        "github_url",
        "live_url",
        "image_url",
        "featured",
    )

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False)
    technologies = db.Column(db.JSON, default=list, nullable=False)
    github_url = db.Column(db.String(500), nullable=True)
    live_url = db.Column(db.String(500), nullable=True)
    image_url = db.Column(db.String(500), nullable=True)
    featured = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<Project {self.id} {self.title[:30]}>"


# ---------------------------------------------------------------------
# Certificates (ordered by issue_date desc)
# ---------------------------------------------------------------------
class Certificate(RecordMixin, db.Model):
    __tablename__ = "certificates"

    WRITABLE = (
        "title",
        "issuer",
        "issue_date",
        "expiry_date",
        "credential_id",
        "credential_url",
        "image_url",
    )

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    title = db.Column(db.String(200), nullable=False)
    issuer = db.Column(db.String(200), nullable=False)
    issue_date = db.Column(db.Date, nullable=False, index=True)
    expiry_date = db.Column(db.Date, nullable=True)
    credential_id = db.Column(db.String(200), nullable=True)
    credential_url = db.Column(db.String(500), nullable=True)
    image_url = db.Column(db.String(500), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Certificate {self.id} {self.title[:30]}>"


# Table name -> model, the only names the table store accepts.
TABLES = {
    Profile.__tablename__: Profile,
    Skill.__tablename__: Skill,
    Education.__tablename__: Education,
    Experience.__tablename__: Experience,
    Project.__tablename__: Project,
    Certificate.__tablename__: Certificate,
}
