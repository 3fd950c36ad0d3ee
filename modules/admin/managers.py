# modules/admin/managers.py
"""
Per-collection managers for the admin console.

One EntityManager instance owns the lifecycle of one collection: its local
list, the record being edited, the form values and the last validation
errors. All six managers share the same code; what differs lives in their
EntitySchema. ProfileManager only changes the singleton bits.
"""

import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional

from modules.common.storage import delete_file, upload_file
from modules.common.store import RecordNotFound, StoreError

from .schemas import SCHEMAS, EntitySchema, echo_form_values, to_form_values, validate_form

logger = logging.getLogger(__name__)

Notifier = Callable[[str, str], None]


def _log_notice(message: str, category: str = "info") -> None:
    logger.info("[%s] %s", category, message)


class EntityManager:
    def __init__(self, schema: EntitySchema, client, notify: Optional[Notifier] = None):
        self.schema = schema
        self.client = client
        self.notify = notify or _log_notice
        self.records: List[dict] = []
        self.editing: Optional[dict] = None
        self.form: Dict = to_form_values(schema, None)
        self.errors: Dict[str, str] = {}

    @property
    def table(self) -> str:
        return self.schema.key

    # ---------------------------
    # Local state
    # ---------------------------
    def fetch(self):
        """Read the collection from the store without touching local state."""
        return self.client.tables.list(self.table)

    def load(self, data) -> None:
        self.records = list(data or [])

    def refresh(self):
        self.load(self.fetch())
        return self.records

    def clear(self) -> None:
        self.records = []
        self.cancel()

    def find(self, record_id: str) -> Optional[dict]:
        for r in self.records:
            if r["id"] == record_id:
                return r
        return None

    def edit(self, record: dict) -> Dict:
        self.editing = record
        self.form = to_form_values(self.schema, record)
        self.errors = {}
        return self.form

    def cancel(self) -> None:
        self.editing = None
        self.form = to_form_values(self.schema, None)
        self.errors = {}

    # ---------------------------
    # Mutations
    # ---------------------------
    def _existing(self) -> Optional[dict]:
        return self.editing

    def _upload_media(self, file):
        """Returns (url, path) on success, (None, None) on failure."""
        result = upload_file(self.client.storage, file, self.schema.bucket)
        if not result.ok:
            logger.warning("Upload for %s rejected: %s", self.table, result.error)
            self.notify(f"Upload failed: {result.error}", "error")
            return None, None
        return result.url, result.path

    def submit(self, form, file=None) -> Optional[dict]:
        values, errors = validate_form(self.schema, form)
        if errors:
            self.errors = errors
            self.form = echo_form_values(self.schema, form)
            return None
        self.errors = {}

        try:
            existing = self._existing()
        except StoreError:
            logger.exception("Failed to look up %s before saving", self.table)
            self.notify(f"Failed to save {self.schema.label.lower()}", "error")
            return None

        uploaded_path = None
        if file is not None and getattr(file, "filename", None) and self.schema.media_field:
            url, uploaded_path = self._upload_media(file)
            if url is None:
                return None
            values[self.schema.media_field] = url

        values = self._before_save(values)
        try:
            if existing:
                record = self.client.tables.update(self.table, existing["id"], values)
            else:
                record = self.client.tables.insert(self.table, values)
        except RecordNotFound:
            logger.warning("%s %s vanished before update", self.table, existing["id"])
            self._discard_upload(uploaded_path)
            self.notify(f"{self.schema.label} not found", "error")
            return None
        except StoreError:
            logger.exception("Failed to save %s", self.table)
            self._discard_upload(uploaded_path)
            self.notify(f"Failed to save {self.schema.label.lower()}", "error")
            return None

        try:
            self.load(self.fetch())
        except StoreError:
            logger.exception("Saved %s but refetch failed", self.table)

        self.client.revalidate("/")
        verb = "updated" if existing else "added"
        self.notify(f"{self.schema.label} {verb} successfully!", "success")
        self._after_save(record)
        return record

    def _before_save(self, values: dict) -> dict:
        return values

    def _after_save(self, record: dict) -> None:
        self.cancel()

    def _discard_upload(self, path: Optional[str]) -> None:
        if path:
            delete_file(self.client.storage, self.schema.bucket, path)

    def delete(self, record_id: str, confirmed: bool = False) -> bool:
        if not confirmed:
            return False
        try:
            removed = self.client.tables.delete(self.table, record_id)
        except StoreError:
            logger.exception("Failed to delete %s %s", self.table, record_id)
            self.notify(f"Failed to delete {self.schema.label.lower()}", "error")
            return False

        self.records = [r for r in self.records if r["id"] != record_id]
        if self.editing and self.editing["id"] == record_id:
            self.cancel()

        if not removed:
            self.notify(f"{self.schema.label} not found", "warning")
            return False

        self.client.revalidate("/")
        self.notify(f"{self.schema.label} deleted successfully!", "success")
        return True


class ProfileManager(EntityManager):
    """The profile is zero or one row; the form always shows it."""

    @property
    def profile(self) -> Optional[dict]:
        return self.records[0] if self.records else None

    def fetch(self):
        return self.client.tables.select_single(self.table)

    def load(self, data) -> None:
        if isinstance(data, list):
            data = data[0] if data else None
        self.records = [data] if data else []
        self.editing = data
        self.form = to_form_values(self.schema, data)
        self.errors = {}

    def cancel(self) -> None:
        self.editing = self.profile
        self.form = to_form_values(self.schema, self.profile)
        self.errors = {}

    def _existing(self) -> Optional[dict]:
        # The stored row decides insert vs update, never the local copy
        return self.client.tables.select_single(self.table)

    def _before_save(self, values: dict) -> dict:
        values["updated_at"] = datetime.utcnow()
        return values

    def _after_save(self, record: dict) -> None:
        if not self.records:
            self.load(record)


def build_managers(client, notify: Optional[Notifier] = None) -> Dict[str, EntityManager]:
    managers = {}
    for key, schema in SCHEMAS.items():
        cls = ProfileManager if schema.singleton else EntityManager
        managers[key] = cls(schema, client, notify=notify)
    return managers
