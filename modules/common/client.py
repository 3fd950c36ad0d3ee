# modules/common/client.py
"""
The one handle on the outside world.

`create_app()` builds a PortfolioClient from config and stores it in
`app.extensions["portfolio"]`; routes fetch it with `get_client()` and pass
it down to loaders and managers. Tests swap in their own by passing
`client=` to `init_client`.
"""

import os

from flask import current_app

from models import db
from modules.auth.identity import IdentityProvider

from .cache import build_page_cache, revalidate_path
from .storage import ObjectStorage
from .store import TableStore


class PortfolioClient:
    def __init__(self, tables: TableStore, identity: IdentityProvider, storage: ObjectStorage, pages):
        self.tables = tables
        self.identity = identity
        self.storage = storage
        self.pages = pages

    def revalidate(self, path: str = "/") -> None:
        revalidate_path(self.pages, path)


def init_client(app, client: PortfolioClient = None) -> PortfolioClient:
    if client is None:
        storage_root = app.config.get("STORAGE_ROOT") or os.path.join(app.instance_path, "storage")
        client = PortfolioClient(
            tables=TableStore(db),
            identity=IdentityProvider(db),
            storage=ObjectStorage(storage_root, app.config.get("STORAGE_PUBLIC_URL", "/storage")),
            pages=build_page_cache(app.config.get("REDIS_URL"), int(app.config.get("PAGE_CACHE_TTL", 3600))),
        )
    app.extensions["portfolio"] = client
    return client


def get_client(app=None) -> PortfolioClient:
    return (app or current_app).extensions["portfolio"]
