"""
Shared fixtures: in-memory Motor-style database, seed helpers, mock HTTP.
Run: cd backend && pytest tests -v
"""

import copy
import sys
import uuid
from datetime import datetime, timezone, timedelta
from pathlib import Path

import httpx
import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import config  # noqa: E402
from services import (  # noqa: E402
    event_logger,
    tag_resolver,
    profile_loader,
    lead_store,
    webhook_dispatcher,
    follow_up,
)
from routes import public  # noqa: E402


# ═══════════════════════════════════════════════════════════════
# IN-MEMORY DATABASE (equality filters, {"_id": 0} projection)
# ═══════════════════════════════════════════════════════════════

def _matches(doc, query):
    return all(doc.get(key) == value for key, value in (query or {}).items())


def _project(doc, projection):
    out = copy.deepcopy(doc)
    if projection and projection.get("_id") == 0:
        out.pop("_id", None)
    return out


class FakeCursor:
    def __init__(self, docs):
        self._docs = docs

    def sort(self, key, direction=1):
        self._docs.sort(key=lambda d: d.get(key) or "", reverse=direction == -1)
        return self

    def skip(self, n):
        self._docs = self._docs[n:]
        return self

    def limit(self, n):
        self._docs = self._docs[:n]
        return self

    async def to_list(self, length):
        return self._docs if length is None else self._docs[:length]


class FakeCollection:
    def __init__(self, name):
        self.name = name
        self.docs = []
        self.insert_error = None

    async def insert_one(self, doc):
        if self.insert_error:
            raise self.insert_error
        doc.setdefault("_id", uuid.uuid4().hex)
        self.docs.append(copy.deepcopy(doc))
        return doc["_id"]

    async def find_one(self, query=None, projection=None):
        for doc in self.docs:
            if _matches(doc, query):
                return _project(doc, projection)
        return None

    def find(self, query=None, projection=None):
        return FakeCursor([_project(d, projection) for d in self.docs if _matches(d, query)])

    async def count_documents(self, query=None):
        return sum(1 for d in self.docs if _matches(d, query))


class FakeDB:
    def __init__(self):
        self._collections = {}

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        return self[name]

    def __getitem__(self, name):
        if name not in self._collections:
            self._collections[name] = FakeCollection(name)
        return self._collections[name]


DB_MODULES = [config, event_logger, tag_resolver, profile_loader, lead_store,
              webhook_dispatcher, follow_up, public]


@pytest.fixture
def fake_db(monkeypatch):
    db = FakeDB()
    for module in DB_MODULES:
        monkeypatch.setattr(module, "db", db)
    yield db
    event_logger._pending.clear()


# ═══════════════════════════════════════════════════════════════
# SEED HELPERS
# ═══════════════════════════════════════════════════════════════

def iso_ago(seconds):
    return (datetime.now(timezone.utc) - timedelta(seconds=seconds)).isoformat()


@pytest.fixture
def seed(fake_db):
    """Company c1 + published profile p1 + active card card-123"""

    class Seeder:
        db = fake_db

        def company(self, company_id="c1", **overrides):
            doc = {"id": company_id, "name": "Acme", "follow_up_email": False}
            doc.update(overrides)
            fake_db.companies.docs.append(doc)
            return doc

        def profile(self, profile_id="p1", company_id="c1", **overrides):
            doc = {"id": profile_id, "company_id": company_id, "name": "Maria Silva",
                   "role_title": "CEO", "whatsapp": "+55 11 99999-0000", "published": True}
            doc.update(overrides)
            fake_db.profiles.docs.append(doc)
            return doc

        def layout(self, company_id="c1", **flags):
            doc = {"id": f"layout-{company_id}", "company_id": company_id}
            doc.update(flags)
            fake_db.profile_layouts.docs.append(doc)
            return doc

        def card(self, slug="card-123", card_id="k1", company_id="c1", status="active", profile_id="p1"):
            doc = {"id": card_id, "slug": slug, "company_id": company_id,
                   "status": status, "profile_id": profile_id}
            fake_db.nfc_cards.docs.append(doc)
            return doc

        def webhook(self, integration_id, url, company_id="c1", active=True, secret=None):
            config_bag = {"url": url}
            if secret:
                config_bag["secret"] = secret
            doc = {"id": integration_id, "company_id": company_id, "type": "webhook",
                   "active": active, "config": config_bag}
            fake_db.integrations.docs.append(doc)
            return doc

        def lead(self, lead_id="l1", company_id="c1", age_seconds=0, **overrides):
            created_at = iso_ago(age_seconds)
            doc = {"id": lead_id, "company_id": company_id, "profile_id": "p1", "card_id": None,
                   "name": "Ana", "email": "ana@x.com", "phone": None, "consent": True,
                   "created_at": created_at, "updated_at": created_at}
            doc.update(overrides)
            fake_db.leads.docs.append(doc)
            return doc

    seeder = Seeder()
    seeder.company()
    seeder.profile()
    return seeder


# ═══════════════════════════════════════════════════════════════
# MOCK HTTP
# ═══════════════════════════════════════════════════════════════

class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it receives"""

    def __init__(self, handler):
        self.requests = []

        def _record(request):
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)


@pytest.fixture
def webhook_transport(monkeypatch):
    """
    Route outbound webhook calls to a handler keyed by URL.
    Usage: transport = webhook_transport({"https://a/hook": 200, "https://b/hook": 500})
    """

    def _install(statuses):
        def handler(request):
            outcome = statuses.get(str(request.url), 404)
            if isinstance(outcome, Exception):
                raise outcome
            return httpx.Response(outcome, json={"ok": outcome < 400})

        transport = RecordingTransport(handler)
        monkeypatch.setattr(webhook_dispatcher, "http_client",
                            lambda: httpx.AsyncClient(transport=transport))
        return transport

    return _install


@pytest.fixture
def ai_transport(monkeypatch):
    """Route the generative-text call to a handler; sets an API key."""

    def _install(handler):
        transport = RecordingTransport(handler)
        monkeypatch.setattr(config, "AI_API_KEY", "test-key")
        monkeypatch.setattr(follow_up, "http_client",
                            lambda: httpx.AsyncClient(transport=transport))
        return transport

    return _install
