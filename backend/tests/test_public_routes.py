"""
TapCard — Public API Tests (cards, profiles, lead submission, CTA, vCard)
Run: cd backend && pytest tests/test_public_routes.py -v
"""

import pytest
from fastapi.testclient import TestClient

from models.profile import ProfileDocument, CompanyDocument
from routes import public
from server import app
from services import lead_pipeline
from services.vcard import build_vcard


@pytest.fixture
def api(fake_db, monkeypatch):
    calls = []

    async def fake_post_submit(lead_id):
        calls.append(lead_id)
        return {}

    monkeypatch.setattr(public, "run_post_submit", fake_post_submit)
    client = TestClient(app)
    client.post_submit_calls = calls
    return client


def lead_body(**fields):
    body = {"name": "Ana", "email": "ana@x.com", "consent": True}
    body.update(fields)
    return body


# ═══════════════════════════════════════════════════════════════
# 1. CARD RESOLUTION
# ═══════════════════════════════════════════════════════════════

class TestCardRoute:
    def test_active_card_renders_profile(self, seed, api):
        seed.card(slug="card-123", profile_id="p1")
        r = api.get("/api/public/c/card-123")
        assert r.status_code == 200
        data = r.json()
        assert data["profile_id"] == "p1"
        assert data["card_id"] == "k1"
        assert data["profile"]["name"] == "Maria Silva"
        assert data["layout"]["show_lead_form"] is True

    @pytest.mark.parametrize("status,profile_id,code", [
        ("inactive", "p1", "deactivated"),
        ("active", None, "unlinked"),
    ])
    def test_unusable_cards_have_distinct_codes(self, seed, api, status, profile_id, code):
        seed.card(status=status, profile_id=profile_id)
        r = api.get("/api/public/c/card-123")
        assert r.status_code == 404
        assert r.json()["detail"]["code"] == code

    def test_unknown_card(self, seed, api):
        r = api.get("/api/public/c/missing")
        assert r.status_code == 404
        assert r.json()["detail"] == {"code": "not_found", "message": "Cartão não encontrado."}

    def test_card_linked_to_unpublished_profile(self, seed, api):
        seed.profile(profile_id="p2", published=False)
        seed.card(profile_id="p2")
        r = api.get("/api/public/c/card-123")
        assert r.status_code == 404
        assert r.json()["detail"]["message"] == "Perfil não encontrado"


# ═══════════════════════════════════════════════════════════════
# 2. PROFILES
# ═══════════════════════════════════════════════════════════════

class TestProfileRoute:
    def test_published_profile(self, seed, api):
        r = api.get("/api/public/profiles/p1?utm_source=qr")
        assert r.status_code == 200
        assert r.json()["company"]["name"] == "Acme"
        assert r.json()["lead_capture_enabled"] is True

    def test_unpublished_and_missing_are_identical(self, seed, api):
        seed.profile(profile_id="p2", published=False)
        hidden = api.get("/api/public/profiles/p2")
        missing = api.get("/api/public/profiles/ghost")
        assert hidden.status_code == missing.status_code == 404
        assert hidden.json() == missing.json()

    def test_cta_click(self, seed, api):
        r = api.post("/api/public/profiles/p1/cta", json={"cta_type": "whatsapp"})
        assert r.status_code == 200
        assert api.post("/api/public/profiles/p1/cta", json={"cta_type": "fax"}).status_code == 422

    def test_vcard_download(self, seed, api):
        r = api.get("/api/public/profiles/p1/vcard")
        assert r.status_code == 200
        assert r.headers["content-type"].startswith("text/vcard")
        assert "Maria_Silva.vcf" in r.headers["content-disposition"]
        assert "FN:Maria Silva" in r.text
        assert "ORG:Acme" in r.text
        assert "TEL;TYPE=CELL:+55 11 99999-0000" in r.text

    def test_vcard_download_non_ascii_name(self, seed, api):
        seed.profile(profile_id="p3", name="王伟 Łukasz")
        r = api.get("/api/public/profiles/p3/vcard")
        assert r.status_code == 200
        disposition = r.headers["content-disposition"]
        assert 'filename="ukasz.vcf"' in disposition
        assert "filename*=UTF-8''%E7%8E%8B%E4%BC%9F_%C5%81ukasz.vcf" in disposition
        assert "FN:王伟 Łukasz" in r.text

    def test_vcard_download_quote_in_name(self, seed, api):
        seed.profile(profile_id="p4", name='Ana "Nina" Costa')
        r = api.get("/api/public/profiles/p4/vcard")
        assert r.status_code == 200
        assert 'filename="Ana_Nina_Costa.vcf"' in r.headers["content-disposition"]


class TestVCardFormat:
    def test_special_characters_escaped(self):
        profile = ProfileDocument(id="p1", company_id="c1", name="Silva; Maria",
                                  role_title="CEO, Founder\nSales", website="https://x.com/a\\b")
        card = build_vcard(profile, CompanyDocument(id="c1", name="Acme; Ltda"))
        assert "FN:Silva\\; Maria" in card
        assert "TITLE:CEO\\, Founder\\nSales" in card
        assert "ORG:Acme\\; Ltda" in card
        assert "URL:https://x.com/a\\\\b" in card
        assert len(card.split("\n")) == 7

    def test_empty_fields_omitted(self):
        card = build_vcard(ProfileDocument(id="p1", company_id="c1", name="Ana"))
        assert card.split("\n") == ["BEGIN:VCARD", "VERSION:3.0", "FN:Ana", "END:VCARD"]


# ═══════════════════════════════════════════════════════════════
# 3. LEAD SUBMISSION
# ═══════════════════════════════════════════════════════════════

class TestLeadSubmission:
    def test_valid_lead_persisted_and_pipeline_scheduled(self, seed, api):
        r = api.post("/api/public/profiles/p1/leads", json=lead_body())
        assert r.status_code == 201
        data = r.json()
        assert data["success"] is True

        leads = seed.db.leads.docs
        assert len(leads) == 1
        assert leads[0]["consent"] is True
        assert leads[0]["phone"] is None
        assert leads[0]["profile_id"] == "p1"
        assert [e["event_type"] for e in seed.db.events.docs] == ["lead_submit"]
        assert api.post_submit_calls == [data["lead_id"]]

    @pytest.mark.parametrize("consent", [None, False])
    def test_missing_consent_never_persists(self, seed, api, consent):
        body = lead_body(consent=consent)
        if consent is None:
            body.pop("consent")
        r = api.post("/api/public/profiles/p1/leads", json=body)
        assert r.status_code == 422
        assert r.json()["detail"]["code"] == "consent_required"
        assert seed.db.leads.docs == []
        assert api.post_submit_calls == []

    @pytest.mark.parametrize("consent", [1, "1", "true", "yes"])
    def test_only_json_true_counts_as_consent(self, seed, api, consent):
        r = api.post("/api/public/profiles/p1/leads", json=lead_body(consent=consent))
        assert r.status_code == 422
        assert r.json()["detail"]["code"] == "consent_required"
        assert seed.db.leads.docs == []
        assert api.post_submit_calls == []

    def test_field_error_reports_first_field(self, seed, api):
        r = api.post("/api/public/profiles/p1/leads", json=lead_body(name="", email="bad"))
        assert r.status_code == 422
        assert r.json()["detail"] == {"code": "invalid_input", "field": "name", "message": "Nome obrigatório"}

    def test_capture_disabled_by_layout(self, seed, api):
        seed.layout(show_lead_form=False)
        r = api.post("/api/public/profiles/p1/leads", json=lead_body())
        assert r.status_code == 403
        assert r.json()["detail"]["code"] == "capture_disabled"
        assert seed.db.leads.docs == []

    def test_unpublished_profile_rejects_leads(self, seed, api):
        seed.profile(profile_id="p2", published=False)
        r = api.post("/api/public/profiles/p2/leads", json=lead_body())
        assert r.status_code == 404
        assert seed.db.leads.docs == []

    def test_card_reference_kept_only_for_same_company(self, seed, api):
        seed.card(card_id="k1", company_id="c1")
        seed.card(slug="foreign", card_id="k9", company_id="c9")
        api.post("/api/public/profiles/p1/leads", json=lead_body(card_id="k1"))
        api.post("/api/public/profiles/p1/leads", json=lead_body(card_id="k9"))
        assert [l["card_id"] for l in seed.db.leads.docs] == ["k1", None]

    def test_persistence_failure_is_generic_and_skips_pipeline(self, seed, api):
        seed.db.leads.insert_error = RuntimeError("E11000 duplicate key error")
        r = api.post("/api/public/profiles/p1/leads", json=lead_body())
        assert r.status_code == 503
        assert r.json()["detail"]["message"] == "Erro ao enviar. Tente novamente."
        assert "E11000" not in r.text
        assert api.post_submit_calls == []


class TestHealth:
    def test_health(self, fake_db):
        assert TestClient(app).get("/api/health").json() == {"status": "ok"}


def test_pipeline_entrypoint_is_wired():
    assert public.run_post_submit is lead_pipeline.run_post_submit
