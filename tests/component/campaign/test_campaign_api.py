"""
Component Tests for Campaign Service API

Exercises the FastAPI routes with TestClient against a service wired to
in-memory fakes. The lifespan is not entered; the module-level factory is
replaced instead.
"""

import pytest
from fastapi.testclient import TestClient

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../.."))

from tests.contracts.campaign.data_contract import (
    CampaignCreateRequestBuilder,
    CampaignStatus,
    CampaignTransitionRequestBuilder,
)
from microservices.campaign_service import main
from microservices.campaign_service.protocols import CampaignConflictError


class FakeFactory:
    """Stands in for CampaignServiceFactory after initialize()"""

    def __init__(self, service, repository):
        self.service = service
        self.repository = repository
        self.field_registry = service.field_registry
        self.nats_client = None


@pytest.fixture
def client(monkeypatch, campaign_service, mock_repository):
    monkeypatch.setattr(main, "factory", FakeFactory(campaign_service, mock_repository))
    return TestClient(main.app)


def headers(actor):
    return {"X-User-ID": actor.actor_id, "X-User-Role": actor.role.value}


class TestAuthHeaders:

    def test_missing_user_id_is_401(self, client):
        response = client.get("/api/v1/campaigns")
        assert response.status_code == 401

    def test_unknown_role_is_403(self, client):
        response = client.get(
            "/api/v1/campaigns", headers={"X-User-ID": "usr_1", "X-User-Role": "superuser"}
        )
        assert response.status_code == 403

    def test_role_defaults_to_owner(self, client, seed, other_owner):
        seed(CampaignStatus.ACTIVE)

        response = client.get("/api/v1/campaigns", headers={"X-User-ID": other_owner.actor_id})

        assert response.status_code == 200
        assert response.json()["total"] == 0

    def test_role_is_case_insensitive(self, client, seed, operator):
        seed(CampaignStatus.ACTIVE)

        response = client.get(
            "/api/v1/campaigns", headers={"X-User-ID": operator.actor_id, "X-User-Role": "Operator"}
        )

        assert response.json()["total"] == 1

    def test_uninitialized_service_is_503(self, monkeypatch, owner):
        monkeypatch.setattr(main, "factory", None)
        response = TestClient(main.app).get("/api/v1/campaigns", headers=headers(owner))
        assert response.status_code == 503


class TestCampaignEndpoints:

    def test_create(self, client, owner, mock_dispatcher):
        body = CampaignCreateRequestBuilder("nplace").build_dict()

        response = client.post("/api/v1/campaigns", json=body, headers=headers(owner))

        assert response.status_code == 201
        data = response.json()
        assert data["message"] == "Campaign created successfully"
        assert data["campaign"]["status"] == "waiting_approval"
        assert data["campaign"]["owner_id"] == owner.actor_id
        assert data["badge"] == {"status": "waiting_approval", "label": "Waiting Approval", "color": "warning"}
        assert mock_dispatcher.types() == ["submitted"]

    def test_create_with_unknown_service_type_is_422(self, client, owner):
        body = CampaignCreateRequestBuilder().with_service_type("kakao").build_dict()

        response = client.post("/api/v1/campaigns", json=body, headers=headers(owner))

        assert response.status_code == 422
        assert response.json()["field"] == "service_type"

    def test_get(self, client, owner, seed):
        campaign = seed(CampaignStatus.PAUSED)

        response = client.get(f"/api/v1/campaigns/{campaign.campaign_id}", headers=headers(owner))

        assert response.status_code == 200
        assert response.json()["badge"]["label"] == "Paused"

    def test_get_foreign_campaign_is_404(self, client, other_owner, seed):
        campaign = seed(CampaignStatus.ACTIVE)

        response = client.get(
            f"/api/v1/campaigns/{campaign.campaign_id}", headers=headers(other_owner)
        )

        assert response.status_code == 404

    def test_list_with_status_filter(self, client, operator, seed):
        seed(CampaignStatus.ACTIVE)
        seed(CampaignStatus.PAUSED)
        seed(CampaignStatus.REJECTED)

        response = client.get(
            "/api/v1/campaigns",
            params={"status": "active, pause", "limit": 1},
            headers=headers(operator),
        )

        data = response.json()
        assert response.status_code == 200
        assert data["total"] == 2
        assert len(data["campaigns"]) == 1
        assert data["has_more"] is True

    def test_list_with_unknown_status_is_422(self, client, operator):
        response = client.get(
            "/api/v1/campaigns", params={"status": "archived"}, headers=headers(operator)
        )

        assert response.status_code == 422
        assert response.json()["field"] == "status"

    def test_list_limit_out_of_range_is_rejected(self, client, operator):
        response = client.get(
            "/api/v1/campaigns", params={"limit": 500}, headers=headers(operator)
        )
        assert response.status_code == 422


class TestTransitionEndpoints:

    def test_operator_approves(self, client, operator, seed, mock_dispatcher):
        campaign = seed(CampaignStatus.WAITING_APPROVAL)
        body = CampaignTransitionRequestBuilder().to(CampaignStatus.PENDING).build_dict()

        response = client.post(
            f"/api/v1/campaigns/{campaign.campaign_id}/transition", json=body, headers=headers(operator)
        )

        data = response.json()
        assert response.status_code == 200
        assert data["previous_status"] == "waiting_approval"
        assert data["effective_status"] == "pending"
        assert data["notification"]["type"] == "approved"
        assert mock_dispatcher.types() == ["approved"]

    def test_owner_request_is_coerced(self, client, owner, seed):
        campaign = seed(CampaignStatus.WAITING_APPROVAL)
        body = CampaignTransitionRequestBuilder().to(CampaignStatus.ACTIVE).build_dict()

        response = client.post(
            f"/api/v1/campaigns/{campaign.campaign_id}/transition", json=body, headers=headers(owner)
        )

        data = response.json()
        assert data["effective_status"] == "waiting_approval"
        assert data["was_coerced"] is True
        assert data["notification"] is None

    def test_reject_without_reason_is_422(self, client, operator, seed):
        campaign = seed(CampaignStatus.WAITING_APPROVAL)
        body = CampaignTransitionRequestBuilder().to(CampaignStatus.REJECTED).build_dict()

        response = client.post(
            f"/api/v1/campaigns/{campaign.campaign_id}/transition", json=body, headers=headers(operator)
        )

        assert response.status_code == 422
        assert response.json()["field"] == "rejection_reason"

    def test_unknown_campaign_is_404(self, client, operator):
        body = CampaignTransitionRequestBuilder().to(CampaignStatus.ACTIVE).build_dict()

        response = client.post(
            "/api/v1/campaigns/cmp_missing/transition", json=body, headers=headers(operator)
        )

        assert response.status_code == 404

    def test_conflict_is_409(self, client, operator, seed, mock_repository, monkeypatch):
        campaign = seed(CampaignStatus.WAITING_APPROVAL)

        async def stale_write(*args, **kwargs):
            raise CampaignConflictError("modified concurrently", campaign_id=campaign.campaign_id)

        monkeypatch.setattr(mock_repository, "write_as_system", stale_write)
        body = CampaignTransitionRequestBuilder().to(CampaignStatus.PENDING).build_dict()

        response = client.post(
            f"/api/v1/campaigns/{campaign.campaign_id}/transition", json=body, headers=headers(operator)
        )

        assert response.status_code == 409

    def test_store_failure_is_503(self, client, operator, seed, mock_repository):
        campaign = seed(CampaignStatus.WAITING_APPROVAL)
        mock_repository.fail_writes = True
        body = CampaignTransitionRequestBuilder().to(CampaignStatus.PENDING).build_dict()

        response = client.post(
            f"/api/v1/campaigns/{campaign.campaign_id}/transition", json=body, headers=headers(operator)
        )

        assert response.status_code == 503

    def test_patch_of_rejected_campaign_resubmits(self, client, owner, seed, mock_dispatcher):
        campaign = seed(CampaignStatus.REJECTED, rejection_reason="blurry logo")

        response = client.patch(
            f"/api/v1/campaigns/{campaign.campaign_id}",
            json={"logo": "https://cdn.example.com/logo.png"},
            headers=headers(owner),
        )

        data = response.json()
        assert response.status_code == 200
        assert data["effective_status"] == "waiting_approval"
        assert data["campaign"]["logo"] == "https://cdn.example.com/logo.png"
        assert data["campaign"]["rejection_reason"] == "blurry logo"
        assert mock_dispatcher.types() == ["reapproval_requested"]


class TestServiceTypeEndpoints:

    def test_catalog(self, client):
        response = client.get("/api/v1/service-types")

        codes = [entry["code"] for entry in response.json()]
        assert "ntraffic" in codes
        assert "CoupangTraffic" in codes

    @pytest.mark.parametrize(
        "raw,resolved,canonical",
        [
            ("naver-place", "nplace", True),
            ("ALL", "all", False),
            ("kakao", "kakao", False),
        ],
    )
    def test_resolve(self, client, raw, resolved, canonical):
        response = client.get("/api/v1/service-types/resolve", params={"raw": raw})

        assert response.json() == {"raw": raw, "resolved": resolved, "canonical": canonical}

    def test_fields(self, client):
        response = client.get("/api/v1/service-types/nplace/fields")

        data = response.json()
        assert response.status_code == 200
        assert data["service_type"] == "nplace"
        assert data["fields"][0]["name"] == "main_keyword"

    def test_fields_for_unknown_type_is_404(self, client):
        assert client.get("/api/v1/service-types/kakao/fields").status_code == 404

    def test_owner_cannot_replace_fields(self, client, owner):
        schema = {"service_type": "nplace", "fields": [{"kind": "text", "name": "memo", "label": "Memo"}]}

        response = client.put("/api/v1/service-types/nplace/fields", json=schema, headers=headers(owner))

        assert response.status_code == 403

    def test_operator_replaces_fields(self, client, operator, mock_repository):
        schema = {
            "service_type": "nplace",
            "fields": [{"kind": "text", "name": "memo", "label": "Memo", "required": True}],
        }

        response = client.put(
            "/api/v1/service-types/nplace/fields", json=schema, headers=headers(operator)
        )

        assert response.status_code == 200
        follow_up = client.get("/api/v1/service-types/nplace/fields").json()
        assert [f["name"] for f in follow_up["fields"]] == ["memo"]

    def test_replacing_fields_by_alias_returns_canonical_code(self, client, operator):
        schema = {
            "service_type": "ntraffic",
            "fields": [{"kind": "text", "name": "memo", "label": "Memo"}],
        }

        response = client.put(
            "/api/v1/service-types/naver-traffic/fields", json=schema, headers=headers(operator)
        )

        assert response.status_code == 200
        assert response.json()["service_type"] == "ntraffic"
        follow_up = client.get("/api/v1/service-types/ntraffic/fields").json()
        assert [f["name"] for f in follow_up["fields"]] == ["memo"]

    def test_field_mapping(self, client):
        response = client.post(
            "/api/v1/service-types/nrank/field-mapping",
            json={"fields": ["키워드", "상품코드", "상품명", "상품링크", "순위"]},
        )

        data = response.json()
        assert data["keyword"] == {"field": "키워드", "confidence": 100}
        assert data["rank"]["field"] == "순위"

    def test_field_mapping_for_non_ranking_type_is_empty(self, client):
        response = client.post("/api/v1/service-types/ntraffic/field-mapping", json={"fields": ["url"]})
        assert response.json() == {}


class TestHealthEndpoints:

    def test_health(self, client):
        data = client.get("/health").json()

        assert data["status"] == "healthy"
        assert data["dependencies"] == {"postgres": "healthy", "nats": "not_configured"}

    def test_ready(self, client):
        data = client.get("/health/ready").json()
        assert data["ready"] is True

    def test_not_ready_without_factory(self, monkeypatch):
        monkeypatch.setattr(main, "factory", None)
        data = TestClient(main.app).get("/health/ready").json()
        assert data["ready"] is False

    def test_live(self, client):
        assert client.get("/health/live").json()["alive"] is True

    def test_info(self, client):
        data = client.get("/info").json()
        assert data["service_name"] == "campaign_service"
