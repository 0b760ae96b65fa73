"""Unit tests for reviewer profile and marketplace statistics routes."""

from fastapi.testclient import TestClient

SUBMITTER = "0x1111111111111111111111111111111111111111"
REVIEWER = "0x2222222222222222222222222222222222222222"
STRANGER = "0x3333333333333333333333333333333333333333"


def _accepted(client: TestClient) -> dict:
    submitted = client.post(
        "/v1/audits",
        json={
            "project_name": "Defi Bridge",
            "source_url": "https://github.com/acme/defi-bridge",
            "submitter_address": SUBMITTER,
            "proposed_price": "30000",
            "tags": ["Bridge"],
        },
    )
    assert submitted.status_code == 201, submitted.text
    request_id = submitted.json()["request"]["id"]
    accepted = client.post(
        f"/v1/audits/{request_id}/accept", json={"reviewer_address": REVIEWER}
    )
    assert accepted.status_code == 200, accepted.text
    return accepted.json()


class TestReviewerProfileRoutes:
    """Tests for /v1/reviewers/{address}/profile."""

    def test_newcomer_profile_is_empty(self, client: TestClient) -> None:
        """An unknown reviewer answers 200 with zero counts."""
        response = client.get(f"/v1/reviewers/{STRANGER}/profile")

        assert response.status_code == 200
        body = response.json()
        assert body["total_audits"] == 0
        assert body["total_earnings"] == "0.00"
        assert body["member_since"] is None
        assert body["evidence_cid"] is None

    def test_profile_lists_accepted_audit(self, client: TestClient) -> None:
        """An accepted audit shows up as in progress."""
        accepted = _accepted(client)

        response = client.get(f"/v1/reviewers/{REVIEWER}/profile")

        assert response.status_code == 200
        body = response.json()
        assert body["total_audits"] == 1
        assert body["in_progress_audits"] == 1
        assert body["specializations"] == ["bridge"]
        assert [r["id"] for r in body["recent"]] == [accepted["id"]]

    def test_publish_profile_is_201(self, client: TestClient) -> None:
        """Publishing returns the CID of a resolvable profile document."""
        _accepted(client)

        response = client.post(f"/v1/reviewers/{REVIEWER}/profile")

        assert response.status_code == 201
        cid = response.json()["evidence_cid"]
        assert response.json()["evidence_gateway_url"].endswith(cid)
        resolved = client.get(f"/v1/metadata/{cid}")
        assert resolved.status_code == 200
        assert resolved.json()["kind"] == "profile"

    def test_newcomer_publish_is_400(self, client: TestClient) -> None:
        """A reviewer with no accepted audit has nothing to publish."""
        response = client.post(f"/v1/reviewers/{STRANGER}/profile")

        assert response.status_code == 400
        assert response.json()["detail"]["field"] == "reviewer_address"

    def test_malformed_address_is_400(self, client: TestClient) -> None:
        """Malformed addresses are rejected with the field name."""
        response = client.get("/v1/reviewers/0xnotanaddress/profile")

        assert response.status_code == 400
        assert response.json()["detail"]["field"] == "reviewer_address"


class TestStatsRoute:
    """Tests for GET /v1/stats."""

    def test_counts_requests(self, client: TestClient) -> None:
        """Status counts and the average proposed price reflect the store."""
        _accepted(client)

        response = client.get("/v1/stats")

        assert response.status_code == 200
        body = response.json()
        assert body["total_requests"] == 1
        assert body["status_counts"]["InProgress"] == 1
        assert body["status_counts"]["Available"] == 0
        assert body["complexity_breakdown"]["High"] == 1
        assert body["average_proposed_price"] == "30000.00"
