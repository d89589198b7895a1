"""End-to-end tests for the review workflow HTTP API."""

from datetime import datetime, timedelta
from uuid import uuid4

import pytest

ARTICLE = "api::article.article"
BASE = "/api/review-workflow"

pytestmark = pytest.mark.integration


@pytest.fixture
def parties(db_session, requester, reviewer, admin):
    db_session.commit()
    return requester, reviewer


def _assign(client, auth_headers, requester, reviewer, doc="doc1", locale="en", **extra):
    body = {
        "assignedContentType": ARTICLE,
        "assignedDocumentId": doc,
        "locale": locale,
        "assignedTo": str(reviewer.id),
        **extra,
    }
    return client.post(f"{BASE}/assign", json=body, headers=auth_headers(requester))


class TestAuth:

    def test_requires_token(self, client, parties):
        assert client.get(f"{BASE}/pending").status_code == 401

    def test_invalid_token(self, client, parties):
        response = client.get(f"{BASE}/pending", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    def test_missing_permission(self, client, auth_headers, parties):
        _, reviewer = parties
        response = _assign(client, auth_headers, reviewer, reviewer)
        assert response.status_code == 403


class TestAssignEndpoints:

    def test_assign(self, client, auth_headers, parties):
        requester, reviewer = parties

        response = _assign(client, auth_headers, requester, reviewer, comments="please")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "pending"
        assert data["assignedDocumentId"] == "doc1"
        assert data["assignedTo"]["id"] == str(reviewer.id)
        assert data["assignedBy"]["id"] == str(requester.id)
        assert data["reviewedAt"] is None
        assert [c["commentType"] for c in data["comments"]] == ["assignment"]
        assert "documentId" in data

    def test_assign_conflict(self, client, auth_headers, parties):
        requester, reviewer = parties
        _assign(client, auth_headers, requester, reviewer)

        response = _assign(client, auth_headers, requester, reviewer)

        assert response.status_code == 409
        assert response.json() == {
            "error": "conflict",
            "detail": "A pending review already exists for this document and locale",
        }

    def test_assign_without_reviewer(self, client, auth_headers, parties):
        requester, _ = parties
        response = client.post(
            f"{BASE}/assign",
            json={"assignedContentType": ARTICLE, "assignedDocumentId": "doc1", "locale": "en"},
            headers=auth_headers(requester),
        )
        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    def test_multi_locale(self, client, auth_headers, parties):
        requester, reviewer = parties
        _assign(client, auth_headers, requester, reviewer, locale="fr")

        response = client.post(
            f"{BASE}/assign-multi-locale",
            json={
                "assignedContentType": ARTICLE,
                "assignedDocumentId": "doc1",
                "locales": ["en", "fr"],
                "assignedTo": str(reviewer.id),
            },
            headers=auth_headers(requester),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] == ["en"]
        assert data["failed"][0]["locale"] == "fr"

    def test_bulk_assign(self, client, auth_headers, parties):
        requester, reviewer = parties

        response = client.post(
            f"{BASE}/bulk-assign",
            json={
                "assignedContentType": ARTICLE,
                "assignedTo": str(reviewer.id),
                "documents": [{"documentId": "a", "locale": "en"}, {"documentId": "b"}],
            },
            headers=auth_headers(requester),
        )

        assert response.status_code == 200
        assert response.json() == {"success": ["a", "b"], "failed": []}


class TestTransitionEndpoints:

    def test_reject_and_re_request(self, client, auth_headers, parties, events):
        requester, reviewer = parties
        notified = []
        events.on_reviews_changed(lambda: notified.append(True))
        review_id = _assign(client, auth_headers, requester, reviewer).json()["documentId"]

        rejected = client.put(
            f"{BASE}/reject/{review_id}/en",
            json={"rejectionReason": "fix typo"},
            headers=auth_headers(reviewer),
        )
        assert rejected.status_code == 200
        assert rejected.json()["status"] == "rejected"
        assert rejected.json()["rejectionReason"] == "fix typo"

        re_requested = client.put(
            f"{BASE}/re-request/{review_id}/en",
            json={"comment": "fixed"},
            headers=auth_headers(requester),
        )
        assert re_requested.status_code == 200
        assert re_requested.json()["status"] == "pending"
        assert re_requested.json()["reviewedAt"] is None
        assert len(notified) == 3

    def test_reject_requires_reason(self, client, auth_headers, parties):
        requester, reviewer = parties
        review_id = _assign(client, auth_headers, requester, reviewer).json()["documentId"]

        response = client.put(
            f"{BASE}/reject/{review_id}/en", json={}, headers=auth_headers(reviewer)
        )

        assert response.status_code == 400

    def test_approve_wrong_party(self, client, auth_headers, parties, admin):
        requester, reviewer = parties
        review_id = _assign(client, auth_headers, requester, reviewer).json()["documentId"]

        response = client.put(f"{BASE}/approve/{review_id}/en", headers=auth_headers(admin))

        assert response.status_code == 403
        assert response.json()["error"] == "authorization_error"

    def test_approve_unknown(self, client, auth_headers, parties):
        _, reviewer = parties
        response = client.put(f"{BASE}/approve/{uuid4()}/en", headers=auth_headers(reviewer))
        assert response.status_code == 404

    def test_field_comment_blocks_approval(self, client, auth_headers, parties):
        requester, reviewer = parties
        review_id = _assign(client, auth_headers, requester, reviewer).json()["documentId"]

        created = client.post(
            f"{BASE}/field-comments",
            json={"reviewDocumentId": review_id, "fieldName": "title", "content": "Typo", "locale": "en"},
            headers=auth_headers(reviewer),
        )
        assert created.status_code == 201
        comment_id = created.json()["id"]

        blocked = client.put(f"{BASE}/approve/{review_id}/en", headers=auth_headers(reviewer))
        assert blocked.status_code == 409
        assert blocked.json()["error"] == "blocked"

        # The failed approval left the review untouched
        status = client.get(f"{BASE}/status/{ARTICLE}/doc1/en", headers=auth_headers(reviewer))
        assert status.json()["status"] == "pending"

        resolved = client.put(
            f"{BASE}/field-comments/{comment_id}/resolve", headers=auth_headers(requester)
        )
        assert resolved.status_code == 200
        assert resolved.json()["resolved"] is True

        deleted = client.delete(f"{BASE}/field-comments/{comment_id}", headers=auth_headers(reviewer))
        assert deleted.status_code == 204

        approved = client.put(
            f"{BASE}/approve/{review_id}/en",
            json={"comment": "ship it"},
            headers=auth_headers(reviewer),
        )
        assert approved.status_code == 200
        assert approved.json()["status"] == "approved"
        assert approved.json()["reviewedAt"] is not None

    def test_requester_cannot_resolve_others(self, client, auth_headers, parties):
        requester, reviewer = parties
        review_id = _assign(client, auth_headers, requester, reviewer).json()["documentId"]
        comment_id = client.post(
            f"{BASE}/field-comments",
            json={"reviewDocumentId": review_id, "fieldName": "title", "content": "Typo"},
            headers=auth_headers(reviewer),
        ).json()["id"]

        response = client.put(
            f"{BASE}/field-comments/{comment_id}/resolve", headers=auth_headers(reviewer)
        )

        assert response.status_code == 403


class TestStatusEndpoints:

    def test_status_none(self, client, auth_headers, parties):
        requester, _ = parties
        response = client.get(f"{BASE}/status/{ARTICLE}/doc1/en", headers=auth_headers(requester))
        assert response.status_code == 200
        assert response.json() is None

    def test_batch_status(self, client, auth_headers, parties):
        requester, reviewer = parties
        _assign(client, auth_headers, requester, reviewer, doc="a")

        response = client.post(
            f"{BASE}/status/batch/{ARTICLE}/en",
            json={"documentIds": ["a", "b", "c"]},
            headers=auth_headers(requester),
        )

        assert response.json() == {"a": "pending", "b": None, "c": None}

    def test_sorted(self, client, auth_headers, parties, document_store):
        requester, reviewer = parties
        document_store.put(ARTICLE, "a", "en")
        document_store.put(ARTICLE, "b", "en")
        _assign(client, auth_headers, requester, reviewer, doc="b")

        response = client.get(
            f"{BASE}/sorted/{ARTICLE}/en",
            params={"direction": "asc", "page": 1, "pageSize": 1},
            headers=auth_headers(requester),
        )

        data = response.json()
        assert data["results"] == [{"documentId": "b", "status": "pending"}]
        assert data["pagination"] == {"page": 1, "pageSize": 1, "pageCount": 2, "total": 2}


class TestTaskCenter:

    def test_lists_and_titles(self, client, auth_headers, parties, document_store):
        requester, reviewer = parties
        document_store.put(ARTICLE, "doc1", "en", title="Launch post")
        _assign(client, auth_headers, requester, reviewer)

        pending = client.get(f"{BASE}/pending", headers=auth_headers(reviewer)).json()
        assert [r["documentTitle"] for r in pending] == ["Launch post"]

        mine = client.get(f"{BASE}/assigned-by-me", headers=auth_headers(requester)).json()
        assert len(mine) == 1

        rejected = client.get(f"{BASE}/rejected", headers=auth_headers(reviewer)).json()
        assert rejected == []

    def test_task_count(self, client, auth_headers, parties):
        requester, reviewer = parties
        _assign(client, auth_headers, requester, reviewer)

        response = client.get(f"{BASE}/task-count", headers=auth_headers(reviewer))

        assert response.json() == {"count": 1}


class TestLookups:

    def test_available_locales(self, client, auth_headers, parties, document_store):
        requester, _ = parties
        document_store.put(ARTICLE, "doc1", "en")
        document_store.put(ARTICLE, "doc1", "de")

        response = client.get(f"{BASE}/available-locales/{ARTICLE}/doc1", headers=auth_headers(requester))

        assert response.json() == ["de", "en"]

    def test_reviewers(self, client, auth_headers, parties):
        requester, reviewer = parties
        response = client.get(f"{BASE}/reviewers", headers=auth_headers(requester))

        ids = {r["id"] for r in response.json()}
        assert str(reviewer.id) in ids
        assert str(requester.id) not in ids

    def test_config(self, client, auth_headers, parties):
        requester, _ = parties
        response = client.get(f"{BASE}/config", headers=auth_headers(requester))
        assert response.json() == {"contentTypes": []}

    def test_bulk_assign_permission(self, client, auth_headers, parties):
        requester, reviewer = parties
        assert client.get(
            f"{BASE}/permissions/bulk-assign", headers=auth_headers(requester)
        ).json() == {"canBulkAssign": True}
        assert client.get(
            f"{BASE}/permissions/bulk-assign", headers=auth_headers(reviewer)
        ).json() == {"canBulkAssign": False}


class TestPublishCheck:

    def test_blocked_without_review(self, client, auth_headers, parties):
        requester, _ = parties

        response = client.get(f"{BASE}/publish-check/{ARTICLE}/doc1/en", headers=auth_headers(requester))

        data = response.json()
        assert data["allowed"] is False
        assert data["verdict"] == "NO_REVIEW"
        assert data["message"]

    def test_allowed_after_approval(self, client, auth_headers, parties, document_store):
        requester, reviewer = parties
        document_store.put(ARTICLE, "doc1", "en", updated_at=datetime.utcnow() - timedelta(days=1))
        review_id = _assign(client, auth_headers, requester, reviewer).json()["documentId"]
        client.put(f"{BASE}/approve/{review_id}/en", headers=auth_headers(reviewer))

        response = client.get(f"{BASE}/publish-check/{ARTICLE}/doc1/en", headers=auth_headers(requester))

        assert response.json() == {"allowed": True, "verdict": "allow", "message": None}

    def test_admin_bypass(self, client, auth_headers, parties, admin):
        response = client.get(f"{BASE}/publish-check/{ARTICLE}/doc1/en", headers=auth_headers(admin))
        assert response.json()["allowed"] is True

    def test_store_failure_is_502(self, client, auth_headers, parties, app):
        from reviewflow.api import deps
        from reviewflow.core.review.errors import DocumentStoreError
        from reviewflow.services.document_store import InMemoryDocumentStore

        class Unreachable(InMemoryDocumentStore):
            def get_document(self, content_type, document_id, locale):
                raise DocumentStoreError("down")

        requester, reviewer = parties
        review_id = _assign(client, auth_headers, requester, reviewer).json()["documentId"]
        client.put(f"{BASE}/approve/{review_id}/en", headers=auth_headers(reviewer))
        app.dependency_overrides[deps.get_document_store] = Unreachable

        response = client.get(f"{BASE}/publish-check/{ARTICLE}/doc1/en", headers=auth_headers(requester))

        assert response.status_code == 502
        assert response.json()["error"] == "document_store_unavailable"


class TestErrorBodies:

    def test_publish_blocked_carries_verdict(self):
        import asyncio
        import json
        from types import SimpleNamespace

        from reviewflow.api.main import review_workflow_error_handler
        from reviewflow.core.review.errors import PublishBlockedError
        from reviewflow.core.review.gate import PublishVerdict

        request = SimpleNamespace(method="POST", url=SimpleNamespace(path="/publish"))
        exc = PublishBlockedError("needs review", PublishVerdict.NO_REVIEW)

        response = asyncio.run(review_workflow_error_handler(request, exc))

        assert response.status_code == 403
        assert json.loads(response.body) == {
            "error": "publish_blocked",
            "detail": "needs review",
            "verdict": "NO_REVIEW",
        }

    def test_error_schema_documented(self, client):
        schema = client.get("/openapi.json").json()
        assign = schema["paths"]["/api/review-workflow/assign"]["post"]["responses"]
        assert assign["409"]["content"]["application/json"]["schema"]["$ref"].endswith("/ErrorResponse")
