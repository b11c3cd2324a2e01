"""Tests for the subscription cost summary endpoint."""

import uuid
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError


def create(client, user_id, service_name="Netflix", price=400, start_date="01-2023", end_date=None):
    payload = {
        "service_name": service_name,
        "price": price,
        "user_id": str(user_id),
        "start_date": start_date,
    }
    if end_date is not None:
        payload["end_date"] = end_date
    response = client.post("/subscriptions", json=payload)
    assert response.status_code == 201
    return response.json()


def summary(client, start="01-2024", end="12-2024", **filters):
    return client.get("/subscriptions/summary", params={"start": start, "end": end, **filters})


class TestSummaryValidation:
    @pytest.mark.parametrize("params", [{}, {"start": "01-2024"}, {"end": "12-2024"}])
    def test_missing_bounds(self, client, params):
        response = client.get("/subscriptions/summary", params=params)
        assert response.status_code == 422

    @pytest.mark.parametrize("start,end", [("2024-01", "12-2024"), ("01-2024", "13-2024"), ("x", "y")])
    def test_malformed_bounds(self, client, start, end):
        response = summary(client, start=start, end=end)
        assert response.status_code == 422

    def test_end_before_start(self, client):
        response = summary(client, start="06-2024", end="05-2024")
        assert response.status_code == 422
        assert "before start" in response.json()["detail"]

    def test_invalid_user_id(self, client):
        response = summary(client, user_id="not-a-uuid")
        assert response.status_code == 422

    def test_empty_filters_ignored(self, client):
        user_id = uuid.uuid4()
        create(client, user_id, price=400, start_date="01-2024", end_date="03-2024")
        create(client, uuid.uuid4(), service_name="Spotify", price=100, start_date="01-2024", end_date="01-2024")

        response = summary(client, user_id="", service_name="")
        assert response.status_code == 200
        assert response.json()["total"] == 3 * 400 + 100


class TestSummaryTotals:
    def test_empty(self, client):
        response = summary(client)
        assert response.status_code == 200
        assert response.json() == {
            "start": "01-2024",
            "end": "12-2024",
            "total": 0,
            "subscription_count": 0,
            "months_billed": 0,
        }

    def test_perpetual_truncated_to_window(self, client, user_id):
        create(client, user_id, price=400, start_date="01-2023")
        data = summary(client).json()
        assert data["total"] == 12 * 400
        assert data["months_billed"] == 12

    def test_single_month_counts_once(self, client, user_id):
        create(client, user_id, price=250, start_date="05-2024", end_date="05-2024")
        assert summary(client).json()["total"] == 250
        assert summary(client, start="05-2024", end="05-2024").json()["total"] == 250

    def test_outside_window_excluded(self, client, user_id):
        create(client, user_id, price=999, start_date="01-2023", end_date="12-2023")
        data = summary(client).json()
        assert data["total"] == 0
        assert data["subscription_count"] == 0

    def test_filters(self, client, user_id):
        other_user = uuid.uuid4()
        create(client, user_id, service_name="Netflix", price=400, start_date="01-2024", end_date="06-2024")
        create(client, user_id, service_name="Spotify", price=100, start_date="10-2024")
        create(client, other_user, service_name="Netflix", price=1000, start_date="12-2024")

        assert summary(client).json()["total"] == 6 * 400 + 3 * 100 + 1000
        assert summary(client, user_id=str(user_id)).json()["total"] == 6 * 400 + 3 * 100
        assert summary(client, service_name="Netflix").json()["total"] == 6 * 400 + 1000
        assert (
            summary(client, user_id=str(user_id), service_name="Spotify").json()["total"]
            == 3 * 100
        )

    def test_partial_overlaps(self, client, user_id):
        create(client, user_id, price=100, start_date="10-2023", end_date="02-2024")
        create(client, user_id, service_name="Spotify", price=10, start_date="11-2024", end_date="06-2025")
        data = summary(client).json()
        assert data["total"] == 2 * 100 + 2 * 10
        assert data["subscription_count"] == 2
        assert data["months_billed"] == 4

    def test_store_failure_is_opaque(self, client, db_session):
        error = OperationalError("SELECT", {}, Exception("password=secret"))
        with patch.object(db_session, "execute", side_effect=error):
            response = summary(client)
        assert response.status_code == 500
        assert response.json() == {"detail": "Internal error"}
