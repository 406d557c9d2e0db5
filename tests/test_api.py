"""
HTTP handlers exercised through the ASGI app.
"""

import uuid
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from tajiri.core.config import settings
from tajiri.core.security import create_access_token
from tajiri.services.llm import LLMUnavailableError

API = "/api/v1"


def local_today(tz_name="Africa/Dar_es_Salaam"):
    return datetime.now(ZoneInfo(tz_name)).date()


class TestAuth:
    @pytest.mark.asyncio
    async def test_missing_token_is_rejected(self, client):
        response = await client.get(f"{API}/transactions")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_garbage_token_is_rejected(self, client):
        response = await client.get(f"{API}/transactions", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid token"

    @pytest.mark.asyncio
    async def test_expired_token_is_rejected(self, client, user):
        token = create_access_token(str(user.id), expires_delta=timedelta(seconds=-5))
        response = await client.get(f"{API}/transactions", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Token has expired"

    @pytest.mark.asyncio
    async def test_token_for_unknown_user_is_rejected(self, client):
        token = create_access_token(str(uuid.uuid4()))
        response = await client.get(f"{API}/transactions", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_token_in_query_string_is_accepted(self, client, user):
        token = create_access_token(str(user.id))
        response = await client.get(f"{API}/transactions", params={"token": token})
        assert response.status_code == 200


class TestTransactions:
    @pytest.mark.asyncio
    async def test_create_list_delete(self, client, auth_headers):
        created = await client.post(
            f"{API}/transactions",
            json={"type": "expense", "amount": "2500.50", "category": "Food", "description": "Chips mayai"},
            headers=auth_headers,
        )
        assert created.status_code == 201, created.text
        body = created.json()
        assert body["amount"] == 2500.5
        assert body["category"] == "Food"

        listed = await client.get(f"{API}/transactions", headers=auth_headers)
        assert [t["id"] for t in listed.json()] == [body["id"]]

        deleted = await client.delete(f"{API}/transactions/{body['id']}", headers=auth_headers)
        assert deleted.status_code == 204
        again = await client.delete(f"{API}/transactions/{body['id']}", headers=auth_headers)
        assert again.status_code == 404

    @pytest.mark.asyncio
    async def test_non_positive_amount_is_rejected(self, client, auth_headers):
        response = await client.post(f"{API}/transactions", json={"amount": 0}, headers=auth_headers)
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_cannot_delete_someone_elses_transaction(self, client, auth_headers, make_user, headers_for):
        other = await make_user(email="baraka@example.com")
        created = await client.post(f"{API}/transactions", json={"amount": 100}, headers=headers_for(other))

        response = await client.delete(f"{API}/transactions/{created.json()['id']}", headers=auth_headers)

        assert response.status_code == 404


class TestGoals:
    @pytest.mark.asyncio
    async def test_create_goal_defaults(self, client, auth_headers):
        response = await client.post(
            f"{API}/goals",
            json={"goal_name": "Laptop", "target_amount": 1500000, "daily_limit": 20000},
            headers=auth_headers,
        )
        assert response.status_code == 201, response.text
        goal = response.json()
        assert goal["goal_status"] == "active"
        assert goal["saved_amount"] == 0
        assert goal["streak_count"] == 0
        assert goal["grace_days_used"] == 0
        assert goal["timezone"] == "Africa/Dar_es_Salaam"
        assert goal["start_date"] == local_today().isoformat()

    @pytest.mark.asyncio
    async def test_goal_timezone_defaults_to_configured_zone(self, client, make_user, headers_for):
        no_zone = await make_user(email="juma@example.com", timezone=None)
        response = await client.post(
            f"{API}/goals",
            json={"goal_name": "Bike", "target_amount": 300000, "daily_limit": 5000},
            headers=headers_for(no_zone),
        )
        assert response.json()["timezone"] == settings.DEFAULT_TIMEZONE

    @pytest.mark.asyncio
    async def test_unknown_timezone_is_rejected(self, client, auth_headers):
        response = await client.post(
            f"{API}/goals",
            json={"goal_name": "Trip", "target_amount": 1000, "daily_limit": 100, "timezone": "Nowhere/City"},
            headers=auth_headers,
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_goal_detail_and_abandon(self, client, auth_headers):
        created = (await client.post(
            f"{API}/goals",
            json={"goal_name": "Rent", "target_amount": 400000, "daily_limit": 10000},
            headers=auth_headers,
        )).json()

        detail = await client.get(f"{API}/goals/{created['id']}", headers=auth_headers)
        assert detail.status_code == 200
        assert detail.json()["daily_logs"] == []

        abandoned = await client.post(f"{API}/goals/{created['id']}/abandon", headers=auth_headers)
        assert abandoned.status_code == 200
        assert abandoned.json()["goal_status"] == "abandoned"
        assert abandoned.json()["abandoned_at"] is not None

        again = await client.post(f"{API}/goals/{created['id']}/abandon", headers=auth_headers)
        assert again.status_code == 409

    @pytest.mark.asyncio
    async def test_unknown_goal_is_404(self, client, auth_headers):
        response = await client.get(f"{API}/goals/{uuid.uuid4()}", headers=auth_headers)
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_list_goals(self, client, auth_headers):
        for name in ("A", "B"):
            await client.post(
                f"{API}/goals",
                json={"goal_name": name, "target_amount": 1000, "daily_limit": 100},
                headers=auth_headers,
            )
        response = await client.get(f"{API}/goals", headers=auth_headers)
        assert {g["goal_name"] for g in response.json()} == {"A", "B"}


class TestBudgets:
    @pytest.mark.asyncio
    async def test_create_and_list(self, client, auth_headers):
        created = await client.post(
            f"{API}/budgets",
            json={"category": "Transport", "amount": 60000, "period": "weekly"},
            headers=auth_headers,
        )
        assert created.status_code == 201
        listed = await client.get(f"{API}/budgets", headers=auth_headers)
        assert [(b["category"], b["amount"], b["period"]) for b in listed.json()] == [("Transport", 60000.0, "weekly")]

    @pytest.mark.asyncio
    async def test_unknown_period_is_rejected(self, client, auth_headers):
        response = await client.post(
            f"{API}/budgets",
            json={"category": "Transport", "amount": 60000, "period": "yearly"},
            headers=auth_headers,
        )
        assert response.status_code == 422


class TestInsights:
    @pytest.mark.asyncio
    async def test_spending_summary_for_today(self, client, auth_headers):
        for payload in (
            {"amount": 3000, "category": "Food"},
            {"amount": 2000, "category": "Transport"},
            {"amount": 1000, "category": "Food"},
            {"amount": 10000, "type": "income", "category": "Salary"},
        ):
            await client.post(f"{API}/transactions", json=payload, headers=auth_headers)

        response = await client.get(f"{API}/insights/spending-summary", params={"period": "today"}, headers=auth_headers)

        assert response.status_code == 200
        summary = response.json()
        assert summary["period_label"] == "for today"
        assert summary["total_expense"] == 6000
        assert summary["total_income"] == 10000
        assert summary["transaction_count"] == 4
        assert summary["by_category"] == [
            {"category": "Food", "amount": 4000},
            {"category": "Transport", "amount": 2000},
        ]

    @pytest.mark.asyncio
    async def test_spending_summary_excludes_older_transactions(self, client, auth_headers):
        old = (datetime.now(timezone.utc) - timedelta(days=3)).isoformat()
        await client.post(f"{API}/transactions", json={"amount": 7000, "date": old}, headers=auth_headers)

        today = (await client.get(f"{API}/insights/spending-summary", params={"period": "today"}, headers=auth_headers)).json()
        all_time = (await client.get(f"{API}/insights/spending-summary", params={"period": "everything"}, headers=auth_headers)).json()

        assert today["total_expense"] == 0
        assert all_time["total_expense"] == 7000
        assert all_time["start"] is None

    @pytest.mark.asyncio
    async def test_daily_limit_suggestion_averages_days_with_expenses(self, client, auth_headers):
        await client.post(f"{API}/transactions", json={"amount": 3000}, headers=auth_headers)
        await client.post(f"{API}/transactions", json={"amount": 2000}, headers=auth_headers)

        response = await client.get(f"{API}/insights/daily-limit-suggestion", headers=auth_headers)

        suggestion = response.json()
        assert suggestion["days_considered"] == 1
        assert suggestion["suggested_limit"] == 5000
        assert "TZS 5,000.00" in suggestion["reply"]

    @pytest.mark.asyncio
    async def test_daily_limit_suggestion_without_history(self, client, auth_headers):
        response = await client.get(f"{API}/insights/daily-limit-suggestion", headers=auth_headers)

        suggestion = response.json()
        assert suggestion["suggested_limit"] == 0
        assert suggestion["days_considered"] == settings.DAILY_LIMIT_LOOKBACK_DAYS

    @pytest.mark.asyncio
    async def test_advice_requires_message(self, client, auth_headers):
        response = await client.post(f"{API}/insights/advice", json={"message": "  "}, headers=auth_headers)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_advice_uses_expenses_and_goals(self, client, auth_headers, monkeypatch):
        await client.post(f"{API}/transactions", json={"amount": 4500, "description": "Lunch"}, headers=auth_headers)
        await client.post(
            f"{API}/goals",
            json={"goal_name": "Laptop", "target_amount": 100000, "daily_limit": 10000},
            headers=auth_headers,
        )
        captured = {}

        async def fake_chat_completion(messages, **kwargs):
            captured["messages"] = messages
            return "Cut back on takeaway lunches."

        monkeypatch.setattr("tajiri.services.insights.chat_completion", fake_chat_completion)

        response = await client.post(
            f"{API}/insights/advice", json={"message": "How did I do today?"}, headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json() == {"reply": "Cut back on takeaway lunches."}
        prompt = captured["messages"][-1]["content"]
        assert "SPENDING DATA for today" in prompt
        assert "Lunch: TZS 4,500.00" in prompt
        assert "Goal: 'Laptop'" in prompt

    @pytest.mark.asyncio
    async def test_advice_when_model_unavailable(self, client, auth_headers, monkeypatch):
        async def failing_chat_completion(messages, **kwargs):
            raise LLMUnavailableError("Both models failed")

        monkeypatch.setattr("tajiri.services.insights.chat_completion", failing_chat_completion)

        response = await client.post(f"{API}/insights/advice", json={"message": "Help"}, headers=auth_headers)

        assert response.status_code == 503


class TestJobsAndNotifications:
    @pytest.mark.asyncio
    async def test_job_requires_token(self, client):
        assert (await client.post(f"{API}/jobs/process-daily-goals")).status_code == 403
        wrong = await client.post(f"{API}/jobs/process-daily-goals", headers={"X-Job-Token": "nope"})
        assert wrong.status_code == 403

    @pytest.mark.asyncio
    async def test_job_disabled_without_configured_token(self, client, job_headers, monkeypatch):
        monkeypatch.setattr(settings, "JOB_TRIGGER_TOKEN", "")
        response = await client.post(f"{API}/jobs/delete-abandoned-goals", headers=job_headers)
        assert response.status_code == 503

    @pytest.mark.asyncio
    async def test_process_daily_goals_endpoint(self, client, auth_headers, job_headers):
        yesterday = (local_today() - timedelta(days=1)).isoformat()
        goal = (await client.post(
            f"{API}/goals",
            json={"goal_name": "Phone", "target_amount": 500000, "daily_limit": 15000, "start_date": yesterday},
            headers=auth_headers,
        )).json()
        await client.post(f"{API}/transactions", json={"amount": 5000}, headers=auth_headers)

        response = await client.post(f"{API}/jobs/process-daily-goals", headers=job_headers)

        assert response.status_code == 200
        report = response.json()
        assert report["goals"] == 1
        assert report["succeeded"] == 1
        assert report["errors"] == 0

        detail = (await client.get(f"{API}/goals/{goal['id']}", headers=auth_headers)).json()
        assert detail["saved_amount"] == 10000
        assert detail["streak_count"] == 1
        assert [log["status"] for log in detail["daily_logs"]] == ["success"]

        notifications = (await client.get(f"{API}/notifications", headers=auth_headers)).json()
        assert len(notifications) == 1
        assert notifications[0]["is_read"] is False
        read = await client.post(f"{API}/notifications/{notifications[0]['id']}/read", headers=auth_headers)
        assert read.json()["is_read"] is True
        unread = (await client.get(f"{API}/notifications", params={"unread_only": True}, headers=auth_headers)).json()
        assert unread == []

    @pytest.mark.asyncio
    async def test_delete_abandoned_goals_endpoint_accepts_reference_time(self, client, auth_headers, job_headers):
        goal = (await client.post(
            f"{API}/goals",
            json={"goal_name": "Shoes", "target_amount": 50000, "daily_limit": 2000},
            headers=auth_headers,
        )).json()
        await client.post(f"{API}/goals/{goal['id']}/abandon", headers=auth_headers)

        now = await client.post(f"{API}/jobs/delete-abandoned-goals", headers=job_headers)
        assert now.json() == {"deleted": 0}

        later = (datetime.now(timezone.utc) + timedelta(days=4)).isoformat()
        response = await client.post(
            f"{API}/jobs/delete-abandoned-goals", params={"at": later}, headers=job_headers
        )
        assert response.json() == {"deleted": 1}
        assert (await client.get(f"{API}/goals/{goal['id']}", headers=auth_headers)).status_code == 404

    @pytest.mark.asyncio
    async def test_unknown_notification_is_404(self, client, auth_headers):
        response = await client.post(f"{API}/notifications/{uuid.uuid4()}/read", headers=auth_headers)
        assert response.status_code == 404


@pytest.mark.asyncio
async def test_root(client):
    response = await client.get("/")
    assert response.status_code == 200
    assert "message" in response.json()
