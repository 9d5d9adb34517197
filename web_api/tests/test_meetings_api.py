# web_api/tests/test_meetings_api.py
"""Tests for the standalone Teams meeting endpoint."""

from datetime import timedelta
from unittest.mock import AsyncMock, patch

import httpx

from core.teams import TeamsMeeting

BODY = {
    "subject": "Doubt session",
    "startDateTime": "2024-01-12T14:00:00",
    "endDateTime": "2024-01-12T15:00:00",
    "attendees": ["asha@example.com"],
}


def _configured(value=True):
    return patch("web_api.routes.meetings.is_teams_configured", return_value=value)


class TestCreateMeeting:
    def test_returns_meeting_ids(self, client):
        meeting = TeamsMeeting(
            join_url="https://teams.example.com/j/1", meeting_id="m1", event_id="e1"
        )
        with _configured(), patch(
            "web_api.routes.meetings.create_teams_meeting",
            AsyncMock(return_value=meeting),
        ) as mock_create:
            response = client.post("/api/teams/create-meeting", json=BODY)

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "joinUrl": "https://teams.example.com/j/1",
            "meetingId": "m1",
            "eventId": "e1",
        }
        subject, start, end, attendees, time_zone = mock_create.await_args.args
        assert subject == "Doubt session"
        assert attendees == ["asha@example.com"]
        assert time_zone == "Asia/Kolkata"
        assert start.utcoffset() == timedelta(hours=5, minutes=30)
        assert end - start == timedelta(hours=1)

    def test_explicit_time_zone_is_used(self, client):
        meeting = TeamsMeeting(join_url="https://teams.example.com/j/1", meeting_id="m1")
        with _configured(), patch(
            "web_api.routes.meetings.create_teams_meeting",
            AsyncMock(return_value=meeting),
        ) as mock_create:
            response = client.post(
                "/api/teams/create-meeting", json={**BODY, "timeZone": "UTC"}
            )

        assert response.status_code == 200
        assert response.json()["eventId"] is None
        _, start, _, _, time_zone = mock_create.await_args.args
        assert time_zone == "UTC"
        assert start.utcoffset() == timedelta(0)

    def test_missing_fields_are_400(self, client):
        response = client.post(
            "/api/teams/create-meeting", json={"subject": "Doubt session"}
        )
        assert response.status_code == 400

    def test_unknown_time_zone_is_400(self, client):
        with _configured():
            response = client.post(
                "/api/teams/create-meeting", json={**BODY, "timeZone": "Not/AZone"}
            )
        assert response.status_code == 400

    def test_not_configured_is_503(self, client):
        with _configured(False):
            response = client.post("/api/teams/create-meeting", json=BODY)
        assert response.status_code == 503

    def test_graph_failure_is_500(self, client):
        request = httpx.Request("POST", "https://graph.microsoft.com/v1.0/x")
        error = httpx.HTTPStatusError(
            "forbidden", request=request, response=httpx.Response(403, request=request)
        )
        with _configured(), patch(
            "web_api.routes.meetings.create_teams_meeting",
            AsyncMock(side_effect=error),
        ), patch("core.external.sentry_sdk"):
            response = client.post("/api/teams/create-meeting", json=BODY)

        assert response.status_code == 500
