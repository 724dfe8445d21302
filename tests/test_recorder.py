"""
Tests for the upstream recorder: CSV sheet store, UpstreamRecorder, and the
POST /api/recorder endpoint.
"""

from __future__ import annotations

import json
from typing import Sequence

import httpx
import pytest
from fastapi.testclient import TestClient

from delight_relay.main import create_app, create_recorder_app
from delight_relay.services.recorder import UpstreamRecorder
from delight_relay.services.sheet_store import CsvSheetStore
from delight_relay.services.slack_service import SlackService

SLACK_URL = "https://hooks.slack.example.test/services/T000/B000/XXXX"
TIMESTAMP = "2025-03-01T10:00:00.000Z"


class FailingStore:
    def append(self, row: Sequence[str]) -> int:
        raise PermissionError("sheet is read-only")


@pytest.fixture
def submission(valid_submission) -> dict[str, str]:
    return {**valid_submission, "timestamp": TIMESTAMP}


class TestCsvSheetStore:
    def test_rows_numbered_from_one(self, tmp_path):
        store = CsvSheetStore(tmp_path / "nested" / "delights.csv")

        assert store.append(["a", "b"]) == 1
        assert store.append(["c", "d"]) == 2
        assert store.rows() == [["a", "b"], ["c", "d"]]

    def test_numbering_continues_existing_file(self, tmp_path):
        path = tmp_path / "delights.csv"
        CsvSheetStore(path).append(["first"])

        assert CsvSheetStore(path).append(["second"]) == 2

    def test_values_with_commas_round_trip(self, tmp_path):
        store = CsvSheetStore(tmp_path / "delights.csv")

        store.append(["Doe, Jane", 'He said "thanks"'])

        assert store.rows() == [["Doe, Jane", 'He said "thanks"']]


class TestUpstreamRecorder:
    @pytest.mark.asyncio
    async def test_appends_columns_in_fixed_order(self, tmp_path, submission):
        store = CsvSheetStore(tmp_path / "delights.csv")
        recorder = UpstreamRecorder(store)

        result = await recorder.record(submission)

        assert result == {"ok": True, "sheetRow": 1}
        assert store.rows() == [
            [TIMESTAMP, "Jane Doe", "Birthday", "https://a.co/x", "https://a.co/y"]
        ]

    @pytest.mark.asyncio
    async def test_assigns_timestamp_when_missing(self, tmp_path, valid_submission):
        store = CsvSheetStore(tmp_path / "delights.csv")

        await UpstreamRecorder(store).record(valid_submission)

        assert store.rows()[0][0].endswith("Z")

    @pytest.mark.asyncio
    async def test_invalid_submission_not_stored(self, tmp_path, submission):
        store = CsvSheetStore(tmp_path / "delights.csv")
        submission["productLink"] = "ftp://a.co/y"

        result = await UpstreamRecorder(store).record(submission)

        assert result == {"ok": False, "error": "Invalid productLink URL"}
        assert store.rows() == []

    @pytest.mark.asyncio
    async def test_storage_failure_reported(self, submission):
        result = await UpstreamRecorder(FailingStore()).record(submission)

        assert result["ok"] is False
        assert "sheet is read-only" in result["error"]

    @pytest.mark.asyncio
    async def test_notifies_after_append(self, tmp_path, submission, recording_transport):
        store = CsvSheetStore(tmp_path / "delights.csv")
        transport = recording_transport(lambda request: httpx.Response(200, text="ok"))
        recorder = UpstreamRecorder(store, slack_factory=lambda: SlackService(SLACK_URL, transport=transport))

        result = await recorder.record(submission)

        assert result["ok"] is True
        assert len(transport.requests) == 1
        message = json.loads(transport.requests[0].content)
        assert "*Agent:* Jane Doe" in json.dumps(message, ensure_ascii=False)

    @pytest.mark.asyncio
    async def test_notification_failure_does_not_fail_record(
        self, tmp_path, submission, recording_transport
    ):
        store = CsvSheetStore(tmp_path / "delights.csv")
        transport = recording_transport(lambda request: httpx.Response(500, text="slack down"))
        recorder = UpstreamRecorder(store, slack_factory=lambda: SlackService(SLACK_URL, transport=transport))

        result = await recorder.record(submission)

        assert result == {"ok": True, "sheetRow": 1}
        assert len(store.rows()) == 1
        # Submission message, then one error alert
        assert len(transport.requests) == 2
        alert = json.loads(transport.requests[1].content)
        assert alert["text"] == "❌ Error in External Delights workflow: Slack webhook failed: 500"

    @pytest.mark.asyncio
    async def test_notification_exception_is_contained(self, tmp_path, submission):
        def broken_factory() -> SlackService:
            raise RuntimeError("factory misconfigured")

        store = CsvSheetStore(tmp_path / "delights.csv")
        recorder = UpstreamRecorder(store, slack_factory=broken_factory)

        result = await recorder.record(submission)

        assert result == {"ok": True, "sheetRow": 1}
        assert len(store.rows()) == 1

    @pytest.mark.asyncio
    async def test_unconfigured_slack_skips_notification(self, tmp_path, submission):
        store = CsvSheetStore(tmp_path / "delights.csv")
        recorder = UpstreamRecorder(store, slack_factory=lambda: SlackService(None))

        result = await recorder.record(submission)

        assert result["ok"] is True


class TestRecorderApi:
    @pytest.fixture
    def client(self, tmp_path, make_settings):
        self.store = CsvSheetStore(tmp_path / "delights.csv")
        app = create_recorder_app(make_settings(), store=self.store)
        return TestClient(app)

    def test_post_records_row(self, client, submission):
        response = client.post("/api/recorder", json=submission)

        assert response.status_code == 200
        assert response.json() == {"ok": True, "sheetRow": 1}
        assert self.store.rows()[0][1] == "Jane Doe"

    def test_application_failure_still_200(self, client):
        response = client.post("/api/recorder", json={"ticketLink": "https://a.co/x"})

        assert response.status_code == 200
        assert response.json() == {"ok": False, "error": "Missing field: productLink"}

    def test_lone_surrogate_escape_still_200(self, client):
        body = (
            b'{"ticketLink": "https://a.co/x", "productLink": "https://a.co/y", '
            b'"occasion": "Birthday", "agentName": "Jane \\ud800"}'
        )

        response = client.post("/api/recorder", content=body)

        assert response.status_code == 200
        assert response.json() == {"ok": False, "error": "Invalid agentName"}
        assert self.store.rows() == []

    def test_invalid_json(self, client):
        response = client.post("/api/recorder", content=b"<xml/>")

        assert response.json() == {"ok": False, "error": "Invalid JSON body"}

    def test_health_reports_slack_state(self, client):
        body = client.get("/health").json()

        assert body["service"] == "delights-recorder"
        assert body["slack_configured"] is False
        assert "upstream_configured" not in body


class TestIntakeToRecorder:
    def test_full_chain(self, tmp_path, make_settings, valid_submission):
        """Intake relays through an in-process recorder app."""
        store = CsvSheetStore(tmp_path / "delights.csv")
        recorder_app = create_recorder_app(make_settings(), store=store)
        intake_app = create_app(
            make_settings(UPSTREAM_URL="http://recorder.local/api/recorder"),
            relay_transport=httpx.ASGITransport(app=recorder_app),
        )

        response = TestClient(intake_app).post("/api/submit", json=valid_submission)

        assert response.status_code == 200
        assert response.json() == {"ok": True, "sheetRow": 1}
        row = store.rows()[0]
        assert row[1:] == ["Jane Doe", "Birthday", "https://a.co/x", "https://a.co/y"]
