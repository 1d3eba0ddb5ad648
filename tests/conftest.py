"""Pytest configuration and fixtures."""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from worklog_tray.config import Config
from worklog_tray.tracker_api import Credentials, WorklogReceipt
from worklog_tray.transport import HttpTransport

TAIPEI = timezone(timedelta(hours=8))


class FakeClock:
    """Controllable wall clock for the reminder scheduler."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)

    def set(self, now: datetime):
        self.now = now


def make_response(status_code=200, json_data=None, text=""):
    """requests.Response stand-in; json_data may be an exception to raise."""
    resp = MagicMock()
    resp.status_code = status_code
    resp.ok = 200 <= status_code < 300
    resp.text = text
    if isinstance(json_data, Exception):
        resp.json.side_effect = json_data
    else:
        resp.json.return_value = json_data
    return resp


class FakeStore:
    """In-memory PreferenceStore."""

    def __init__(self, credentials=None, theme="dark"):
        self.credentials = credentials
        self.theme = theme
        self.saved = []

    def load_saved(self):
        return self.credentials

    def save(self, credentials):
        self.saved.append(credentials)
        self.credentials = credentials

    def load_theme(self):
        return self.theme

    def save_theme(self, theme):
        self.theme = theme


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep config and log files out of the real home directory."""
    home = tmp_path / ".worklog-tray"
    monkeypatch.setenv("WORKLOG_TRAY_HOME", str(home))
    return home


@pytest.fixture
def credentials():
    return Credentials(
        base_url="https://example.atlassian.net/",
        secret="api-token-123",
        identity="dev@example.com",
    )


@pytest.fixture
def config():
    return Config(
        jira_url="https://example.atlassian.net",
        jira_email="dev@example.com",
        jira_api_token="api-token-123",
    )


@pytest.fixture
def mock_transport():
    """HttpTransport with a mocked send()."""
    transport = MagicMock(spec=HttpTransport)
    transport.base_url = "https://example.atlassian.net"
    return transport


@pytest.fixture
def myself_response():
    return make_response(200, {
        "accountId": "5b10ac8d82e05b22cc7d4ef5",
        "emailAddress": "dev@example.com",
        "displayName": "Dev User",
    })


@pytest.fixture
def search_response():
    return make_response(200, {
        "startAt": 0,
        "maxResults": 50,
        "total": 2,
        "issues": [
            {
                "key": "PROJ-123",
                "fields": {
                    "summary": "Implement login",
                    "status": {"name": "In Progress"},
                    "assignee": {"displayName": "Dev User", "emailAddress": "dev@example.com"},
                },
            },
            {
                "key": "PROJ-124",
                "fields": {
                    "summary": "Fix logout",
                    "status": {"name": "To Do"},
                    "assignee": None,
                },
            },
        ],
    })


@pytest.fixture
def worklog_response():
    return make_response(201, {
        "id": "10001",
        "issueId": "20001",
        "started": "2025-12-31T09:00:00.000+0800",
        "timeSpentSeconds": 3600,
    })


@pytest.fixture
def fake_client():
    """TrackerClient double that authenticates and returns sample data."""
    from worklog_tray.tracker_api import Assignee, Issue

    client = MagicMock()
    client.authenticate.return_value = True
    client.list_assigned_issues.return_value = [
        Issue("PROJ-123", "Implement login", "In Progress", Assignee("Dev User", "dev@example.com")),
        Issue("PROJ-124", "Fix logout", "To Do"),
    ]
    client.submit_worklog.return_value = WorklogReceipt(
        id="10001", issue_id="20001", started="2025-12-31T09:00:00.000+0800", time_spent_seconds=3600,
    )
    return client


@pytest.fixture
def client_factory(fake_client):
    return MagicMock(return_value=fake_client)


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 12, 31, 16, 0, tzinfo=TAIPEI))
