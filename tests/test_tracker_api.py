"""Tests for tracker_api module."""

from datetime import datetime, timedelta, timezone

import pytest

from worklog_tray.errors import (
    InsufficientPermission,
    InvalidDuration,
    InvalidTimestamp,
    NetworkError,
    NetworkUnavailable,
    NotFound,
    ProtocolMismatch,
    RemoteServerError,
    TlsError,
    UntrustedCertificate,
)
from worklog_tray.tracker_api import (
    ASSIGNED_ISSUES_JQL,
    Credentials,
    TrackerClient,
    WorklogSubmission,
    format_started,
    parse_started,
    validate_duration_spec,
    validate_issue_key,
)

from conftest import TAIPEI, make_response


def issue_payload(key):
    return {"key": key, "fields": {"summary": f"Summary {key}", "status": {"name": "Open"}}}


class TestCredentials:
    """Tests for Credentials dataclass."""

    def test_normalizes_url_and_identity(self):
        creds = Credentials(base_url="https://jira.example.com/", secret="t", identity="  ")
        assert creds.base_url == "https://jira.example.com"
        assert creds.identity is None
        assert creds.token_only

    def test_secret_not_in_repr(self, credentials):
        assert "api-token-123" not in repr(credentials)


class TestDurationSpec:
    """Tests for time spent validation."""

    @pytest.mark.parametrize("value,expected", [
        ("30m", "30m"),
        ("2h", "2h"),
        ("1d", "1d"),
        ("1.5h", "1.5h"),
        (" 2h ", "2h"),
    ])
    def test_valid(self, value, expected):
        assert validate_duration_spec(value) == expected

    @pytest.mark.parametrize("value", ["", "2", "h", "0m", "0.0h", "2w", "-1h", "2 h", "1h30m", "abc"])
    def test_invalid(self, value):
        with pytest.raises(InvalidDuration):
            validate_duration_spec(value)


class TestIssueKey:
    """Issue keys are checked before they become part of a URL path."""

    @pytest.mark.parametrize("value,expected", [
        ("PROJ-123", "PROJ-123"),
        (" proj-7 ", "proj-7"),
        ("AB_2-10", "AB_2-10"),
    ])
    def test_valid(self, value, expected):
        assert validate_issue_key(value) == expected

    @pytest.mark.parametrize("value", [
        "", "PROJ", "123", "PROJ-", "-1", "1PROJ-1",
        "PROJ-1/../PROJ-2", "PROJ-1?x=1", "PROJ-1#a", "PROJ-1 2", "PROJ-1%2F",
    ])
    def test_invalid(self, value):
        with pytest.raises(NotFound):
            validate_issue_key(value)


class TestStarted:
    """Tests for started timestamp parsing and formatting."""

    @pytest.mark.parametrize("value", [
        "2025-12-31T09:00:00.000+0800",
        "2025-12-31T09:00:00+08:00",
        "2025-12-31T09:00+0800",
    ])
    def test_parse_with_offset(self, value):
        parsed = parse_started(value)
        assert parsed.utcoffset() == timedelta(hours=8)
        assert (parsed.hour, parsed.minute) == (9, 0)

    def test_parse_zulu(self):
        assert parse_started("2025-12-31T01:00:00Z").utcoffset() == timedelta(0)

    @pytest.mark.parametrize("value", ["2025-12-31T09:00:00", "2025-12-31", "yesterday", ""])
    def test_parse_requires_offset(self, value):
        with pytest.raises(InvalidTimestamp):
            parse_started(value)

    def test_format(self):
        started = datetime(2025, 12, 31, 9, 0, 0, 123456, tzinfo=TAIPEI)
        assert format_started(started) == "2025-12-31T09:00:00.123+0800"

    def test_format_naive_rejected(self):
        with pytest.raises(InvalidTimestamp):
            format_started(datetime(2025, 12, 31, 9, 0))


class TestAuthenticate:
    """Tests for TrackerClient.authenticate."""

    def test_success(self, mock_transport, myself_response):
        mock_transport.send.return_value = myself_response
        client = TrackerClient(mock_transport)

        assert client.authenticate() is True
        mock_transport.send.assert_called_once_with("GET", "rest/api/3/myself")

    def test_server_identity_keys(self, mock_transport):
        """Jira Server answers with 'name'/'key' instead of accountId."""
        mock_transport.send.return_value = make_response(200, {"name": "dev", "key": "dev"})
        assert TrackerClient(mock_transport, api_version=2).authenticate() is True
        mock_transport.send.assert_called_once_with("GET", "rest/api/2/myself")

    @pytest.mark.parametrize("status_code", [401, 403])
    def test_rejected(self, mock_transport, status_code):
        mock_transport.send.return_value = make_response(status_code, text="Unauthorized")
        assert TrackerClient(mock_transport).authenticate() is False

    def test_no_identity_payload(self, mock_transport):
        mock_transport.send.return_value = make_response(200, {"foo": "bar"})
        with pytest.raises(ProtocolMismatch):
            TrackerClient(mock_transport).authenticate()

    def test_html_body(self, mock_transport):
        """A login page instead of JSON is a protocol mismatch."""
        mock_transport.send.return_value = make_response(200, ValueError("not json"), text="<html>")
        with pytest.raises(ProtocolMismatch):
            TrackerClient(mock_transport).authenticate()

    def test_server_error(self, mock_transport):
        mock_transport.send.return_value = make_response(502, text="Bad Gateway")
        with pytest.raises(RemoteServerError):
            TrackerClient(mock_transport).authenticate()

    def test_network_failure(self, mock_transport):
        mock_transport.send.side_effect = NetworkError("Name or service not known")
        with pytest.raises(NetworkUnavailable):
            TrackerClient(mock_transport).authenticate()

    def test_tls_failure(self, mock_transport):
        mock_transport.send.side_effect = TlsError("certificate verify failed")
        with pytest.raises(UntrustedCertificate):
            TrackerClient(mock_transport).authenticate()


class TestListAssignedIssues:
    """Tests for TrackerClient.list_assigned_issues."""

    def test_single_page(self, mock_transport, search_response):
        mock_transport.send.return_value = search_response
        issues = TrackerClient(mock_transport).list_assigned_issues()

        assert [i.key for i in issues] == ["PROJ-123", "PROJ-124"]
        assert issues[0].status_name == "In Progress"
        assert issues[0].assignee.display_name == "Dev User"
        assert issues[1].assignee is None

        method, path = mock_transport.send.call_args[0]
        params = mock_transport.send.call_args[1]["params"]
        assert (method, path) == ("GET", "rest/api/3/search")
        assert params["jql"] == ASSIGNED_ISSUES_JQL
        assert params["startAt"] == 0

    def test_pagination(self, mock_transport):
        mock_transport.send.side_effect = [
            make_response(200, {"total": 3, "issues": [issue_payload("A-1"), issue_payload("A-2")]}),
            make_response(200, {"total": 3, "issues": [issue_payload("A-3")]}),
        ]
        issues = TrackerClient(mock_transport).list_assigned_issues()

        assert [i.key for i in issues] == ["A-1", "A-2", "A-3"]
        assert mock_transport.send.call_count == 2
        assert mock_transport.send.call_args_list[1][1]["params"]["startAt"] == 2

    def test_empty(self, mock_transport):
        mock_transport.send.return_value = make_response(200, {"total": 0, "issues": []})
        assert TrackerClient(mock_transport).list_assigned_issues() == []

    def test_missing_issues_list(self, mock_transport):
        mock_transport.send.return_value = make_response(200, {"total": 0})
        with pytest.raises(ProtocolMismatch):
            TrackerClient(mock_transport).list_assigned_issues()

    def test_malformed_issue(self, mock_transport):
        mock_transport.send.return_value = make_response(200, {"total": 1, "issues": [{"id": "1"}]})
        with pytest.raises(ProtocolMismatch):
            TrackerClient(mock_transport).list_assigned_issues()

    def test_forbidden(self, mock_transport):
        mock_transport.send.return_value = make_response(403)
        with pytest.raises(InsufficientPermission):
            TrackerClient(mock_transport).list_assigned_issues()


class TestSubmitWorklog:
    """Tests for TrackerClient.submit_worklog."""

    @pytest.fixture
    def submission(self):
        return WorklogSubmission(
            issue_key="PROJ-123",
            started_at=datetime(2025, 12, 31, 9, 0, tzinfo=TAIPEI),
            duration_spec="1h",
            description="Code review",
        )

    def test_v3_payload(self, mock_transport, worklog_response, submission):
        mock_transport.send.return_value = worklog_response
        receipt = TrackerClient(mock_transport).submit_worklog(submission)

        method, path = mock_transport.send.call_args[0]
        payload = mock_transport.send.call_args[1]["json"]
        assert (method, path) == ("POST", "rest/api/3/issue/PROJ-123/worklog")
        assert payload["started"] == "2025-12-31T09:00:00.000+0800"
        assert payload["timeSpent"] == "1h"
        assert payload["comment"]["type"] == "doc"
        assert payload["comment"]["content"][0]["content"][0]["text"] == "Code review"

        assert receipt.id == "10001"
        assert receipt.issue_id == "20001"
        assert receipt.time_spent_seconds == 3600

    def test_v2_plain_comment(self, mock_transport, worklog_response, submission):
        mock_transport.send.return_value = worklog_response
        TrackerClient(mock_transport, api_version=2).submit_worklog(submission)

        payload = mock_transport.send.call_args[1]["json"]
        assert payload["comment"] == "Code review"

    def test_no_comment_when_empty(self, mock_transport, worklog_response, submission):
        mock_transport.send.return_value = worklog_response
        submission.description = ""
        TrackerClient(mock_transport).submit_worklog(submission)

        assert "comment" not in mock_transport.send.call_args[1]["json"]

    def test_utc_started(self, mock_transport, worklog_response, submission):
        mock_transport.send.return_value = worklog_response
        submission.started_at = datetime(2025, 12, 31, 1, 0, tzinfo=timezone.utc)
        TrackerClient(mock_transport).submit_worklog(submission)

        assert mock_transport.send.call_args[1]["json"]["started"] == "2025-12-31T01:00:00.000+0000"

    def test_unknown_issue(self, mock_transport, submission):
        mock_transport.send.return_value = make_response(404, {"errorMessages": ["Issue does not exist"]})
        with pytest.raises(NotFound):
            TrackerClient(mock_transport).submit_worklog(submission)

    @pytest.mark.parametrize("issue_key", ["PROJ-1/../PROJ-2", "PROJ-1?notifyUsers=false", "../myself"])
    def test_path_injection_rejected(self, mock_transport, submission, issue_key):
        """A malformed key never reaches the transport."""
        submission.issue_key = issue_key
        with pytest.raises(NotFound):
            TrackerClient(mock_transport).submit_worklog(submission)
        mock_transport.send.assert_not_called()

    def test_response_without_id(self, mock_transport, submission):
        mock_transport.send.return_value = make_response(201, {"self": "https://..."})
        with pytest.raises(ProtocolMismatch):
            TrackerClient(mock_transport).submit_worklog(submission)
