"""Tests for errors module."""

import pytest

from worklog_tray import errors
from worklog_tray.errors import (
    ClientError,
    InsufficientPermission,
    InvalidCredentials,
    NetworkError,
    NetworkUnavailable,
    NotFound,
    ProtocolMismatch,
    RemoteServerError,
    TimedOut,
    TlsError,
    TransportTimeout,
    UntrustedCertificate,
    classify_status,
    classify_transport_error,
)
from worklog_tray.messages import DEFAULT_MESSAGE, ERROR_MESSAGES, describe_error


class TestClassifyStatus:
    """Tests for HTTP status classification."""

    @pytest.mark.parametrize("status_code,expected", [
        (401, InvalidCredentials),
        (403, InsufficientPermission),
        (404, NotFound),
        (500, RemoteServerError),
        (503, RemoteServerError),
        (400, ProtocolMismatch),
        (302, ProtocolMismatch),
    ])
    def test_status_mapping(self, status_code, expected):
        error = classify_status(status_code, "body")
        assert type(error) is expected
        assert error.status_code == status_code

    def test_detail_truncates_body(self):
        error = classify_status(500, "x" * 1000)
        assert str(error) == "HTTP 500 - " + "x" * 200

    def test_detail_without_body(self):
        assert str(classify_status(404)) == "HTTP 404"


class TestClassifyTransportError:
    """Tests for transport error classification."""

    @pytest.mark.parametrize("transport_error,expected", [
        (NetworkError("dns"), NetworkUnavailable),
        (TransportTimeout("slow"), TimedOut),
        (TlsError("self-signed"), UntrustedCertificate),
    ])
    def test_mapping(self, transport_error, expected):
        error = classify_transport_error(transport_error)
        assert isinstance(error, expected)
        assert str(error) == str(transport_error)


class TestMessages:
    """Every error kind has a display message."""

    def test_all_kinds_have_messages(self):
        kinds = {
            obj.kind
            for obj in vars(errors).values()
            if isinstance(obj, type) and issubclass(obj, ClientError) and obj is not ClientError
        }
        kinds.add(errors.PresentationUnavailable.kind)
        assert kinds <= set(ERROR_MESSAGES)

    def test_describe_error(self):
        assert describe_error(NotFound("HTTP 404")) == ERROR_MESSAGES["not_found"]
        assert describe_error(RuntimeError("boom")) == DEFAULT_MESSAGE
