"""
Error taxonomy for the tracker connection.

TransportError covers what can go wrong below HTTP (socket, TLS, timeout).
ClientError is what callers of the tracker client and the session see;
every subclass carries a stable ``kind`` string that the presentation
layer and the HTTP API map to messages and status codes.
"""

from typing import Optional


class TransportError(Exception):
    """請求未取得任何 HTTP 回應"""
    kind = "transport"


class NetworkError(TransportError):
    """DNS 或連線失敗"""
    kind = "network"


class TransportTimeout(TransportError):
    kind = "timeout"


class TlsError(TransportError):
    """憑證驗證失敗"""
    kind = "tls"


class ClientError(Exception):
    """Tracker 操作失敗的共同基底類別"""
    kind = "client_error"

    def __init__(self, message: str = "", status_code: Optional[int] = None):
        super().__init__(message or self.kind)
        self.status_code = status_code


class NetworkUnavailable(ClientError):
    kind = "network_unavailable"


class TimedOut(ClientError):
    kind = "timed_out"


class UntrustedCertificate(ClientError):
    kind = "untrusted_certificate"


class InvalidCredentials(ClientError):
    kind = "invalid_credentials"


class InsufficientPermission(ClientError):
    kind = "insufficient_permission"


class NotFound(ClientError):
    kind = "not_found"


class RemoteServerError(ClientError):
    kind = "remote_server_error"


class ProtocolMismatch(ClientError):
    kind = "protocol_mismatch"


class NotAuthenticated(ClientError):
    kind = "not_authenticated"


class SessionSuperseded(ClientError):
    """connect 完成前已被後續的 connect/disconnect 取代"""
    kind = "session_superseded"


class InvalidDuration(ClientError):
    kind = "invalid_duration"


class InvalidTimestamp(ClientError):
    kind = "invalid_timestamp"


class InvalidPreference(ValueError):
    """偏好設定值不在允許範圍內 (例如 theme)"""
    kind = "invalid_value"


class PresentationUnavailable(Exception):
    """No foreground surface is attached; the request is dropped."""
    kind = "presentation_unavailable"


_TRANSPORT_TO_CLIENT = {
    NetworkError: NetworkUnavailable,
    TransportTimeout: TimedOut,
    TlsError: UntrustedCertificate,
}


def classify_transport_error(error: TransportError) -> ClientError:
    """把 transport 層錯誤轉成 ClientError"""
    for transport_type, client_type in _TRANSPORT_TO_CLIENT.items():
        if isinstance(error, transport_type):
            return client_type(str(error))
    return NetworkUnavailable(str(error))


def classify_status(status_code: int, text: str = "") -> ClientError:
    """依 HTTP status 分類錯誤（僅用於非 2xx 回應）"""
    detail = f"HTTP {status_code}"
    if text:
        detail = f"{detail} - {text[:200]}"

    if status_code == 401:
        return InvalidCredentials(detail, status_code)
    if status_code == 403:
        return InsufficientPermission(detail, status_code)
    if status_code == 404:
        return NotFound(detail, status_code)
    if 500 <= status_code < 600:
        return RemoteServerError(detail, status_code)
    return ProtocolMismatch(detail, status_code)
