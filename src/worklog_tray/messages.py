"""
Human-readable messages for error kinds.

Display mapping only: the core raises typed errors and never inspects
these strings.
"""

ERROR_MESSAGES = {
    "network_unavailable": "Cannot reach the Jira server. Check the URL and your network connection.",
    "timed_out": "Jira did not respond in time. Try again later.",
    "untrusted_certificate": "The Jira server's TLS certificate is not trusted. "
                             "Enable 'accept any certificate' only if you trust this server.",
    "invalid_credentials": "Jira rejected the credentials. Check your email and API token.",
    "insufficient_permission": "Your Jira account is not allowed to do this.",
    "not_found": "The issue does not exist or you cannot access it.",
    "remote_server_error": "Jira reported a server error. Try again later.",
    "protocol_mismatch": "Jira returned an unexpected response. Is the URL pointing to a Jira site?",
    "not_authenticated": "Not connected to Jira. Connect first.",
    "session_superseded": "The connection attempt was cancelled by a newer connect or disconnect.",
    "invalid_duration": "Invalid time format. Use a number followed by m, h or d (e.g. 30m, 2h, 1d).",
    "invalid_timestamp": "Invalid start time. Use an ISO-8601 timestamp with a UTC offset.",
    "invalid_value": "Invalid setting. Theme must be dark or light.",
    "presentation_unavailable": "No window is open.",
}

DEFAULT_MESSAGE = "Unexpected error."


def describe_error(error: Exception) -> str:
    kind = getattr(error, "kind", None)
    return ERROR_MESSAGES.get(kind, DEFAULT_MESSAGE)
