"""
Jira REST API 整合模組

支援:
- Jira Cloud Basic Auth (email + API token)
- Jira Server PAT (token-only)
- 查詢指派給自己的 issue、新增 worklog
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional
from urllib.parse import quote

import requests

from .errors import (
    InvalidDuration,
    InvalidTimestamp,
    NotFound,
    ProtocolMismatch,
    TransportError,
    classify_status,
    classify_transport_error,
)
from .transport import DEFAULT_TIMEOUT, HttpTransport, build_auth_header, normalize_base_url

logger = logging.getLogger(__name__)

ASSIGNED_ISSUES_JQL = "assignee = currentUser() AND statusCategory != Done ORDER BY updated DESC"
ISSUE_FIELDS = "summary,status,assignee"
PAGE_SIZE = 50

# magnitude + unit, e.g. "2h", "30m", "1.5d"
DURATION_PATTERN = re.compile(r"^\d+(\.\d+)?[mhd]$")

# project key + number, e.g. "PROJ-123"
ISSUE_KEY_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9_]*-\d+$")

_STARTED_FORMATS = (
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M%z",
)

_IDENTITY_KEYS = ("accountId", "name", "key", "emailAddress", "displayName")


@dataclass(frozen=True)
class Credentials:
    """連線憑證；secret 不出現在 repr 中"""
    base_url: str
    secret: str = field(repr=False)
    identity: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "base_url", normalize_base_url(self.base_url))
        identity = (self.identity or "").strip() or None
        object.__setattr__(self, "identity", identity)

    @property
    def token_only(self) -> bool:
        return self.identity is None


@dataclass
class Assignee:
    display_name: str
    email: str = ""


@dataclass
class Issue:
    """指派給目前使用者的 issue"""
    key: str                # e.g., "PROJ-123"
    summary: str
    status_name: str
    assignee: Optional[Assignee] = None


@dataclass
class WorklogSubmission:
    """要上傳的 worklog 項目"""
    issue_key: str          # e.g., "PROJ-123"
    started_at: datetime    # 必須帶時區
    duration_spec: str      # e.g., "2h", "30m", "1d"，原樣送出
    description: str = ""


@dataclass
class WorklogReceipt:
    """Jira 建立 worklog 後的回應"""
    id: str
    issue_id: str = ""
    started: str = ""
    time_spent_seconds: Optional[int] = None


def validate_duration_spec(duration_spec: str) -> str:
    """
    檢查時間格式 (數字 + m/h/d)

    只做格式檢查，不做單位換算；換算交給 Jira。
    """
    token = (duration_spec or "").strip()
    if not DURATION_PATTERN.match(token) or float(token[:-1]) <= 0:
        raise InvalidDuration(
            f"Invalid time format: {duration_spec!r}. Use 'm' for minutes, 'h' for hours, 'd' for days"
        )
    return token


def validate_issue_key(issue_key: str) -> str:
    """檢查 issue key 格式；不合格的 key 不可能存在，直接視為 NotFound"""
    key = (issue_key or "").strip()
    if not ISSUE_KEY_PATTERN.match(key):
        raise NotFound(f"Invalid issue key: {issue_key!r}")
    return key


def parse_started(value: str) -> datetime:
    """解析帶有 UTC offset 的 ISO-8601 時間字串"""
    text = (value or "").strip()
    if text.endswith("Z"):
        text = text[:-1] + "+0000"
    for fmt in _STARTED_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    raise InvalidTimestamp(f"Invalid started timestamp (explicit UTC offset required): {value!r}")


def format_started(started_at: datetime) -> str:
    """格式化為 Jira 接受的格式: 2025-12-31T09:00:00.000+0800"""
    if started_at.tzinfo is None or started_at.utcoffset() is None:
        raise InvalidTimestamp("started_at must be timezone-aware")
    millis = started_at.microsecond // 1000
    return started_at.strftime("%Y-%m-%dT%H:%M:%S") + f".{millis:03d}" + started_at.strftime("%z")


def build_transport(credentials: Credentials, insecure_tls: bool = False,
                    timeout: float = DEFAULT_TIMEOUT) -> HttpTransport:
    return HttpTransport(
        base_url=credentials.base_url,
        auth_header=build_auth_header(credentials.identity, credentials.secret),
        insecure_tls=insecure_tls,
        timeout=timeout,
    )


class TrackerClient:
    """Jira REST API 客戶端"""

    def __init__(self, transport: HttpTransport, api_version: int = 3):
        """
        初始化 Jira 客戶端

        Args:
            transport: 已設定認證的 HttpTransport
            api_version: REST API 版本，Cloud 為 3，舊版 Server 為 2
        """
        self.transport = transport
        self.api_version = api_version

    @classmethod
    def from_credentials(cls, credentials: Credentials, insecure_tls: bool = False,
                         timeout: float = DEFAULT_TIMEOUT, api_version: int = 3) -> "TrackerClient":
        return cls(build_transport(credentials, insecure_tls, timeout), api_version)

    @property
    def base_url(self) -> str:
        return self.transport.base_url

    def _path(self, resource: str) -> str:
        return f"rest/api/{self.api_version}/{resource}"

    def _send(self, method: str, resource: str, **kwargs) -> requests.Response:
        try:
            return self.transport.send(method, self._path(resource), **kwargs)
        except TransportError as e:
            raise classify_transport_error(e) from e

    @staticmethod
    def _json(resp: requests.Response) -> Any:
        try:
            return resp.json()
        except ValueError as e:
            raise ProtocolMismatch(f"Invalid JSON body (HTTP {resp.status_code})", resp.status_code) from e

    def _request_json(self, method: str, resource: str, **kwargs) -> Any:
        resp = self._send(method, resource, **kwargs)
        if not resp.ok:
            raise classify_status(resp.status_code, resp.text)
        return self._json(resp)

    def get_myself(self) -> dict:
        """獲取當前用戶資訊"""
        data = self._request_json("GET", "myself")
        if not isinstance(data, dict):
            raise ProtocolMismatch("Unexpected /myself payload")
        return data

    def authenticate(self) -> bool:
        """
        測試認證

        Returns:
            True: 2xx 且回應中有可辨識的使用者資訊
            False: HTTP 401 / 403
        """
        resp = self._send("GET", "myself")
        if resp.status_code in (401, 403):
            logger.info("Authentication rejected by %s (HTTP %d)", self.base_url, resp.status_code)
            return False
        if not resp.ok:
            raise classify_status(resp.status_code, resp.text)

        data = self._json(resp)
        if not isinstance(data, dict) or not any(data.get(k) for k in _IDENTITY_KEYS):
            raise ProtocolMismatch("Response from /myself has no user identity")

        # Jira Server 可能使用 'name' 或 'key' 而不是 'accountId'
        who = data.get("displayName") or data.get("name") or data.get("accountId")
        logger.info("Authenticated to %s as %s", self.base_url, who)
        return True

    def list_assigned_issues(self) -> list[Issue]:
        """取得指派給自己且未完成的 issue（自動翻頁）"""
        issues: list[Issue] = []
        start_at = 0

        while True:
            params = {
                "jql": ASSIGNED_ISSUES_JQL,
                "fields": ISSUE_FIELDS,
                "startAt": start_at,
                "maxResults": PAGE_SIZE,
            }
            data = self._request_json("GET", "search", params=params)
            if not isinstance(data, dict) or not isinstance(data.get("issues"), list):
                raise ProtocolMismatch("Search response has no 'issues' list")

            page = [self._parse_issue(raw) for raw in data["issues"]]
            issues.extend(page)

            total = data.get("total")
            if not page or not isinstance(total, int) or len(issues) >= total:
                break
            start_at += len(page)

        logger.info("Fetched %d assigned issues", len(issues))
        return issues

    @staticmethod
    def _parse_issue(raw: Any) -> Issue:
        try:
            fields = raw["fields"]
            assignee_raw = fields.get("assignee")
            assignee = None
            if assignee_raw:
                assignee = Assignee(
                    display_name=assignee_raw.get("displayName", ""),
                    email=assignee_raw.get("emailAddress", ""),
                )
            return Issue(
                key=raw["key"],
                summary=fields.get("summary") or "",
                status_name=(fields.get("status") or {}).get("name", ""),
                assignee=assignee,
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise ProtocolMismatch(f"Malformed issue in search response: {e}") from e

    def _comment_body(self, description: str) -> Any:
        if self.api_version >= 3:
            # API v3 的 comment 需要 Atlassian Document Format
            return {
                "type": "doc",
                "version": 1,
                "content": [{
                    "type": "paragraph",
                    "content": [{"type": "text", "text": description}],
                }],
            }
        return description

    def submit_worklog(self, submission: WorklogSubmission) -> WorklogReceipt:
        """添加 worklog 到 Jira issue；timeSpent 原樣送出"""
        issue_key = validate_issue_key(submission.issue_key)
        payload: dict[str, Any] = {
            "started": format_started(submission.started_at),
            "timeSpent": submission.duration_spec,
        }
        if submission.description:
            payload["comment"] = self._comment_body(submission.description)

        data = self._request_json("POST", f"issue/{quote(issue_key, safe='')}/worklog", json=payload)
        if not isinstance(data, dict) or "id" not in data:
            raise ProtocolMismatch("Worklog response has no 'id'")

        receipt = WorklogReceipt(
            id=str(data["id"]),
            issue_id=str(data.get("issueId", "")),
            started=data.get("started", ""),
            time_spent_seconds=data.get("timeSpentSeconds"),
        )
        logger.info("Worklog %s created on %s (%s)", receipt.id, issue_key,
                    submission.duration_spec)
        return receipt

    def close(self):
        self.transport.close()


__all__ = [
    "Assignee",
    "Credentials",
    "Issue",
    "TrackerClient",
    "WorklogReceipt",
    "WorklogSubmission",
    "build_transport",
    "format_started",
    "parse_started",
    "validate_duration_spec",
]
