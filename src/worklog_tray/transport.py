"""
HTTP transport for the Jira REST API.

One requests.Session per connection: fixed base URL, the Authorization
header computed once, a request timeout and the TLS trust policy.
No retries; a failed attempt surfaces immediately.
"""

import base64
import logging
from typing import Any, Optional

import requests
import urllib3
from requests.adapters import HTTPAdapter

from .errors import NetworkError, TlsError, TransportTimeout

logger = logging.getLogger(__name__)

# 網路請求預設 timeout（秒）
DEFAULT_TIMEOUT = 30


def normalize_base_url(base_url: str) -> str:
    return base_url.strip().rstrip('/')


def build_auth_header(identity: Optional[str], secret: str) -> str:
    """
    產生 Authorization header

    - 有 identity (email): Jira Cloud Basic auth (email:token)
    - 無 identity: Jira Server PAT, Bearer token
    """
    if identity:
        auth_string = base64.b64encode(f"{identity}:{secret}".encode()).decode()
        return f"Basic {auth_string}"
    return f"Bearer {secret}"


class HttpTransport:
    """Jira REST API 的 HTTP 傳輸層"""

    def __init__(self, base_url: str, auth_header: str, insecure_tls: bool = False,
                 timeout: float = DEFAULT_TIMEOUT):
        self.base_url = normalize_base_url(base_url)
        self.timeout = timeout
        self.insecure_tls = insecure_tls

        self.session = requests.Session()
        adapter = HTTPAdapter(max_retries=0)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)
        self.session.headers.update({
            "Authorization": auth_header,
            "Content-Type": "application/json",
            "Accept": "application/json",
        })

        if insecure_tls:
            # 使用者明確選擇：接受自簽或未驗證的憑證
            self.session.verify = False
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
            logger.warning("TLS certificate verification disabled for %s", self.base_url)

    def url_for(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def send(self, method: str, path: str, params: Optional[dict] = None,
             json: Any = None, headers: Optional[dict] = None) -> requests.Response:
        """
        送出單一請求；HTTP 層以下的失敗轉為 TransportError

        headers 只套用在這個請求，會與 session 的預設 headers 合併
        """
        url = self.url_for(path)
        try:
            return self.session.request(
                method,
                url,
                params=params,
                json=json,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.exceptions.SSLError as e:
            logger.warning("TLS error on %s %s: %s", method, url, e)
            raise TlsError(str(e)) from e
        except requests.exceptions.Timeout as e:
            logger.warning("Timeout after %ss on %s %s", self.timeout, method, url)
            raise TransportTimeout(str(e)) from e
        except requests.exceptions.RequestException as e:
            logger.warning("Network error on %s %s: %s", method, url, e)
            raise NetworkError(str(e)) from e

    def close(self):
        self.session.close()
