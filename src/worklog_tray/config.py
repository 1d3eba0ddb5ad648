"""
配置管理模組
"""

import json
import logging
import os
from dataclasses import asdict, dataclass
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from rich.logging import RichHandler

from .tracker_api import Credentials


def config_dir() -> Path:
    """設定目錄，可用 WORKLOG_TRAY_HOME 覆寫"""
    override = os.environ.get("WORKLOG_TRAY_HOME")
    if override:
        return Path(override)
    return Path.home() / ".worklog-tray"


def config_file() -> Path:
    return config_dir() / "config.json"


def log_file() -> Path:
    return config_dir() / "worklog-tray.log"


@dataclass
class Config:
    """應用程式配置"""
    jira_url: str = ""
    jira_email: str = ""                  # Email (Cloud Basic Auth)，空則使用 token-only
    jira_api_token: str = ""              # API Token / PAT
    api_version: int = 3                  # Jira REST API 版本
    insecure_tls: bool = False            # 接受自簽憑證（公司內部環境）
    request_timeout: float = 30.0         # 單次請求 timeout（秒）
    # 每日提醒
    reminder_hour: int = 17
    reminder_minute: int = 0
    # 顯示偏好
    theme: str = "dark"                   # "dark" or "light"
    # 本機 API
    api_host: str = "127.0.0.1"
    api_port: int = 8765
    log_level: str = "INFO"

    @classmethod
    def load(cls) -> "Config":
        """載入配置"""
        path = config_file()
        if path.exists():
            try:
                with open(path) as f:
                    data = json.load(f)
                    return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})
            except (OSError, ValueError, TypeError) as e:
                logging.getLogger(__name__).warning("Ignoring unreadable config %s: %s", path, e)
        return cls()

    def save(self):
        """儲存配置"""
        path = config_file()
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w') as f:
            json.dump(asdict(self), f, indent=2)
        # 設定檔案權限為僅擁有者可讀寫
        path.chmod(0o600)

    def is_configured(self) -> bool:
        """檢查是否已配置必要項目"""
        return bool(self.jira_url and self.jira_api_token)

    def get_credentials(self) -> Optional[Credentials]:
        if not self.is_configured():
            return None
        return Credentials(
            base_url=self.jira_url,
            secret=self.jira_api_token,
            identity=self.jira_email or None,
        )


class CredentialStore:
    """上次成功連線的憑證與顯示偏好（存於 config.json）"""

    def load_saved(self) -> Optional[Credentials]:
        return Config.load().get_credentials()

    def save(self, credentials: Credentials):
        config = Config.load()
        config.jira_url = credentials.base_url
        config.jira_email = credentials.identity or ""
        config.jira_api_token = credentials.secret
        config.save()

    def load_theme(self) -> str:
        return Config.load().theme

    def save_theme(self, theme: str):
        config = Config.load()
        config.theme = theme
        config.save()


def setup_logging(level: str = "INFO", to_file: bool = True):
    """Console logging through rich, plus a rotating file in the config dir."""
    handlers: list[logging.Handler] = [RichHandler(rich_tracebacks=True, show_path=False)]
    if to_file:
        path = log_file()
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(path, maxBytes=1_000_000, backupCount=2, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
        handlers.append(file_handler)

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(message)s",
        datefmt="[%X]",
        handlers=handlers,
        force=True,
    )
    # requests/urllib3 的 debug 訊息會帶出 header
    logging.getLogger("urllib3").setLevel(logging.WARNING)
