#!/usr/bin/env python3
"""
Worklog Tray CLI

使用 Typer + Rich；serve 啟動本機 API、每日提醒與系統匣圖示
"""

import logging
import threading
from datetime import datetime
from typing import Optional

import typer
import uvicorn
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

from .commands import Commands
from .config import Config, CredentialStore, config_file, setup_logging
from .errors import ClientError
from .messages import describe_error
from .presentation import LogNotifier
from .reminder import local_now, next_occurrence, validate_fire_time
from .tracker_api import TrackerClient

app = typer.Typer(
    name="worklog-tray",
    help="在系統匣記錄 Jira worklog，每天提醒填寫",
    no_args_is_help=True,
)
console = Console()
logger = logging.getLogger(__name__)


def load_configured() -> Config:
    """載入配置；尚未設定時提示執行 setup"""
    config = Config.load()
    if not config.is_configured():
        console.print("[red]✗ 尚未配置 Jira 連接，請先執行 worklog-tray setup[/red]")
        raise typer.Exit(1)
    return config


def fail(error: ClientError):
    console.print(f"[red]✗ {describe_error(error)}[/red]")
    console.print(f"[dim]{error.kind}: {error}[/dim]")
    raise typer.Exit(1)


def connected_commands(config: Config) -> Commands:
    """用已儲存的憑證建立連線（不啟動提醒排程）"""
    commands = Commands(config)
    try:
        commands.session_state.connect(config.get_credentials())
    except ClientError as e:
        fail(e)
    return commands


@app.command()
def setup():
    """配置 Jira 連接資訊"""
    console.print(Panel.fit(
        "[bold]Jira 連接配置[/bold]",
        title="⚙️",
    ))

    config = Config.load()

    config.jira_url = Prompt.ask("Jira URL", default=config.jira_url)

    # 選擇認證方式
    console.print("\n認證方式:")
    console.print("  [cyan]1.[/cyan] PAT (Personal Access Token) - Jira Server")
    console.print("  [cyan]2.[/cyan] Basic Auth (Email + API Token) - Jira Cloud")

    auth_choice = Prompt.ask("選擇", default="2" if config.jira_email else "1")

    if auth_choice == "2":
        config.jira_email = Prompt.ask("Jira Email", default=config.jira_email)
        new_token = Prompt.ask("Jira API Token", password=True, default="")
    else:
        config.jira_email = ""
        new_token = Prompt.ask("Jira PAT", password=True, default="")
    if new_token:
        config.jira_api_token = new_token

    config.insecure_tls = Confirm.ask("接受自簽憑證 (僅限信任的內部伺服器)?", default=config.insecure_tls)

    reminder_at = Prompt.ask("每日提醒時間 (HH:MM)", default=f"{config.reminder_hour:02d}:{config.reminder_minute:02d}")
    try:
        hour, minute = (int(part) for part in reminder_at.split(":"))
        validate_fire_time(hour, minute)
    except ValueError:
        console.print(f"[yellow]⚠ 無效的時間 {reminder_at}，保留原設定[/yellow]")
    else:
        config.reminder_hour, config.reminder_minute = hour, minute

    config.save()
    console.print("\n[green]✓ 配置已保存[/green]")

    if not config.is_configured():
        console.print("[yellow]⚠ 尚未輸入 token，略過連接測試[/yellow]")
        return

    # 測試連接
    console.print("\n測試連接...")
    client = TrackerClient.from_credentials(
        config.get_credentials(),
        insecure_tls=config.insecure_tls,
        timeout=config.request_timeout,
        api_version=config.api_version,
    )
    try:
        if client.authenticate():
            console.print("[green]✓ 連接成功[/green]")
        else:
            console.print("[red]✗ Jira 拒絕了這組憑證[/red]")
    except ClientError as e:
        console.print(f"[red]✗ 連接失敗: {describe_error(e)}[/red]")
    finally:
        client.close()


@app.command()
def issues():
    """列出指派給我且未完成的 issue"""
    config = load_configured()
    commands = connected_commands(config)
    try:
        assigned = commands.get_assigned_issues()
    except ClientError as e:
        fail(e)
    finally:
        commands.shutdown()

    if not assigned:
        console.print("[yellow]沒有指派給你的未完成 issue[/yellow]")
        return

    table = Table(title="📋 Assigned issues")
    table.add_column("Key", style="cyan")
    table.add_column("Summary")
    table.add_column("Status", style="green")
    table.add_column("Assignee", style="dim")

    for issue in assigned:
        table.add_row(
            issue.key,
            issue.summary,
            issue.status_name,
            issue.assignee.display_name if issue.assignee else "",
        )

    console.print(table)


@app.command("log")
def log_work(
    issue_key: str = typer.Argument(..., help="Issue key, e.g. PROJ-123"),
    time_spent: str = typer.Argument(..., help="Time spent, e.g. 30m, 2h, 1d"),
    description: str = typer.Option("", "--description", "-d", help="Worklog comment"),
    started: Optional[str] = typer.Option(
        None, "--started", "-s",
        help="Start time with UTC offset (default: now), e.g. 2025-12-31T09:00:00+08:00",
    ),
):
    """新增一筆 worklog"""
    config = load_configured()
    if started is None:
        started = datetime.now().astimezone().isoformat(timespec="seconds")

    commands = connected_commands(config)
    try:
        receipt = commands.create_worklog(issue_key, description, started, time_spent)
    except ClientError as e:
        fail(e)
    finally:
        commands.shutdown()

    console.print(f"[green]✓ 已記錄 {time_spent} 到 {issue_key.strip()} (worklog {receipt.id})[/green]")


@app.command()
def status():
    """顯示目前配置與下一次提醒時間"""
    config = Config.load()

    table = Table(title="⚙️ Worklog Tray", show_header=False)
    table.add_column("Item", style="cyan")
    table.add_column("Value")

    table.add_row("Config file", str(config_file()))
    table.add_row("Jira URL", config.jira_url or "[red]未設定[/red]")
    table.add_row("Auth", f"Basic ({config.jira_email})" if config.jira_email else "PAT / Bearer")
    table.add_row("Token", "[green]✓ 已設定[/green]" if config.jira_api_token else "[red]未設定[/red]")
    table.add_row("API version", str(config.api_version))
    if config.insecure_tls:
        table.add_row("TLS", "[yellow]不驗證憑證[/yellow]")
    table.add_row("Reminder", f"{config.reminder_hour:02d}:{config.reminder_minute:02d}")
    next_fire = next_occurrence(local_now(), config.reminder_hour, config.reminder_minute)
    table.add_row("Next reminder", next_fire.strftime("%Y-%m-%d %H:%M"))
    table.add_row("Local API", f"http://{config.api_host}:{config.api_port}")

    console.print(table)


@app.command()
def serve(
    no_tray: bool = typer.Option(False, "--no-tray", help="不顯示系統匣圖示（headless）"),
    host: Optional[str] = typer.Option(None, "--host", help="API host (預設使用配置)"),
    port: Optional[int] = typer.Option(None, "--port", help="API port (預設使用配置)"),
):
    """啟動本機 API、每日提醒與系統匣圖示"""
    from .api import create_app

    config = Config.load()
    setup_logging(config.log_level)

    commands = Commands(config, store=CredentialStore())
    fastapi_app = create_app(commands)
    server = uvicorn.Server(uvicorn.Config(
        fastapi_app,
        host=host or config.api_host,
        port=port or config.api_port,
        log_config=None,
    ))

    console.print(f"[green]✓ Local API: http://{server.config.host}:{server.config.port}/api/docs[/green]")

    if no_tray:
        commands.bridge.set_notifier(LogNotifier())
        server.run()
        return

    from .tray import TrayApp

    # uvicorn 在背景執行緒；系統匣的 message loop 必須留在主執行緒
    server_thread = threading.Thread(target=server.run, name="worklog-api", daemon=True)

    def stop_server():
        server.should_exit = True

    tray = TrayApp(commands, on_quit=stop_server)
    server_thread.start()
    try:
        tray.run()
    finally:
        stop_server()
        server_thread.join(timeout=5)
        logger.info("Worklog tray stopped")


if __name__ == "__main__":
    app()
