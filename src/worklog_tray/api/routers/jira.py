"""
Jira Router - connect, assigned issues, worklogs
"""

from fastapi import APIRouter, Depends

from ...commands import Commands
from ..deps import get_commands
from ..models.schemas import (
    AssigneeResponse,
    ConnectRequest,
    ConnectResponse,
    IssueResponse,
    SavedCredentialsResponse,
    SuccessResponse,
    WorklogRequest,
    WorklogResponse,
)

router = APIRouter()


@router.post("/connect", response_model=ConnectResponse)
def connect_to_jira(request: ConnectRequest, commands: Commands = Depends(get_commands)):
    """Authenticate against Jira and keep the session"""
    connected = commands.connect_to_jira(
        base_url=request.base_url,
        access_token=request.access_token,
        identity=request.identity,
    )
    session = commands.session_state.current()
    base_url = session.credentials.base_url if session else request.base_url
    return ConnectResponse(connected=connected, base_url=base_url)


@router.get("/issues", response_model=list[IssueResponse])
def get_assigned_issues(commands: Commands = Depends(get_commands)):
    """Issues assigned to the current user that are not done"""
    issues = commands.get_assigned_issues()
    return [
        IssueResponse(
            key=issue.key,
            summary=issue.summary,
            status_name=issue.status_name,
            assignee=AssigneeResponse(
                display_name=issue.assignee.display_name,
                email=issue.assignee.email,
            ) if issue.assignee else None,
        )
        for issue in issues
    ]


@router.post("/worklogs", response_model=WorklogResponse, status_code=201)
def create_worklog(request: WorklogRequest, commands: Commands = Depends(get_commands)):
    """Create one worklog on an issue"""
    receipt = commands.create_worklog(
        issue_key=request.issue_key,
        description=request.description,
        started=request.started,
        time_spent=request.time_spent,
    )
    return WorklogResponse(
        id=receipt.id,
        issue_key=request.issue_key,
        issue_id=receipt.issue_id,
        started=receipt.started,
        time_spent=request.time_spent.strip(),
        time_spent_seconds=receipt.time_spent_seconds,
    )


@router.post("/disconnect", response_model=SuccessResponse)
def disconnect_from_jira(commands: Commands = Depends(get_commands)):
    """Forget the current session"""
    commands.disconnect_from_jira()
    return SuccessResponse(message="Disconnected")


@router.get("/saved-credentials", response_model=SavedCredentialsResponse)
def saved_credentials(commands: Commands = Depends(get_commands)):
    """Last used connection details, without the token"""
    credentials = commands.load_saved_credentials()
    theme = commands.load_theme()
    if credentials is None:
        return SavedCredentialsResponse(theme=theme)
    return SavedCredentialsResponse(
        base_url=credentials.base_url,
        identity=credentials.identity or "",
        has_token=bool(credentials.secret),
        theme=theme,
    )
