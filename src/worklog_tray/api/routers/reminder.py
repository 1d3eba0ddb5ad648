"""
Reminder Router - daily reminder status
"""

from fastapi import APIRouter, Depends

from ...commands import Commands
from ..deps import get_commands
from ..models.schemas import ReminderStatusResponse

router = APIRouter()


@router.get("", response_model=ReminderStatusResponse)
def reminder_status(commands: Commands = Depends(get_commands)):
    status = commands.reminder_status()
    return ReminderStatusResponse(
        state=status.state.value,
        fire_hour=status.fire_hour,
        fire_minute=status.fire_minute,
        next_fire_at=status.next_fire_at,
    )
