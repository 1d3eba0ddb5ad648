"""
Window Router - background mode, notifications and the event stream
"""

import json

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from ...commands import Commands
from ...presentation import ForegroundSurface, PresentationBridge
from ..deps import get_commands
from ..models.schemas import SuccessResponse, ThemeUpdate

router = APIRouter()

KEEPALIVE_SECONDS = 15.0


def event_stream(bridge: PresentationBridge, surface: ForegroundSurface,
                 keepalive: float = KEEPALIVE_SECONDS):
    """Server-sent events for one attached surface; detaches when the client goes away."""
    try:
        yield ": connected\n\n"
        while True:
            event = surface.next_event(timeout=keepalive)
            if event is None:
                yield ": keep-alive\n\n"
                continue
            yield f"event: {event.name}\ndata: {json.dumps(event.to_dict())}\n\n"
    finally:
        bridge.detach(surface)


@router.get("/events")
def events(commands: Commands = Depends(get_commands)):
    """Attach this client as a foreground surface and stream events to it"""
    surface = commands.bridge.attach()
    return StreamingResponse(
        event_stream(commands.bridge, surface),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache"},
    )


@router.post("/hide", response_model=SuccessResponse)
def hide_to_tray(commands: Commands = Depends(get_commands)):
    """Hide the window; the service keeps running in the tray"""
    commands.hide_to_tray()
    return SuccessResponse(message="Hidden to tray")


@router.post("/show", response_model=SuccessResponse)
def show_window(commands: Commands = Depends(get_commands)):
    commands.show_window()
    return SuccessResponse(message="Window restored")


@router.post("/test-notification", response_model=SuccessResponse)
def send_test_notification(commands: Commands = Depends(get_commands)):
    """Send a test-notification event through the normal delivery path"""
    commands.send_test_notification()
    return SuccessResponse(message="Test notification sent")


@router.put("/theme", response_model=SuccessResponse)
def update_theme(update: ThemeUpdate, commands: Commands = Depends(get_commands)):
    commands.set_theme(update.theme)
    return SuccessResponse(message=f"Theme set to {update.theme}")
