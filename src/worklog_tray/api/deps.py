"""
Shared FastAPI dependencies
"""

from fastapi import Request

from ..commands import Commands


def get_commands(request: Request) -> Commands:
    """The Commands instance owned by the running app"""
    return request.app.state.commands
