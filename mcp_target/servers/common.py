"""Argument models and precondition checks shared by the tool servers."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..errors import ToolError
from ..registry import ToolContext
from ..session_store import AuthSession


class ToolArguments(BaseModel):
    """Base for tool argument models: camelCase on the wire, no unknown fields."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class EmptyArguments(ToolArguments):
    pass


class SessionArguments(ToolArguments):
    session_id: str = Field(
        alias="sessionId",
        min_length=1,
        description="Session ID returned by create-session",
    )


def require_authenticated(context: ToolContext, session_id: Optional[str],
                          action: str) -> AuthSession:
    """Return the authenticated session or raise a ToolError saying what to do."""
    if not session_id:
        raise ToolError(f"sessionId is required to {action}. Call create-session first.")

    session = context.sessions.get(session_id)
    if session is None:
        raise ToolError(
            f"Session {session_id} was not found or has expired. Call create-session first."
        )
    if not session.authenticated or not session.identity:
        raise ToolError(
            f"Sign in before you {action}. Call authenticate-user with sessionId {session_id}."
        )
    return session
