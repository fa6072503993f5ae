"""Customer authentication tool server.

Workflow: create-session, then authenticate-user (the customer signs in
through the returned component), then get-status or get-user-profile.
Each tool checks its own preconditions; nothing tracks the workflow.
"""

from typing import Any, Dict, Optional

from pydantic import Field

from ..demo_data import demo_identity
from ..errors import ToolError
from ..registry import (
    LogicalServer, ResourceMap, Tool, ToolContext, ToolDescriptor, ToolRegistry, ToolResult
)
from ..text_formatting import format_profile
from ..widgets import AUTH_WIDGET, AUTH_WIDGET_URI
from .common import EmptyArguments, SessionArguments, ToolArguments

SERVER_NAME = "target-customer-auth"
SERVER_VERSION = "1.0.0"


class AuthenticateArguments(ToolArguments):
    session_id: Optional[str] = Field(
        default=None,
        alias="sessionId",
        description="Session ID returned by create-session",
    )
    message: Optional[str] = Field(
        default=None,
        description="Optional message to show to the user",
    )


def login_url(context: ToolContext, session_id: str) -> str:
    return f"{context.base_url}/components/auth.html?sessionId={session_id}"


async def create_session(arguments: EmptyArguments, context: ToolContext) -> ToolResult:
    session = context.sessions.create()
    structured: Dict[str, Any] = {
        "sessionId": session.session_id,
        "authenticated": False,
        "loginUrl": login_url(context, session.session_id),
        "message": "Session created. Call authenticate-user with this sessionId to sign in.",
    }

    delay = context.settings.auto_auth_delay
    if delay > 0:
        context.sessions.schedule_authentication(session.session_id, delay, demo_identity())
        structured["autoAuthenticateIn"] = delay

    return ToolResult(structured=structured)


async def authenticate_user(arguments: AuthenticateArguments, context: ToolContext) -> ToolResult:
    if not arguments.session_id:
        raise ToolError("sessionId is required. Call create-session first.")

    session = context.sessions.get(arguments.session_id)
    if session is None:
        raise ToolError(
            f"Session {arguments.session_id} was not found or has expired. "
            "Call create-session first."
        )

    if session.authenticated and session.identity:
        return ToolResult(structured={
            "sessionId": session.session_id,
            "authenticated": True,
            "name": session.identity.get("name"),
            "message": f"Already signed in as {session.identity.get('name')}.",
        })

    return ToolResult(structured={
        "type": "component",
        "componentUrl": login_url(context, session.session_id),
        "sessionId": session.session_id,
        "authenticated": False,
        "message": arguments.message or "Sign in to your Target account",
        "instructions": (
            "A login form will be displayed. After the user signs in, call "
            "get-status with the sessionId to confirm."
        ),
    })


async def get_status(arguments: SessionArguments, context: ToolContext) -> Dict[str, Any]:
    session = context.sessions.get(arguments.session_id)
    if session is None:
        return {
            "sessionId": arguments.session_id,
            "found": False,
            "authenticated": False,
            "message": "Session not found. Call create-session to start a new one.",
        }

    status: Dict[str, Any] = {
        "sessionId": session.session_id,
        "found": True,
        "authenticated": session.authenticated,
    }
    if session.authenticated and session.identity:
        status["name"] = session.identity.get("name")
        status["email"] = session.identity.get("email")
    return status


async def get_user_profile(arguments: SessionArguments, context: ToolContext) -> ToolResult:
    session = context.sessions.get(arguments.session_id)
    if session is None or not session.authenticated or not session.identity:
        return ToolResult(structured={
            "authenticated": False,
            "error": "Not authenticated. Please sign in first.",
            "sessionId": arguments.session_id,
        })

    return ToolResult(
        structured={
            "authenticated": True,
            "user": dict(session.identity),
            "message": f"Authenticated as {session.identity.get('name')}",
        },
        text=format_profile(session.identity),
    )


async def logout_user(arguments: SessionArguments, context: ToolContext) -> Dict[str, Any]:
    session = context.sessions.get(arguments.session_id)
    name = session.identity.get("name") if session and session.identity else None

    if session is None or not context.sessions.delete(arguments.session_id):
        return {"success": False, "message": "No active session found."}

    who = name or "The customer"
    return {"success": True, "message": f"{who} has been signed out successfully."}


TOOLS = [
    Tool(
        ToolDescriptor(
            name="create-session",
            title="Start Target session",
            description=(
                "Start a new Target customer session. Call this first; the returned "
                "sessionId is required by every other tool."
            ),
            arguments=EmptyArguments,
            invoking="Starting a secure session",
            invoked="Session ready",
        ),
        create_session,
    ),
    Tool(
        ToolDescriptor(
            name="authenticate-user",
            title="Sign in to Target",
            description=(
                "Display the Target customer sign-in form for an existing session. "
                "Requires a sessionId from create-session."
            ),
            arguments=AuthenticateArguments,
            invoking="Opening Target sign-in",
            invoked="Sign-in form ready",
            widget_uri=AUTH_WIDGET_URI,
        ),
        authenticate_user,
    ),
    Tool(
        ToolDescriptor(
            name="get-status",
            title="Check sign-in status",
            description=(
                "Check whether a session has been authenticated. Call after "
                "authenticate-user."
            ),
            arguments=SessionArguments,
            invoking="Checking sign-in status",
            invoked="Status checked",
        ),
        get_status,
    ),
    Tool(
        ToolDescriptor(
            name="get-user-profile",
            title="Get customer profile",
            description=(
                "Get the authenticated Target customer's profile information including "
                "Circle rewards status."
            ),
            arguments=SessionArguments,
            invoking="Loading profile",
            invoked="Profile loaded",
        ),
        get_user_profile,
    ),
    Tool(
        ToolDescriptor(
            name="logout-user",
            title="Sign out",
            description="Log out the current Target customer and end their session.",
            arguments=SessionArguments,
            invoking="Signing out",
            invoked="Signed out",
        ),
        logout_user,
    ),
]


def build_server() -> LogicalServer:
    return LogicalServer(
        name=SERVER_NAME,
        version=SERVER_VERSION,
        tools=ToolRegistry(TOOLS),
        resources=ResourceMap([AUTH_WIDGET]),
        instructions=(
            "Call create-session, then authenticate-user, then get-status "
            "before using customer-specific tools."
        ),
    )
