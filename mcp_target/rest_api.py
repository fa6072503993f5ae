"""REST endpoints that drive the shared session store without MCP.

The sign-in component posts to ``/api/authenticate`` or
``/api/session/authenticate``; Custom GPT Actions use ``/api/actions/*``.
Any non-empty credentials are accepted.
"""

import logging
from typing import Optional

from fastapi import APIRouter
from pydantic import BaseModel
from starlette.responses import JSONResponse

from .demo_data import demo_identity
from .session_store import SessionStore

logger = logging.getLogger(__name__)


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
    sessionId: Optional[str] = None


class SessionAuthenticateRequest(BaseModel):
    sessionId: Optional[str] = None
    email: Optional[str] = None
    name: Optional[str] = None


class LogoutRequest(BaseModel):
    sessionId: Optional[str] = None


def build_router(sessions: SessionStore) -> APIRouter:
    """Create the REST router bound to ``sessions``."""
    router = APIRouter(prefix="/api", tags=["auth"])

    @router.post("/authenticate")
    async def authenticate(body: LoginRequest):
        """Sign-in form submission for a session created by the MCP tools."""
        if not body.email or not body.password:
            return JSONResponse(status_code=401, content={
                "success": False,
                "error": "Please enter both email and password.",
            })

        session = sessions.ensure(body.sessionId) if body.sessionId else sessions.create()
        identity = demo_identity()
        sessions.mark_authenticated(session.session_id, identity)
        return {"success": True, "user": identity, "sessionId": session.session_id}

    @router.post("/session/authenticate")
    async def authenticate_session(body: SessionAuthenticateRequest):
        """Mark an existing session authenticated, as if an external login finished."""
        if not body.sessionId:
            return JSONResponse(status_code=400, content={
                "success": False,
                "error": "sessionId is required",
            })

        identity = demo_identity(email=body.email, name=body.name)
        if sessions.mark_authenticated(body.sessionId, identity) is None:
            return JSONResponse(status_code=404, content={
                "success": False,
                "error": "Session not found or expired. Call create-session first.",
            })
        return {"success": True, "user": identity}

    @router.get("/session/{session_id}")
    async def session_status(session_id: str):
        session = sessions.get(session_id)
        if session and session.authenticated:
            return {"authenticated": True, "user": session.identity}
        return {"authenticated": False}

    @router.post("/actions/authenticate")
    async def actions_authenticate(body: LoginRequest):
        if not body.email or not body.password:
            return JSONResponse(status_code=400, content={
                "success": False,
                "error": "Email and password are required",
            })

        session = sessions.create()
        identity = demo_identity()
        sessions.mark_authenticated(session.session_id, identity)
        return {
            "success": True,
            "user": identity,
            "sessionId": session.session_id,
            "message": f"Successfully authenticated as {identity['name']}",
        }

    @router.get("/actions/profile")
    async def actions_profile(sessionId: Optional[str] = None):
        session = sessions.get(sessionId)
        if session and session.authenticated:
            return {"user": session.identity}
        return JSONResponse(status_code=401, content={
            "error": "Not authenticated. Please sign in first.",
        })

    @router.post("/actions/logout")
    async def actions_logout(body: LogoutRequest):
        session = sessions.get(body.sessionId)
        name = session.identity.get("name") if session and session.identity else None
        if session is not None and sessions.delete(body.sessionId):
            logger.info(f"Signed out session {body.sessionId[:8]}... via REST")
            return {"success": True, "message": f"{name or 'The customer'} has been signed out successfully."}
        return {"success": False, "message": "No active session found."}

    return router
