"""Target Circle membership tool server."""

from typing import Any, Dict, Optional

from pydantic import Field

from ..demo_data import CIRCLE_OFFERS
from ..registry import LogicalServer, ResourceMap, Tool, ToolContext, ToolDescriptor, ToolRegistry
from ..widgets import CIRCLE_CARD_URI, CIRCLE_CARD_WIDGET
from .common import SessionArguments, ToolArguments, require_authenticated

SERVER_NAME = "target-circle-membership"
SERVER_VERSION = "1.0.0"


class OffersArguments(ToolArguments):
    category: Optional[str] = Field(default=None,
                                    description="Only return offers for this category")
    session_id: Optional[str] = Field(default=None, alias="sessionId",
                                      description="Session ID, to personalize the greeting")


async def get_membership(arguments: SessionArguments, context: ToolContext) -> Dict[str, Any]:
    session = require_authenticated(context, arguments.session_id, "view membership details")
    identity = session.identity
    return {
        "sessionId": session.session_id,
        "member": True,
        "name": identity.get("name"),
        "tier": identity.get("rewardsMember"),
        "memberSince": identity.get("memberSince"),
        "offersAvailable": len(CIRCLE_OFFERS),
    }


async def get_circle_offers(arguments: OffersArguments, context: ToolContext) -> Dict[str, Any]:
    offers = [dict(offer) for offer in CIRCLE_OFFERS]
    if arguments.category:
        wanted = arguments.category.strip().lower()
        offers = [offer for offer in offers if offer["category"] == wanted]

    greeting = "Here are this week's Target Circle offers."
    session = context.sessions.get(arguments.session_id) if arguments.session_id else None
    if session is not None and session.authenticated and session.identity:
        greeting = f"Hi {session.identity.get('name')}, here are your Target Circle offers."

    return {"greeting": greeting, "count": len(offers), "offers": offers}


TOOLS = [
    Tool(
        ToolDescriptor(
            name="get-membership",
            title="Circle membership",
            description=(
                "Show the signed-in customer's Target Circle membership. Requires an "
                "authenticated sessionId."
            ),
            arguments=SessionArguments,
            invoking="Loading Circle membership",
            invoked="Membership loaded",
            widget_uri=CIRCLE_CARD_URI,
        ),
        get_membership,
    ),
    Tool(
        ToolDescriptor(
            name="get-circle-offers",
            title="Circle offers",
            description="List current Target Circle offers, optionally for one category.",
            arguments=OffersArguments,
            invoking="Finding offers",
            invoked="Offers found",
        ),
        get_circle_offers,
    ),
]


def build_server() -> LogicalServer:
    return LogicalServer(
        name=SERVER_NAME,
        version=SERVER_VERSION,
        tools=ToolRegistry(TOOLS),
        resources=ResourceMap([CIRCLE_CARD_WIDGET]),
    )
