"""Tests for the auth, search, cart and membership tool servers."""

import asyncio
import pytest

from mcp_target.dispatcher import RequestDispatcher
from mcp_target.servers import build_server

from test_utils import call_tool, structured


async def start_session(dispatcher) -> str:
    response = await dispatcher.handle_message(call_tool("create-session"))
    return structured(response)["sessionId"]


def sign_in(tool_context, session_id, **overrides):
    identity = {"name": "Jane Doe", "email": "a@b.com", "rewardsMember": "Circle Member",
                "memberSince": "2021"}
    identity.update(overrides)
    return tool_context.sessions.mark_authenticated(session_id, identity)


class TestAuthServer:

    @pytest.mark.asyncio
    async def test_create_session(self, auth_dispatcher, tool_context):
        response = await auth_dispatcher.handle_message(call_tool("create-session"))

        result = structured(response)
        assert result["sessionId"].startswith("sess_")
        assert result["authenticated"] is False
        assert result["loginUrl"] == (
            f"http://testserver/components/auth.html?sessionId={result['sessionId']}"
        )
        assert "autoAuthenticateIn" not in result
        assert tool_context.sessions.get(result["sessionId"]) is not None

    @pytest.mark.asyncio
    async def test_authenticate_user_returns_component(self, auth_dispatcher):
        session_id = await start_session(auth_dispatcher)

        response = await auth_dispatcher.handle_message(
            call_tool("authenticate-user", {"sessionId": session_id, "message": "Please sign in"})
        )

        result = structured(response)
        assert result["type"] == "component"
        assert result["sessionId"] == session_id
        assert result["message"] == "Please sign in"
        assert response["result"]["_meta"]["openai/outputTemplate"] == "ui://widget/target-auth.html"

    @pytest.mark.asyncio
    async def test_authenticate_user_without_session(self, auth_dispatcher):
        response = await auth_dispatcher.handle_message(call_tool("authenticate-user", {}))

        result = response["result"]
        assert result["isError"] is True
        assert "create-session" in result["content"][0]["text"]

    @pytest.mark.asyncio
    async def test_authenticate_user_unknown_session(self, auth_dispatcher):
        response = await auth_dispatcher.handle_message(
            call_tool("authenticate-user", {"sessionId": "sess_missing"})
        )
        assert response["result"]["isError"] is True

    @pytest.mark.asyncio
    async def test_authenticate_user_already_signed_in(self, auth_dispatcher, tool_context):
        session_id = await start_session(auth_dispatcher)
        sign_in(tool_context, session_id)

        response = await auth_dispatcher.handle_message(
            call_tool("authenticate-user", {"sessionId": session_id})
        )

        result = structured(response)
        assert result["authenticated"] is True
        assert "Jane Doe" in result["message"]

    @pytest.mark.asyncio
    async def test_get_status_unknown_session_does_not_fail(self, auth_dispatcher):
        response = await auth_dispatcher.handle_message(
            call_tool("get-status", {"sessionId": "sess_nope"})
        )

        assert response["result"]["isError"] is False
        result = structured(response)
        assert result["found"] is False
        assert result["authenticated"] is False

    @pytest.mark.asyncio
    async def test_get_status_requires_session_id(self, auth_dispatcher):
        response = await auth_dispatcher.handle_message(call_tool("get-status", {}))
        assert response["error"]["code"] == -32602

    @pytest.mark.asyncio
    async def test_workflow(self, auth_dispatcher, tool_context):
        session_id = await start_session(auth_dispatcher)

        before = structured(await auth_dispatcher.handle_message(
            call_tool("get-status", {"sessionId": session_id})
        ))
        assert before == {"sessionId": session_id, "found": True, "authenticated": False}

        sign_in(tool_context, session_id)

        after = structured(await auth_dispatcher.handle_message(
            call_tool("get-status", {"sessionId": session_id})
        ))
        assert after["authenticated"] is True
        assert after["name"] == "Jane Doe"
        assert after["email"] == "a@b.com"

    @pytest.mark.asyncio
    async def test_get_status_is_read_only(self, auth_dispatcher, tool_context):
        session_id = await start_session(auth_dispatcher)
        sign_in(tool_context, session_id)

        first = await auth_dispatcher.handle_message(call_tool("get-status", {"sessionId": session_id}))
        second = await auth_dispatcher.handle_message(call_tool("get-status", {"sessionId": session_id}))

        assert first["result"] == second["result"]
        assert tool_context.sessions.count() == 1

    @pytest.mark.asyncio
    async def test_get_user_profile(self, auth_dispatcher, tool_context):
        session_id = await start_session(auth_dispatcher)

        anonymous = structured(await auth_dispatcher.handle_message(
            call_tool("get-user-profile", {"sessionId": session_id})
        ))
        assert anonymous["authenticated"] is False

        sign_in(tool_context, session_id)
        response = await auth_dispatcher.handle_message(
            call_tool("get-user-profile", {"sessionId": session_id})
        )

        assert structured(response)["user"]["email"] == "a@b.com"
        assert "Name: Jane Doe" in response["result"]["content"][0]["text"]

    @pytest.mark.asyncio
    async def test_logout_user(self, auth_dispatcher, tool_context):
        session_id = await start_session(auth_dispatcher)
        sign_in(tool_context, session_id)

        result = structured(await auth_dispatcher.handle_message(
            call_tool("logout-user", {"sessionId": session_id})
        ))
        assert result["success"] is True
        assert "Jane Doe" in result["message"]
        assert tool_context.sessions.get(session_id) is None

        again = structured(await auth_dispatcher.handle_message(
            call_tool("logout-user", {"sessionId": session_id})
        ))
        assert again["success"] is False

    @pytest.mark.asyncio
    async def test_auto_authentication(self, tool_context):
        tool_context.settings.auto_auth_delay = 0.05
        dispatcher = RequestDispatcher(build_server("auth"), tool_context)

        result = structured(await dispatcher.handle_message(call_tool("create-session")))
        session_id = result["sessionId"]
        assert result["autoAuthenticateIn"] == 0.05
        assert tool_context.sessions.get(session_id).authenticated is False

        await asyncio.sleep(0.2)

        status = structured(await dispatcher.handle_message(
            call_tool("get-status", {"sessionId": session_id})
        ))
        assert status["authenticated"] is True
        assert status["name"] == "Lauren Bailey"


class TestSearchServer:

    @pytest.mark.asyncio
    async def test_search_products(self, search_dispatcher):
        response = await search_dispatcher.handle_message(
            call_tool("search-products", {"query": "kitchen"})
        )

        result = structured(response)
        assert result["query"] == "kitchen"
        assert result["count"] == 2
        assert {p["productId"] for p in result["products"]} == {"TCIN-81234567", "TCIN-86789012"}
        assert "2 product(s) found" in response["result"]["content"][0]["text"]

    @pytest.mark.asyncio
    async def test_search_limit(self, search_dispatcher):
        result = structured(await search_dispatcher.handle_message(
            call_tool("search-products", {"query": "kitchen", "limit": 1})
        ))
        assert result["count"] == 1

    @pytest.mark.asyncio
    async def test_search_no_results(self, search_dispatcher):
        result = structured(await search_dispatcher.handle_message(
            call_tool("search-products", {"query": "lawnmower"})
        ))
        assert result["count"] == 0
        assert result["products"] == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("arguments", [{}, {"query": ""}, {"query": "mug", "limit": 0},
                                           {"query": "mug", "limit": 50}])
    async def test_search_invalid_arguments(self, search_dispatcher, arguments):
        response = await search_dispatcher.handle_message(call_tool("search-products", arguments))
        assert response["error"]["code"] == -32602

    @pytest.mark.asyncio
    async def test_get_product(self, search_dispatcher):
        found = structured(await search_dispatcher.handle_message(
            call_tool("get-product", {"productId": "TCIN-83456789"})
        ))
        assert found["found"] is True
        assert found["product"]["price"] == 249.99

        missing = structured(await search_dispatcher.handle_message(
            call_tool("get-product", {"productId": "TCIN-0"})
        ))
        assert missing["found"] is False


class TestCartServer:

    @pytest.mark.asyncio
    async def test_add_to_cart_from_catalog(self, cart_dispatcher):
        response = await cart_dispatcher.handle_message(
            call_tool("add-to-cart", {"productId": "TCIN-86789012", "quantity": 2})
        )

        result = structured(response)
        assert result["itemCount"] == 1
        assert result["items"][0]["title"] == "Hearth & Hand with Magnolia Ceramic Mug"
        assert result["subtotal"] == 15.98
        assert result["replaced"] == 0

    @pytest.mark.asyncio
    async def test_single_item_cart_replaces(self, cart_dispatcher):
        await cart_dispatcher.handle_message(call_tool("add-to-cart", {"productId": "TCIN-86789012"}))
        result = structured(await cart_dispatcher.handle_message(
            call_tool("add-to-cart", {"title": "Gift Card", "price": 25})
        ))

        assert result["itemCount"] == 1
        assert result["items"][0]["title"] == "Gift Card"
        assert result["replaced"] == 1

    @pytest.mark.asyncio
    async def test_cart_is_shared_between_dispatchers(self, cart_dispatcher, tool_context):
        other = RequestDispatcher(build_server("cart"), tool_context)

        await cart_dispatcher.handle_message(call_tool("add-to-cart", {"productId": "TCIN-82345678"}))
        result = structured(await other.handle_message(call_tool("view-cart")))

        assert result["items"][0]["productId"] == "TCIN-82345678"

    @pytest.mark.asyncio
    async def test_add_unknown_product(self, cart_dispatcher):
        response = await cart_dispatcher.handle_message(
            call_tool("add-to-cart", {"productId": "TCIN-0"})
        )
        assert response["result"]["isError"] is True
        assert "search-products" in response["result"]["content"][0]["text"]

    @pytest.mark.asyncio
    async def test_add_without_product(self, cart_dispatcher):
        response = await cart_dispatcher.handle_message(call_tool("add-to-cart", {"title": "Thing"}))
        assert response["result"]["isError"] is True

    @pytest.mark.asyncio
    async def test_view_empty_cart(self, cart_dispatcher):
        response = await cart_dispatcher.handle_message(call_tool("view-cart"))

        assert structured(response) == {"items": [], "itemCount": 0, "subtotal": 0}
        assert "Your cart is empty." in response["result"]["content"][0]["text"]

    @pytest.mark.asyncio
    async def test_checkout_requires_authentication(self, cart_dispatcher, tool_context):
        session = tool_context.sessions.create()
        await cart_dispatcher.handle_message(call_tool("add-to-cart", {"productId": "TCIN-82345678"}))

        response = await cart_dispatcher.handle_message(
            call_tool("checkout", {"sessionId": session.session_id})
        )

        assert response["result"]["isError"] is True
        assert "authenticate-user" in response["result"]["content"][0]["text"]
        assert len(tool_context.carts.get()) == 1

    @pytest.mark.asyncio
    async def test_checkout_empty_cart(self, cart_dispatcher, tool_context):
        session = tool_context.sessions.create()
        sign_in(tool_context, session.session_id)

        response = await cart_dispatcher.handle_message(
            call_tool("checkout", {"sessionId": session.session_id})
        )

        assert response["result"]["isError"] is True
        assert "add-to-cart" in response["result"]["content"][0]["text"]

    @pytest.mark.asyncio
    async def test_checkout(self, cart_dispatcher, tool_context):
        session = tool_context.sessions.create()
        sign_in(tool_context, session.session_id)
        await cart_dispatcher.handle_message(call_tool("add-to-cart", {"productId": "TCIN-82345678"}))

        response = await cart_dispatcher.handle_message(
            call_tool("checkout", {"sessionId": session.session_id})
        )

        order = structured(response)
        assert order["orderId"].startswith("ORD-")
        assert order["status"] == "confirmed"
        assert order["customer"] == {"name": "Jane Doe", "email": "a@b.com"}
        assert order["total"] == 12.0
        assert tool_context.carts.get() == []

    @pytest.mark.asyncio
    async def test_reset_demo(self, cart_dispatcher, tool_context):
        await cart_dispatcher.handle_message(call_tool("add-to-cart", {"productId": "TCIN-82345678"}))

        result = structured(await cart_dispatcher.handle_message(call_tool("reset-demo")))

        assert result["success"] is True
        assert result["removed"] == 1
        assert tool_context.carts.get() == []


class TestMembershipServer:

    @pytest.mark.asyncio
    async def test_membership_requires_authentication(self, membership_dispatcher, tool_context):
        session = tool_context.sessions.create()

        response = await membership_dispatcher.handle_message(
            call_tool("get-membership", {"sessionId": session.session_id})
        )
        assert response["result"]["isError"] is True

    @pytest.mark.asyncio
    async def test_membership_unknown_session(self, membership_dispatcher):
        response = await membership_dispatcher.handle_message(
            call_tool("get-membership", {"sessionId": "sess_gone"})
        )

        assert response["result"]["isError"] is True
        assert "create-session" in response["result"]["content"][0]["text"]

    @pytest.mark.asyncio
    async def test_membership(self, membership_dispatcher, tool_context):
        session = tool_context.sessions.create()
        sign_in(tool_context, session.session_id)

        result = structured(await membership_dispatcher.handle_message(
            call_tool("get-membership", {"sessionId": session.session_id})
        ))

        assert result["member"] is True
        assert result["tier"] == "Circle Member"
        assert result["memberSince"] == "2021"
        assert result["offersAvailable"] == 4

    @pytest.mark.asyncio
    async def test_offers(self, membership_dispatcher):
        result = structured(await membership_dispatcher.handle_message(call_tool("get-circle-offers")))

        assert result["count"] == 4
        assert result["greeting"].startswith("Here are")

    @pytest.mark.asyncio
    async def test_offers_by_category_personalized(self, membership_dispatcher, tool_context):
        session = tool_context.sessions.create()
        sign_in(tool_context, session.session_id)

        result = structured(await membership_dispatcher.handle_message(
            call_tool("get-circle-offers", {"category": "Kitchen", "sessionId": session.session_id})
        ))

        assert result["count"] == 1
        assert result["offers"][0]["offerId"] == "CIRCLE-KITCHEN-20"
        assert result["greeting"].startswith("Hi Jane Doe")
