import json

import httpx

from growth_service.gateway import HttpMessagingGateway, build_whatsapp_url
from growth_service.messages import format_inr, sanitize_phone


def test_whatsapp_url_encodes_message():
    url = build_whatsapp_url("919876543210", "Hi there & welcome\n🎉")
    assert url == "https://wa.me/919876543210?text=Hi%20there%20%26%20welcome%0A%F0%9F%8E%89"


def test_whatsapp_url_keeps_unreserved_punctuation():
    url = build_whatsapp_url("1", "Great job! (keep it up) *today* it's yours")
    assert url == "https://wa.me/1?text=Great%20job!%20(keep%20it%20up)%20*today*%20it's%20yours"


def test_phone_is_reduced_to_digits():
    assert sanitize_phone("+91 (98765) 43-210") == "919876543210"
    assert sanitize_phone(None) == ""


def test_amounts_use_indian_grouping():
    assert format_inr(50000) == "50,000"
    assert format_inr(125000) == "1,25,000"
    assert format_inr(1234567.5) == "12,34,567.5"
    assert format_inr(999) == "999"
    assert format_inr(0.1234) == "0.123"


async def test_http_gateway_posts_digits_and_message():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"success": True, "whatsappUrl": "https://wa.me/1"})

    gateway = HttpMessagingGateway("http://growth.local/", timeout=1, transport=httpx.MockTransport(handler))

    result = await gateway.send("919876543210", "hello")

    assert seen["url"] == "http://growth.local/whatsapp/send"
    assert seen["body"] == {"phoneNumber": "919876543210", "message": "hello"}
    assert result == {"success": True, "error": None, "whatsappUrl": "https://wa.me/1"}


async def test_http_gateway_never_raises_on_transport_errors():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    gateway = HttpMessagingGateway("http://growth.local", timeout=1, transport=httpx.MockTransport(handler))

    result = await gateway.send("1", "hello")

    assert result["success"] is False
    assert "connection refused" in result["error"]


async def test_http_gateway_handles_non_json_response():
    gateway = HttpMessagingGateway(
        "http://growth.local", timeout=1,
        transport=httpx.MockTransport(lambda request: httpx.Response(502, text="Bad Gateway")),
    )

    result = await gateway.send("1", "hello")

    assert result == {"success": False, "error": "Invalid gateway response (502)"}
