from __future__ import annotations

import asyncio

import pytest

from rt_connector.adapters.rt.errors import HttpError, NotFoundError
from rt_connector.app.connector import RequestTrackerConnector
from rt_fakes import RecordingTransport


def _definitions() -> dict:
    return {
        ("GET", "customfield/1"): {"id": 1, "Name": "Severity", "Type": "Select", "MaxValues": 1, "Disabled": "0"},
        ("GET", "customfield/2"): {"id": 2, "Name": "Tags", "Type": "Select", "MaxValues": 0, "Disabled": 0},
        ("GET", "customfield/3"): {"id": 3, "Name": "Due", "Type": "DateTime", "Disabled": "0"},
        ("GET", "customfield/4"): {"id": 4, "Name": "Old", "Type": "Freeform", "Disabled": "1"},
        ("GET", "customfield/5"): HttpError("HTTP Error 403: Permission Denied", status_code=403),
        ("GET", "customfield/6"): {"id": 6, "Name": "Count", "Type": "Integer", "Disabled": "0"},
        ("GET", "customfield/1/values"): {"items": [{"name": "Low"}, {"Name": "High"}, {"name": ""}]},
        ("GET", "customfield/2/values"): {"items": []},
    }


def _listing() -> dict:
    return {"items": [{"id": str(i)} for i in range(1, 7)], "count": 6}


def _run(transport: RecordingTransport, parameters: dict) -> list[dict]:
    async def run():
        connector = RequestTrackerConnector(transport)
        return await connector.execute("customfield", "listForTicket", parameters)

    return [item.json for item in asyncio.run(run())]


def test_queue_custom_fields_by_name() -> None:
    transport = RecordingTransport(
        {
            ("GET", "queue/Support%20Desk"): {"id": 7},
            ("GET", "queue/7/customfields"): _listing(),
            **_definitions(),
        }
    )
    fields = _run(transport, {"queue": "Support Desk"})

    assert fields == [
        {
            "id": "Severity",
            "displayName": "Severity",
            "type": "options",
            "required": False,
            "options": [{"name": "Low", "value": "Low"}, {"name": "High", "value": "High"}],
        },
        {"id": "Tags", "displayName": "Tags (multi)", "type": "string", "required": False},
        {"id": "Due", "displayName": "Due", "type": "dateTime", "required": False},
        {"id": "Count", "displayName": "Count", "type": "number", "required": False},
    ]
    assert transport.calls_to("GET", "queue/Support%20Desk")[0]["params"] == {"fields": "id"}
    assert transport.calls_to("GET", "customfield/1")[0]["params"] == {
        "fields": "id,Name,Type,MaxValues,Disabled"
    }
    assert transport.calls_to("GET", "customfield/1/values")[0]["params"] == {"per_page": 200}
    assert transport.calls_to("GET", "customfield/3/values") == []


def test_numeric_queue_is_used_directly() -> None:
    transport = RecordingTransport({("GET", "queue/3/customfields"): {"items": []}})
    assert _run(transport, {"queue": "3"}) == []
    assert [c["path"] for c in transport.calls] == ["queue/3/customfields"]


def test_unknown_queue_name() -> None:
    transport = RecordingTransport({("GET", "queue/Nope"): {"type": "queue"}})
    with pytest.raises(NotFoundError, match="Queue not found: Nope"):
        _run(transport, {"queue": "Nope"})


def test_queue_resolved_from_ticket() -> None:
    transport = RecordingTransport(
        {
            ("GET", "ticket/12"): {"id": 12, "Queue": {"id": "9", "type": "queue"}},
            ("GET", "queue/9/customfields"): {"items": [{"id": "6"}]},
            **_definitions(),
        }
    )
    assert _run(transport, {"ticketId": "12"}) == [
        {"id": "Count", "displayName": "Count", "type": "number", "required": False}
    ]
    assert transport.calls[0]["params"] == {"fields": "Queue"}


def test_global_ticket_custom_fields() -> None:
    transport = RecordingTransport({("POST", "customfields"): {"items": [{"id": "3"}]}, **_definitions()})
    assert _run(transport, {}) == [
        {"id": "Due", "displayName": "Due", "type": "dateTime", "required": False}
    ]
    call = transport.calls_to("POST", "customfields")[0]
    assert call["params"] == {"per_page": 100}
    assert call["json"] == [
        {"field": "Disabled", "operator": "=", "value": "0"},
        {"field": "LookupType", "operator": "=", "value": "RT::Queue-RT::Ticket"},
    ]
