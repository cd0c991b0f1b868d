from __future__ import annotations

import asyncio
import json
from typing import Any
from urllib.parse import parse_qs

import httpx
import pytest
import respx

from rt_connector.adapters.rt.errors import HttpError, NotFoundError, ParameterError
from rt_connector.app.connector import RequestTrackerConnector
from rt_connector.host import BinaryPayload

RT_API = "https://rt.example/REST/2.0"
CREDENTIALS = {"rtInstanceUrl": "https://rt.example", "apiToken": "test-token"}


def _execute(resource: str, operation: str, parameters: dict[str, Any], **kwargs: Any):
    async def run():
        async with RequestTrackerConnector.from_credentials(CREDENTIALS) as connector:
            return await connector.execute(resource, operation, parameters, **kwargs)

    return asyncio.run(run())


def _ticket(ticket_id: int = 5, **extra: Any) -> dict[str, Any]:
    return {
        "id": ticket_id,
        "Subject": "Printer on fire",
        "Status": "open",
        "Queue": {"id": "1", "Name": "General", "type": "queue"},
        "Owner": {"id": "root", "Name": "root", "EmailAddress": ""},
        "Requestors": [{"id": "r", "EmailAddress": "r@example.com"}],
        "CustomFields": [{"id": "3", "name": "Severity", "values": ["High"]}],
        "_hyperlinks": [{"ref": "self", "_url": f"{RT_API}/ticket/{ticket_id}"}],
        **extra,
    }


def test_get_ticket_simplified() -> None:
    with respx.mock:
        route = respx.get(f"{RT_API}/ticket/5").mock(return_value=httpx.Response(200, json=_ticket()))
        items = _execute("ticket", "get", {"ticketId": "5"})

    ticket = items[0].json
    assert ticket["Queue"] == "General"
    assert ticket["Owner"] == "root"
    assert ticket["Requestors"] == ["r@example.com"]
    assert ticket["Severity"] == "High"
    assert ticket["Links"]["self"] == f"{RT_API}/ticket/5"
    assert list(ticket)[:4] == ["id", "Queue", "Subject", "Status"]

    params = route.calls.last.request.url.params
    assert "Subject" in params["fields"]
    assert params["fields[Owner]"] == "id,Name,RealName,EmailAddress"


def test_get_ticket_with_output_fields_raw() -> None:
    with respx.mock:
        route = respx.get(f"{RT_API}/ticket/5").mock(return_value=httpx.Response(200, json=_ticket()))
        items = _execute("ticket", "get", {"ticketId": "5", "simplify": False, "outputFields": "Subject, Status"})

    assert route.calls.last.request.url.params["fields"] == "Subject,Status"
    assert items[0].json["CustomFields"] == {"Severity": "High"}
    assert items[0].json["Queue"]["Name"] == "General"


def test_get_missing_ticket_raises_not_found() -> None:
    with respx.mock:
        respx.get(f"{RT_API}/ticket/404").mock(
            return_value=httpx.Response(404, text="Resource not found")
        )
        with pytest.raises(NotFoundError):
            _execute("ticket", "get", {"ticketId": "404"})


def test_create_ticket_with_attachment() -> None:
    binary = {"data": BinaryPayload(data="aGk=", mime_type="text/plain", file_name="hi.txt", file_size=2)}
    with respx.mock:
        route = respx.post(f"{RT_API}/ticket").mock(
            return_value=httpx.Response(201, json={"id": 77, "type": "ticket", "_url": f"{RT_API}/ticket/77"})
        )
        items = _execute(
            "ticket",
            "create",
            {
                "queue": "General",
                "subject": "New",
                "content": "Body",
                "attachmentSource": "allBinaryData",
                "customFields": {"Severity": "Low"},
            },
            binary=binary,
        )

    assert items[0].json["id"] == 77
    sent = json.loads(route.calls.last.request.content)
    assert sent == {
        "Queue": "General",
        "Subject": "New",
        "Content": "Body",
        "ContentType": "text/html",
        "Attachments": [{"FileName": "hi.txt", "FileType": "text/plain", "FileContent": "aGk="}],
        "CustomFields": {"Severity": "Low"},
    }


def test_update_ticket_message_list() -> None:
    with respx.mock:
        route = respx.put(f"{RT_API}/ticket/5").mock(
            return_value=httpx.Response(200, json=["Ticket 5: Status changed from 'open' to 'resolved'"])
        )
        items = _execute("ticket", "update", {"ticketId": "5", "status": "resolved", "requestor": "a@x,b@x"})

    assert items[0].json == {
        "success": True,
        "ticketId": "5",
        "messages": ["Ticket 5: Status changed from 'open' to 'resolved'"],
    }
    assert json.loads(route.calls.last.request.content) == {
        "Status": "resolved",
        "Requestor": ["a@x", "b@x"],
    }


@pytest.mark.parametrize(
    ("operation", "endpoint"),
    [("addComment", "comment"), ("addCorrespondence", "correspond")],
)
def test_ticket_messages(operation: str, endpoint: str) -> None:
    with respx.mock:
        route = respx.post(f"{RT_API}/ticket/5/{endpoint}").mock(
            return_value=httpx.Response(201, json={"0": "Message recorded", "1": "Status changed"})
        )
        items = _execute("ticket", operation, {"ticketId": 5, "content": "Hi", "status": "stalled"})

    assert items[0].json == {
        "success": True,
        "ticketId": "5",
        "messages": ["Message recorded", "Status changed"],
    }
    assert json.loads(route.calls.last.request.content) == {
        "Content": "Hi",
        "ContentType": "text/html",
        "Status": "stalled",
    }


def test_embedded_error_on_comment() -> None:
    with respx.mock:
        respx.post(f"{RT_API}/ticket/5/comment").mock(
            return_value=httpx.Response(200, text="RT/5.0.1 200 Ok\n# Error: Permission Denied")
        )
        with pytest.raises(Exception, match="Permission Denied"):
            _execute("ticket", "addComment", {"ticketId": "5", "content": "Hi"})


def test_search_tickets_pages_until_limit() -> None:
    pages = {
        "1": [_ticket(i) for i in range(1, 4)],
        "2": [_ticket(i) for i in range(4, 7)],
    }

    def answer(request: httpx.Request) -> httpx.Response:
        page = request.url.params["page"]
        items = pages.get(page, [])
        return httpx.Response(200, json={"items": items, "count": len(items), "total": 6})

    with respx.mock:
        route = respx.post(f"{RT_API}/tickets").mock(side_effect=answer)
        items = _execute(
            "ticket",
            "search",
            {"query": "Status = 'open'", "limit": 3, "searchType": "simple", "simplify": False},
        )

    assert [item.json["id"] for item in items] == [1, 2, 3]
    request = route.calls.last.request
    assert parse_qs(request.content.decode()) == {"query": ["Status = 'open'"]}
    assert request.url.params["simple"] == "1"
    assert request.url.params["per_page"] == "3"
    assert request.url.params["orderby"] == "id"
    assert route.call_count == 1


def test_search_return_all() -> None:
    def answer(request: httpx.Request) -> httpx.Response:
        page = int(request.url.params["page"])
        count = 100 if page == 1 else 2
        items = [{"id": page * 1000 + i} for i in range(count)]
        return httpx.Response(200, json={"items": items, "count": count})

    with respx.mock:
        route = respx.post(f"{RT_API}/tickets").mock(side_effect=answer)
        items = _execute("ticket", "search", {"query": "id > 0", "returnAll": True})

    assert len(items) == 102
    assert route.call_count == 2


def test_ticket_history_filters_and_aggregates() -> None:
    history = {
        "items": [
            {"id": "30", "Type": "Correspond", "Created": "2024-01-02", "Object": {"type": "ticket", "id": "5"}},
            {"id": "31", "Type": "Status", "Created": "2024-01-03", "Field": "Status", "NewValue": "resolved"},
        ],
        "count": 2,
    }
    with respx.mock:
        history_route = respx.post(f"{RT_API}/ticket/5/history").mock(
            return_value=httpx.Response(200, json=history)
        )
        respx.post(f"{RT_API}/attachments").mock(
            return_value=httpx.Response(
                200,
                json={
                    "items": [
                        {"id": 9, "ContentType": "text/plain", "Content": "Thanks!", "ContentLength": 7, "TransactionId": {"type": "transaction", "id": "30"}}
                    ],
                    "count": 1,
                },
            )
        )
        items = _execute(
            "ticket",
            "getHistory",
            {
                "ticketId": "5",
                "transactionTypes": "Correspond, Status",
                "createdAfter": "2024-01-01",
                "includeContent": True,
            },
        )

    assert json.loads(history_route.calls.last.request.content) == [
        {"field": "Type", "operator": "=", "value": "Correspond", "entry_aggregator": "OR"},
        {"field": "Type", "operator": "=", "value": "Status", "entry_aggregator": "OR"},
        {"field": "Created", "operator": ">", "value": "2024-01-01", "entry_aggregator": "AND"},
    ]
    assert history_route.calls.last.request.url.params["order"] == "DESC"
    assert items[0].json["Content"] == "Thanks!"
    assert items[0].json["TicketId"] == "5"
    assert "Content" not in items[1].json


def test_unknown_operation_and_bad_parameters() -> None:
    with pytest.raises(ParameterError, match="ticket.delete"):
        _execute("ticket", "delete", {})
    with pytest.raises(ParameterError, match="ticket_id|ticketId"):
        _execute("ticket", "get", {})


def test_server_error_surfaces_once() -> None:
    with respx.mock:
        route = respx.get(f"{RT_API}/ticket/5").mock(return_value=httpx.Response(503, text="down"))
        with pytest.raises(HttpError) as exc:
            _execute("ticket", "get", {"ticketId": "5"})
    assert exc.value.status_code == 503
    assert route.call_count == 1
