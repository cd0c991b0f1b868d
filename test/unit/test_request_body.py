from __future__ import annotations

import pytest

from rt_connector.adapters.rt.errors import ParameterError, ParseError
from rt_connector.app.params import (
    TicketCreateParams,
    TicketMessageParams,
    TicketUpdateParams,
    load_params,
)
from rt_connector.app.request_body import (
    attachments_for_upload,
    build_create_body,
    build_message_body,
    build_update_body,
    merge_custom_fields,
)
from rt_connector.host import BinaryPayload


def _binary() -> dict[str, BinaryPayload]:
    return {
        "data": BinaryPayload(data="aGVsbG8=", mime_type="text/plain", file_name="hello.txt", file_size=5),
        "image": BinaryPayload(data="iVBO", mime_type="image/png", file_name=None, file_size=3),
        "empty": BinaryPayload(data="", mime_type="text/plain"),
    }


def test_merge_custom_fields_priority() -> None:
    merged = merge_custom_fields(
        '{"Area": "json", "Severity": "json"}',
        [{"name": "Severity", "value": "pair"}, {"name": "Team", "value": "ops"}],
        {"Team": "mapped"},
    )
    assert merged == {"Area": "json", "Severity": "pair", "Team": "mapped"}


@pytest.mark.parametrize("text", ["{bad", "[1, 2]"])
def test_merge_custom_fields_rejects_bad_json(text: str) -> None:
    with pytest.raises(ParseError):
        merge_custom_fields(text)


def test_create_body_from_host_parameters() -> None:
    params = load_params(
        TicketCreateParams,
        {
            "queue": {"mode": "list", "value": "General"},
            "subject": "Printer on fire",
            "requestor": "a@example.com",
            "content": "<p>help</p>",
            "priority": 10,
            "status": "",
            "cc": ["only@example.com"],
            "customFieldsJson": '{"Severity": "High"}',
        },
    )
    body = build_create_body(params)
    assert body == {
        "Queue": "General",
        "Subject": "Printer on fire",
        "Requestor": "a@example.com",
        "Content": "<p>help</p>",
        "ContentType": "text/html",
        "Priority": 10,
        "Cc": "only@example.com",
        "CustomFields": {"Severity": "High"},
    }


def test_create_requires_queue_and_subject() -> None:
    with pytest.raises(ParameterError) as exc:
        load_params(TicketCreateParams, {"subject": "x"})
    assert "queue" in str(exc.value)


def test_update_body_splits_watchers() -> None:
    params = load_params(
        TicketUpdateParams,
        {"ticketId": 5, "status": "resolved", "cc": "a@x, b@x", "adminCc": ""},
    )
    assert params.ticket_id == "5"
    assert build_update_body(params) == {"Status": "resolved", "Cc": ["a@x", "b@x"]}


def test_message_body_with_selected_binaries() -> None:
    params = load_params(
        TicketMessageParams,
        {
            "ticketId": "5",
            "content": "done",
            "contentType": "text/plain",
            "timeTaken": 15,
            "attachmentSource": "binaryProperties",
            "binaryProperties": "image, missing, empty",
        },
    )
    body = build_message_body(params, _binary())
    assert body == {
        "Content": "done",
        "ContentType": "text/plain",
        "TimeTaken": 15,
        "Attachments": [{"FileName": "image", "FileType": "image/png", "FileContent": "iVBO"}],
    }


def test_all_binary_data_source() -> None:
    params = load_params(TicketMessageParams, {"ticketId": "5", "content": "x", "attachmentSource": "allBinaryData"})
    entries = attachments_for_upload(params, _binary())
    assert [e["FileName"] for e in entries] == ["hello.txt", "image"]


def test_manual_attachments_json() -> None:
    params = load_params(
        TicketMessageParams,
        {
            "ticketId": "5",
            "content": "x",
            "attachmentSource": "manual",
            "attachmentsJson": '[{"FileName": "a.txt", "FileType": "text/plain", "FileContent": "YQ=="}]',
        },
    )
    assert attachments_for_upload(params, None) == [
        {"FileName": "a.txt", "FileType": "text/plain", "FileContent": "YQ=="}
    ]

    bad = params.model_copy(update={"attachments_json": "[oops"})
    with pytest.raises(ParseError, match="Invalid JSON in Attachments field"):
        attachments_for_upload(bad, None)


def test_no_attachment_source() -> None:
    params = load_params(TicketMessageParams, {"ticketId": "5", "content": "x"})
    assert attachments_for_upload(params, _binary()) is None
