"""Per-operation parameter models, validated from the host's parameter bag."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic.alias_generators import to_camel

from rt_connector.adapters.rt.errors import ParameterError

_P = TypeVar("_P", bound="OperationParams")

SortOrder = Literal["ASC", "DESC"]
AttachmentSource = Literal["none", "allBinaryData", "binaryProperties", "manual"]


def _split_csv(value: Any) -> Any:
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return value


class OperationParams(BaseModel):
    model_config = ConfigDict(
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
        coerce_numbers_to_str=True,
        str_strip_whitespace=True,
    )

    @model_validator(mode="before")
    @classmethod
    def _unwrap_resource_locators(cls, data: Any) -> Any:
        # Resource locators arrive as {"mode": "list"|"id"|"name", "value": ...}.
        if not isinstance(data, Mapping):
            return data
        out: dict[str, Any] = {}
        for key, value in data.items():
            if isinstance(value, Mapping) and "mode" in value and "value" in value:
                value = value["value"] if value["value"] != "" else None
            out[key] = value
        return out


class _Listing(OperationParams):
    return_all: bool = False
    limit: int = Field(default=50, ge=1)
    simplify: bool = True


class _TransactionOptions(OperationParams):
    simplify: bool = True
    include_content: bool = False
    include_attachments: bool = False


class UploadParams(OperationParams):
    attachment_source: AttachmentSource = "none"
    binary_properties: str | None = None
    attachments_json: str | None = None


class TicketGetParams(OperationParams):
    ticket_id: str = Field(min_length=1)
    simplify: bool = True
    output_fields: list[str] | None = None

    @field_validator("output_fields", mode="before")
    @classmethod
    def _split_fields(cls, value: Any) -> Any:
        return _split_csv(value)


class TicketCreateParams(UploadParams):
    queue: str = Field(min_length=1)
    subject: str = Field(min_length=1)
    requestor: str | None = None
    content: str | None = None
    content_type: str = "text/html"
    priority: int | str | None = None
    status: str | None = None
    owner: str | None = None
    cc: str | list[str] | None = None
    admin_cc: str | list[str] | None = None
    due: str | None = None
    starts: str | None = None
    time_estimated: int | str | None = None
    sla: str | None = None
    custom_fields_json: str | None = None
    custom_field_pairs: list[dict[str, Any]] | None = None
    custom_fields: dict[str, Any] | None = None


class TicketUpdateParams(OperationParams):
    ticket_id: str = Field(min_length=1)
    subject: str | None = None
    queue: str | None = None
    status: str | None = None
    priority: int | str | None = None
    owner: str | None = None
    requestor: str | list[str] | None = None
    cc: str | list[str] | None = None
    admin_cc: str | list[str] | None = None
    due: str | None = None
    starts: str | None = None
    time_estimated: int | str | None = None
    time_worked: int | str | None = None
    time_left: int | str | None = None
    sla: str | None = None
    custom_fields_json: str | None = None
    custom_field_pairs: list[dict[str, Any]] | None = None
    custom_fields: dict[str, Any] | None = None


class TicketMessageParams(UploadParams):
    ticket_id: str = Field(min_length=1)
    content: str = Field(min_length=1)
    content_type: str = "text/html"
    subject: str | None = None
    status: str | None = None
    time_taken: int | str | None = None


class TicketSearchParams(_Listing):
    search_type: Literal["ticketSQL", "simple"] = "ticketSQL"
    query: str = Field(min_length=1)
    order_by: str = "id"
    order: SortOrder = "ASC"
    find_disabled_rows: bool = False
    output_fields: list[str] | None = None

    @field_validator("output_fields", mode="before")
    @classmethod
    def _split_fields(cls, value: Any) -> Any:
        return _split_csv(value)


class TicketHistoryParams(_Listing, _TransactionOptions):
    ticket_id: str = Field(min_length=1)
    transaction_types: list[str] = Field(default_factory=list)
    created_after: str | None = None
    created_before: str | None = None
    order_by: str = "Created"
    order: SortOrder = "DESC"

    @field_validator("transaction_types", mode="before")
    @classmethod
    def _split_types(cls, value: Any) -> Any:
        return _split_csv(value)


class TransactionGetParams(_TransactionOptions):
    transaction_id: str = Field(min_length=1)


class TransactionGetManyParams(_Listing, _TransactionOptions):
    query: str = Field(min_length=1)
    order_by: str = "Created"
    order: SortOrder = "DESC"


class AttachmentGetParams(OperationParams):
    attachment_id: str = Field(min_length=1)
    simplify: bool = True
    download_content: bool = True


class AttachmentGetManyParams(_Listing):
    parent_type: Literal["ticket", "transaction"] = "ticket"
    parent_id: str = Field(min_length=1)
    filename: str | None = None
    only_named: bool = False
    content_type: str | None = None
    created_after: str | None = None
    created_before: str | None = None
    order_by: str = "Created"
    order: SortOrder = "DESC"
    download_content: bool = False


class QueueGetParams(OperationParams):
    queue_id: str = Field(min_length=1)
    simplify: bool = True


class QueueGetManyParams(_Listing):
    queue_name: str | None = None
    description: str | None = None
    lifecycle: str | None = None
    order_by: str = "Name"
    order: SortOrder = "ASC"
    find_disabled_rows: bool = False


class UserGetParams(OperationParams):
    user_id: str = Field(min_length=1)
    simplify: bool = True


class UserGetManyParams(_Listing):
    include_all_users: bool = False
    name: str | None = None
    email_address: str | None = None
    order_by: str = "Name"
    order: SortOrder = "ASC"


class CustomFieldListParams(OperationParams):
    queue: str | None = None
    ticket_id: str | None = None


class TriggerParams(OperationParams):
    ticket_sql: str = Field(min_length=1)
    trigger_on_field: Literal["LastUpdated", "Created"] = "LastUpdated"
    output_fields: list[str] | None = None
    limit: int = Field(default=50, ge=1, le=100)
    simplify: bool = False

    @field_validator("output_fields", mode="before")
    @classmethod
    def _split_fields(cls, value: Any) -> Any:
        return _split_csv(value)


def load_params(model: type[_P], parameters: Mapping[str, Any]) -> _P:
    """Validate a host parameter bag; failures become a single ParameterError."""
    try:
        return model.model_validate(dict(parameters))
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err.get('loc', ())) or '<root>'}: {err.get('msg')}"
            for err in exc.errors(include_url=False)
        )
        raise ParameterError(f"Invalid parameters for {model.__name__}: {problems}") from exc
