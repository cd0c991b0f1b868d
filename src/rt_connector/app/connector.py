"""Entry point a workflow host drives: ``(resource, operation, parameters) -> [OutputItem]``."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from rt_connector.adapters.rt.client import AsyncRTClient, client_from_credentials
from rt_connector.adapters.rt.errors import ParameterError
from rt_connector.app import trigger
from rt_connector.app.context import OperationContext
from rt_connector.app.operations import (
    attachments,
    custom_fields,
    queues,
    tickets,
    transactions,
    users,
)
from rt_connector.app.params import (
    AttachmentGetManyParams,
    AttachmentGetParams,
    CustomFieldListParams,
    OperationParams,
    QueueGetManyParams,
    QueueGetParams,
    TicketCreateParams,
    TicketGetParams,
    TicketHistoryParams,
    TicketMessageParams,
    TicketSearchParams,
    TicketUpdateParams,
    TransactionGetManyParams,
    TransactionGetParams,
    TriggerParams,
    UserGetManyParams,
    UserGetParams,
    load_params,
)
from rt_connector.config.settings import Settings
from rt_connector.host import (
    BinaryPayload,
    BinaryPreparer,
    OutputItem,
    RTCredentials,
    RTTransport,
    StaticData,
    prepare_binary_data,
)
from rt_connector.observability.logger import bound_operation, null_logger

Handler = Callable[..., Awaitable[list[OutputItem]]]


@dataclass(frozen=True, slots=True)
class _Operation:
    params_model: type[OperationParams]
    handler: Handler
    accepts_binary: bool = False


OPERATIONS: dict[tuple[str, str], _Operation] = {
    ("ticket", "get"): _Operation(TicketGetParams, tickets.get_ticket),
    ("ticket", "create"): _Operation(TicketCreateParams, tickets.create_ticket, True),
    ("ticket", "update"): _Operation(TicketUpdateParams, tickets.update_ticket),
    ("ticket", "addComment"): _Operation(TicketMessageParams, tickets.add_comment, True),
    (
        "ticket",
        "addCorrespondence",
    ): _Operation(TicketMessageParams, tickets.add_correspondence, True),
    ("ticket", "search"): _Operation(TicketSearchParams, tickets.search_tickets),
    ("ticket", "getHistory"): _Operation(TicketHistoryParams, tickets.get_ticket_history),
    ("transaction", "get"): _Operation(TransactionGetParams, transactions.get_transaction),
    ("transaction", "getMany"): _Operation(TransactionGetManyParams, transactions.get_transactions),
    ("attachment", "get"): _Operation(AttachmentGetParams, attachments.get_attachment),
    ("attachment", "getMany"): _Operation(AttachmentGetManyParams, attachments.get_attachments),
    ("queue", "get"): _Operation(QueueGetParams, queues.get_queue),
    ("queue", "getMany"): _Operation(QueueGetManyParams, queues.get_queues),
    ("user", "get"): _Operation(UserGetParams, users.get_user),
    ("user", "getMany"): _Operation(UserGetManyParams, users.get_users),
    (
        "customfield",
        "listForTicket",
    ): _Operation(CustomFieldListParams, custom_fields.list_ticket_custom_fields),
}


class RequestTrackerConnector:
    """Dispatches host calls to RT operations over one transport."""

    def __init__(
        self,
        transport: RTTransport,
        *,
        binary_preparer: BinaryPreparer = prepare_binary_data,
        logger: Any | None = None,
        owns_transport: bool = False,
    ) -> None:
        self._transport = transport
        self._owns_transport = owns_transport
        self._ctx = OperationContext(
            transport=transport,
            binary_preparer=binary_preparer,
            logger=logger or null_logger(),
        )

    @classmethod
    def from_credentials(
        cls,
        credentials: RTCredentials | Mapping[str, Any],
        *,
        timeout_seconds: float = 30.0,
        trust_env: bool = False,
        debug_http: bool = False,
        binary_preparer: BinaryPreparer = prepare_binary_data,
        logger: Any | None = None,
    ) -> RequestTrackerConnector:
        if not isinstance(credentials, RTCredentials):
            credentials = RTCredentials.model_validate(credentials)
        client = client_from_credentials(
            credentials,
            timeout_seconds=timeout_seconds,
            trust_env=trust_env,
            debug_http=debug_http,
            logger=logger,
        )
        return cls(client, binary_preparer=binary_preparer, logger=logger, owns_transport=True)

    @classmethod
    def from_settings(cls, settings: Settings, *, logger: Any | None = None) -> RequestTrackerConnector:
        return cls.from_credentials(
            settings.credentials(),
            timeout_seconds=settings.rt.timeout_seconds,
            trust_env=settings.hardening.transport.trust_env,
            debug_http=settings.rt.debug_http,
            logger=logger,
        )

    @property
    def transport(self) -> RTTransport:
        return self._transport

    async def aclose(self) -> None:
        if self._owns_transport and isinstance(self._transport, AsyncRTClient):
            await self._transport.aclose()

    async def __aenter__(self) -> RequestTrackerConnector:
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        await self.aclose()

    async def execute(
        self,
        resource: str,
        operation: str,
        parameters: Mapping[str, Any],
        *,
        binary: Mapping[str, BinaryPayload] | None = None,
    ) -> list[OutputItem]:
        entry = OPERATIONS.get((resource, operation))
        if entry is None:
            raise ParameterError(f"Unsupported operation: {resource}.{operation}")

        params = load_params(entry.params_model, parameters)
        with bound_operation(resource, operation):
            self._ctx.logger.debug("connector.execute")
            if entry.accepts_binary:
                return await entry.handler(self._ctx, params, binary)
            return await entry.handler(self._ctx, params)

    async def poll(
        self,
        parameters: Mapping[str, Any],
        static_data: StaticData,
        *,
        manual: bool = False,
        now: datetime | None = None,
    ) -> list[OutputItem] | None:
        params = load_params(TriggerParams, parameters)
        with bound_operation("ticket", "poll"):
            return await trigger.poll_tickets(
                self._transport,
                params,
                static_data,
                manual=manual,
                now=now,
                logger=self._ctx.logger,
            )
