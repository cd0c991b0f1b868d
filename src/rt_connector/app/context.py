from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from rt_connector.host import BinaryPreparer, OutputItem, RTTransport, prepare_binary_data
from rt_connector.observability.logger import null_logger


@dataclass(frozen=True, slots=True)
class OperationContext:
    transport: RTTransport
    binary_preparer: BinaryPreparer = prepare_binary_data
    logger: Any = field(default_factory=null_logger)


def as_output(body: Any) -> OutputItem:
    if isinstance(body, dict):
        return OutputItem(json=body)
    return OutputItem(json={"result": body})


def listing_params(*, order_by: str, order: str, find_disabled_rows: bool = False) -> dict[str, Any]:
    params: dict[str, Any] = {"orderby": order_by, "order": order}
    if find_disabled_rows:
        params["find_disabled_rows"] = "1"
    return params
