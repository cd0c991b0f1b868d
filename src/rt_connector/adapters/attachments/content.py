from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from rt_connector.domain.attachment_meta import (
    attachment_sort_key,
    effective_content_type,
    normalize_attachment,
    simplified_attachment,
)
from rt_connector.domain.mime import is_text_like, latin1_bytes
from rt_connector.host import BinaryPreparer, OutputItem, prepare_binary_data
from rt_connector.observability.logger import null_logger

BINARY_SLOT = "data"


async def process_attachment(
    attachment: Mapping[str, Any],
    *,
    download_content: bool,
    simplify: bool,
    binary_preparer: BinaryPreparer,
    log: Any,
) -> OutputItem:
    raw = attachment.get("Content") if download_content else None
    metadata = normalize_attachment(attachment)
    metadata.pop("Content", None)

    binary = None
    if isinstance(raw, str) and raw and metadata["ContentLength"]:
        content_type = effective_content_type(metadata)
        if is_text_like(content_type):
            metadata["Content"] = raw
        else:
            filename = metadata.get("Filename") or f"attachment_{metadata.get('id')}"
            binary = {
                BINARY_SLOT: await binary_preparer(latin1_bytes(raw), filename, content_type)
            }
            log.debug("attachments.binary", id=metadata.get("id"), size=len(raw))
    else:
        log.debug("attachments.empty_content", id=metadata.get("id"))

    if simplify:
        metadata = simplified_attachment(
            metadata,
            include_content="Content" in metadata,
            include_transaction_id=True,
        )
    return OutputItem(json=metadata, binary=binary)


async def process_attachments(
    attachments: Sequence[Mapping[str, Any]],
    *,
    download_content: bool = True,
    simplify: bool = False,
    binary_preparer: BinaryPreparer = prepare_binary_data,
    logger: Any | None = None,
) -> list[OutputItem]:
    """Shape attachment records; text content inline, binary content under ``data``."""
    log = logger or null_logger()
    items = [
        await process_attachment(
            att,
            download_content=download_content,
            simplify=simplify,
            binary_preparer=binary_preparer,
            log=log,
        )
        for att in attachments
    ]
    items.sort(key=lambda item: attachment_sort_key(item.json))
    return items
