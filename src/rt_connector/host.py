"""Interfaces the workflow host provides to the connector, plus in-process defaults."""

from __future__ import annotations

import base64
import mimetypes
from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass
from typing import Any, Literal, Protocol

from pydantic import BaseModel, ConfigDict, Field, SecretStr

StaticData = MutableMapping[str, str]
HttpMethod = Literal["GET", "POST", "PUT", "DELETE"]


class RTCredentials(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    rt_instance_url: str = Field(alias="rtInstanceUrl", min_length=1)
    api_token: SecretStr = Field(alias="apiToken")
    allow_unauthorized_certs: bool = Field(default=False, alias="allowUnauthorizedCerts")


@dataclass(frozen=True, slots=True)
class BinaryPayload:
    data: str  # base64
    mime_type: str
    file_name: str | None = None
    file_size: int = 0

    def raw_bytes(self) -> bytes:
        return base64.b64decode(self.data)


@dataclass(frozen=True, slots=True)
class OutputItem:
    json: dict[str, Any]
    binary: dict[str, BinaryPayload] | None = None


class RTTransport(Protocol):
    async def request(
        self,
        method: HttpMethod,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any | None = None,
        data: Mapping[str, Any] | None = None,
    ) -> Any: ...


class BinaryPreparer(Protocol):
    async def __call__(
        self, data: bytes, file_name: str | None, mime_type: str | None
    ) -> BinaryPayload: ...


async def prepare_binary_data(
    data: bytes, file_name: str | None = None, mime_type: str | None = None
) -> BinaryPayload:
    if not mime_type and file_name:
        mime_type = mimetypes.guess_type(file_name)[0]
    return BinaryPayload(
        data=base64.b64encode(data).decode("ascii"),
        mime_type=mime_type or "application/octet-stream",
        file_name=file_name,
        file_size=len(data),
    )
