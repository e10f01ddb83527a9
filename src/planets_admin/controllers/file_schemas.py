"""Data classes exchanged by the files controller.

Wire names are camelCase (``contentType``, ``lastModified``); Python code
uses snake_case field names.
"""

from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, TypeAdapter
from pydantic.alias_generators import to_camel

NonEmptyStr = Annotated[str, StringConstraints(strict=True, min_length=1)]


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FileData(WireModel):
    """A file sent by a client: name, MIME type and base64 content."""

    name: NonEmptyStr
    type: NonEmptyStr
    data: NonEmptyStr = Field(description="Base64 content, optionally as a data URL")


class UploadFileResult(WireModel):
    key: str
    url: str
    size: int
    content_type: str


class FileInfo(WireModel):
    key: str
    size: int
    last_modified: datetime
    etag: str


class DeleteFileResult(WireModel):
    success: bool


class DownloadUrlResult(WireModel):
    url: str


key_adapter = TypeAdapter(NonEmptyStr)
optional_str_adapter = TypeAdapter(Annotated[str, StringConstraints(strict=True)] | None)
