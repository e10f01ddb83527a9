"""Files controller: upload, delete, list and link files in object storage."""

import base64
import uuid

from planets_admin.config import Settings
from planets_admin.controllers.file_schemas import (
    DeleteFileResult,
    DownloadUrlResult,
    FileData,
    FileInfo,
    UploadFileResult,
    key_adapter,
    optional_str_adapter,
)
from planets_admin.errors import ValidationFailed
from planets_admin.rpc.descriptors import accepts, returns
from planets_admin.rpc.registry import backend_method
from planets_admin.storage import ObjectStorage
from planets_admin.validation import validate_schema, validate_value

IMAGES_URL = "/api/images"

_storage: ObjectStorage | None = None


def set_storage(storage: ObjectStorage | None) -> None:
    """Install the storage used by FilesController (None resets it)."""
    global _storage
    _storage = storage


def get_storage() -> ObjectStorage:
    """Return the installed storage, building it from the environment on first use."""
    global _storage
    if _storage is None:
        _storage = ObjectStorage.from_settings(Settings.from_env())
    return _storage


def _decode(data: str) -> bytes:
    # strip a data URL prefix such as "data:image/png;base64,"
    payload = data.split(",", 1)[1] if "," in data else data
    # line-wrapped base64 (MIME style) is accepted
    payload = "".join(payload.split())
    try:
        return base64.b64decode(payload, validate=True)
    except ValueError as e:
        raise ValidationFailed(["data: File data must be a base64 encoded string."]) from e


class FilesController:
    """File operations backed by the S3-compatible bucket."""

    @backend_method(allowed=True)
    @returns(schema=UploadFileResult)
    @accepts([{"schema": FileData}, {"type": "string", "optional": True}])
    def upload_file(file_data, path=None) -> UploadFileResult:
        """Store a base64 encoded file under a fresh unique key.

        The key is ``<uuid>.<extension>``, prefixed with ``path/`` when a
        path is given.
        """
        validated = validate_schema(FileData, file_data)
        if path is not None:
            validate_value(optional_str_adapter, path, "path")

        extension = validated.name.split(".")[-1]
        file_name = f"{uuid.uuid4()}.{extension}"
        key = f"{path}/{file_name}" if path else file_name

        body = _decode(validated.data)
        get_storage().put_object(key, body, validated.type)

        return UploadFileResult(
            key=key,
            url=f"{IMAGES_URL}/{key}",
            size=len(body),
            content_type=validated.type,
        )

    @backend_method(allowed=True)
    @returns(schema=DeleteFileResult)
    @accepts({"type": "string"})
    def delete_file(key) -> DeleteFileResult:
        validated_key = validate_value(key_adapter, key, "key")
        return DeleteFileResult(success=get_storage().delete_object(validated_key))

    @backend_method(allowed=True)
    @returns(schema=FileInfo, is_array=True)
    @accepts({"type": "string", "optional": True})
    def list_files(prefix=None) -> list[FileInfo]:
        """List stored files, optionally only those under ``prefix``."""
        validated_prefix = validate_value(optional_str_adapter, prefix, "prefix")
        objects = get_storage().list_objects(validated_prefix or "")
        return [
            FileInfo(
                key=obj["Key"],
                size=int(obj["Size"]),
                last_modified=obj["LastModified"],
                etag=obj.get("ETag", ""),
            )
            for obj in objects
        ]

    @backend_method(allowed=True)
    @returns(schema=DownloadUrlResult)
    @accepts({"type": "string"})
    def get_download_url(key) -> DownloadUrlResult:
        validated_key = validate_value(key_adapter, key, "key")
        return DownloadUrlResult(url=f"{IMAGES_URL}/{validated_key}")
