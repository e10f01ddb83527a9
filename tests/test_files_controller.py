import base64
from datetime import datetime, timezone

import pytest

from planets_admin.controllers.file_schemas import DeleteFileResult, FileInfo, UploadFileResult
from planets_admin.controllers.files import FilesController
from planets_admin.errors import ValidationFailed

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake"
PNG_B64 = base64.b64encode(PNG_BYTES).decode()


class TestUploadFile:
    def test_upload_plain_base64(self, storage):
        result = FilesController.upload_file({"name": "mars.png", "type": "image/png", "data": PNG_B64})

        assert isinstance(result, UploadFileResult)
        assert result.key.endswith(".png")
        assert result.url == f"/api/images/{result.key}"
        assert result.size == len(PNG_BYTES)
        assert result.content_type == "image/png"
        storage.put_object.assert_called_once_with(result.key, PNG_BYTES, "image/png")

    def test_upload_data_url_with_path(self, storage):
        data_url = f"data:image/png;base64,{PNG_B64}"
        result = FilesController.upload_file({"name": "a.b.png", "type": "image/png", "data": data_url}, "planets")

        assert result.key.startswith("planets/")
        assert result.key.endswith(".png")
        assert storage.put_object.call_args[0][1] == PNG_BYTES

    def test_upload_line_wrapped_base64(self, storage):
        wrapped = "\n".join(PNG_B64[i:i + 4] for i in range(0, len(PNG_B64), 4)) + "\r\n"
        result = FilesController.upload_file({"name": "mars.png", "type": "image/png", "data": wrapped})
        assert result.size == len(PNG_BYTES)
        assert storage.put_object.call_args[0][1] == PNG_BYTES

    def test_result_serialises_with_camel_case(self, storage):
        result = FilesController.upload_file({"name": "x.txt", "type": "text/plain", "data": "aGk="})
        assert "contentType" in result.model_dump(by_alias=True)

    def test_missing_name_rejected(self, storage):
        with pytest.raises(ValidationFailed) as exc:
            FilesController.upload_file({"name": "", "type": "image/png", "data": PNG_B64})
        assert "name" in str(exc.value)
        storage.put_object.assert_not_called()

    def test_invalid_base64_rejected(self, storage):
        with pytest.raises(ValidationFailed):
            FilesController.upload_file({"name": "a.png", "type": "image/png", "data": "not base64!"})

    def test_non_string_path_rejected(self, storage):
        with pytest.raises(ValidationFailed):
            FilesController.upload_file({"name": "a.png", "type": "image/png", "data": PNG_B64}, 42)


class TestDeleteFile:
    def test_delete(self, storage):
        storage.delete_object.return_value = True
        assert FilesController.delete_file("a.png") == DeleteFileResult(success=True)
        storage.delete_object.assert_called_once_with("a.png")

    def test_empty_key_rejected(self, storage):
        with pytest.raises(ValidationFailed):
            FilesController.delete_file("")


class TestListFiles:
    def test_list_maps_objects(self, storage):
        modified = datetime(2024, 1, 2, tzinfo=timezone.utc)
        storage.list_objects.return_value = [
            {"Key": "a.png", "Size": 10, "LastModified": modified, "ETag": '"abc"'},
        ]

        result = FilesController.list_files()

        assert result == [FileInfo(key="a.png", size=10, last_modified=modified, etag='"abc"')]
        storage.list_objects.assert_called_once_with("")

    def test_list_with_prefix(self, storage):
        storage.list_objects.return_value = []
        assert FilesController.list_files("planets/") == []
        storage.list_objects.assert_called_once_with("planets/")


class TestGetDownloadUrl:
    def test_url(self, storage):
        assert FilesController.get_download_url("planets/a.png").url == "/api/images/planets/a.png"
        storage.get_object.assert_not_called()
