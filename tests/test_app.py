import base64
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from planets_admin.app import create_app, guess_content_type
from planets_admin.auth import TokenStore, User
from planets_admin.config import Settings
from planets_admin.storage import StoredObject

AUTH = {"Authorization": "Bearer test-token"}
def _stream(*chunks):
    stream = MagicMock()
    stream.iter_chunks.return_value = iter(chunks)
    return stream


MARS = {"title": "Mars", "isGiant": False, "mass": 0.107, "radius": 0.532, "numberOfSatelites": 2}


@pytest.fixture
def client(storage):
    store = TokenStore()
    store.add("test-token", User(id="u1", name="Ada", roles=["admin"]))
    app = create_app(settings=Settings(), storage=storage, token_store=store)
    return TestClient(app)


class TestOpenApiRoute:
    def test_requires_session(self, client):
        response = client.get("/api/openapi.json")
        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}

    def test_document(self, client):
        response = client.get("/api/openapi.json", headers=AUTH)
        assert response.status_code == 200
        doc = response.json()
        assert doc["info"]["title"] == "planets-admin"
        assert "/api/planets" in doc["paths"]
        assert "/api/SampleController/get_sample" in doc["paths"]
        assert "/api/{action_url}" not in doc["paths"]

    def test_backend_method_schemas(self, client):
        doc = client.get("/api/openapi.json", headers=AUTH).json()

        upload = doc["paths"]["/api/FilesController/upload_file"]["post"]
        args = upload["requestBody"]["content"]["application/json"]["schema"]["properties"]["args"]
        assert args["minItems"] == 1
        assert args["maxItems"] == 2
        assert args["items"]["oneOf"][0]["required"] == ["name", "type", "data"]
        assert args["items"]["description"] == "Arguments in order: arg0: FileData, arg1: string (optional)"

        listing = doc["paths"]["/api/FilesController/list_files"]["post"]
        data = listing["responses"]["200"]["content"]["application/json"]["schema"]["properties"]["data"]
        assert data["type"] == "array"
        assert data["items"]["properties"]["lastModified"] == {"type": "string", "format": "date-time"}
        assert data["items"]["properties"]["size"] == {"type": "number"}

    def test_docs_page(self, client):
        response = client.get("/api/docs")
        assert response.status_code == 200
        assert "/api/openapi.json" in response.text


class TestBackendMethodRoute:
    def test_call_without_args(self, client):
        response = client.post("/api/SampleController/get_sample", json={"args": []})
        assert response.status_code == 200
        assert response.json() == {"data": "Hello, world!"}

    def test_call_returns_camel_case(self, client, storage):
        data = base64.b64encode(b"hello").decode()
        response = client.post(
            "/api/FilesController/upload_file",
            json={"args": [{"name": "a.txt", "type": "text/plain", "data": data}]},
        )
        assert response.status_code == 200
        body = response.json()["data"]
        assert body["contentType"] == "text/plain"
        assert body["size"] == 5
        storage.put_object.assert_called_once()

    def test_validation_error(self, client):
        response = client.post("/api/FilesController/delete_file", json={"args": [""]})
        assert response.status_code == 400
        assert "key" in response.json()["error"]

    def test_wrong_arity(self, client):
        response = client.post("/api/FilesController/get_download_url", json={"args": []})
        assert response.status_code == 400

    def test_args_must_be_a_list(self, client):
        response = client.post("/api/FilesController/delete_file", json={"args": "k"})
        assert response.status_code == 400
        assert response.json()["error"].startswith("args: ")

    def test_body_must_be_an_object(self, client):
        response = client.post("/api/FilesController/delete_file", json=["k"])
        assert response.status_code == 400
        assert "error" in response.json()

    def test_missing_body_means_no_args(self, client):
        response = client.post("/api/SampleController/get_sample")
        assert response.json() == {"data": "Hello, world!"}

    def test_unknown_method(self, client):
        response = client.post("/api/FilesController/nope", json={"args": []})
        assert response.status_code == 404


class TestImagesRoute:
    def test_serves_object(self, client, storage):
        storage.get_object.return_value = StoredObject(
            key="a.png", stream=_stream(b"im", b"g"), content_type="image/png"
        )
        response = client.get("/api/images/planets/a.png")
        assert response.status_code == 200
        assert response.content == b"img"
        assert response.headers["content-type"] == "image/png"
        assert response.headers["cache-control"] == "public, max-age=31536000, immutable"
        storage.get_object.assert_called_once_with("planets/a.png")
        storage.get_object.return_value.stream.close.assert_called_once()

    def test_content_type_from_extension(self, client, storage):
        storage.get_object.return_value = StoredObject(key="a.webp", stream=_stream(b"img"), content_type=None)
        response = client.get("/api/images/a.webp")
        assert response.headers["content-type"] == "image/webp"

    def test_missing_object(self, client, storage):
        storage.get_object.return_value = None
        response = client.get("/api/images/missing.png")
        assert response.status_code == 404
        assert response.json() == {"error": "Image not found"}

    def test_guess_content_type(self):
        assert guess_content_type("x.JPG") == "image/jpeg"
        assert guess_content_type("noext") == "application/octet-stream"


class TestPlanetsRoutes:
    def test_create_requires_auth(self, client):
        response = client.post("/api/planets", json=MARS)
        assert response.status_code == 401

    def test_crud(self, client):
        created = client.post("/api/planets", json=MARS, headers=AUTH)
        assert created.status_code == 201
        planet = created.json()
        assert planet["title"] == "Mars"
        assert planet["numberOfSatelites"] == 2
        assert "createdAt" in planet

        listed = client.get("/api/planets").json()
        assert [p["id"] for p in listed] == [planet["id"]]

        updated = client.put(f"/api/planets/{planet['id']}", json={**MARS, "title": "Ares"}, headers=AUTH)
        assert updated.json()["title"] == "Ares"
        assert updated.json()["id"] == planet["id"]

        assert client.delete(f"/api/planets/{planet['id']}", headers=AUTH).status_code == 204
        assert client.get(f"/api/planets/{planet['id']}").status_code == 404

    def test_missing_required_field(self, client):
        response = client.post("/api/planets", json={"title": "Pluto"}, headers=AUTH)
        assert response.status_code == 422


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
