import pytest
from fastapi import status
from fastapi.testclient import TestClient

from drive_api.adapters.metadata import FileMetadataStore
from drive_api.errors import UpstreamError
from drive_api.main import create_app
from drive_api.routers.files import MULTIPART_ENVELOPE_BYTES
from tests.fixtures.app_fixtures import StubIdentityProvider, auth_headers

API = "/api"
MISSING_ID = "00000000-0000-0000-0000-000000000000"

PROTECTED_ROUTES = [
    ("POST", "/files/upload"),
    ("GET", "/files"),
    ("GET", f"/files/{MISSING_ID}"),
    ("GET", f"/files/download/{MISSING_ID}"),
    ("GET", f"/files/{MISSING_ID}/versions"),
    ("DELETE", f"/files/{MISSING_ID}"),
    ("POST", f"/files/share/{MISSING_ID}"),
    ("POST", f"/files/unshare/{MISSING_ID}"),
    ("GET", "/stats"),
]


@pytest.mark.parametrize("method,path", PROTECTED_ROUTES)
def test__protected_routes__require_token(client: TestClient, method, path):
    response = client.request(method, f"{API}{path}")

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json() == {"error": "No token provided"}


@pytest.mark.parametrize("method,path", PROTECTED_ROUTES)
def test__protected_routes__reject_unknown_token(client: TestClient, method, path):
    response = client.request(method, f"{API}{path}", headers=auth_headers("forged"))

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json() == {"error": "Invalid token"}


def test__non_bearer_scheme_is_treated_as_missing(client: TestClient):
    response = client.get(f"{API}/files", headers={"Authorization": "Basic dXNlcjpwYXNz"})

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json() == {"error": "No token provided"}


@pytest.mark.parametrize(
    "method,path",
    [
        ("GET", f"/files/{MISSING_ID}"),
        ("GET", f"/files/download/{MISSING_ID}"),
        ("GET", f"/files/{MISSING_ID}/versions"),
        ("DELETE", f"/files/{MISSING_ID}"),
        ("POST", f"/files/share/{MISSING_ID}"),
        ("POST", f"/files/unshare/{MISSING_ID}"),
    ],
)
def test__missing_file__is_404(client: TestClient, alice_headers, method, path):
    response = client.request(method, f"{API}{path}", headers=alice_headers)

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json() == {"error": "File not found"}


def test__other_users_files_are_invisible(client: TestClient, alice_headers, bob_headers):
    file_id = client.post(
        f"{API}/files/upload", files={"file": ("a.txt", b"a", "text/plain")}, headers=alice_headers
    ).json()["file"]["fileId"]

    assert client.get(f"{API}/files/{file_id}", headers=bob_headers).status_code == status.HTTP_404_NOT_FOUND
    assert client.delete(f"{API}/files/{file_id}", headers=bob_headers).status_code == status.HTTP_404_NOT_FOUND
    assert client.get(f"{API}/files", headers=bob_headers).json()["count"] == 0
    assert client.get(f"{API}/files/{file_id}", headers=alice_headers).status_code == status.HTTP_200_OK


def test__delete_twice__second_is_404(client: TestClient, alice_headers):
    file_id = client.post(
        f"{API}/files/upload", files={"file": ("a.txt", b"a", "text/plain")}, headers=alice_headers
    ).json()["file"]["fileId"]

    assert client.delete(f"{API}/files/{file_id}", headers=alice_headers).status_code == status.HTTP_200_OK
    second = client.delete(f"{API}/files/{file_id}", headers=alice_headers)
    assert second.status_code == status.HTTP_404_NOT_FOUND
    assert second.json() == {"error": "File not found"}


def test__upload__without_file_is_400(client: TestClient, alice_headers):
    response = client.post(f"{API}/files/upload", headers=alice_headers)

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json() == {"error": "No file uploaded"}


def test__upload__over_size_cap_is_413(mocked_aws, settings, alice_headers):
    settings.max_upload_size_bytes = 8
    app = create_app(settings, identity_provider=StubIdentityProvider())
    with TestClient(app) as client:
        response = client.post(
            f"{API}/files/upload", files={"file": ("big.bin", b"x" * 9, "application/octet-stream")}, headers=alice_headers
        )
        listing = client.get(f"{API}/files", headers=alice_headers).json()

    assert response.status_code == status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    assert "maximum upload size" in response.json()["error"]
    assert listing["count"] == 0


def test__upload__declared_length_over_cap_is_rejected_before_parsing(mocked_aws, settings, object_storage, alice_headers):
    settings.max_upload_size_bytes = 8
    app = create_app(settings, identity_provider=StubIdentityProvider())
    # not valid multipart: a 413 here means the body was never parsed
    body = b"x" * (MULTIPART_ENVELOPE_BYTES + 9)
    headers = {**alice_headers, "Content-Type": "multipart/form-data; boundary=unused"}
    with TestClient(app) as client:
        response = client.post(f"{API}/files/upload", content=body, headers=headers)

    assert response.status_code == status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    assert response.json() == {"error": "File exceeds the maximum upload size of 8 bytes"}
    assert object_storage.list_keys() == []


@pytest.mark.parametrize("expires_in", [0, -5, 604801])
def test__share__ttl_out_of_range_is_400(client: TestClient, alice_headers, expires_in):
    response = client.post(f"{API}/files/share/{MISSING_ID}", json={"expiresIn": expires_in}, headers=alice_headers)

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "expiresIn" in response.json()["error"]


def test__share__non_integer_ttl_is_400(client: TestClient, alice_headers):
    response = client.post(f"{API}/files/share/{MISSING_ID}", json={"expiresIn": "soon"}, headers=alice_headers)

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "expiresIn" in response.json()["error"]


def test__unknown_route__is_404(client: TestClient):
    response = client.get(f"{API}/nope")

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json() == {"error": "Route not found"}


class ExplodingMetadataStore(FileMetadataStore):
    def __init__(self, exc: Exception):
        super().__init__(table=None)
        self.exc = exc

    def query(self, user_id):
        raise self.exc


@pytest.mark.parametrize(
    "app_env,expected_message",
    [("development", "boom"), ("production", "Internal server error")],
)
def test__unexpected_exception__message_depends_on_env(mocked_aws, settings, app_env, expected_message):
    settings.app_env = app_env
    app = create_app(
        settings,
        identity_provider=StubIdentityProvider(),
        metadata_store=ExplodingMetadataStore(RuntimeError("boom")),
    )
    with TestClient(app) as client:
        response = client.get(f"{API}/files", headers=auth_headers())

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {"error": expected_message}


@pytest.mark.parametrize(
    "app_env,expected_message",
    [("development", "table unavailable"), ("production", "Internal server error")],
)
def test__upstream_error__is_500(mocked_aws, settings, app_env, expected_message):
    settings.app_env = app_env
    app = create_app(
        settings,
        identity_provider=StubIdentityProvider(),
        metadata_store=ExplodingMetadataStore(UpstreamError("table unavailable")),
    )
    with TestClient(app) as client:
        response = client.get(f"{API}/stats", headers=auth_headers())

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {"error": expected_message}


def test__health__reports_degraded_component(mocked_aws, settings):
    settings.dynamodb_table = "missing-table"
    app = create_app(settings, identity_provider=StubIdentityProvider())
    with TestClient(app) as client:
        response = client.get(f"{API}/health")

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["status"] == "degraded"
    assert body["components"]["metadata"].startswith("error:")
    assert body["components"]["storage"] == "ready"


def test__health__reports_unconfigured_identity_provider(mocked_aws, settings):
    identity_provider = StubIdentityProvider()
    identity_provider.client_id = ""
    app = create_app(settings, identity_provider=identity_provider)
    with TestClient(app) as client:
        response = client.get(f"{API}/health")

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["status"] == "degraded"
    assert body["components"]["identity"] == "error: COGNITO_CLIENT_ID is not configured"
    assert body["components"]["storage"] == "ready"
