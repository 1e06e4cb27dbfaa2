import json

import httpx
import pytest

from common.clients.directus import DirectusBackend
from common.clients.errors import BackendError
from common.clients.types import NewRosterEntry


def _backend(handler) -> DirectusBackend:
    return DirectusBackend("http://directus.test/", transport=httpx.MockTransport(handler))


@pytest.mark.anyio
async def test_login_returns_session():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/auth/login"
        assert json.loads(request.content) == {"email": "a@b.c", "password": "pw", "mode": "json"}
        return httpx.Response(200, json={"data": {"access_token": "at", "refresh_token": "rt", "expires": 900000}})

    backend = _backend(handler)
    session = await backend.login("a@b.c", "pw")
    assert session.access_token == "at"
    assert session.refresh_token == "rt"
    assert session.expires_in == 900
    await backend.aclose()


@pytest.mark.anyio
async def test_login_failure_carries_directus_message():
    def handler(request):
        return httpx.Response(401, json={"errors": [{"message": "Invalid user credentials."}]})

    backend = _backend(handler)
    with pytest.raises(BackendError) as info:
        await backend.login("a@b.c", "bad")
    assert info.value.status_code == 401
    assert info.value.message == "Invalid user credentials."


@pytest.mark.anyio
async def test_current_identity_maps_fields():
    def handler(request):
        assert request.headers["Authorization"] == "Bearer tok"
        assert "role.name" in request.url.params["fields"]
        return httpx.Response(
            200,
            json={
                "data": {
                    "id": "u1",
                    "email": "a@b.c",
                    "first_name": "Pizzaria",
                    "avatar": "f-1",
                    "collection_name": "pedidos_pizzaria",
                    "role": {"name": "Administrator"},
                }
            },
        )

    identity = await _backend(handler).current_identity("tok")
    assert identity.display_name == "Pizzaria"
    assert identity.logo_ref == "f-1"
    assert identity.role == "Administrator"
    assert identity.orders_collection == "pedidos_pizzaria"


@pytest.mark.anyio
async def test_current_identity_none_on_rejected_or_missing_token():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(401, json={"errors": [{"message": "Token expired."}]})

    backend = _backend(handler)
    assert await backend.current_identity("old") is None
    assert await backend.current_identity(None) is None
    assert len(calls) == 1


@pytest.mark.anyio
async def test_server_error_is_raised_not_hidden():
    backend = _backend(lambda request: httpx.Response(500, text="boom"))
    with pytest.raises(BackendError) as info:
        await backend.current_identity("tok")
    assert info.value.status_code == 500
    assert info.value.message == "boom"


@pytest.mark.anyio
async def test_unreachable_backend_becomes_backend_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(BackendError) as info:
        await _backend(handler).list_records("tok", "pedidos")
    assert info.value.status_code == 503


@pytest.mark.anyio
async def test_list_records_query_parameters():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json={"data": [{"id": 1}]})

    rows = await _backend(handler).list_records(
        "tok", "pedidos", filters={"status": {"_eq": "enviado"}}, sort=["-data_pedido"], fields=["id"], limit=10
    )
    assert rows == [{"id": 1}]
    assert seen["path"] == "/items/pedidos"
    assert seen["params"]["sort"] == "-data_pedido"
    assert json.loads(seen["params"]["filter"]) == {"status": {"_eq": "enviado"}}
    assert seen["params"]["limit"] == "10"


@pytest.mark.anyio
async def test_upload_file_returns_id_and_asset_url():
    def handler(request):
        assert request.url.path == "/files"
        assert request.headers["content-type"].startswith("multipart/form-data")
        assert b"Logo - X" in request.content
        return httpx.Response(200, json={"data": {"id": "file-9"}})

    backend = _backend(handler)
    ref = await backend.upload_file("tok", b"img", "logo.png", "image/png", title="Logo - X")
    assert ref == "file-9"
    assert backend.file_url(ref) == "http://directus.test/assets/file-9"
    assert backend.file_url("https://cdn.test/x.png") == "https://cdn.test/x.png"


@pytest.mark.anyio
async def test_resolve_role_by_name():
    def handler(request):
        assert json.loads(request.url.params["filter"]) == {"name": {"_eq": "User"}}
        return httpx.Response(200, json={"data": [{"id": "role-uuid", "name": "User"}]})

    assert await _backend(handler).resolve_role("tok", "User") == "role-uuid"


@pytest.mark.anyio
async def test_resolve_role_missing():
    backend = _backend(lambda request: httpx.Response(200, json={"data": []}))
    with pytest.raises(BackendError, match="Chef"):
        await backend.resolve_role("tok", "Chef")


@pytest.mark.anyio
async def test_create_identity_sends_role_and_avatar():
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"data": {"id": "u5"}})

    entry = NewRosterEntry(email="n@b.c", password="secret1", display_name="Nova", role="User")
    created = await _backend(handler).create_identity("tok", entry, "role-uuid", logo_ref="file-1")

    assert seen["body"] == {
        "email": "n@b.c",
        "password": "secret1",
        "role": "role-uuid",
        "first_name": "Nova",
        "avatar": "file-1",
    }
    assert created.id == "u5"
    assert created.logo_url == "http://directus.test/assets/file-1"


@pytest.mark.anyio
async def test_list_roster_and_delete():
    def handler(request):
        if request.method == "DELETE":
            assert request.url.path == "/users/u2"
            return httpx.Response(204)
        assert request.url.params["sort"] == "-date_created"
        return httpx.Response(
            200,
            json={"data": [{"id": "u2", "email": "x@y.z", "first_name": None, "avatar": None, "role": {"name": "User"}}]},
        )

    backend = _backend(handler)
    roster = await backend.list_roster("tok")
    assert roster[0].role == "User"
    assert roster[0].logo_url is None
    await backend.delete_identity("tok", "u2")


@pytest.mark.anyio
async def test_logout_without_refresh_token_skips_call():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(204)

    backend = _backend(handler)
    await backend.logout("tok")
    assert calls == []
    await backend.logout("tok", "rt")
    assert json.loads(calls[0].content)["refresh_token"] == "rt"


@pytest.mark.anyio
async def test_record_create_update_delete():
    seen = []

    def handler(request):
        seen.append((request.method, request.url.path))
        if request.method == "DELETE":
            return httpx.Response(204)
        return httpx.Response(200, json={"data": {"id": 3, **json.loads(request.content)}})

    backend = _backend(handler)
    created = await backend.create_record("tok", "crm_profiles", {"nome_estabelecimento": "A"})
    updated = await backend.update_record("tok", "crm_profiles", "3", {"nome_estabelecimento": "B"})
    await backend.delete_record("tok", "crm_profiles", "3")

    assert created["nome_estabelecimento"] == "A"
    assert updated["nome_estabelecimento"] == "B"
    assert seen == [
        ("POST", "/items/crm_profiles"),
        ("PATCH", "/items/crm_profiles/3"),
        ("DELETE", "/items/crm_profiles/3"),
    ]


@pytest.mark.anyio
async def test_list_records_without_limit_asks_for_every_row():
    seen = {}

    def handler(request):
        seen.update(dict(request.url.params))
        return httpx.Response(200, json={"data": []})

    await _backend(handler).list_records("tok", "pedidos", sort=["-data_pedido"])
    assert seen["limit"] == "-1"
