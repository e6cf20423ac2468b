import json

import httpx
import pytest

from exam_vault.core.storage import (
    ObjectStoreError,
    SupabaseObjectStore,
    close_object_store,
    generate_object_key,
    get_object_store,
)


def _store(handler, requests):
    def record(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    return SupabaseObjectStore(
        base_url="https://proj.supabase.co/",
        anon_key="anon-key",
        service_role_key="service-key",
        bucket="Vault",
        client=httpx.Client(transport=httpx.MockTransport(record)),
    )


def test_generate_object_key():
    assert generate_object_key("Final Exam\t2024.pdf", now=1700000000.5) == "1700000000500-Final_Exam_2024.pdf"
    assert generate_object_key("a/b.pdf", now=1).endswith("-a_b.pdf")


def test_put_uses_anon_key_and_returns_public_url():
    requests = []
    store = _store(lambda request: httpx.Response(200, json={"Key": "Vault/k.pdf"}), requests)

    url = store.put("k.pdf", b"%PDF")

    assert url == "https://proj.supabase.co/storage/v1/object/public/Vault/k.pdf"
    request = requests[0]
    assert request.method == "POST"
    assert str(request.url) == "https://proj.supabase.co/storage/v1/object/Vault/k.pdf"
    assert request.headers["Authorization"] == "Bearer anon-key"
    assert request.headers["x-upsert"] == "false"
    assert request.content == b"%PDF"


def test_delete_uses_service_role_key():
    requests = []
    store = _store(lambda request: httpx.Response(200, json=[{"name": "k.pdf"}]), requests)

    store.delete("k.pdf")

    request = requests[0]
    assert request.method == "DELETE"
    assert str(request.url) == "https://proj.supabase.co/storage/v1/object/Vault"
    assert request.headers["Authorization"] == "Bearer service-key"
    assert json.loads(request.content) == {"prefixes": ["k.pdf"]}


@pytest.mark.parametrize("operation", ["put", "delete"])
def test_error_responses_raise(operation):
    store = _store(lambda request: httpx.Response(403, json={"error": "Unauthorized"}), [])
    with pytest.raises(ObjectStoreError):
        if operation == "put":
            store.put("k.pdf", b"%PDF")
        else:
            store.delete("k.pdf")


def test_transport_errors_raise():
    def fail(request):
        raise httpx.ConnectError("unreachable", request=request)

    store = _store(fail, [])
    with pytest.raises(ObjectStoreError):
        store.delete("k.pdf")


def test_invalid_url_errors_raise():
    def fail(request):
        raise httpx.InvalidURL("bad host")

    store = _store(fail, [])
    with pytest.raises(ObjectStoreError):
        store.delete("k.pdf")
    with pytest.raises(ObjectStoreError):
        store.put("k.pdf", b"%PDF")


def test_close_object_store_closes_cached_client():
    get_object_store.cache_clear()
    store = get_object_store()

    close_object_store()

    assert store.client.is_closed
    assert get_object_store.cache_info().currsize == 0
    # nothing cached: closing again is a no-op
    close_object_store()
