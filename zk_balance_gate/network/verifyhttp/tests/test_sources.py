"""Unit tests for the HTTP blob-store key source."""

from __future__ import annotations

import httpx
import pytest
import respx

from zk_balance_gate.network.verifyhttp.sources import HttpKeySource
from zk_balance_gate.verification.exceptions import KeySourceError
from zk_balance_gate.verification.key_store import VerificationKeyStore
from zk_balance_gate.verification.tests.groth16_fixtures import valid_triple

BASE_URL = "https://project.supabase.co"
KEY_URL = f"{BASE_URL}/storage/v1/object/public/zkp/verification_key.json"
KEY_ID = "tokenBalance@v1"


def test_url_layout() -> None:
    source = HttpKeySource(BASE_URL + "/")
    assert source.url_for(KEY_ID) == KEY_URL
    assert source.url_for("other@v1") is None


def test_custom_bucket_and_names() -> None:
    source = HttpKeySource(BASE_URL, bucket="keys", names={KEY_ID: "tb_v1.json"})
    assert source.url_for(KEY_ID) == f"{BASE_URL}/storage/v1/object/public/keys/tb_v1.json"


@pytest.mark.trio
async def test_fetch_returns_json() -> None:
    vkey, _, _ = valid_triple()
    with respx.mock:
        respx.get(KEY_URL).respond(json=vkey)
        assert await HttpKeySource(BASE_URL).fetch(KEY_ID) == vkey


@pytest.mark.trio
async def test_missing_object_is_none() -> None:
    with respx.mock:
        respx.get(KEY_URL).respond(404)
        assert await HttpKeySource(BASE_URL).fetch(KEY_ID) is None


@pytest.mark.trio
async def test_unmapped_circuit_is_none_without_request() -> None:
    with respx.mock(assert_all_called=False) as router:
        route = router.get(KEY_URL).respond(500)
        assert await HttpKeySource(BASE_URL).fetch("other@v1") is None
        assert not route.called


@pytest.mark.trio
@pytest.mark.parametrize("response", [httpx.Response(503), httpx.Response(200, content=b"{oops")])
async def test_server_error_or_bad_json_raises(response: httpx.Response) -> None:
    with respx.mock:
        respx.get(KEY_URL).mock(return_value=response)
        with pytest.raises(KeySourceError):
            await HttpKeySource(BASE_URL).fetch(KEY_ID)


@pytest.mark.trio
async def test_network_error_raises() -> None:
    with respx.mock:
        respx.get(KEY_URL).mock(side_effect=httpx.ConnectTimeout("slow"))
        with pytest.raises(KeySourceError, match="failed"):
            await HttpKeySource(BASE_URL).fetch(KEY_ID)


@pytest.mark.trio
async def test_oversized_key_raises() -> None:
    with respx.mock:
        respx.get(KEY_URL).respond(content=b"{" + b" " * 64 + b"}")
        with pytest.raises(KeySourceError, match="exceeds"):
            await HttpKeySource(BASE_URL, max_bytes=16).fetch(KEY_ID)


@pytest.mark.trio
async def test_store_fetches_once_over_http() -> None:
    vkey, _, _ = valid_triple()
    with respx.mock:
        route = respx.get(KEY_URL).respond(json=vkey)
        store = VerificationKeyStore(HttpKeySource(BASE_URL))
        first = await store.load(KEY_ID)
        second = await store.load(KEY_ID)

    assert first is second is not None
    assert route.call_count == 1
    assert store.source_name == "http"
