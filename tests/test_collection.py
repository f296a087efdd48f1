import httpx
import pytest
import respx

from deputy.clients.collection import Clients

API = "https://api.github.com/repos"


def test_wally_shares_the_github_client():
    clients = Clients()
    assert clients.wally.github is clients.github


@pytest.mark.asyncio
async def test_wally_requests_fill_the_shared_github_cache():
    clients = Clients()
    with respx.mock(assert_all_called=False) as router:
        config = router.get(f"{API}/owner/index/contents/config.json").mock(
            return_value=httpx.Response(200, json={"api": "https://api.example.com"})
        )
        router.get(f"{API}/owner/index/git/trees/main").mock(
            return_value=httpx.Response(
                200,
                json={
                    "sha": "main",
                    "url": "https://api.example.com/tree",
                    "tree": [
                        {"sha": "0", "url": "u", "type": "tree", "path": "scope"},
                    ],
                },
            )
        )
        scopes = await clients.wally.get_index_scopes("https://github.com/owner/index")
        raw = await clients.github.get_repository_file("owner", "index", "config.json")
    assert scopes == ["scope"]
    assert b"api.example.com" in raw
    assert config.call_count == 1