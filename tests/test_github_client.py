import httpx
import pytest
import respx

from deputy.clients.errors import ResponseError
from deputy.clients.github.client import (
    GITHUB_API_CONTENT_TYPE_RAW,
    GITHUB_API_VERSION_VALUE,
    GithubClient,
)

API = "https://api.github.com/repos"


def _release(tag):
    return {
        "tag_name": tag,
        "name": None,
        "body": None,
        "draft": False,
        "prerelease": False,
        "created_at": None,
        "published_at": None,
        "assets": [],
    }


@pytest.mark.asyncio
async def test_metrics_are_fetched_lowercased_and_cached():
    client = GithubClient()
    with respx.mock(assert_all_called=False) as router:
        route = router.get(f"{API}/owner/repo/community/profile").mock(
            return_value=httpx.Response(200, json={"description": "desc", "documentation": None})
        )
        first = await client.get_repository_metrics("Owner", "Repo")
        second = await client.get_repository_metrics("owner", "repo")
    assert first.description == "desc"
    assert first.documentation is None
    assert second == first
    assert route.call_count == 1


@pytest.mark.asyncio
async def test_releases_parse_list():
    client = GithubClient()
    with respx.mock(assert_all_called=False) as router:
        router.get(f"{API}/owner/repo/releases").mock(
            return_value=httpx.Response(200, json=[_release("v1.2.3"), _release("v1.0.0")])
        )
        releases = await client.get_repository_releases("owner", "repo")
    assert [r.tag_name for r in releases] == ["v1.2.3", "v1.0.0"]
    assert releases[0].raw_version_string() == "1.2.3"


@pytest.mark.asyncio
async def test_tree_sha_is_lowercased():
    client = GithubClient()
    tree = {
        "sha": "main",
        "url": "https://api.example.com/tree",
        "tree": [{"sha": "a", "url": "u", "type": "tree", "path": "scope"}],
    }
    with respx.mock(assert_all_called=False) as router:
        route = router.get(f"{API}/owner/repo/git/trees/main").mock(
            return_value=httpx.Response(200, json=tree)
        )
        root = await client.get_repository_tree("Owner", "Repo", "MAIN")
    assert root.get_directory_paths() == ["scope"]
    assert route.call_count == 1


@pytest.mark.asyncio
async def test_file_request_headers():
    client = GithubClient(auth_token="token")
    with respx.mock(assert_all_called=False) as router:
        route = router.get(f"{API}/owner/repo/contents/config.json").mock(
            return_value=httpx.Response(200, content=b"raw bytes")
        )
        body = await client.get_repository_file("Owner", "Repo", "config.json")
    assert body == b"raw bytes"
    headers = route.calls.last.request.headers
    assert headers["accept"] == GITHUB_API_CONTENT_TYPE_RAW
    assert headers["x-github-api-version"] == GITHUB_API_VERSION_VALUE
    assert headers["authorization"] == "token"


@pytest.mark.asyncio
async def test_file_without_token_has_no_authorization():
    client = GithubClient()
    with respx.mock(assert_all_called=False) as router:
        route = router.get(f"{API}/owner/repo/contents/a.txt").mock(
            return_value=httpx.Response(200, content=b"x")
        )
        body = await client.get_repository_file("owner", "repo", "a.txt")
    assert body == b"x"
    assert "authorization" not in route.calls.last.request.headers


@pytest.mark.asyncio
async def test_not_found_error_is_cached():
    client = GithubClient()
    with respx.mock(assert_all_called=False) as router:
        route = router.get(f"{API}/owner/missing/contents/a.txt").mock(
            return_value=httpx.Response(404, text="Not Found")
        )
        with pytest.raises(ResponseError) as first:
            await client.get_repository_file("owner", "missing", "a.txt")
        with pytest.raises(ResponseError):
            await client.get_repository_file("owner", "missing", "a.txt")
    assert first.value.is_not_found_error()
    assert route.call_count == 1


@pytest.mark.asyncio
async def test_invalidate_forces_refetch():
    client = GithubClient()
    with respx.mock(assert_all_called=False) as router:
        route = router.get(f"{API}/owner/repo/contents/a.txt").mock(
            side_effect=[
                httpx.Response(200, content=b"first"),
                httpx.Response(200, content=b"second"),
            ]
        )
        first = await client.get_repository_file("owner", "repo", "a.txt")
        cached = await client.get_repository_file("owner", "repo", "a.txt")
        client.cache.invalidate()
        fresh = await client.get_repository_file("owner", "repo", "a.txt")
    assert (first, cached, fresh) == (b"first", b"first", b"second")
    assert route.call_count == 2