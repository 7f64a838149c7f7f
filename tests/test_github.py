"""
Tests for the GitHub fetch service against a stubbed network.
"""

import httpx
import pytest

from prboard.exceptions import AuthError, ValidationError
from prboard.github import GitHubFetchService, split_repository
from prboard.testing import create_raw_pull_request
from prboard.transport import AsyncHTTPTransport


def make_service(handler) -> GitHubFetchService:
    return GitHubFetchService(
        AsyncHTTPTransport(token="ghp_test", http_transport=httpx.MockTransport(handler))
    )


def next_link(path: str, page: int) -> dict[str, str]:
    return {"Link": f'<https://api.github.com{path}?page={page}>; rel="next"'}


class TestListRecords:
    """Tests for GitHubFetchService.list_records."""

    @pytest.mark.asyncio
    async def test_request_shape_and_next_link(self) -> None:
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(
                200,
                json=[create_raw_pull_request(1, "octo/app")],
                headers=next_link("/repos/octo/app/pulls", 3),
            )

        async with make_service(handler) as service:
            page = await service.list_records("octo/app", "open", 2, 100)

        assert page.has_more is True
        assert page.records[0]["number"] == 1
        request = requests[0]
        assert request.url.path == "/repos/octo/app/pulls"
        assert dict(request.url.params) == {
            "state": "open",
            "per_page": "100",
            "page": "2",
            "sort": "updated",
            "direction": "desc",
        }

    @pytest.mark.asyncio
    async def test_last_page_has_no_more(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=[])

        async with make_service(handler) as service:
            page = await service.list_records("octo/app", "all", 1, 30)

        assert page.has_more is False
        assert page.records == []

    @pytest.mark.asyncio
    async def test_merged_is_requested_as_closed(self) -> None:
        states: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            states.append(request.url.params["state"])
            return httpx.Response(200, json=[])

        async with make_service(handler) as service:
            await service.list_records("octo/app", "merged", 1, 30)

        assert states == ["closed"]

    @pytest.mark.asyncio
    async def test_invalid_inputs(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        async with make_service(handler) as service:
            with pytest.raises(ValidationError):
                await service.list_records("not-a-repo", "open", 1, 30)
            with pytest.raises(ValidationError):
                await service.list_records("octo/app", "draft", 1, 30)


@pytest.mark.asyncio
async def test_list_labels_follows_pagination() -> None:
    pages: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        page = request.url.params["page"]
        pages.append(page)
        if page == "1":
            return httpx.Response(
                200, json=[{"name": "bug"}], headers=next_link("/repos/octo/app/labels", 2)
            )
        return httpx.Response(200, json=[{"name": "docs"}])

    async with make_service(handler) as service:
        labels = await service.list_labels("octo/app")

    assert [label["name"] for label in labels] == ["bug", "docs"]
    assert pages == ["1", "2"]


def test_split_repository() -> None:
    assert split_repository(" octo/app ") == ("octo", "app")
    for invalid in ("octo", "/app", "octo/", "a/b/c"):
        with pytest.raises(ValidationError):
            split_repository(invalid)


class TestFromEnv:
    """Tests for environment-based construction."""

    @pytest.mark.asyncio
    async def test_requires_token(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        with pytest.raises(AuthError):
            GitHubFetchService.from_env()

    @pytest.mark.asyncio
    async def test_reads_base_url(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GITHUB_TOKEN", "ghp_env")
        monkeypatch.setenv("GITHUB_API_URL", "https://github.example/api/v3/")

        service = GitHubFetchService.from_env()
        try:
            assert service.transport.base_url == "https://github.example/api/v3"
        finally:
            await service.close()
