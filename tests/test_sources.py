# ContentSync Source Tests
# Tests for the JSON and REST connectors

import threading

import httpx
import pytest

from contentsync.config.schema import JsonSourceConfig, RestSourceConfig
from contentsync.errors import SourceErrorKind
from contentsync.sources import JsonSource, RestSource, create_source
from contentsync.sources.base import FetchContext
from contentsync.sources.http import get_json

API = "https://api.example.com/v1/"
ARTICLES = [{"id": n, "title": f"Article {n}"} for n in range(5)]


@pytest.fixture
def ctx(logger, store, make_config, client):
    """Fetch context with a live abort signal."""
    return FetchContext(logger=logger, store=store, options=make_config(), client=client, abort=threading.Event())


def serve_articles(entries, results_key=None):
    """respx side effect paginating ``entries`` by offset/limit params."""

    def handler(request: httpx.Request) -> httpx.Response:
        offset = int(request.url.params["offset"])
        limit = int(request.url.params["limit"])
        page = entries[offset : offset + limit]
        return httpx.Response(200, json={results_key: page} if results_key else page)

    return handler


class TestGetJson:
    """Tests for get_json()."""

    def test_ok(self, client, mock_http):
        mock_http.get(API + "settings").mock(return_value=httpx.Response(200, json={"a": 1}))
        assert get_json(client, API + "settings").unwrap() == {"a": 1}

    def test_status_error_is_fetch_error(self, client, mock_http):
        mock_http.get(API + "settings").mock(return_value=httpx.Response(503))
        result = get_json(client, API + "settings")
        assert result.error.kind == SourceErrorKind.FETCH
        assert "503" in result.error.message

    def test_invalid_json_is_parse_error(self, client, mock_http):
        mock_http.get(API + "settings").mock(return_value=httpx.Response(200, text="<html>"))
        assert get_json(client, API + "settings").error.kind == SourceErrorKind.PARSE

    def test_network_error_is_fetch_error(self, client, mock_http):
        mock_http.get(API + "settings").mock(side_effect=httpx.ConnectTimeout("timed out"))
        result = get_json(client, API + "settings")
        assert result.error.kind == SourceErrorKind.FETCH
        assert "timed out" in result.error.message


class TestJsonSource:
    """Tests for JsonSource."""

    def test_fetches_each_file(self, ctx, mock_http):
        mock_http.get("https://example.com/settings.json").mock(return_value=httpx.Response(200, json={"a": 1}))
        mock_http.get("https://example.com/menu.json").mock(return_value=httpx.Response(200, json=["home"]))
        config = JsonSourceConfig(
            id="site",
            files={"settings": "https://example.com/settings.json", "menu": "https://example.com/menu.json"},
        )

        documents = JsonSource(config).fetch(ctx).unwrap()

        assert [(doc.id, doc.data) for doc in documents] == [("settings", {"a": 1}), ("menu", ["home"])]

    def test_first_failure_stops(self, ctx, mock_http):
        mock_http.get("https://example.com/a.json").mock(return_value=httpx.Response(404))
        second = mock_http.get("https://example.com/b.json").mock(return_value=httpx.Response(200, json={}))
        config = JsonSourceConfig(
            id="site", files={"a": "https://example.com/a.json", "b": "https://example.com/b.json"}
        )

        result = JsonSource(config).fetch(ctx)

        assert result.error.kind == SourceErrorKind.FETCH
        assert not second.called

    def test_aborted(self, ctx, mock_http):
        route = mock_http.get("https://example.com/a.json").mock(return_value=httpx.Response(200, json={}))
        ctx.abort.set()

        result = JsonSource(JsonSourceConfig(id="site", files={"a": "https://example.com/a.json"})).fetch(ctx)

        assert result.is_err
        assert not route.called


class TestRestSource:
    """Tests for RestSource."""

    def test_one_document_per_page(self, ctx, mock_http):
        route = mock_http.get(API + "articles").mock(side_effect=serve_articles(ARTICLES))
        config = RestSourceConfig(id="blog", base_url=API, queries=["articles"], limit=2)

        documents = RestSource(config).fetch(ctx).unwrap()

        assert [doc.id for doc in documents] == ["articles-0", "articles-1", "articles-2"]
        assert documents[2].data == ARTICLES[4:]
        # Three pages plus the empty page that ends pagination
        assert route.call_count == 4
        assert [call.request.url.params["offset"] for call in route.calls] == ["0", "2", "4", "6"]

    def test_zero_pad_and_custom_params(self, ctx, mock_http):
        def handler(request: httpx.Request) -> httpx.Response:
            skip = int(request.url.params["skip"])
            take = int(request.url.params["take"])
            assert request.url.params["lang"] == "en"
            return httpx.Response(200, json=ARTICLES[skip : skip + take])

        mock_http.get(API + "posts").mock(side_effect=handler)
        config = RestSourceConfig(
            id="blog",
            base_url=API,
            queries=[{"path": "posts", "params": {"lang": "en"}, "id": "news"}],
            limit=3,
            page_num_zero_pad=3,
            offset_param="skip",
            limit_param="take",
        )

        documents = RestSource(config).fetch(ctx).unwrap()

        assert [doc.id for doc in documents] == ["news-000", "news-001"]

    def test_results_key_and_merge_pages(self, ctx, mock_http):
        mock_http.get(API + "articles").mock(side_effect=serve_articles(ARTICLES, results_key="items"))
        config = RestSourceConfig(
            id="blog", base_url=API, queries=["articles"], limit=2, results_key="items", merge_pages=True
        )

        documents = RestSource(config).fetch(ctx).unwrap()

        assert len(documents) == 1
        assert documents[0].id == "articles"
        assert documents[0].data == ARTICLES

    def test_max_num_pages(self, ctx, mock_http):
        mock_http.get(API + "articles").mock(side_effect=serve_articles(ARTICLES))
        config = RestSourceConfig(id="blog", base_url=API, queries=["articles"], limit=1, max_num_pages=2)

        assert len(RestSource(config).fetch(ctx).unwrap()) == 2

    def test_missing_results_key_is_parse_error(self, ctx, mock_http):
        mock_http.get(API + "articles").mock(return_value=httpx.Response(200, json={"data": []}))
        config = RestSourceConfig(id="blog", base_url=API, queries=["articles"], results_key="items")

        result = RestSource(config).fetch(ctx)

        assert result.error.kind == SourceErrorKind.PARSE
        assert "'items'" in result.error.message

    def test_non_list_body_is_parse_error(self, ctx, mock_http):
        mock_http.get(API + "articles").mock(return_value=httpx.Response(200, json={"id": 1}))
        config = RestSourceConfig(id="blog", base_url=API, queries=["articles"])

        assert RestSource(config).fetch(ctx).error.kind == SourceErrorKind.PARSE

    def test_page_failure_fails_source(self, ctx, mock_http):
        responses = [httpx.Response(200, json=ARTICLES[:2]), httpx.Response(500)]
        mock_http.get(API + "articles").mock(side_effect=responses)
        config = RestSourceConfig(id="blog", base_url=API, queries=["articles"], limit=2)

        result = RestSource(config).fetch(ctx)

        assert result.error.kind == SourceErrorKind.FETCH
        assert "500" in result.error.message

    def test_no_queries_is_config_error(self, ctx):
        config = RestSourceConfig(id="blog", base_url=API)
        assert RestSource(config).fetch(ctx).error.kind == SourceErrorKind.CONFIG

    def test_headers_are_sent(self, ctx, mock_http):
        route = mock_http.get(API + "articles").mock(return_value=httpx.Response(200, json=[]))
        config = RestSourceConfig(
            id="blog", base_url=API, queries=["articles"], headers={"Authorization": "Bearer token"}
        )

        RestSource(config).fetch(ctx)

        assert route.calls.last.request.headers["Authorization"] == "Bearer token"


class TestCreateSource:
    """Tests for create_source()."""

    def test_builds_by_type(self):
        assert isinstance(create_source(JsonSourceConfig(id="a")), JsonSource)
        assert isinstance(create_source(RestSourceConfig(id="b", base_url=API)), RestSource)

    def test_source_keeps_media_pattern(self):
        source = create_source(JsonSourceConfig(id="a", media_pattern=r".+\.svg"))
        assert source.media_pattern == r".+\.svg"
