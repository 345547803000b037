try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover
    import _bootstrap  # type: ignore # noqa: F401

import copy

import httpx
import pytest

from ig_connect.main import app
from ig_connect.services import (
    InstagramOAuthService,
    InstagramRelayService,
    OAuthStateRegistry,
    TokenCipherService,
    TokenStore,
)
from ig_connect.utils.http import GraphAPIError


class StubGraphClient:
    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self.fail = False

    async def get_user(self, access_token: str, fields: str = "id,name") -> dict:
        self.calls.append(("me", access_token))
        if self.fail:
            raise GraphAPIError("get user info", "Error validating access token")
        return {"id": "fb-1", "name": "Api User"}

    async def get_media(self, business_account_id: str, page_access_token: str, limit: int = 10) -> dict:
        self.calls.append(("media", business_account_id, page_access_token, limit))
        return {"data": [{"id": "m1"}], "paging": {"cursors": {}}}

    async def get_account_insights(
        self, business_account_id: str, page_access_token: str, period: str = "day"
    ) -> dict:
        self.calls.append(("insights", business_account_id, period))
        return {"data": [{"name": "reach"}]}

    async def get_media_comments(self, media_id: str, page_access_token: str) -> dict:
        self.calls.append(("comments", media_id, page_access_token))
        return {"data": [{"id": "c1"}]}

    async def get_stories(self, business_account_id: str, page_access_token: str) -> dict:
        self.calls.append(("stories", business_account_id, page_access_token))
        return {"data": [{"id": "s1"}]}

    async def get_tagged_media(
        self, business_account_id: str, page_access_token: str, limit: int = 25
    ) -> dict:
        self.calls.append(("tagged", business_account_id, limit))
        return {"data": [{"id": "t1"}]}

    async def get_business_discovery(
        self, business_account_id: str, page_access_token: str, username: str
    ) -> dict:
        self.calls.append(("discovery", business_account_id, username))
        return {"username": username, "followers_count": 10}

    async def search_hashtags(
        self, business_account_id: str, page_access_token: str, query: str
    ) -> dict:
        self.calls.append(("hashtag_search", business_account_id, query))
        return {"data": [{"id": "h1"}]}

    async def get_hashtag_media(
        self,
        hashtag_id: str,
        business_account_id: str,
        page_access_token: str,
        *,
        edge: str = "top_media",
        limit: int = 25,
    ) -> dict:
        self.calls.append((edge, hashtag_id, business_account_id, limit))
        return {"data": [{"id": "hm1"}]}

    async def get_recently_searched_hashtags(
        self, business_account_id: str, page_access_token: str
    ) -> dict:
        self.calls.append(("recently_searched", business_account_id))
        return {"data": [{"id": "h2"}]}

    async def get_carousel_children(self, media_id: str, page_access_token: str) -> dict:
        self.calls.append(("children", media_id, page_access_token))
        return {"data": [{"id": "child-1"}]}

    async def get_media_insights(self, media_id: str, page_access_token: str) -> dict:
        self.calls.append(("media_insights", media_id, page_access_token))
        return {"data": [{"name": "views"}]}

    async def get_audience_insights(
        self, business_account_id: str, page_access_token: str, period: str = "lifetime"
    ) -> dict:
        self.calls.append(("audience", business_account_id, period))
        return {"data": [{"name": "follower_demographics"}]}


@pytest.fixture()
def api_overrides():
    from ig_connect import dependencies
    from ig_connect.core.config import get_settings

    graph = StubGraphClient()
    store = TokenStore(TokenCipherService(secret="api-secret"))
    oauth_service = InstagramOAuthService(
        oauth_client=object(),
        graph_client=graph,
        state_registry=OAuthStateRegistry(),
        token_store=store,
        scopes=("instagram_basic",),
        success_redirect_url="/success.html",
        error_redirect_url="/error.html",
    )
    relay = InstagramRelayService(store, graph)
    settings = copy.deepcopy(get_settings())
    settings.environment = "development"

    app.dependency_overrides.update(
        {
            dependencies.get_instagram_oauth_service: lambda: oauth_service,
            dependencies.get_instagram_relay_service: lambda: relay,
            dependencies.get_graph_api_client: lambda: graph,
            dependencies.get_token_store: lambda: store,
            dependencies.get_app_settings: lambda: settings,
        }
    )

    yield graph, store, settings

    app.dependency_overrides.clear()


def _client() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://testserver"
    )


def _save_linked(store: TokenStore, user_id: str = "fb-1") -> None:
    store.save(
        user_id,
        access_token="user-token",
        expires_in=3600,
        permissions=["instagram_basic"],
        business_account_id="ig-1",
        business_account_username="shop",
        page_access_token="page-token",
    )


@pytest.mark.anyio
async def test_health_reports_environment(api_overrides):
    async with _client() as client:
        response = await client.get("/api/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["environment"] == "development"


@pytest.mark.anyio
async def test_me_requires_user_id(api_overrides):
    async with _client() as client:
        response = await client.get("/api/me")

    assert response.status_code == 400
    assert response.json() == {
        "error": "Missing required parameter: userId",
        "success": False,
    }


@pytest.mark.anyio
async def test_me_without_token_is_unauthorized(api_overrides):
    async with _client() as client:
        response = await client.get("/api/me", params={"userId": "nobody"})

    assert response.status_code == 401
    assert response.json()["success"] is False


@pytest.mark.anyio
async def test_me_returns_identity_and_token_info(api_overrides):
    graph, store, _ = api_overrides
    _save_linked(store)

    async with _client() as client:
        response = await client.get("/api/me", params={"userId": "fb-1"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["user"] == {"id": "fb-1", "name": "Api User"}
    assert body["tokenInfo"]["instagramUsername"] == "shop"
    assert body["tokenInfo"]["instagramAccountId"] == "ig-1"
    assert "access_token" not in response.text
    assert graph.calls == [("me", "user-token")]


@pytest.mark.anyio
async def test_graph_failure_is_reported_as_bad_gateway(api_overrides):
    graph, store, _ = api_overrides
    _save_linked(store)
    graph.fail = True

    async with _client() as client:
        response = await client.get("/api/me", params={"userId": "fb-1"})

    assert response.status_code == 502
    body = response.json()
    assert body["error"] == "Instagram Graph API request failed"
    assert body["success"] is False
    assert "Error validating access token" not in body["error"]


@pytest.mark.anyio
async def test_tokens_listing_in_development(api_overrides):
    _, store, _ = api_overrides
    _save_linked(store)

    async with _client() as client:
        response = await client.get("/api/tokens")

    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 1
    token = body["tokens"][0]
    assert token["userId"] == "fb-1"
    assert token["isExpired"] is False
    assert "user-token" not in response.text
    assert "page-token" not in response.text


@pytest.mark.anyio
async def test_tokens_listing_forbidden_outside_development(api_overrides):
    _, _, settings = api_overrides
    settings.environment = "production"

    async with _client() as client:
        response = await client.get("/api/tokens")

    assert response.status_code == 403


@pytest.mark.anyio
async def test_logout_removes_token_once(api_overrides):
    _, store, _ = api_overrides
    _save_linked(store)

    async with _client() as client:
        first = await client.delete("/api/logout", params={"userId": "fb-1"})
        second = await client.delete("/api/logout", params={"userId": "fb-1"})

    assert first.status_code == 200
    assert first.json()["success"] is True
    assert second.status_code == 404
    assert store.get("fb-1") is None


@pytest.mark.anyio
async def test_media_relay_uses_page_token(api_overrides):
    graph, store, _ = api_overrides
    _save_linked(store)

    async with _client() as client:
        response = await client.get(
            "/api/instagram/media", params={"userId": "fb-1", "limit": 5}
        )

    assert response.status_code == 200
    body = response.json()
    assert body["media"] == [{"id": "m1"}]
    assert body["instagramUsername"] == "shop"
    assert graph.calls == [("media", "ig-1", "page-token", 5)]


@pytest.mark.anyio
async def test_relay_without_business_account_is_not_found(api_overrides):
    graph, store, _ = api_overrides
    store.save("fb-2", access_token="user-token")

    async with _client() as client:
        response = await client.get("/api/instagram/media", params={"userId": "fb-2"})

    assert response.status_code == 404
    assert "No Instagram Business Account connected" in response.json()["error"]
    assert graph.calls == []


@pytest.mark.anyio
async def test_relay_without_token_is_unauthorized(api_overrides):
    async with _client() as client:
        response = await client.get("/api/instagram/stories", params={"userId": "ghost"})

    assert response.status_code == 401


@pytest.mark.anyio
async def test_period_insights_validate_period(api_overrides):
    graph, store, _ = api_overrides
    _save_linked(store)

    async with _client() as client:
        bad = await client.get(
            "/api/instagram/insights/period", params={"userId": "fb-1", "period": "year"}
        )
        good = await client.get(
            "/api/instagram/insights/period", params={"userId": "fb-1", "period": "week"}
        )

    assert bad.status_code == 400
    assert good.status_code == 200
    assert good.json()["period"] == "week"
    assert graph.calls == [("insights", "ig-1", "week")]


@pytest.mark.anyio
async def test_comments_require_media_id(api_overrides):
    graph, store, _ = api_overrides
    _save_linked(store)

    async with _client() as client:
        missing = await client.get("/api/instagram/media/comments", params={"userId": "fb-1"})
        ok = await client.get(
            "/api/instagram/media/comments", params={"userId": "fb-1", "mediaId": "m1"}
        )

    assert missing.status_code == 400
    assert missing.json()["error"] == "Missing required parameter: mediaId"
    assert ok.json()["comments"] == [{"id": "c1"}]


@pytest.mark.anyio
async def test_unknown_route_returns_json_404(api_overrides):
    async with _client() as client:
        response = await client.get("/api/does-not-exist")

    assert response.status_code == 404
    assert response.json() == {
        "error": "Route not found",
        "success": False,
        "path": "/api/does-not-exist",
        "method": "GET",
    }


@pytest.mark.anyio
@pytest.mark.parametrize(
    ("path", "params", "expected_call", "key", "expected"),
    [
        ("/api/instagram/stories", {}, ("stories", "ig-1", "page-token"), "stories", [{"id": "s1"}]),
        ("/api/instagram/tagged", {"limit": 7}, ("tagged", "ig-1", 7), "tagged", [{"id": "t1"}]),
        (
            "/api/instagram/business-discovery",
            {"username": "@other_shop"},
            ("discovery", "ig-1", "other_shop"),
            "account",
            {"username": "other_shop", "followers_count": 10},
        ),
        (
            "/api/instagram/hashtag/search",
            {"query": "#coffee"},
            ("hashtag_search", "ig-1", "coffee"),
            "hashtags",
            [{"id": "h1"}],
        ),
        (
            "/api/instagram/hashtag/top-media",
            {"hashtagId": "h1"},
            ("top_media", "h1", "ig-1", 25),
            "media",
            [{"id": "hm1"}],
        ),
        (
            "/api/instagram/hashtag/recent-media",
            {"hashtagId": "h1", "limit": 3},
            ("recent_media", "h1", "ig-1", 3),
            "media",
            [{"id": "hm1"}],
        ),
        (
            "/api/instagram/hashtag/recently-searched",
            {},
            ("recently_searched", "ig-1"),
            "hashtags",
            [{"id": "h2"}],
        ),
        (
            "/api/instagram/media/children",
            {"mediaId": "m1"},
            ("children", "m1", "page-token"),
            "children",
            [{"id": "child-1"}],
        ),
        (
            "/api/instagram/media/insights",
            {"mediaId": "m1", "mediaType": "REELS"},
            ("media_insights", "m1", "page-token"),
            "insights",
            [{"name": "views"}],
        ),
        (
            "/api/instagram/audience/insights",
            {"period": "day"},
            ("audience", "ig-1", "day"),
            "insights",
            [{"name": "follower_demographics"}],
        ),
        (
            "/api/instagram/insights",
            {},
            ("insights", "ig-1", "day"),
            "insights",
            [{"name": "reach"}],
        ),
    ],
)
async def test_relay_routes_forward_to_graph(
    api_overrides, path, params, expected_call, key, expected
):
    graph, store, _ = api_overrides
    _save_linked(store)

    async with _client() as client:
        response = await client.get(path, params={"userId": "fb-1", **params})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body[key] == expected
    assert graph.calls == [expected_call]


@pytest.mark.anyio
async def test_media_insights_echo_media_type(api_overrides):
    _, store, _ = api_overrides
    _save_linked(store)

    async with _client() as client:
        response = await client.get(
            "/api/instagram/media/insights",
            params={"userId": "fb-1", "mediaId": "m1", "mediaType": "CAROUSEL_ALBUM"},
        )

    body = response.json()
    assert body["mediaId"] == "m1"
    assert body["mediaType"] == "CAROUSEL_ALBUM"


@pytest.mark.anyio
@pytest.mark.parametrize(
    ("path", "params", "message"),
    [
        ("/api/instagram/stories", {}, "Missing required parameter: userId"),
        ("/api/instagram/tagged", {}, "Missing required parameter: userId"),
        (
            "/api/instagram/business-discovery",
            {"userId": "fb-1"},
            "Missing required parameter: username",
        ),
        (
            "/api/instagram/business-discovery",
            {},
            "Missing required parameters: userId and username",
        ),
        ("/api/instagram/hashtag/search", {"userId": "fb-1"}, "Missing required parameter: query"),
        (
            "/api/instagram/hashtag/top-media",
            {"userId": "fb-1"},
            "Missing required parameter: hashtagId",
        ),
        (
            "/api/instagram/hashtag/recent-media",
            {"userId": "fb-1"},
            "Missing required parameter: hashtagId",
        ),
        ("/api/instagram/hashtag/recently-searched", {}, "Missing required parameter: userId"),
        ("/api/instagram/media/children", {"userId": "fb-1"}, "Missing required parameter: mediaId"),
        ("/api/instagram/media/insights", {"userId": "fb-1"}, "Missing required parameter: mediaId"),
        ("/api/instagram/audience/insights", {}, "Missing required parameter: userId"),
    ],
)
async def test_relay_routes_reject_missing_parameters(api_overrides, path, params, message):
    graph, store, _ = api_overrides
    _save_linked(store)

    async with _client() as client:
        response = await client.get(path, params=params)

    assert response.status_code == 400
    assert response.json() == {"error": message, "success": False}
    assert graph.calls == []


@pytest.mark.anyio
async def test_tokens_listing_includes_instagram_username(api_overrides):
    _, store, _ = api_overrides
    _save_linked(store)

    async with _client() as client:
        response = await client.get("/api/tokens")

    token = response.json()["tokens"][0]
    assert token["instagramUsername"] == "shop"
    assert token["instagramAccountId"] == "ig-1"


@pytest.mark.anyio
async def test_cross_origin_requests_are_allowed(api_overrides):
    async with _client() as client:
        simple = await client.get(
            "/api/health", headers={"Origin": "https://dashboard.example.com"}
        )
        preflight = await client.options(
            "/api/instagram/media",
            headers={
                "Origin": "https://dashboard.example.com",
                "Access-Control-Request-Method": "GET",
            },
        )

    assert simple.status_code == 200
    assert simple.headers["access-control-allow-origin"] == "*"
    assert preflight.status_code == 200
    assert "GET" in preflight.headers["access-control-allow-methods"]


def test_cors_origins_accept_comma_separated_values():
    from ig_connect.core.config import AppSettings

    settings = AppSettings(
        cors_allow_origins="https://a.example.com, https://b.example.com"
    )

    assert settings.cors_allow_origins == (
        "https://a.example.com",
        "https://b.example.com",
    )
