"""Catalog and auth gateway tests against mocked HTTP transports."""
import asyncio

import httpx
import pytest

from mygames.config import Settings
from mygames.exceptions import AuthError, GatewayError
from mygames.gateways.auth import SupabaseAuthGateway
from mygames.gateways.catalog import RawgCatalog, to_entry


def make_settings(**overrides) -> Settings:
    values = {
        "database_url": "sqlite+aiosqlite://",
        "supabase_url": "https://auth.example.test/",
        "supabase_anon_key": "anon-key",
        "rawg_api_key": "rawg-key",
        "rawg_base_url": "https://rawg.test/api",
    }
    values.update(overrides)
    return Settings(**values)


RAWG_ZELDA = {
    "id": 22511,
    "name": "The Legend of Zelda: Breath of the Wild",
    "background_image": "https://media.rawg.io/zelda.jpg",
    "metacritic": 97,
    "released": "2017-03-03",
    "short_screenshots": [{"id": 1, "image": "https://media.rawg.io/list-1.jpg"}],
}

RAWG_ZELDA_DETAILS = {
    **RAWG_ZELDA,
    "description_raw": "Step into a world of discovery.",
    "short_screenshots": [
        {"id": 1, "image": "https://media.rawg.io/detail-1.jpg"},
        {"id": 2, "image": "https://media.rawg.io/detail-2.jpg"},
    ],
}


class RawgStub:
    """Answers the search and detail endpoints, counting requests."""

    def __init__(self, results=None, details=None, status_code=200):
        self.results = [RAWG_ZELDA] if results is None else results
        self.details = details or {22511: RAWG_ZELDA_DETAILS}
        self.status_code = status_code
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.status_code != 200:
            return httpx.Response(self.status_code, json={"error": "boom"})
        if request.url.path == "/api/games":
            return httpx.Response(200, json={"count": len(self.results), "results": self.results})
        game_id = int(request.url.path.rsplit("/", 1)[1])
        if game_id not in self.details:
            return httpx.Response(404, json={"detail": "Not found."})
        return httpx.Response(200, json=self.details[game_id])

    def detail_requests(self) -> int:
        return sum(1 for r in self.requests if r.url.path != "/api/games")


def run_catalog(stub, call, **settings):
    async def run():
        client = httpx.AsyncClient(transport=httpx.MockTransport(stub))
        async with RawgCatalog(make_settings(**settings), client=client) as catalog:
            result = await call(catalog)
        await client.aclose()
        return result

    return asyncio.run(run())


class TestCatalogMapping:
    """RAWG payload mapping."""

    def test_to_entry(self):
        entry = to_entry(RAWG_ZELDA_DETAILS)
        assert entry.id == 22511
        assert entry.critic_score == 97
        assert entry.release_year == "2017"
        assert entry.description == "Step into a world of discovery."
        assert entry.screenshots == ["https://media.rawg.io/detail-1.jpg", "https://media.rawg.io/detail-2.jpg"]

    def test_missing_fields_fall_back(self):
        entry = to_entry({"id": 1, "name": "Obscure", "metacritic": None, "released": None})
        assert entry.critic_score == 0
        assert entry.release_year is None
        assert entry.image_url is None
        assert entry.screenshots == []


class TestCatalogSearch:
    """Search, enrichment and caching."""

    def test_search_sends_query_and_enriches_results(self):
        stub = RawgStub()
        page = run_catalog(stub, lambda c: c.search_catalog("zelda", page=2))

        search = stub.requests[0]
        assert search.url.params["search"] == "zelda"
        assert search.url.params["key"] == "rawg-key"
        assert search.url.params["page"] == "2"
        assert search.url.params["search_precise"] == "true"

        assert page.total == 1
        assert page.results[0].description == "Step into a world of discovery."
        assert page.results[0].screenshots[1] == "https://media.rawg.io/detail-2.jpg"

    def test_search_without_enrichment_skips_details(self):
        stub = RawgStub()
        page = run_catalog(stub, lambda c: c.search_catalog("zelda", enrich=False))

        assert stub.detail_requests() == 0
        assert page.results[0].description == ""
        assert page.results[0].screenshots == ["https://media.rawg.io/list-1.jpg"]

    def test_details_are_cached(self):
        stub = RawgStub()

        async def twice(catalog):
            await catalog.get_details(22511)
            return await catalog.get_details(22511)

        entry = run_catalog(stub, twice)
        assert entry.name == "The Legend of Zelda: Breath of the Wild"
        assert stub.detail_requests() == 1

    def test_unknown_game_has_no_details(self):
        assert run_catalog(RawgStub(), lambda c: c.get_details(1)) is None

    def test_missing_api_key_returns_nothing(self):
        stub = RawgStub()
        page = run_catalog(stub, lambda c: c.search_catalog("zelda"), rawg_api_key=None)

        assert page.results == []
        assert page.total == 0
        assert stub.requests == []

    def test_upstream_failure_returns_empty_page(self):
        page = run_catalog(RawgStub(status_code=500), lambda c: c.search_catalog("zelda"))
        assert page.results == []

    def test_malformed_results_are_skipped(self):
        stub = RawgStub(results=[{"name": "No id"}, "not a game", RAWG_ZELDA])
        page = run_catalog(stub, lambda c: c.search_catalog("zelda"))

        assert [e.id for e in page.results] == [22511]
        assert page.results[0].description == "Step into a world of discovery."

    def test_malformed_details_keep_list_data(self):
        stub = RawgStub(details={22511: {"id": 22511, "short_screenshots": ["bad", 3]}})
        page = run_catalog(stub, lambda c: c.search_catalog("zelda"))

        assert page.results[0].screenshots == ["https://media.rawg.io/list-1.jpg"]
        assert run_catalog(stub, lambda c: c.get_details(22511)) is None

    def test_covers_are_capped(self):
        results = [dict(RAWG_ZELDA, id=i, name=f"Zelda {i}") for i in range(20)]
        stub = RawgStub(results=results)
        covers = run_catalog(stub, lambda c: c.search_covers("zelda"), cover_page_size=3)

        assert [c.name for c in covers] == ["Zelda 0", "Zelda 1", "Zelda 2"]
        assert stub.requests[0].url.params["page_size"] == "3"
        assert stub.detail_requests() == 0


def run_auth(handler, call):
    async def run():
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        async with SupabaseAuthGateway(make_settings(), client=client) as auth:
            result = await call(auth)
        await client.aclose()
        return result

    return asyncio.run(run())


SIGN_IN_PAYLOAD = {
    "access_token": "jwt-token",
    "refresh_token": "refresh",
    "expires_in": 3600,
    "user": {"id": "user-1", "email": "ana@example.test"},
}


class TestAuthGateway:
    """Requests to the auth provider and error mapping."""

    def test_sign_in(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=SIGN_IN_PAYLOAD)

        session = run_auth(handler, lambda a: a.sign_in("ana@example.test", "secret"))

        assert session.access_token == "jwt-token"
        assert session.user.id == "user-1"
        request = seen[0]
        assert request.url.path == "/auth/v1/token"
        assert request.url.params["grant_type"] == "password"
        assert request.headers["apikey"] == "anon-key"

    def test_bad_credentials_raise_auth_error(self):
        def handler(request):
            return httpx.Response(400, json={"error_description": "Invalid login credentials"})

        with pytest.raises(AuthError, match="Invalid login credentials"):
            run_auth(handler, lambda a: a.sign_in("ana@example.test", "wrong"))

    def test_provider_failure_raises_gateway_error(self):
        def handler(request):
            return httpx.Response(503, text="unavailable")

        with pytest.raises(GatewayError):
            run_auth(handler, lambda a: a.sign_up("ana@example.test", "secret"))

    def test_unreachable_provider_raises_gateway_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(GatewayError):
            run_auth(handler, lambda a: a.request_password_reset("ana@example.test", "https://app.test/reset"))

    def test_current_user_uses_bearer_token(self):
        def handler(request):
            if request.headers["Authorization"] != "Bearer jwt-token":
                return httpx.Response(401, json={"msg": "invalid JWT"})
            return httpx.Response(200, json={"id": "user-1", "email": "ana@example.test"})

        user = run_auth(handler, lambda a: a.current_user("jwt-token"))
        assert user.id == "user-1"
        assert run_auth(handler, lambda a: a.current_user("expired")) is None

    def test_password_reset_passes_redirect(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={})

        run_auth(handler, lambda a: a.request_password_reset("ana@example.test", "https://app.test/reset"))
        assert seen[0].url.path == "/auth/v1/recover"
        assert seen[0].url.params["redirect_to"] == "https://app.test/reset"

    def test_sign_out_failure_is_not_raised(self):
        def handler(request):
            return httpx.Response(401, json={"msg": "session expired"})

        assert run_auth(handler, lambda a: a.sign_out("jwt-token")) is None
