import asyncio

import httpx
import pytest

from app.core.exceptions import (
    UpstreamCredentialsMissing,
    UpstreamError,
    UpstreamForbidden,
    UpstreamNoHistory,
    UpstreamNotFound,
    UpstreamTransient,
)
from app.services.lastfm import LastFmClient, LastFmService


def make_service(handler, api_key="test-key", **client_kwargs):
    requests: list[httpx.Request] = []

    def recording_handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    client = LastFmClient(api_key=api_key, transport=httpx.MockTransport(recording_handler), **client_kwargs)
    return LastFmService(client), requests


def run(coro):
    return asyncio.run(coro)


class TestTopArtists:
    def test_parses_artists(self):
        def handler(request):
            return httpx.Response(
                200,
                json={
                    "topartists": {
                        "artist": [
                            {"name": "Radiohead", "playcount": "812"},
                            {"name": "Portishead", "playcount": "not-a-number"},
                            {"name": "", "playcount": "5"},
                        ]
                    }
                },
            )

        service, requests = make_service(handler)
        result = run(service.get_top_artists("thom_y", period="overall", limit=50))

        assert [(a.name, a.playcount) for a in result.artists] == [("Radiohead", 812), ("Portishead", None)]
        params = requests[0].url.params
        assert params["method"] == "user.gettopartists"
        assert params["user"] == "thom_y"
        assert params["limit"] == "50"
        assert params["period"] == "overall"
        assert params["api_key"] == "test-key"
        assert params["format"] == "json"

    def test_single_artist_object(self):
        def handler(request):
            return httpx.Response(200, json={"topartists": {"artist": {"name": "Björk", "playcount": "3"}}})

        service, _ = make_service(handler)
        result = run(service.get_top_artists("solo"))

        assert [a.name for a in result.artists] == ["Björk"]

    def test_empty_history(self):
        def handler(request):
            return httpx.Response(200, json={"topartists": {"artist": [], "@attr": {"total": "0"}}})

        service, _ = make_service(handler)
        assert run(service.get_top_artists("quiet")).artists == []

    def test_missing_envelope(self):
        service, _ = make_service(lambda request: httpx.Response(200, json={}))

        with pytest.raises(UpstreamNoHistory):
            run(service.get_top_artists("nobody"))


class TestTopTracks:
    def test_parses_tracks(self):
        def handler(request):
            return httpx.Response(
                200,
                json={
                    "toptracks": {
                        "track": [
                            {"name": "Reckoner", "playcount": "40", "artist": {"name": "Radiohead"}},
                            {"name": "Roads", "playcount": "12", "artist": {"#text": "Portishead"}},
                            {"name": "Untitled", "playcount": "1", "artist": {}},
                        ]
                    }
                },
            )

        service, requests = make_service(handler)
        result = run(service.get_top_tracks("thom_y", limit=100))

        assert [(t.artist_name, t.track_name, t.playcount) for t in result.tracks] == [
            ("Radiohead", "Reckoner", 40),
            ("Portishead", "Roads", 12),
        ]
        assert requests[0].url.params["method"] == "user.gettoptracks"


class TestErrorClassification:
    def test_unknown_user(self):
        def handler(request):
            return httpx.Response(400, json={"error": 6, "message": "User not found"})

        service, requests = make_service(handler)
        with pytest.raises(UpstreamNotFound) as exc_info:
            run(service.get_top_artists("ghost"))

        assert "User not found" in exc_info.value.message
        assert len(requests) == 1

    def test_error_body_with_ok_status(self):
        def handler(request):
            return httpx.Response(200, json={"error": 17, "message": "Login: User required to be logged in"})

        service, _ = make_service(handler)
        with pytest.raises(UpstreamForbidden):
            run(service.get_top_tracks("private"))

    def test_invalid_api_key(self):
        def handler(request):
            return httpx.Response(403, json={"error": 10, "message": "Invalid API key"})

        service, _ = make_service(handler)
        with pytest.raises(UpstreamCredentialsMissing):
            run(service.get_top_artists("thom_y"))

    def test_missing_api_key_makes_no_request(self):
        service, requests = make_service(lambda request: httpx.Response(200, json={}), api_key=None)

        with pytest.raises(UpstreamCredentialsMissing):
            run(service.get_top_artists("thom_y"))
        assert requests == []

    def test_rate_limited(self):
        def handler(request):
            return httpx.Response(200, json={"error": 29, "message": "Rate limit exceeded"})

        service, _ = make_service(handler)
        with pytest.raises(UpstreamTransient):
            run(service.get_top_artists("thom_y"))

    def test_timeout_is_not_retried(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        service, requests = make_service(handler)
        with pytest.raises(UpstreamTransient):
            run(service.get_top_artists("thom_y"))
        assert len(requests) == 1

    def test_server_errors_are_not_retried_by_default(self):
        service, requests = make_service(lambda request: httpx.Response(503, text="unavailable"))

        with pytest.raises(UpstreamTransient):
            run(service.get_top_artists("thom_y"))
        assert len(requests) == 1

    def test_server_errors_are_retried_when_configured(self):
        service, requests = make_service(lambda request: httpx.Response(503, text="unavailable"), max_retries=2)

        with pytest.raises(UpstreamTransient):
            run(service.get_top_artists("thom_y"))
        assert len(requests) == 2

    def test_server_recovers_on_retry(self):
        responses = iter(
            [
                httpx.Response(502, text="bad gateway"),
                httpx.Response(200, json={"topartists": {"artist": [{"name": "Low", "playcount": "9"}]}}),
            ]
        )
        service, requests = make_service(lambda request: next(responses), max_retries=2)

        result = run(service.get_top_artists("thom_y"))

        assert [a.name for a in result.artists] == ["Low"]
        assert len(requests) == 2

    def test_unrecognised_error_code(self):
        def handler(request):
            return httpx.Response(200, json={"error": 99, "message": "Something new"})

        service, _ = make_service(handler)
        with pytest.raises(UpstreamError) as exc_info:
            run(service.get_top_artists("thom_y"))
        assert type(exc_info.value) is UpstreamError
