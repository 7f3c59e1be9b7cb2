"""Unit tests for the async RiotClient."""

import pytest
import aiohttp
from unittest.mock import AsyncMock, MagicMock, call, patch

from recap.exceptions import (
    InvalidRegion,
    NotFound,
    UpstreamClientError,
    UpstreamRateLimited,
    UpstreamServerError,
    UpstreamTransientNetwork,
)
from recap.riot.client import (
    RiotClient,
    compute_backoff,
    parse_retry_after,
    platform_host,
    regional_host,
)


def make_response(status=200, json_data=None, headers=None):
    resp = MagicMock()
    resp.status = status
    resp.reason = "Reason"
    resp.headers = headers or {}
    resp.json = AsyncMock(return_value=json_data)
    resp.__aenter__.return_value = resp
    resp.__aexit__.return_value = None
    return resp


def make_client(*responses, **kwargs):
    """Client whose session.get returns (or raises) ``responses`` in order."""
    session = MagicMock()
    session.closed = False
    session.get.side_effect = list(responses)
    client = RiotClient("test_key", **kwargs)
    client._session = session
    return client, session


@pytest.mark.asyncio
class TestRiotClient:
    """Test suite for RiotClient async operations."""

    async def test_client_initialization(self):
        client = RiotClient("test_api_key", max_retries=5, backoff_base=0.5)
        assert client.api_key == "test_api_key"
        assert client.max_retries == 5
        assert client.backoff_base == 0.5
        assert client._session is None
        assert len(client._req_times) == 0

    async def test_get_session_creates_session(self):
        client = RiotClient("test_key")
        session = await client._get_session()

        assert isinstance(session, aiohttp.ClientSession)
        assert not session.closed
        assert session.headers["X-Riot-Token"] == "test_key"

        await client.close()

    async def test_context_manager(self):
        async with RiotClient("test_key") as client:
            session = await client._get_session()
            assert not session.closed

        assert client._session.closed

    async def test_throttling_records_requests(self):
        client = RiotClient("test_key", quota_max=2, quota_window=1)

        await client._throttle()
        await client._throttle()

        assert len(client._req_times) == 2

    async def test_request_returns_json(self):
        client, session = make_client(make_response(200, {"puuid": "abc"}))

        with patch.object(client, "_throttle", new_callable=AsyncMock):
            result = await client._request("http://test.url")

        assert result == {"puuid": "abc"}
        session.get.assert_called_once_with("http://test.url")

    async def test_request_raises_not_found_on_404(self):
        client, _ = make_client(make_response(404))

        with patch.object(client, "_throttle", new_callable=AsyncMock):
            with pytest.raises(NotFound):
                await client._request("http://test.url")

    async def test_request_handles_429_retry(self):
        client, session = make_client(
            make_response(429, headers={"Retry-After": "2"}),
            make_response(200, {"data": "success"}),
        )

        with patch.object(client, "_throttle", new_callable=AsyncMock):
            with patch("asyncio.sleep", new_callable=AsyncMock) as sleep:
                result = await client._request("http://test.url")

        assert result == {"data": "success"}
        assert session.get.call_count == 2
        sleep.assert_awaited_once_with(2.0)

    async def test_always_429_exhausts_retry_budget_with_backoff(self):
        client, session = make_client(
            *[make_response(429) for _ in range(4)], max_retries=3, backoff_base=1.0
        )

        with patch.object(client, "_throttle", new_callable=AsyncMock):
            with patch("asyncio.sleep", new_callable=AsyncMock) as sleep:
                with pytest.raises(UpstreamRateLimited):
                    await client._request("http://test.url")

        # first attempt + 3 retries
        assert session.get.call_count == 4
        assert sleep.await_args_list == [call(1.0), call(2.0), call(4.0)]

    async def test_always_429_uses_retry_after_when_present(self):
        client, session = make_client(
            *[make_response(429, headers={"Retry-After": "7"}) for _ in range(3)], max_retries=2
        )

        with patch.object(client, "_throttle", new_callable=AsyncMock):
            with patch("asyncio.sleep", new_callable=AsyncMock) as sleep:
                with pytest.raises(UpstreamRateLimited) as exc_info:
                    await client._request("http://test.url")

        assert session.get.call_count == 3
        assert sleep.await_args_list == [call(7.0), call(7.0)]
        assert exc_info.value.retry_after == 7.0
        assert exc_info.value.status == 429

    async def test_network_error_retried_then_raised(self):
        client, session = make_client(
            *[aiohttp.ClientConnectionError("connection reset") for _ in range(3)],
            max_retries=2, backoff_base=0.5,
        )

        with patch.object(client, "_throttle", new_callable=AsyncMock):
            with patch("asyncio.sleep", new_callable=AsyncMock) as sleep:
                with pytest.raises(UpstreamTransientNetwork) as exc_info:
                    await client._request("http://test.url")

        assert session.get.call_count == 3
        assert sleep.await_args_list == [call(0.5), call(1.0)]
        assert isinstance(exc_info.value.__cause__, aiohttp.ClientConnectionError)

    async def test_network_error_recovers(self):
        client, session = make_client(
            aiohttp.ClientConnectionError("blip"),
            make_response(200, ["NA1_1"]),
        )

        with patch.object(client, "_throttle", new_callable=AsyncMock):
            with patch("asyncio.sleep", new_callable=AsyncMock):
                result = await client._request("http://test.url")

        assert result == ["NA1_1"]

    async def test_server_error_is_not_retried(self):
        client, session = make_client(make_response(503), make_response(200, {}))

        with patch.object(client, "_throttle", new_callable=AsyncMock):
            with patch("asyncio.sleep", new_callable=AsyncMock) as sleep:
                with pytest.raises(UpstreamServerError) as exc_info:
                    await client._request("http://test.url")

        assert session.get.call_count == 1
        sleep.assert_not_awaited()
        assert "503" in str(exc_info.value)

    async def test_client_error_is_not_retried(self):
        client, session = make_client(make_response(403))

        with patch.object(client, "_throttle", new_callable=AsyncMock):
            with pytest.raises(UpstreamClientError) as exc_info:
                await client._request("http://test.url")

        assert exc_info.value.status == 403
        assert "403" in str(exc_info.value)

    async def test_get_match_ids(self):
        client, _ = make_client(make_response(200, ["match1", "match2", "match3"]))

        with patch.object(client, "_throttle", new_callable=AsyncMock):
            result = await client.get_match_ids("na1", "test_puuid", count=3)

        assert result == ["match1", "match2", "match3"]

    async def test_get_match_ids_returns_empty_on_404(self):
        client = RiotClient("test_key")

        with patch.object(client, "_request", new_callable=AsyncMock, side_effect=NotFound("x")):
            result = await client.get_match_ids("euw1", "puuid", 5)

        assert result == []

    async def test_account_lookup_propagates_not_found(self):
        client = RiotClient("test_key")

        with patch.object(client, "_request", new_callable=AsyncMock, side_effect=NotFound("x")):
            with pytest.raises(NotFound):
                await client.get_account_by_riot_id("na1", "Nobody", "NA1")


@pytest.mark.asyncio
class TestRiotClientRouting:
    """Platform vs regional hosts."""

    async def test_euw_uses_europe_group(self):
        client = RiotClient("test_key")

        with patch.object(client, "_request", new_callable=AsyncMock) as mock_req:
            await client.get_match_ids("euw1", "puuid", 5)

            called_url = mock_req.call_args[0][0]
            assert called_url.startswith("https://europe.api.riotgames.com/tft/match/v1/")

    async def test_oce_uses_sea_group(self):
        client = RiotClient("test_key")

        with patch.object(client, "_request", new_callable=AsyncMock) as mock_req:
            await client.get_match_by_id("oc1", "OC1_123")

            assert "sea.api.riotgames.com" in mock_req.call_args[0][0]

    async def test_unknown_region_is_rejected_before_any_request(self):
        client = RiotClient("test_key")

        with patch.object(client, "_request", new_callable=AsyncMock) as mock_req:
            with pytest.raises(InvalidRegion):
                await client.get_account_by_riot_id("xx9", "Name", "TAG")
            with pytest.raises(InvalidRegion):
                await client.get_summoner_by_puuid("attacker.example/x?", "puuid")

            mock_req.assert_not_called()

    async def test_region_is_case_insensitive(self):
        client = RiotClient("test_key")

        with patch.object(client, "_request", new_callable=AsyncMock) as mock_req:
            await client.get_league_entries("EUW1", "sid")

            assert mock_req.call_args[0][0].startswith("https://euw1.api.riotgames.com/")

    async def test_summoner_uses_platform_host(self):
        client = RiotClient("test_key")

        with patch.object(client, "_request", new_callable=AsyncMock) as mock_req:
            await client.get_summoner_by_puuid("kr", "puuid")

            assert mock_req.call_args[0][0] == (
                "https://kr.api.riotgames.com/tft/summoner/v1/summoners/by-puuid/puuid"
            )

    async def test_riot_id_is_url_encoded(self):
        client = RiotClient("test_key")

        with patch.object(client, "_request", new_callable=AsyncMock) as mock_req:
            await client.get_account_by_riot_id("na1", "Big Name", "N/A")

            assert mock_req.call_args[0][0].endswith("/by-riot-id/Big%20Name/N%2FA")


class TestBackoffHelpers:

    def test_compute_backoff_doubles(self):
        assert [compute_backoff(a, 0.5) for a in range(4)] == [0.5, 1.0, 2.0, 4.0]

    def test_parse_retry_after(self):
        assert parse_retry_after("3") == 3.0
        assert parse_retry_after(None) is None
        assert parse_retry_after("soon") is None
        assert parse_retry_after("-1") is None


class TestHostHelpers:

    @pytest.mark.parametrize("region", ["attacker.example/x?", "evil.com#", "na1.evil.com", ""])
    def test_hosts_only_accept_known_platforms(self, region):
        with pytest.raises(InvalidRegion):
            platform_host(region)
        with pytest.raises(InvalidRegion):
            regional_host(region)

    def test_invalid_region_is_a_value_error(self):
        with pytest.raises(ValueError):
            platform_host("nowhere")
