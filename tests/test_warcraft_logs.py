"""Tests for the Warcraft Logs GraphQL client and response normalization."""

import json
from datetime import UTC, datetime

import httpx
import pytest
import respx
from wcl_fixtures import (
    API_URL,
    TOKEN_URL,
    character_payload,
    graphql_responder,
    missing_character_payload,
    progression_payload,
    ranking,
    token_response,
    zone_payload,
)

from playercard.config import Settings
from playercard.models.identity import Region, ResolvedIdentity
from playercard.models.player_card import Difficulty
from playercard.services.warcraft_logs import (
    AuthFailedError,
    CharacterNotFoundError,
    ConfigMissingError,
    NetworkError,
    RequestFailedError,
    UpstreamError,
    WarcraftLogsClient,
    WarcraftLogsConfig,
    ZoneNotFoundError,
    flatten_rankings,
    most_played_spec,
    top_ranking,
)

IDENTITY = ResolvedIdentity(region=Region.US, realm="area-52", character_name="Testchar")


class TestConfig:
    def test_requires_both_credentials(self) -> None:
        assert not WarcraftLogsConfig(client_id="id").is_configured
        assert not WarcraftLogsConfig(client_secret="secret").is_configured
        assert WarcraftLogsConfig(client_id="id", client_secret="secret").is_configured

    def test_from_settings(self) -> None:
        settings = Settings(
            wcl_client_id="id",
            wcl_client_secret="secret",
            wcl_api_url=API_URL,
            wcl_token_url=TOKEN_URL,
            wcl_timeout_seconds=3.0,
        )

        config = WarcraftLogsConfig.from_settings(settings)

        assert config.is_configured
        assert config.api_url == API_URL
        assert config.token_url == TOKEN_URL
        assert config.timeout == 3.0


class TestGetToken:
    async def test_missing_credentials(self, unconfigured_client: WarcraftLogsClient) -> None:
        with pytest.raises(ConfigMissingError) as exc_info:
            await unconfigured_client.get_token()

        assert exc_info.value.code == "WCL_CONFIG_MISSING"

    @respx.mock
    async def test_client_credentials_grant(self, wcl_client: WarcraftLogsClient) -> None:
        route = respx.post(TOKEN_URL).mock(return_value=token_response("abc"))

        token = await wcl_client.get_token()

        assert token == "abc"
        body = route.calls.last.request.content.decode()
        assert "grant_type=client_credentials" in body
        assert "client_id=test-id" in body
        assert "client_secret=test-secret" in body

    @respx.mock
    async def test_rejected_credentials(self, wcl_client: WarcraftLogsClient) -> None:
        respx.post(TOKEN_URL).mock(return_value=httpx.Response(401, text="invalid_client"))

        with pytest.raises(AuthFailedError) as exc_info:
            await wcl_client.get_token()

        assert exc_info.value.status_code == 401
        assert exc_info.value.code == "WCL_OAUTH_FAILED"

    @respx.mock
    async def test_missing_access_token(self, wcl_client: WarcraftLogsClient) -> None:
        respx.post(TOKEN_URL).mock(return_value=httpx.Response(200, json={"token_type": "Bearer"}))

        with pytest.raises(AuthFailedError, match="missing access token"):
            await wcl_client.get_token()

    @respx.mock
    async def test_transport_failure(self, wcl_client: WarcraftLogsClient) -> None:
        respx.post(TOKEN_URL).mock(side_effect=httpx.ConnectError("connection refused"))

        with pytest.raises(NetworkError):
            await wcl_client.get_token()


class TestFetchByName:
    @respx.mock
    async def test_fresh_token_per_call(self, wcl_client: WarcraftLogsClient) -> None:
        token_route = respx.post(TOKEN_URL).mock(return_value=token_response())
        respx.post(API_URL).mock(return_value=httpx.Response(200, json=character_payload()))

        await wcl_client.fetch_by_name(IDENTITY)
        await wcl_client.fetch_by_name(IDENTITY)

        assert token_route.call_count == 2

    @respx.mock
    async def test_sends_bearer_and_variables(self, wcl_client: WarcraftLogsClient) -> None:
        respx.post(TOKEN_URL).mock(return_value=token_response("tok"))
        api_route = respx.post(API_URL).mock(
            return_value=httpx.Response(200, json=character_payload())
        )

        await wcl_client.fetch_by_name(IDENTITY)

        request = api_route.calls.last.request
        assert request.headers["Authorization"] == "Bearer tok"
        variables = json.loads(request.content)["variables"]
        assert variables == {"name": "Testchar", "serverSlug": "area-52", "serverRegion": "US"}

    @respx.mock
    async def test_normalizes_character(self, wcl_client: WarcraftLogsClient) -> None:
        respx.post(TOKEN_URL).mock(return_value=token_response())
        payload = character_payload(
            class_id=6,
            rankings=[
                ranking(1, "First Boss", spec="Holy", rank_percent=55.0),
                ranking(2, "Second Boss", spec="Retribution", rank_percent=91.234),
                ranking(3, "Third Boss", spec="Holy", rank_percent=70.0),
            ],
        )
        respx.post(API_URL).mock(return_value=httpx.Response(200, json=payload))

        character = await wcl_client.fetch_by_name(IDENTITY)

        assert character.identity == IDENTITY
        assert character.character_id == "64213375"
        assert character.realm_name == "Area 52"
        assert character.class_name == "Paladin"
        assert character.spec == "Holy"
        assert character.class_spec == "Paladin Holy"
        assert character.avatar_url is None
        assert character.top_ranking is not None
        assert character.top_ranking.encounter_name == "Second Boss"
        assert character.top_ranking.rank_percent == 91.23
        assert character.top_ranking.difficulty == "Mythic"

    @respx.mock
    async def test_not_found(self, wcl_client: WarcraftLogsClient) -> None:
        respx.post(TOKEN_URL).mock(return_value=token_response())
        respx.post(API_URL).mock(return_value=httpx.Response(200, json=missing_character_payload()))

        with pytest.raises(CharacterNotFoundError) as exc_info:
            await wcl_client.fetch_by_name(IDENTITY)

        assert exc_info.value.code == "WCL_CHARACTER_NOT_FOUND"

    @respx.mock
    async def test_structured_errors(self, wcl_client: WarcraftLogsClient) -> None:
        respx.post(TOKEN_URL).mock(return_value=token_response())
        respx.post(API_URL).mock(
            return_value=httpx.Response(
                200, json={"data": None, "errors": [{"message": "Invalid server slug"}]}
            )
        )

        with pytest.raises(UpstreamError, match="Invalid server slug"):
            await wcl_client.fetch_by_name(IDENTITY)

    @respx.mock
    async def test_http_failure(self, wcl_client: WarcraftLogsClient) -> None:
        respx.post(TOKEN_URL).mock(return_value=token_response())
        respx.post(API_URL).mock(return_value=httpx.Response(503, text="maintenance"))

        with pytest.raises(RequestFailedError) as exc_info:
            await wcl_client.fetch_by_name(IDENTITY)

        assert exc_info.value.status_code == 503

    @respx.mock
    async def test_invalid_json(self, wcl_client: WarcraftLogsClient) -> None:
        respx.post(TOKEN_URL).mock(return_value=token_response())
        respx.post(API_URL).mock(return_value=httpx.Response(200, text="<html>oops</html>"))

        with pytest.raises(RequestFailedError, match="invalid JSON"):
            await wcl_client.fetch_by_name(IDENTITY)

    @respx.mock(assert_all_called=False)
    async def test_token_failure_skips_query(
        self, wcl_client: WarcraftLogsClient, respx_mock: respx.MockRouter
    ) -> None:
        respx_mock.post(TOKEN_URL).mock(return_value=httpx.Response(500))
        api_route = respx_mock.post(API_URL).mock(return_value=httpx.Response(200, json={}))

        with pytest.raises(AuthFailedError):
            await wcl_client.fetch_by_name(IDENTITY)

        assert not api_route.called


class TestFetchById:
    @respx.mock
    async def test_resolves_identity_from_display_realm(self, wcl_client: WarcraftLogsClient) -> None:
        respx.post(TOKEN_URL).mock(return_value=token_response())
        api_route = respx.post(API_URL).mock(
            return_value=httpx.Response(
                200,
                json=character_payload(name="Playername", server_name="Area 52", server_slug=None),
            )
        )

        character = await wcl_client.fetch_by_id("64213375")

        assert character.identity == ResolvedIdentity(
            region=Region.US, realm="area-52", character_name="Playername"
        )
        variables = json.loads(api_route.calls.last.request.content)["variables"]
        assert variables == {"characterId": 64213375}

    @respx.mock
    async def test_prefers_upstream_slug(self, wcl_client: WarcraftLogsClient) -> None:
        respx.post(TOKEN_URL).mock(return_value=token_response())
        respx.post(API_URL).mock(
            return_value=httpx.Response(
                200,
                json=character_payload(server_name="Mal'Ganis", server_slug="malganis", region="eu"),
            )
        )

        character = await wcl_client.fetch_by_id("1")

        assert character.identity.realm == "malganis"
        assert character.identity.region == Region.EU

    @respx.mock
    async def test_unknown_region(self, wcl_client: WarcraftLogsClient) -> None:
        respx.post(TOKEN_URL).mock(return_value=token_response())
        respx.post(API_URL).mock(
            return_value=httpx.Response(200, json=character_payload(region="xx"))
        )

        with pytest.raises(UpstreamError, match="Unexpected region"):
            await wcl_client.fetch_by_id("1")


class TestZones:
    @respx.mock
    async def test_fetch_zone_encounters(self, wcl_client: WarcraftLogsClient) -> None:
        respx.post(TOKEN_URL).mock(return_value=token_response())
        respx.post(API_URL).mock(
            return_value=httpx.Response(
                200, json=zone_payload(44, "Liberation of Undermine", [(3009, "Vexie"), (3010, "Cauldron")])
            )
        )

        zone = await wcl_client.fetch_zone_encounters(44)

        assert zone.zone_id == 44
        assert zone.zone_name == "Liberation of Undermine"
        assert [(e.id, e.name) for e in zone.encounters] == [(3009, "Vexie"), (3010, "Cauldron")]

    @respx.mock
    async def test_zone_not_found(self, wcl_client: WarcraftLogsClient) -> None:
        respx.post(TOKEN_URL).mock(return_value=token_response())
        respx.post(API_URL).mock(
            return_value=httpx.Response(200, json={"data": {"worldData": {"zone": None}}})
        )

        with pytest.raises(ZoneNotFoundError):
            await wcl_client.fetch_zone_encounters(9999)

    @respx.mock
    async def test_zone_progression_merges_difficulties(self, wcl_client: WarcraftLogsClient) -> None:
        respx.post(TOKEN_URL).mock(return_value=token_response())
        respx.post(API_URL).mock(
            side_effect=graphql_responder(
                progression=httpx.Response(
                    200,
                    json=progression_payload(
                        mythic=[ranking(1, "A", total_kills=0), ranking(2, "B", total_kills=2)],
                        heroic=[ranking(1, "A", total_kills=5, killDate=1735689600000)],
                        normal=[ranking(1, "A", total_kills=9)],
                    ),
                )
            )
        )

        progression = await wcl_client.fetch_zone_progression(IDENTITY, 44)

        first = progression.for_encounter(1)
        second = progression.for_encounter(2)
        assert first is not None and second is not None
        assert {k.difficulty for k in first.kills} == {Difficulty.HEROIC, Difficulty.NORMAL}
        assert [k.difficulty for k in second.kills] == [Difficulty.MYTHIC]
        heroic = next(k for k in first.kills if k.difficulty == Difficulty.HEROIC)
        assert heroic.kill_date == datetime(2025, 1, 1, tzinfo=UTC)

    @respx.mock
    async def test_zone_progression_missing_character(self, wcl_client: WarcraftLogsClient) -> None:
        respx.post(TOKEN_URL).mock(return_value=token_response())
        respx.post(API_URL).mock(return_value=httpx.Response(200, json=missing_character_payload()))

        with pytest.raises(CharacterNotFoundError):
            await wcl_client.fetch_zone_progression(IDENTITY, 44)


class TestNormalization:
    def test_flatten_accepts_zone_map(self) -> None:
        rankings = flatten_rankings(
            {
                "38": {"difficulty": 4, "rankings": [ranking(1, "A")]},
                "39": {"difficulty": 5, "rankings": [ranking(2, "B"), ranking(3, "C")]},
            }
        )

        assert [(entry["encounter"]["id"], difficulty) for entry, difficulty in rankings] == [
            (1, 4),
            (2, 5),
            (3, 5),
        ]

    def test_flatten_accepts_json_string(self) -> None:
        raw = json.dumps({"difficulty": 5, "rankings": [ranking(1, "A")]})

        assert len(flatten_rankings(raw)) == 1

    def test_flatten_garbage(self) -> None:
        assert flatten_rankings(None) == []
        assert flatten_rankings("not json") == []
        assert flatten_rankings([1, 2]) == []

    def test_most_played_spec_first_seen_wins_ties(self) -> None:
        rankings = [
            (ranking(1, "A", spec="Fire"), 5),
            (ranking(2, "B", spec="Frost"), 5),
            (ranking(3, "C", spec="Frost"), 5),
            (ranking(4, "D", spec="Fire"), 5),
        ]

        assert most_played_spec(rankings) == "Fire"

    def test_most_played_spec_none(self) -> None:
        assert most_played_spec([(ranking(1, "A"), 5)]) is None

    def test_top_ranking_strict_greater_keeps_first(self) -> None:
        rankings = [
            (ranking(1, "First", rank_percent=88.0), 4),
            (ranking(2, "Second", rank_percent=88.0), 5),
        ]

        top = top_ranking(rankings)

        assert top is not None
        assert top.encounter_name == "First"
        assert top.difficulty == "Heroic"

    def test_top_ranking_ignores_missing_percent(self) -> None:
        assert top_ranking([(ranking(1, "A"), 5)]) is None

    def test_top_ranking_out_of_range_kill_date(self) -> None:
        top = top_ranking([(ranking(1, "A", rank_percent=91.0, killDate=10**20), 5)])

        assert top is not None
        assert top.kill_date is None
        assert top.rank_percent == 91.0
