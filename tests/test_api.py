"""Unit tests for HomeConnectApiClient against the fake Home Connect API."""

import asyncio
import json
import logging
import time
from unittest.mock import MagicMock

import pytest

from conftest import HA_ID
from custom_components.homeconnect.api import HomeConnectApiClient
from custom_components.homeconnect.const import (
    OPERATION_STATE_RUN,
    SSE_EVENT_CONNECTED,
    STATUS_DOOR_STATE,
    STATUS_OPERATION_STATE,
)
from custom_components.homeconnect.exceptions import (
    AuthorizationError,
    CommunicationError,
    ConfigurationError,
    InvalidTokenError,
)
from custom_components.homeconnect.models import Token
from custom_components.homeconnect.sse import ServerSentEventListener

BASE = f"/api/homeappliances/{HA_ID}"


def _sse_status(key: str, value) -> list[str]:
    payload = {"haId": HA_ID, "items": [{"key": key, "value": value}]}
    return ["event: STATUS", f"data: {json.dumps(payload)}", f"id: {HA_ID}", ""]


class RecordingListener(ServerSentEventListener):
    """Collects events and reconnects; signals once enough events arrived."""

    def __init__(self, ha_id: str, expected: int):
        super().__init__(ha_id)
        self.events = []
        self.reconnects = 0
        self.expected = expected
        self.done = asyncio.Event()

    def on_event(self, event):
        self.events.append(event)
        if len(self.events) >= self.expected:
            self.done.set()

    def on_reconnect(self):
        self.reconnects += 1


class TestCredentials:
    @pytest.mark.asyncio
    async def test_valid_token_is_used_as_is(self, fake_api, client):
        state, _ = fake_api
        state.responses[("GET", "/api/homeappliances")] = (
            200,
            {"data": {"homeappliances": [{"haId": HA_ID, "type": "Dishwasher", "connected": True}]}},
        )

        appliances = await client.get_home_appliances()

        assert [a.ha_id for a in appliances] == [HA_ID]
        assert state.token_requests == []

    @pytest.mark.asyncio
    async def test_rejected_token_is_refreshed_and_retried(self, fake_api, session):
        state, url = fake_api
        callback = MagicMock()
        api_client = HomeConnectApiClient(
            session,
            "client-id",
            "secret",
            token=Token("stale", "refresh-0", None),
            token_update_callback=callback,
            api_url=url,
        )

        await api_client.get_home_appliances()

        assert len(state.token_requests) == 1
        assert api_client.token.access_token == "access-1"
        assert api_client.token.refresh_token == "refresh-0"
        callback.assert_called_once_with(api_client.token)

    @pytest.mark.asyncio
    async def test_expired_token_is_refreshed_before_request(self, fake_api, session):
        state, url = fake_api
        api_client = HomeConnectApiClient(
            session,
            "client-id",
            "secret",
            token=Token("access-0", "refresh-0", time.time() - 1),
            api_url=url,
        )

        await api_client.get_home_appliances()

        assert len(state.token_requests) == 1
        assert ("GET", "/api/homeappliances", None) in state.requests

    @pytest.mark.asyncio
    async def test_missing_refresh_token(self, fake_api, session):
        _, url = fake_api
        api_client = HomeConnectApiClient(session, "client-id", "secret", api_url=url)

        with pytest.raises(ConfigurationError):
            await api_client.get_home_appliances()

    @pytest.mark.asyncio
    async def test_revoked_refresh_token(self, fake_api, session):
        _, url = fake_api
        api_client = HomeConnectApiClient(
            session, "client-id", "secret", token=Token(None, "revoked"), api_url=url
        )

        with pytest.raises(AuthorizationError):
            await api_client.get_home_appliances()

    @pytest.mark.asyncio
    async def test_simulator_authorizes_with_code_grant(self, fake_api, session):
        state, url = fake_api
        api_client = HomeConnectApiClient(
            session, "sim-client", None, simulated=True, api_url=url
        )

        await api_client.get_home_appliances()

        assert state.token_requests[0]["grant_type"] == "authorization_code"
        assert api_client.token.access_token == "access-1"

    @pytest.mark.asyncio
    async def test_token_rejected_twice_raises(self, fake_api, client):
        state, _ = fake_api
        state.reject_all = True

        with pytest.raises(AuthorizationError) as exc_info:
            await client.get_home_appliances()

        assert isinstance(exc_info.value, InvalidTokenError)
        # only one refresh between the two attempts
        assert len(state.token_requests) == 1


class TestRest:
    @pytest.mark.asyncio
    async def test_missing_status_returns_none(self, client):
        assert await client.get_door_state(HA_ID) is None

    @pytest.mark.asyncio
    async def test_get_status(self, fake_api, client):
        state, _ = fake_api
        state.responses[("GET", f"{BASE}/status/{STATUS_OPERATION_STATE}")] = (
            200,
            {"data": {"key": STATUS_OPERATION_STATE, "value": OPERATION_STATE_RUN}},
        )

        data = await client.get_operation_state(HA_ID)

        assert data.value == OPERATION_STATE_RUN

    @pytest.mark.asyncio
    async def test_boolean_status(self, fake_api, client):
        state, _ = fake_api
        state.responses[
            ("GET", f"{BASE}/status/BSH.Common.Status.RemoteControlStartAllowed")
        ] = (200, {"data": {"key": "BSH.Common.Status.RemoteControlStartAllowed", "value": True}})

        assert await client.is_remote_control_start_allowed(HA_ID) is True
        assert await client.is_remote_control_active(HA_ID) is False

    @pytest.mark.asyncio
    async def test_put_setting_payload(self, fake_api, client):
        state, _ = fake_api

        await client.set_freezer_setpoint_temperature(HA_ID, "-18", "°C")

        key = "Refrigeration.FridgeFreezer.Setting.SetpointTemperatureFreezer"
        assert state.requests[-1] == (
            "PUT",
            f"{BASE}/settings/{key}",
            {"data": {"key": key, "value": -18, "unit": "°C"}},
        )

    @pytest.mark.asyncio
    async def test_set_program_option_on_active_program(self, fake_api, client):
        state, _ = fake_api

        await client.set_program_options(
            HA_ID, "Cooking.Oven.Option.SetpointTemperature", "180", "°C", True, True
        )

        method, path, payload = state.requests[-1]
        assert method == "PUT"
        assert path == f"{BASE}/programs/active/options/Cooking.Oven.Option.SetpointTemperature"
        assert payload["data"]["value"] == 180

    @pytest.mark.asyncio
    async def test_start_program_uses_selected_program(self, fake_api, client):
        state, _ = fake_api
        state.responses[("GET", f"{BASE}/programs/selected")] = (
            200,
            {"data": {"key": "Dishcare.Dishwasher.Program.Eco50", "options": []}},
        )

        await client.start_program(HA_ID)

        assert state.requests[-1] == (
            "PUT",
            f"{BASE}/programs/active",
            {"data": {"key": "Dishcare.Dishwasher.Program.Eco50"}},
        )

    @pytest.mark.asyncio
    async def test_stop_and_pause(self, fake_api, client):
        state, _ = fake_api

        await client.stop_program(HA_ID)
        await client.pause_program(HA_ID)

        assert state.requests[0][:2] == ("DELETE", f"{BASE}/programs/active")
        assert state.requests[1][1] == f"{BASE}/commands/BSH.Common.Command.PauseProgram"
        assert state.requests[1][2]["data"]["value"] is True

    @pytest.mark.asyncio
    async def test_error_response(self, fake_api, client):
        state, _ = fake_api
        state.responses[("PUT", f"{BASE}/programs/active")] = (
            409,
            {"error": {"key": "SDK.Error.WrongOperationState", "description": "busy"}},
        )

        with pytest.raises(CommunicationError) as exc_info:
            await client.start_program(HA_ID, "Dishcare.Dishwasher.Program.Eco50")

        assert exc_info.value.status_code == 409
        assert "WrongOperationState" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_rate_limit_logs_retry_after(self, fake_api, client, caplog):
        state, _ = fake_api
        path = f"{BASE}/status/{STATUS_OPERATION_STATE}"
        state.responses[("GET", path)] = (
            429,
            {"error": {"key": "429", "description": "The rate limit \"10 successive error calls in 10 minutes\" was reached."}},
        )
        state.response_headers[("GET", path)] = {"Retry-After": "30"}

        with caplog.at_level(logging.WARNING, logger="custom_components.homeconnect"):
            with pytest.raises(CommunicationError) as exc_info:
                await client.get_operation_state(HA_ID)

        assert exc_info.value.status_code == 429
        assert "Retry after 30s" in caplog.text

    @pytest.mark.asyncio
    async def test_program_options_constraints(self, fake_api, client):
        state, _ = fake_api
        program = "LaundryCare.Washer.Program.Cotton"
        state.responses[("GET", f"{BASE}/programs/available/{program}")] = (
            200,
            {
                "data": {
                    "key": program,
                    "options": [
                        {
                            "key": "LaundryCare.Washer.Option.SpinSpeed",
                            "constraints": {"allowedvalues": ["Off", "RPM800"]},
                        }
                    ],
                }
            },
        )

        options = await client.get_program_options(HA_ID, program)

        assert options[0].allowed_values == ["Off", "RPM800"]


class TestEventStream:
    @pytest.mark.asyncio
    async def test_events_are_dispatched_to_listener(self, fake_api, client):
        state, _ = fake_api
        state.sse_scripts.append(
            [
                "event: KEEP-ALIVE",
                "",
                "event: CONNECTED",
                f"data: {HA_ID}",
                "",
                *_sse_status(STATUS_DOOR_STATE, "BSH.Common.EnumType.DoorState.Open"),
            ]
        )
        listener = RecordingListener(HA_ID, expected=2)
        other = RecordingListener("OTHER", expected=1)

        await client.register_event_listener(listener)
        await client.register_event_listener(other)
        await asyncio.wait_for(listener.done.wait(), timeout=5)

        assert listener.events[0].key == SSE_EVENT_CONNECTED
        assert listener.events[1].key == STATUS_DOOR_STATE
        assert listener.events[1].value == "BSH.Common.EnumType.DoorState.Open"
        assert other.events == []

    @pytest.mark.asyncio
    async def test_listeners_share_one_connection(self, fake_api, client):
        state, _ = fake_api
        first = RecordingListener(HA_ID, expected=1)
        second = RecordingListener(HA_ID, expected=1)

        await client.register_event_listener(first)
        await client.register_event_listener(second)
        await asyncio.sleep(0.2)

        assert state.sse_connections == 1

    @pytest.mark.asyncio
    async def test_reconnect_notifies_listener(self, fake_api, client):
        state, _ = fake_api
        state.sse_scripts.extend(
            [
                ["retry: 10", "", *_sse_status(STATUS_DOOR_STATE, "BSH.Common.EnumType.DoorState.Open")],
                _sse_status(STATUS_DOOR_STATE, "BSH.Common.EnumType.DoorState.Closed"),
            ]
        )
        listener = RecordingListener(HA_ID, expected=2)

        await client.register_event_listener(listener)
        await asyncio.wait_for(listener.done.wait(), timeout=5)

        assert listener.reconnects >= 1
        assert listener.events[1].value == "BSH.Common.EnumType.DoorState.Closed"
        assert state.sse_connections >= 2

    @pytest.mark.asyncio
    async def test_unregister_closes_stream(self, fake_api, client):
        listener = RecordingListener(HA_ID, expected=1)

        await client.register_event_listener(listener)
        await client.unregister_event_listener(listener)

        assert client._event_streams == {}

    @pytest.mark.asyncio
    async def test_register_without_credentials_fails(self, fake_api, session):
        _, url = fake_api
        api_client = HomeConnectApiClient(session, "client-id", "secret", api_url=url)
        listener = RecordingListener(HA_ID, expected=1)

        with pytest.raises(ConfigurationError):
            await api_client.register_event_listener(listener)

        assert api_client._event_listeners == []

    @pytest.mark.asyncio
    async def test_rejected_stream_refreshes_token_before_reconnect(self, fake_api, client):
        state, _ = fake_api
        state.sse_unauthorized = 1
        state.sse_scripts.append(
            _sse_status(STATUS_DOOR_STATE, "BSH.Common.EnumType.DoorState.Open")
        )
        client._retry_delays[HA_ID] = 0.01
        listener = RecordingListener(HA_ID, expected=1)

        await client.register_event_listener(listener)
        await asyncio.wait_for(listener.done.wait(), timeout=5)

        assert len(state.token_requests) == 1
        assert state.token_requests[0]["grant_type"] == "refresh_token"
        assert client.token.access_token == "access-1"
        assert listener.reconnects >= 1
        assert listener.events[0].value == "BSH.Common.EnumType.DoorState.Open"
        assert state.sse_connections >= 2

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_block_others(self, fake_api, client):
        state, _ = fake_api
        state.sse_scripts.append(
            _sse_status(STATUS_DOOR_STATE, "BSH.Common.EnumType.DoorState.Open")
        )
        broken = RecordingListener(HA_ID, expected=1)
        broken.on_event = MagicMock(side_effect=RuntimeError("boom"))
        healthy = RecordingListener(HA_ID, expected=1)

        await client.register_event_listener(broken)
        await client.register_event_listener(healthy)
        await asyncio.wait_for(healthy.done.wait(), timeout=5)

        broken.on_event.assert_called_once()
        assert healthy.events[0].key == STATUS_DOOR_STATE

    @pytest.mark.asyncio
    async def test_dispose_closes_all_streams(self, fake_api, client):
        state, _ = fake_api
        first = RecordingListener(HA_ID, expected=1)
        second = RecordingListener("BOSCH-HNG6764B6-0000000011FF", expected=1)

        await client.register_event_listener(first)
        await client.register_event_listener(second)
        tasks = list(client._event_streams.values())
        assert len(tasks) == 2

        await client.dispose()

        assert client._event_streams == {}
        assert client._event_listeners == []
        assert client._retry_delays == {}
        assert all(task.done() for task in tasks)
