"""Home Connect API 客户端：OAuth2 认证、REST 请求和每台家电一个的 SSE 事件流。"""

from __future__ import annotations

import asyncio
import contextlib
import json
from typing import Any, Callable

import aiohttp

from .auth import async_authorize_code, async_refresh_token
from .const import (
    LOGGER,
    API_URL,
    API_SIMULATOR_URL,
    BSH_JSON_V1,
    EVENT_STREAM,
    REQUEST_TIMEOUT,
    TOKEN_EXPIRY_MARGIN,
    SSE_RETRY_DELAY,
    SSE_READ_TIMEOUT,
    SSE_EVENT_KEEP_ALIVE,
    SSE_EVENT_CONNECTED,
    SSE_EVENT_DISCONNECTED,
    SETTING_POWER_STATE,
    STATUS_DOOR_STATE,
    STATUS_OPERATION_STATE,
    STATUS_REMOTE_CONTROL_ACTIVE,
    STATUS_REMOTE_CONTROL_START_ALLOWED,
    STATUS_LOCAL_CONTROL_ACTIVE,
    COMMAND_PAUSE_PROGRAM,
    COMMAND_RESUME_PROGRAM,
    SETTING_FRIDGE_SETPOINT_TEMPERATURE,
    SETTING_FREEZER_SETPOINT_TEMPERATURE,
    SETTING_FRIDGE_SUPER_MODE,
    SETTING_FREEZER_SUPER_MODE,
)
from .exceptions import (
    AuthorizationError,
    CommunicationError,
    ConfigurationError,
    HomeConnectError,
    InvalidTokenError,
)
from .models import (
    AvailableProgram,
    AvailableProgramOption,
    Data,
    Event,
    HomeAppliance,
    Program,
    Token,
    build_data_payload,
    map_to_available_program_options,
    map_to_available_programs,
    map_to_data,
    map_to_events,
    map_to_home_appliance,
    map_to_home_appliances,
    map_to_program,
    parse_json,
)
from .sse import ServerSentEvent, ServerSentEventListener, ServerSentEventParser


class HomeConnectApiClient:
    """Client for the Home Connect API."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        client_id: str,
        client_secret: str | None,
        token: Token | None = None,
        simulated: bool = False,
        token_update_callback: Callable[[Token], None] | None = None,
        api_url: str | None = None,
    ):
        """初始化客户端."""
        self._session = session
        self._client_id = client_id
        self._client_secret = client_secret
        self._token = token or Token(access_token=None, refresh_token=None)
        self.simulated = simulated
        self._token_update_callback = token_update_callback
        self.api_url = (api_url or (API_SIMULATOR_URL if simulated else API_URL)).rstrip("/")

        self._credentials_lock = asyncio.Lock()
        self._listeners_lock = asyncio.Lock()
        self._event_listeners: list[ServerSentEventListener] = []
        self._event_streams: dict[str, asyncio.Task] = {}
        self._retry_delays: dict[str, float] = {}
        LOGGER.debug(f"HomeConnectApiClient initialized for {self.api_url}")

    @property
    def token(self) -> Token:
        return self._token

    # --- 认证 ---

    def _set_token(self, token: Token) -> None:
        self._token = token
        if self._token_update_callback:
            self._token_update_callback(token)

    def _invalidate_token(self, rejected_token: str | None) -> None:
        """丢弃被拒绝的 access token；若期间已被刷新则保留新 token。"""
        if rejected_token and self._token.access_token == rejected_token:
            self._token.access_token = None

    async def _check_credentials(self) -> str:
        """确保持有可用的 access token 并返回它."""
        async with self._credentials_lock:
            if self.simulated:
                if self._token.is_expired(TOKEN_EXPIRY_MARGIN):
                    token = await async_authorize_code(
                        self._session, self.api_url, self._client_id
                    )
                    self._set_token(token)
            else:
                if not self._token.refresh_token:
                    LOGGER.error("No refresh token present!")
                    raise ConfigurationError("No refresh token set!")
                if self._token.is_expired(TOKEN_EXPIRY_MARGIN):
                    token = await async_refresh_token(
                        self._session,
                        self.api_url,
                        self._client_id,
                        self._client_secret or "",
                        self._token.refresh_token,
                    )
                    self._set_token(token)
            return self._token.access_token

    # --- REST ---

    async def _request(
        self,
        method: str,
        path: str,
        payload: dict[str, Any] | None = None,
        allow_not_found: bool = False,
    ) -> dict[str, Any] | None:
        """
        发送带认证的请求。

        401 时刷新 token 并重试一次；allow_not_found 时 404 返回 None。

        @raises AuthorizationError: token 在刷新后仍被拒绝。
        @raises CommunicationError: 网络错误或其他错误状态码。
        """
        status = 0
        body = ""
        retry_after = None
        for attempt in range(2):
            access_token = await self._check_credentials()
            headers = {
                "Authorization": f"Bearer {access_token}",
                "Accept": BSH_JSON_V1,
            }
            data = None
            if payload is not None:
                headers["Content-Type"] = BSH_JSON_V1
                data = json.dumps(payload)

            try:
                async with self._session.request(
                    method,
                    self.api_url + path,
                    headers=headers,
                    data=data,
                    timeout=aiohttp.ClientTimeout(total=REQUEST_TIMEOUT),
                ) as response:
                    status = response.status
                    body = await response.text()
                    retry_after = response.headers.get("Retry-After")
            except (aiohttp.ClientError, asyncio.TimeoutError) as err:
                raise CommunicationError(f"Request {method} {path} failed: {err}") from err

            LOGGER.debug(f"[{method} {path}] Response code: {status}, body: {body}")

            if status != 401:
                break

            self._invalidate_token(access_token)
            if attempt == 0:
                LOGGER.debug(f"[{method} {path}] Access token rejected, refreshing.")
        else:
            raise InvalidTokenError(f"Access token rejected for {method} {path}")

        if status == 404 and allow_not_found:
            return None

        if status == 429:
            LOGGER.warning(
                f"Rate limit of Home Connect API reached. Retry after {retry_after}s."
            )

        if status >= 400:
            error = parse_json(body).get("error", {})
            raise CommunicationError(
                f"API error: {status} - {error.get('key', 'unknown')}: "
                f"{error.get('description', '')}",
                status,
                body,
            )

        return parse_json(body)

    async def get_home_appliances(self) -> list[HomeAppliance]:
        """Get all home appliances."""
        payload = await self._request("GET", "/api/homeappliances")
        return map_to_home_appliances(payload)

    async def get_home_appliance(self, ha_id: str) -> HomeAppliance | None:
        payload = await self._request(
            "GET", f"/api/homeappliances/{ha_id}", allow_not_found=True
        )
        return map_to_home_appliance(payload) if payload else None

    async def _get_data(self, path: str) -> Data | None:
        payload = await self._request("GET", path, allow_not_found=True)
        return map_to_data(payload) if payload else None

    async def get_setting(self, ha_id: str, key: str) -> Data | None:
        return await self._get_data(f"/api/homeappliances/{ha_id}/settings/{key}")

    async def put_setting(
        self, ha_id: str, key: str, value: Any, unit: str | None = None
    ) -> None:
        await self._request(
            "PUT",
            f"/api/homeappliances/{ha_id}/settings/{key}",
            build_data_payload(key, value, unit),
        )

    async def get_status(self, ha_id: str, key: str) -> Data | None:
        return await self._get_data(f"/api/homeappliances/{ha_id}/status/{key}")

    async def put_command(self, ha_id: str, key: str, value: Any = True) -> None:
        await self._request(
            "PUT",
            f"/api/homeappliances/{ha_id}/commands/{key}",
            build_data_payload(key, value),
        )

    async def get_power_state(self, ha_id: str) -> Data | None:
        return await self.get_setting(ha_id, SETTING_POWER_STATE)

    async def set_power_state(self, ha_id: str, state: str) -> None:
        await self.put_setting(ha_id, SETTING_POWER_STATE, state)

    async def get_door_state(self, ha_id: str) -> Data | None:
        return await self.get_status(ha_id, STATUS_DOOR_STATE)

    async def get_operation_state(self, ha_id: str) -> Data | None:
        return await self.get_status(ha_id, STATUS_OPERATION_STATE)

    async def is_remote_control_start_allowed(self, ha_id: str) -> bool:
        data = await self.get_status(ha_id, STATUS_REMOTE_CONTROL_START_ALLOWED)
        return data is not None and data.value_as_boolean

    async def is_remote_control_active(self, ha_id: str) -> bool:
        data = await self.get_status(ha_id, STATUS_REMOTE_CONTROL_ACTIVE)
        return data is not None and data.value_as_boolean

    async def is_local_control_active(self, ha_id: str) -> bool:
        data = await self.get_status(ha_id, STATUS_LOCAL_CONTROL_ACTIVE)
        return data is not None and data.value_as_boolean

    # --- 程序 ---

    async def _get_program(self, path: str) -> Program | None:
        payload = await self._request("GET", path, allow_not_found=True)
        return map_to_program(payload) if payload else None

    async def get_active_program(self, ha_id: str) -> Program | None:
        """返回正在运行的程序；没有运行中的程序时返回 None。"""
        return await self._get_program(f"/api/homeappliances/{ha_id}/programs/active")

    async def get_selected_program(self, ha_id: str) -> Program | None:
        return await self._get_program(f"/api/homeappliances/{ha_id}/programs/selected")

    async def set_selected_program(self, ha_id: str, program_key: str) -> None:
        await self._request(
            "PUT",
            f"/api/homeappliances/{ha_id}/programs/selected",
            {"data": {"key": program_key}},
        )

    async def start_program(self, ha_id: str, program_key: str | None = None) -> None:
        """启动程序；未指定时启动当前选中的程序。"""
        if program_key is None:
            selected = await self.get_selected_program(ha_id)
            if selected is None:
                raise HomeConnectError(f"No program selected on {ha_id}")
            program_key = selected.key

        await self._request(
            "PUT",
            f"/api/homeappliances/{ha_id}/programs/active",
            {"data": {"key": program_key}},
        )

    async def stop_program(self, ha_id: str) -> None:
        await self._request("DELETE", f"/api/homeappliances/{ha_id}/programs/active")

    async def pause_program(self, ha_id: str) -> None:
        await self.put_command(ha_id, COMMAND_PAUSE_PROGRAM)

    async def resume_program(self, ha_id: str) -> None:
        await self.put_command(ha_id, COMMAND_RESUME_PROGRAM)

    async def get_available_programs(self, ha_id: str) -> list[AvailableProgram]:
        payload = await self._request(
            "GET",
            f"/api/homeappliances/{ha_id}/programs/available",
            allow_not_found=True,
        )
        return map_to_available_programs(payload) if payload else []

    async def get_program_options(
        self, ha_id: str, program_key: str
    ) -> list[AvailableProgramOption]:
        payload = await self._request(
            "GET",
            f"/api/homeappliances/{ha_id}/programs/available/{program_key}",
            allow_not_found=True,
        )
        return map_to_available_program_options(payload) if payload else []

    async def set_program_options(
        self,
        ha_id: str,
        key: str,
        value: Any,
        unit: str | None = None,
        value_as_int: bool = False,
        active: bool = False,
    ) -> None:
        """写入程序选项；active 为 True 时修改运行中的程序，否则修改选中的程序。"""
        program = "active" if active else "selected"
        await self._request(
            "PUT",
            f"/api/homeappliances/{ha_id}/programs/{program}/options/{key}",
            build_data_payload(key, int(value) if value_as_int else value, unit),
        )

    # --- 冰箱/冷冻柜 ---

    async def get_fridge_setpoint_temperature(self, ha_id: str) -> Data | None:
        return await self.get_setting(ha_id, SETTING_FRIDGE_SETPOINT_TEMPERATURE)

    async def set_fridge_setpoint_temperature(
        self, ha_id: str, value: int | str, unit: str
    ) -> None:
        await self.put_setting(
            ha_id, SETTING_FRIDGE_SETPOINT_TEMPERATURE, int(value), unit
        )

    async def get_freezer_setpoint_temperature(self, ha_id: str) -> Data | None:
        return await self.get_setting(ha_id, SETTING_FREEZER_SETPOINT_TEMPERATURE)

    async def set_freezer_setpoint_temperature(
        self, ha_id: str, value: int | str, unit: str
    ) -> None:
        await self.put_setting(
            ha_id, SETTING_FREEZER_SETPOINT_TEMPERATURE, int(value), unit
        )

    async def get_fridge_super_mode(self, ha_id: str) -> Data | None:
        return await self.get_setting(ha_id, SETTING_FRIDGE_SUPER_MODE)

    async def set_fridge_super_mode(self, ha_id: str, enabled: bool) -> None:
        await self.put_setting(ha_id, SETTING_FRIDGE_SUPER_MODE, enabled)

    async def get_freezer_super_mode(self, ha_id: str) -> Data | None:
        return await self.get_setting(ha_id, SETTING_FREEZER_SUPER_MODE)

    async def set_freezer_super_mode(self, ha_id: str, enabled: bool) -> None:
        await self.put_setting(ha_id, SETTING_FREEZER_SUPER_MODE, enabled)

    # --- SSE 事件流 ---

    async def register_event_listener(self, listener: ServerSentEventListener) -> None:
        """
        注册 SSE 监听器。

        同一台家电的多个监听器共用一条 SSE 连接，可以大幅减少轮询请求
        (参见 https://developer.home-connect.com/docs/general/ratelimiting)。
        """
        ha_id = listener.ha_id
        async with self._listeners_lock:
            self._event_listeners.append(listener)

            if ha_id in self._event_streams:
                return

            try:
                await self._check_credentials()
            except HomeConnectError:
                self._event_listeners.remove(listener)
                raise

            self._event_streams[ha_id] = asyncio.create_task(
                self._async_event_stream(ha_id), name=f"homeconnect_sse_{ha_id}"
            )

    async def unregister_event_listener(self, listener: ServerSentEventListener) -> None:
        """注销监听器；若该家电已无监听器则关闭其 SSE 连接。"""
        ha_id = listener.ha_id
        async with self._listeners_lock:
            if listener in self._event_listeners:
                self._event_listeners.remove(listener)

            if any(el.ha_id == ha_id for el in self._event_listeners):
                return

            task = self._event_streams.pop(ha_id, None)
            self._retry_delays.pop(ha_id, None)

        if task:
            await self._async_close_stream(task)

    async def dispose(self) -> None:
        """Dispose and shut down the API client."""
        async with self._listeners_lock:
            tasks = list(self._event_streams.values())
            self._event_streams.clear()
            self._retry_delays.clear()
            self._event_listeners.clear()

        for task in tasks:
            await self._async_close_stream(task)

    @staticmethod
    async def _async_close_stream(task: asyncio.Task) -> None:
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _async_event_stream(self, ha_id: str) -> None:
        """维持 SSE 连接，断开后按 retry 时间重连。"""
        first_attempt = True
        while True:
            if not first_attempt:
                delay = self._retry_delays.get(ha_id, SSE_RETRY_DELAY)
                LOGGER.debug(f"[{ha_id}] Reconnecting SSE channel in {delay}s.")
                await asyncio.sleep(delay)
                self._notify_reconnect(ha_id)
            first_attempt = False

            try:
                await self._async_consume_event_stream(ha_id)
                LOGGER.debug(f"[{ha_id}] SSE channel closed by server.")
            except InvalidTokenError:
                LOGGER.debug(f"[{ha_id}] SSE access token rejected.")
            except (ConfigurationError, AuthorizationError) as err:
                LOGGER.error(f"[{ha_id}] SSE authorization failed: {err}")
            except (HomeConnectError, aiohttp.ClientError, asyncio.TimeoutError) as err:
                LOGGER.warning(
                    f"[{ha_id}] SSE channel failed: {err.__class__.__name__}: {err}"
                )
            except Exception as err:
                LOGGER.error(
                    f"[{ha_id}] Unexpected SSE error: {err.__class__.__name__}: {err}",
                    exc_info=True,
                )

    async def _async_consume_event_stream(self, ha_id: str) -> None:
        access_token = await self._check_credentials()

        async with self._session.get(
            f"{self.api_url}/api/homeappliances/{ha_id}/events",
            headers={
                "Authorization": f"Bearer {access_token}",
                "Accept": EVENT_STREAM,
            },
            timeout=aiohttp.ClientTimeout(total=None, sock_read=SSE_READ_TIMEOUT),
        ) as response:
            if response.status == 401:
                self._invalidate_token(access_token)
                raise InvalidTokenError("SSE request rejected")
            if response.status != 200:
                body = await response.text()
                raise CommunicationError(
                    f"SSE request failed with status {response.status}",
                    response.status,
                    body,
                )

            LOGGER.debug(f"[{ha_id}] SSE channel opened")
            parser = ServerSentEventParser()

            async for raw_line in response.content:
                line = raw_line.decode("utf-8", errors="replace").rstrip("\r\n")
                sse = parser.feed_line(line)
                if sse is None:
                    if line.startswith(":"):
                        LOGGER.debug(f"[{ha_id}] SSE comment received: {line[1:]}")
                    continue

                if sse.retry is not None:
                    # 使用服务器下发的 retry 时间
                    self._retry_delays[ha_id] = sse.retry / 1000
                self._handle_server_sent_event(ha_id, sse)

    def _handle_server_sent_event(self, ha_id: str, sse: ServerSentEvent) -> None:
        if sse.event == SSE_EVENT_KEEP_ALIVE:
            LOGGER.debug(f"[{ha_id}] SSE KEEP-ALIVE")
            return

        LOGGER.debug(
            f"[{ha_id}] SSE received id: {sse.id} event: {sse.event} message: {sse.data}"
        )

        if sse.event in (SSE_EVENT_CONNECTED, SSE_EVENT_DISCONNECTED):
            events = [Event(key=sse.event, value=None)]
        elif sse.data:
            try:
                events = map_to_events(json.loads(sse.data))
            except (json.JSONDecodeError, AttributeError) as err:
                LOGGER.warning(f"[{ha_id}] Could not parse SSE message: {err}")
                return
        else:
            return

        for event in events:
            self._dispatch_event(ha_id, event)

    def _dispatch_event(self, ha_id: str, event: Event) -> None:
        for listener in list(self._event_listeners):
            if listener.ha_id != ha_id:
                continue
            try:
                listener.on_event(event)
            except Exception as err:
                LOGGER.error(
                    f"[{ha_id}] Event listener failed on {event.key}: {err}",
                    exc_info=True,
                )

    def _notify_reconnect(self, ha_id: str) -> None:
        for listener in list(self._event_listeners):
            if listener.ha_id != ha_id:
                continue
            try:
                listener.on_reconnect()
            except Exception as err:
                LOGGER.error(
                    f"[{ha_id}] Event listener failed on reconnect: {err}",
                    exc_info=True,
                )
