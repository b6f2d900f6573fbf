"""Home Connect 集成的数据更新协调器。"""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Awaitable, Callable, Dict, Optional

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, callback
from homeassistant.exceptions import ConfigEntryAuthFailed
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator, UpdateFailed

from .api import HomeConnectApiClient
from .appliance import ApplianceHandler, create_handler
from .const import DOMAIN, LOGGER, DEFAULT_SCAN_INTERVAL, SSE_EVENT_CONNECTED
from .exceptions import AuthorizationError, CommunicationError, ConfigurationError
from .models import Event
from .sse import ServerSentEventListener


# ----------------------------------------------------------------------
# 类型定义
# ----------------------------------------------------------------------

# Key: 平台名称 (例如 "switch", "sensor")
# Value: (AddEntitiesCallback, 为一台家电创建实体的工厂函数)
EntityFactory = Callable[["HomeConnectCoordinator", ApplianceHandler], list[Any]]
AddEntitiesCallbacks = Dict[
    str, Optional[tuple[Callable[[list[Any]], Optional[Awaitable[None]]], EntityFactory]]
]


class ApplianceEventListener(ServerSentEventListener):
    """把某台家电的 SSE 事件转交给协调器。"""

    def __init__(self, coordinator: HomeConnectCoordinator, ha_id: str):
        super().__init__(ha_id)
        self.coordinator = coordinator

    def on_event(self, event: Event) -> None:
        self.coordinator.handle_appliance_event(self.ha_id, event)

    def on_reconnect(self) -> None:
        self.coordinator.schedule_appliance_refresh(self.ha_id)


# ----------------------------------------------------------------------
# 协调器类
# ----------------------------------------------------------------------


class HomeConnectCoordinator(DataUpdateCoordinator):
    """轮询家电列表，维护各家电的处理器，并处理动态实体发现。"""

    def __init__(
        self,
        hass: HomeAssistant,
        config_entry: ConfigEntry,
        client: HomeConnectApiClient,
        scan_interval: int = DEFAULT_SCAN_INTERVAL,
    ):
        """初始化协调器。"""
        super().__init__(
            hass,
            LOGGER,
            config_entry=config_entry,
            name=DOMAIN,
            update_interval=timedelta(seconds=scan_interval),
        )
        self.client = client
        self.handlers: dict[str, ApplianceHandler] = {}
        self._event_listeners: dict[str, ApplianceEventListener] = {}
        self._async_add_entities: AddEntitiesCallbacks = {}
        # 每个平台已经创建过实体的家电
        self._known_device_ids: dict[str, set[str]] = {}

    def set_entity_adder(
        self,
        platform: str,
        async_add_entities_func: Callable[[list[Any]], Optional[Awaitable[None]]],
        entity_factory: EntityFactory,
    ) -> None:
        """由各平台调用：注册添加实体的回调，并为已知家电创建实体。"""
        self._async_add_entities[platform] = (async_add_entities_func, entity_factory)
        self._known_device_ids.setdefault(platform, set())

        entities = []
        for handler in self.handlers.values():
            entities.extend(entity_factory(self, handler))
            self._known_device_ids[platform].add(handler.ha_id)

        async_add_entities_func(entities)

    async def _async_add_new_entities(self) -> None:
        """为新发现的家电添加各平台的实体。"""
        for platform, adder in self._async_add_entities.items():
            if adder is None:
                continue
            add_entities, entity_factory = adder
            known = self._known_device_ids[platform]

            new_entities = []
            for ha_id, handler in self.handlers.items():
                if ha_id in known:
                    continue
                LOGGER.info(
                    f"Dynamically discovered new appliance: {ha_id}. Adding {platform} entities."
                )
                new_entities.extend(entity_factory(self, handler))
                known.add(ha_id)

            if new_entities:
                result = add_entities(new_entities)
                if result is not None:
                    await result

    async def _async_update_data(self) -> dict[str, dict[str, Any]]:
        """拉取家电列表、轮询在线家电的通道并注册 SSE 监听器。"""
        try:
            appliances = await self.client.get_home_appliances()

            for appliance in appliances:
                handler = self.handlers.get(appliance.ha_id)
                if handler is None:
                    handler = create_handler(
                        self.client,
                        appliance,
                        schedule=self.hass.async_create_task,
                        on_update=self.async_update_listeners,
                    )
                    if handler is None:
                        LOGGER.debug(
                            f"[{appliance.ha_id}] Unsupported appliance type: {appliance.type}"
                        )
                        continue
                    LOGGER.info(f"Found {appliance.type} {appliance.name} [{appliance.ha_id}]")
                    self.handlers[appliance.ha_id] = handler
                else:
                    handler.appliance = appliance

                if appliance.connected:
                    await handler.async_update_channels()

                if appliance.ha_id not in self._event_listeners:
                    listener = ApplianceEventListener(self, appliance.ha_id)
                    await self.client.register_event_listener(listener)
                    self._event_listeners[appliance.ha_id] = listener

        except (AuthorizationError, ConfigurationError) as err:
            raise ConfigEntryAuthFailed(str(err)) from err
        except CommunicationError as err:
            raise UpdateFailed(f"Error communicating with API: {err}") from err

        await self._async_add_new_entities()
        return {ha_id: handler.state for ha_id, handler in self.handlers.items()}

    @callback
    def handle_appliance_event(self, ha_id: str, event: Event) -> None:
        """由 SSE 监听器调用，把事件交给处理器并通知实体。"""
        handler = self.handlers.get(ha_id)
        if handler is None:
            return

        if handler.handle_event(event):
            # 处理器的 state 就是 self.data 中的字典，只需通知监听者
            self.async_update_listeners()
            if event.key == SSE_EVENT_CONNECTED:
                # 家电重新上线：SSE 只推送变化的值，需要重新轮询全部通道
                self.schedule_appliance_refresh(ha_id)
        else:
            LOGGER.debug(f"[{ha_id}] Unhandled event {event.key}: {event.value}")

    @callback
    def schedule_appliance_refresh(self, ha_id: str) -> None:
        """SSE 重连后重新轮询该家电的通道，补上断线期间丢失的事件。"""
        self.hass.async_create_task(self._async_refresh_appliance(ha_id))

    async def _async_refresh_appliance(self, ha_id: str) -> None:
        handler = self.handlers.get(ha_id)
        if handler is None:
            return
        try:
            await handler.async_update_channels()
        except (AuthorizationError, ConfigurationError) as err:
            LOGGER.error(f"[{ha_id}] Could not refresh channels, authorization problem: {err}")
            return
        self.async_update_listeners()

    async def async_shutdown(self) -> None:
        """关闭协调器和所有 SSE 连接。"""
        await super().async_shutdown()
        self._event_listeners.clear()
        await self.client.dispose()
