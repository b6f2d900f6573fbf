"""Home Connect 实体的公共基类。"""

from __future__ import annotations

from typing import Any

from homeassistant.core import callback
from homeassistant.helpers.device_registry import DeviceInfo
from homeassistant.helpers.entity import Entity

from .appliance import ApplianceHandler
from .const import ATTRIBUTION, DOMAIN, LOGGER
from .coordinator import HomeConnectCoordinator
from .exceptions import AuthorizationError, ConfigurationError


def short_value(value: Any) -> str | None:
    """
    去掉枚举值的命名空间前缀，例如
    "BSH.Common.EnumType.DoorState.Open" -> "Open"。
    """
    if value is None:
        return None
    return str(value).rsplit(".", 1)[-1]


class HomeConnectEntity(Entity):
    """绑定到某台家电某个通道的实体。"""

    _attr_should_poll = False
    _attr_has_entity_name = True
    _attr_attribution = ATTRIBUTION

    def __init__(
        self,
        coordinator: HomeConnectCoordinator,
        handler: ApplianceHandler,
        channel: str,
    ):
        """初始化实体。"""
        self.coordinator = coordinator
        self.handler = handler
        self.channel = channel

        self._attr_name = channel.replace("_", " ").capitalize()
        self._attr_unique_id = f"{DOMAIN}_{handler.ha_id}_{channel}"

    @property
    def device_info(self) -> DeviceInfo:
        """返回设备信息，用于分组。"""
        appliance = self.handler.appliance
        return DeviceInfo(
            identifiers={(DOMAIN, appliance.ha_id)},
            name=appliance.name or appliance.ha_id,
            manufacturer=appliance.brand or "Home Connect",
            model=appliance.vib or appliance.type,
        )

    @property
    def available(self) -> bool:
        """家电离线时实体不可用。"""
        return self.handler.appliance.connected

    @property
    def channel_value(self) -> Any:
        return self.handler.state.get(self.channel)

    async def async_send_command(self, value: Any) -> None:
        """发送命令；认证失败时触发重新认证。"""
        try:
            await self.handler.async_handle_command(self.channel, value)
        except (AuthorizationError, ConfigurationError) as err:
            LOGGER.error(
                f"[{self.handler.ha_id}] Command {self.channel} failed, authorization problem: {err}"
            )
            self.coordinator.config_entry.async_start_reauth(self.hass)
            return
        # 乐观更新：处理器已写入新值
        self.async_write_ha_state()

    @callback
    def _handle_coordinator_update(self) -> None:
        """协调器通知数据更新时调用。"""
        # 处理器原地修改 state 字典，无法比较新旧值，直接写入
        self.async_write_ha_state()

    async def async_added_to_hass(self) -> None:
        """实体首次添加到 HA 时调用。"""
        self.async_on_remove(
            self.coordinator.async_add_listener(self._handle_coordinator_update)
        )
        self.async_write_ha_state()
