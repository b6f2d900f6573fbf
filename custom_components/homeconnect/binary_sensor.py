"""Home Connect 集成的 Binary Sensor 平台 (远程控制状态)."""

from homeassistant.components.binary_sensor import BinarySensorEntity
from homeassistant.config_entries import ConfigEntry
from homeassistant.const import Platform
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from .appliance import ApplianceHandler
from .const import (
    DOMAIN,
    CHANNEL_LOCAL_CONTROL_ACTIVE_STATE,
    CHANNEL_REMOTE_CONTROL_ACTIVE_STATE,
    CHANNEL_REMOTE_START_ALLOWANCE_STATE,
)
from .coordinator import HomeConnectCoordinator
from .entity import HomeConnectEntity

BINARY_SENSOR_CHANNELS = (
    CHANNEL_REMOTE_CONTROL_ACTIVE_STATE,
    CHANNEL_REMOTE_START_ALLOWANCE_STATE,
    CHANNEL_LOCAL_CONTROL_ACTIVE_STATE,
)


def create_binary_sensor_entities(
    coordinator: HomeConnectCoordinator, handler: ApplianceHandler
) -> list[BinarySensorEntity]:
    return [
        HomeConnectBinarySensor(coordinator, handler, channel)
        for channel in BINARY_SENSOR_CHANNELS
        if channel in handler.channels
    ]


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """从配置项设置 Binary Sensor 平台。"""
    data = hass.data[DOMAIN][config_entry.entry_id]
    coordinator: HomeConnectCoordinator = data["coordinator"]

    coordinator.set_entity_adder(
        Platform.BINARY_SENSOR, async_add_entities, create_binary_sensor_entities
    )


class HomeConnectBinarySensor(HomeConnectEntity, BinarySensorEntity):
    @property
    def is_on(self) -> bool | None:
        value = self.channel_value
        return None if value is None else bool(value)
