"""Home Connect 集成的 Switch 平台 (电源、程序控制和速冷/速冻)."""

from homeassistant.components.switch import SwitchEntity
from homeassistant.config_entries import ConfigEntry
from homeassistant.const import Platform
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from .appliance import ApplianceHandler
from .const import (
    DOMAIN,
    LOGGER,
    CHANNEL_FREEZER_SUPER_MODE,
    CHANNEL_POWER_STATE,
    CHANNEL_PROGRAM_CONTROL,
    CHANNEL_PROGRAM_PAUSE,
    CHANNEL_REFRIGERATOR_SUPER_MODE,
    POWER_STATE_ON,
)
from .coordinator import HomeConnectCoordinator
from .entity import HomeConnectEntity

SWITCH_CHANNELS = (
    CHANNEL_POWER_STATE,
    CHANNEL_PROGRAM_CONTROL,
    CHANNEL_PROGRAM_PAUSE,
    CHANNEL_REFRIGERATOR_SUPER_MODE,
    CHANNEL_FREEZER_SUPER_MODE,
)


def create_switch_entities(
    coordinator: HomeConnectCoordinator, handler: ApplianceHandler
) -> list[SwitchEntity]:
    return [
        HomeConnectSwitch(coordinator, handler, channel)
        for channel in SWITCH_CHANNELS
        if channel in handler.channels
    ]


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """从配置项设置 Switch 平台。"""
    data = hass.data[DOMAIN][config_entry.entry_id]
    coordinator: HomeConnectCoordinator = data["coordinator"]

    coordinator.set_entity_adder(
        Platform.SWITCH, async_add_entities, create_switch_entities
    )


# ----------------------------------------------------------------------
# 开关实体 (Switch Entity)
# ----------------------------------------------------------------------
class HomeConnectSwitch(HomeConnectEntity, SwitchEntity):
    """电源、程序启动/停止、暂停/继续以及速冷/速冻开关。"""

    @property
    def is_on(self) -> bool | None:
        value = self.channel_value
        if value is None:
            return None
        if self.channel == CHANNEL_POWER_STATE:
            return value == POWER_STATE_ON
        return bool(value)

    async def async_turn_on(self, **kwargs) -> None:
        LOGGER.info(f"Turning ON {self.channel} of appliance {self.handler.ha_id}")
        await self.async_send_command(True)

    async def async_turn_off(self, **kwargs) -> None:
        LOGGER.info(f"Turning OFF {self.channel} of appliance {self.handler.ha_id}")
        await self.async_send_command(False)
