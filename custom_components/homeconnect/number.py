"""Home Connect 集成的 Number 平台 (冰箱/冷冻柜设定温度)."""

from homeassistant.components.number import NumberDeviceClass, NumberEntity, NumberMode
from homeassistant.config_entries import ConfigEntry
from homeassistant.const import Platform, UnitOfTemperature
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from .appliance import ApplianceHandler
from .const import (
    DOMAIN,
    LOGGER,
    CHANNEL_FREEZER_SETPOINT_TEMPERATURE,
    CHANNEL_REFRIGERATOR_SETPOINT_TEMPERATURE,
    UNIT_FAHRENHEIT,
)
from .coordinator import HomeConnectCoordinator
from .entity import HomeConnectEntity

# 通道 -> {单位: (最小值, 最大值)}
SETPOINT_RANGES = {
    CHANNEL_REFRIGERATOR_SETPOINT_TEMPERATURE: {
        UnitOfTemperature.CELSIUS: (2, 8),
        UnitOfTemperature.FAHRENHEIT: (35, 46),
    },
    CHANNEL_FREEZER_SETPOINT_TEMPERATURE: {
        UnitOfTemperature.CELSIUS: (-24, -16),
        UnitOfTemperature.FAHRENHEIT: (-11, 3),
    },
}


def create_number_entities(
    coordinator: HomeConnectCoordinator, handler: ApplianceHandler
) -> list[NumberEntity]:
    return [
        HomeConnectSetpointNumber(coordinator, handler, channel)
        for channel in SETPOINT_RANGES
        if channel in handler.channels
    ]


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """从配置项设置 Number 平台。"""
    data = hass.data[DOMAIN][config_entry.entry_id]
    coordinator: HomeConnectCoordinator = data["coordinator"]

    coordinator.set_entity_adder(
        Platform.NUMBER, async_add_entities, create_number_entities
    )


# ----------------------------------------------------------------------
# 设定温度实体 (Setpoint Temperature Entity)
# ----------------------------------------------------------------------
class HomeConnectSetpointNumber(HomeConnectEntity, NumberEntity):
    """代表冰箱或冷冻柜设定温度的 Number 实体。"""

    _attr_mode = NumberMode.BOX
    _attr_device_class = NumberDeviceClass.TEMPERATURE
    _attr_native_step = 1.0

    @property
    def native_unit_of_measurement(self) -> str:
        if self.handler.units.get(self.channel) == UNIT_FAHRENHEIT:
            return UnitOfTemperature.FAHRENHEIT
        return UnitOfTemperature.CELSIUS

    @property
    def native_min_value(self) -> float:
        return SETPOINT_RANGES[self.channel][self.native_unit_of_measurement][0]

    @property
    def native_max_value(self) -> float:
        return SETPOINT_RANGES[self.channel][self.native_unit_of_measurement][1]

    @property
    def native_value(self) -> float | None:
        value = self.channel_value
        return None if value is None else float(value)

    async def async_set_native_value(self, value: float) -> None:
        """设置新的温度值，并发送命令。"""
        LOGGER.info(
            f"Setting {self.channel} of appliance {self.handler.ha_id} to {int(value)}"
        )
        await self.async_send_command(value)
