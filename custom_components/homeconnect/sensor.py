"""Home Connect 集成的 Sensor 平台 (传感器实体)."""

from homeassistant.components.sensor import (
    SensorDeviceClass,
    SensorEntity,
    SensorStateClass,
)
from homeassistant.config_entries import ConfigEntry
from homeassistant.const import PERCENTAGE, Platform, UnitOfTemperature, UnitOfTime
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from .appliance import ApplianceHandler
from .const import (
    DOMAIN,
    LOGGER,
    CHANNEL_ACTIVE_PROGRAM_STATE,
    CHANNEL_DOOR_STATE,
    CHANNEL_OPERATION_STATE,
    CHANNEL_OVEN_CURRENT_CAVITY_TEMPERATURE,
    CHANNEL_PROGRAM_PROGRESS_STATE,
    CHANNEL_REMAINING_PROGRAM_TIME_STATE,
    CHANNEL_SELECTED_PROGRAM_STATE,
    UNIT_FAHRENHEIT,
)
from .coordinator import HomeConnectCoordinator
from .entity import HomeConnectEntity, short_value

ENUM_CHANNELS = (
    CHANNEL_DOOR_STATE,
    CHANNEL_OPERATION_STATE,
    CHANNEL_ACTIVE_PROGRAM_STATE,
    CHANNEL_SELECTED_PROGRAM_STATE,
)


def create_sensor_entities(
    coordinator: HomeConnectCoordinator, handler: ApplianceHandler
) -> list[SensorEntity]:
    """为一台家电创建它支持的传感器实体。"""
    channels = handler.channels
    entities: list[SensorEntity] = [
        HomeConnectEnumSensor(coordinator, handler, channel)
        for channel in ENUM_CHANNELS
        if channel in channels
    ]
    if CHANNEL_REMAINING_PROGRAM_TIME_STATE in channels:
        entities.append(
            HomeConnectRemainingTimeSensor(
                coordinator, handler, CHANNEL_REMAINING_PROGRAM_TIME_STATE
            )
        )
    if CHANNEL_PROGRAM_PROGRESS_STATE in channels:
        entities.append(
            HomeConnectProgressSensor(coordinator, handler, CHANNEL_PROGRAM_PROGRESS_STATE)
        )
    if CHANNEL_OVEN_CURRENT_CAVITY_TEMPERATURE in channels:
        entities.append(
            HomeConnectTemperatureSensor(
                coordinator, handler, CHANNEL_OVEN_CURRENT_CAVITY_TEMPERATURE
            )
        )
    return entities


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """从配置项设置 Sensor 平台。"""
    data = hass.data[DOMAIN][config_entry.entry_id]
    coordinator: HomeConnectCoordinator = data["coordinator"]

    # 告诉协调器如何为当前及以后发现的家电添加实体
    coordinator.set_entity_adder(
        Platform.SENSOR, async_add_entities, create_sensor_entities
    )


# ----------------------------------------------------------------------
# 传感器实体
# ----------------------------------------------------------------------


class HomeConnectEnumSensor(HomeConnectEntity, SensorEntity):
    """门状态、运行状态和程序名称等枚举值。"""

    @property
    def native_value(self) -> str | None:
        return short_value(self.channel_value)

    @property
    def extra_state_attributes(self) -> dict:
        return {"key": self.channel_value}


class HomeConnectRemainingTimeSensor(HomeConnectEntity, SensorEntity):
    _attr_device_class = SensorDeviceClass.DURATION
    _attr_native_unit_of_measurement = UnitOfTime.SECONDS

    @property
    def native_value(self) -> int | None:
        return self.channel_value


class HomeConnectProgressSensor(HomeConnectEntity, SensorEntity):
    _attr_state_class = SensorStateClass.MEASUREMENT
    _attr_native_unit_of_measurement = PERCENTAGE

    @property
    def native_value(self) -> int | None:
        return self.channel_value


class HomeConnectTemperatureSensor(HomeConnectEntity, SensorEntity):
    """烤箱腔体温度。"""

    _attr_device_class = SensorDeviceClass.TEMPERATURE
    _attr_state_class = SensorStateClass.MEASUREMENT

    @property
    def native_unit_of_measurement(self) -> str:
        if self.handler.units.get(self.channel) == UNIT_FAHRENHEIT:
            return UnitOfTemperature.FAHRENHEIT
        return UnitOfTemperature.CELSIUS

    @property
    def native_value(self) -> float | None:
        value = self.channel_value
        if value is None:
            return None
        try:
            return float(value)
        except (TypeError, ValueError):
            LOGGER.warning(
                f"Temperature value '{value}' for appliance {self.handler.ha_id} is not a valid number."
            )
            return None
