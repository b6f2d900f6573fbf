"""Home Connect 集成的 Select 平台 (程序和程序选项选择)."""

from homeassistant.components.select import SelectEntity
from homeassistant.config_entries import ConfigEntry
from homeassistant.const import Platform
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from .appliance import ApplianceHandler
from .const import DOMAIN, LOGGER, CHANNEL_SELECTED_PROGRAM_STATE
from .coordinator import HomeConnectCoordinator
from .entity import HomeConnectEntity


def create_select_entities(
    coordinator: HomeConnectCoordinator, handler: ApplianceHandler
) -> list[SelectEntity]:
    entities: list[SelectEntity] = []
    if CHANNEL_SELECTED_PROGRAM_STATE in handler.channels:
        entities.append(
            HomeConnectProgramSelect(coordinator, handler, CHANNEL_SELECTED_PROGRAM_STATE)
        )
    for channel in handler.PROGRAM_OPTION_CHANNELS:
        entities.append(HomeConnectOptionSelect(coordinator, handler, channel))
    return entities


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """从配置项设置 Select 平台。"""
    data = hass.data[DOMAIN][config_entry.entry_id]
    coordinator: HomeConnectCoordinator = data["coordinator"]

    coordinator.set_entity_adder(
        Platform.SELECT, async_add_entities, create_select_entities
    )


# ----------------------------------------------------------------------
# 程序选择实体
# ----------------------------------------------------------------------
class HomeConnectProgramSelect(HomeConnectEntity, SelectEntity):
    """选择家电的程序，可选项来自 programs/available。"""

    @property
    def current_option(self) -> str | None:
        return self.channel_value

    @property
    def options(self) -> list[str]:
        options = list(self.handler.available_programs)
        current = self.channel_value
        # 当前程序可能不在可用列表中（例如家电端手动选择）
        if current and current not in options:
            options.append(current)
        return options

    async def async_select_option(self, option: str) -> None:
        LOGGER.info(f"Selecting program {option} on appliance {self.handler.ha_id}")
        await self.async_send_command(option)


# ----------------------------------------------------------------------
# 程序选项实体
# ----------------------------------------------------------------------
class HomeConnectOptionSelect(HomeConnectEntity, SelectEntity):
    """
    选中程序的某个选项（温度、转速、i-Dos 剂量等）。

    可选项来自程序选项约束：枚举类型使用 allowedvalues，
    数值类型按 min/max/stepsize 展开。
    """

    def _is_numeric(self) -> bool:
        return self.channel in self.handler.option_ranges

    @property
    def available(self) -> bool:
        return super().available and bool(self.options)

    @property
    def current_option(self) -> str | None:
        value = self.channel_value
        if value is None:
            return None
        if self._is_numeric():
            try:
                return str(int(float(value)))
            except (TypeError, ValueError):
                return None
        return str(value)

    @property
    def options(self) -> list[str]:
        allowed = self.handler.allowed_values.get(self.channel)
        if allowed:
            return list(allowed)
        if self._is_numeric():
            minimum, maximum, step = self.handler.option_ranges[self.channel]
            step = int(step) or 1
            return [str(value) for value in range(int(minimum), int(maximum) + 1, step)]
        return []

    async def async_select_option(self, option: str) -> None:
        LOGGER.info(
            f"Setting {self.channel} of appliance {self.handler.ha_id} to {option}"
        )
        await self.async_send_command(option)
