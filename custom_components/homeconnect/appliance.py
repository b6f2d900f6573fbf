"""各类家电的处理器：通道轮询、SSE 事件分发以及命令处理。"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Coroutine

from .const import (
    LOGGER,
    APPLIANCE_TYPE_COFFEE_MAKER,
    APPLIANCE_TYPE_DISHWASHER,
    APPLIANCE_TYPE_DRYER,
    APPLIANCE_TYPE_FREEZER,
    APPLIANCE_TYPE_FRIDGE_FREEZER,
    APPLIANCE_TYPE_OVEN,
    APPLIANCE_TYPE_REFRIGERATOR,
    APPLIANCE_TYPE_WASHER,
    APPLIANCE_TYPE_WASHER_DRYER,
    CHANNEL_ACTIVE_PROGRAM_STATE,
    CHANNEL_COFFEE_BEAN_AMOUNT,
    CHANNEL_COFFEE_FILL_QUANTITY,
    CHANNEL_DOOR_STATE,
    CHANNEL_DRYER_DRYING_TARGET,
    CHANNEL_FREEZER_SETPOINT_TEMPERATURE,
    CHANNEL_FREEZER_SUPER_MODE,
    CHANNEL_LOCAL_CONTROL_ACTIVE_STATE,
    CHANNEL_OPERATION_STATE,
    CHANNEL_OVEN_CURRENT_CAVITY_TEMPERATURE,
    CHANNEL_OVEN_SETPOINT_TEMPERATURE,
    CHANNEL_POWER_STATE,
    CHANNEL_PROGRAM_CONTROL,
    CHANNEL_PROGRAM_PAUSE,
    CHANNEL_PROGRAM_PROGRESS_STATE,
    CHANNEL_REFRIGERATOR_SETPOINT_TEMPERATURE,
    CHANNEL_REFRIGERATOR_SUPER_MODE,
    CHANNEL_REMAINING_PROGRAM_TIME_STATE,
    CHANNEL_REMOTE_CONTROL_ACTIVE_STATE,
    CHANNEL_REMOTE_START_ALLOWANCE_STATE,
    CHANNEL_SELECTED_PROGRAM_STATE,
    CHANNEL_WASHER_IDOS1,
    CHANNEL_WASHER_IDOS2,
    CHANNEL_WASHER_SPIN_SPEED,
    CHANNEL_WASHER_TEMPERATURE,
    EVENT_ACTIVE_PROGRAM,
    EVENT_PROGRAM_PROGRESS,
    EVENT_REMAINING_PROGRAM_TIME,
    EVENT_SELECTED_PROGRAM,
    OPERATION_STATE_DELAYED_START,
    OPERATION_STATE_FINISHED,
    OPERATION_STATE_INACTIVE,
    OPERATION_STATE_PAUSE,
    OPERATION_STATE_READY,
    OPERATION_STATE_RUN,
    OPTION_COFFEE_BEAN_AMOUNT,
    OPTION_COFFEE_FILL_QUANTITY,
    OPTION_DRYER_DRYING_TARGET,
    OPTION_OVEN_SETPOINT_TEMPERATURE,
    OPTION_WASHER_IDOS_1_DOSING_LEVEL,
    OPTION_WASHER_IDOS_2_DOSING_LEVEL,
    OPTION_WASHER_SPIN_SPEED,
    OPTION_WASHER_TEMPERATURE,
    POWER_STATE_OFF,
    POWER_STATE_ON,
    POWER_STATE_STANDBY,
    SETTING_FREEZER_SETPOINT_TEMPERATURE,
    SETTING_FREEZER_SUPER_MODE,
    SETTING_FRIDGE_SETPOINT_TEMPERATURE,
    SETTING_FRIDGE_SUPER_MODE,
    SETTING_POWER_STATE,
    SSE_EVENT_CONNECTED,
    SSE_EVENT_DISCONNECTED,
    STATUS_DOOR_STATE,
    STATUS_LOCAL_CONTROL_ACTIVE,
    STATUS_OPERATION_STATE,
    STATUS_OVEN_CURRENT_CAVITY_TEMPERATURE,
    STATUS_REMOTE_CONTROL_ACTIVE,
    STATUS_REMOTE_CONTROL_START_ALLOWED,
    UNIT_CELSIUS,
    UNIT_FAHRENHEIT,
    UNIT_KELVIN,
)
from .exceptions import AuthorizationError, CommunicationError
from .models import Event, HomeAppliance, Program

if TYPE_CHECKING:
    from .api import HomeConnectApiClient


# ----------------------------------------------------------------------
# 类型定义
# ----------------------------------------------------------------------

# 通道轮询处理器：参数为通道 ID
ChannelUpdateHandler = Callable[[str], Awaitable[None]]
# 事件处理器：参数为 SSE 事件
EventHandler = Callable[[Event], None]
Scheduler = Callable[[Coroutine[Any, Any, None]], Any]


def convert_setpoint_temperature(value: float, unit: str | None) -> tuple[int, str]:
    """
    把设定温度转换为 API 接受的 (整数值, 单位)。

    °C 和 °F 原样发送，开尔文换算为 °C。
    """
    if unit in (None, UNIT_CELSIUS, UNIT_FAHRENHEIT):
        return int(value), unit or UNIT_CELSIUS
    if unit == UNIT_KELVIN:
        celsius = int(round(value - 273.15))
        LOGGER.info(f"Converting target setpoint temperature from {value}{unit} to {celsius}°C.")
        return celsius, UNIT_CELSIUS
    raise ValueError(f"Unsupported temperature unit: {unit}")


class ApplianceHandler:
    """所有家电处理器的基类。"""

    ACTIVE_STATES = (
        OPERATION_STATE_DELAYED_START,
        OPERATION_STATE_RUN,
        OPERATION_STATE_PAUSE,
    )
    INACTIVE_STATES = (OPERATION_STATE_INACTIVE, OPERATION_STATE_READY)
    POWER_OFF_STATE = POWER_STATE_OFF
    # 程序选项通道 -> API 选项键
    PROGRAM_OPTION_CHANNELS: dict[str, str] = {}
    # 由其他通道推导出的通道
    DERIVED_CHANNELS: tuple[str, ...] = ()

    def __init__(
        self,
        client: HomeConnectApiClient,
        appliance: HomeAppliance,
        schedule: Scheduler | None = None,
        on_update: Callable[[], None] | None = None,
    ):
        self.client = client
        self.appliance = appliance
        self.state: dict[str, Any] = {}
        self.units: dict[str, str | None] = {}
        self.allowed_values: dict[str, list[str]] = {}
        self.option_ranges: dict[str, tuple[float, float, float]] = {}
        self.available_programs: list[str] = []

        self._schedule = schedule
        self._on_update = on_update
        self._background_tasks: set[asyncio.Task] = set()
        self._option_channels_by_key = {
            key: channel for channel, key in self.PROGRAM_OPTION_CHANNELS.items()
        }

        self.channel_update_handlers: dict[str, ChannelUpdateHandler] = {}
        self.configure_channel_update_handlers(self.channel_update_handlers)
        self.event_handlers: dict[str, EventHandler] = {}
        self.configure_event_handlers(self.event_handlers)

    @property
    def ha_id(self) -> str:
        return self.appliance.ha_id

    @property
    def channels(self) -> set[str]:
        """该家电支持的全部通道。"""
        return (
            set(self.channel_update_handlers)
            | set(self.PROGRAM_OPTION_CHANNELS)
            | set(self.DERIVED_CHANNELS)
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__} [haId: {self.ha_id}]"

    # --- 配置分发表 ---

    def configure_channel_update_handlers(
        self, handlers: dict[str, ChannelUpdateHandler]
    ) -> None:
        """由子类注册通道轮询处理器。"""

    def configure_event_handlers(self, handlers: dict[str, EventHandler]) -> None:
        """由子类注册事件处理器。"""

    # --- 轮询 ---

    async def async_update_channels(self) -> None:
        """
        依次轮询所有通道。

        通信错误只记录日志，通道保持原值；认证错误向上抛出。
        """
        for channel, update in self.channel_update_handlers.items():
            try:
                await update(channel)
            except CommunicationError as err:
                LOGGER.warning(f"[{self.ha_id}] Could not update channel {channel}: {err}")
        self._update_derived_channels()

    # --- 事件 ---

    def handle_event(self, event: Event) -> bool:
        """处理一条 SSE 事件，返回是否有对应的处理器。"""
        if event.key == SSE_EVENT_CONNECTED:
            self.appliance.connected = True
            return True
        if event.key == SSE_EVENT_DISCONNECTED:
            self.appliance.connected = False
            return True

        handler = self.event_handlers.get(event.key)
        if handler is None:
            channel = self._option_channels_by_key.get(event.key)
            if channel is None:
                return False
            self.state[channel] = event.value
            return True

        handler(event)
        self._update_derived_channels()
        return True

    # --- 命令 ---

    async def async_handle_command(self, channel: str, value: Any) -> None:
        """
        把实体命令转换为 API 请求。

        通信错误只记录日志；认证错误向上抛出以触发重新认证。
        """
        LOGGER.debug(f"[{self.ha_id}] {channel}: {value}")
        try:
            await self._async_handle_command(channel, value)
        except CommunicationError as err:
            LOGGER.warning(
                f"[{self.ha_id}] Could not handle command {value}. "
                f"API communication problem! error: {err}"
            )

    async def _async_handle_command(self, channel: str, value: Any) -> None:
        if channel == CHANNEL_POWER_STATE:
            state = POWER_STATE_ON if value else self.POWER_OFF_STATE
            await self.client.set_power_state(self.ha_id, state)
            self.state[CHANNEL_POWER_STATE] = state
        elif channel == CHANNEL_SELECTED_PROGRAM_STATE:
            await self.client.set_selected_program(self.ha_id, value)
            self.state[CHANNEL_SELECTED_PROGRAM_STATE] = value
            self._schedule_update(self._async_refresh_program_options())
        elif channel == CHANNEL_PROGRAM_CONTROL:
            if value:
                await self.client.start_program(self.ha_id)
            else:
                await self.client.stop_program(self.ha_id)
            self.state[CHANNEL_PROGRAM_CONTROL] = bool(value)
        elif channel == CHANNEL_PROGRAM_PAUSE:
            if value:
                await self.client.pause_program(self.ha_id)
            else:
                await self.client.resume_program(self.ha_id)
            self.state[CHANNEL_PROGRAM_PAUSE] = bool(value)
        elif channel in self.PROGRAM_OPTION_CHANNELS:
            await self._async_set_program_option(channel, value)
        else:
            LOGGER.debug(f"[{self.ha_id}] Channel {channel} does not accept commands.")

    async def _async_set_program_option(self, channel: str, value: Any) -> None:
        # 仅在运行状态允许时处理选项命令
        operation_state = self.state.get(CHANNEL_OPERATION_STATE)
        if operation_state not in self.ACTIVE_STATES + self.INACTIVE_STATES:
            LOGGER.debug(
                f"[{self.ha_id}] Ignoring option {channel}, operation state: {operation_state}"
            )
            return

        active = operation_state in self.ACTIVE_STATES
        LOGGER.debug(
            f"[{self.ha_id}] operation state: {operation_state} | active: {active}"
        )
        numeric = channel in self.option_ranges
        await self.client.set_program_options(
            self.ha_id,
            self.PROGRAM_OPTION_CHANNELS[channel],
            value,
            self.units.get(channel) if numeric else None,
            numeric,
            active,
        )
        self.state[channel] = int(value) if numeric else value

    # --- 程序相关 ---

    def reset_program_state_channels(self) -> None:
        self.state[CHANNEL_REMAINING_PROGRAM_TIME_STATE] = None
        self.state[CHANNEL_PROGRAM_PROGRESS_STATE] = None
        self.state[CHANNEL_ACTIVE_PROGRAM_STATE] = None

    def _update_derived_channels(self) -> None:
        if CHANNEL_PROGRAM_CONTROL not in self.DERIVED_CHANNELS:
            return
        operation_state = self.state.get(CHANNEL_OPERATION_STATE)
        self.state[CHANNEL_PROGRAM_CONTROL] = (
            self.state.get(CHANNEL_ACTIVE_PROGRAM_STATE) is not None
            or operation_state in self.ACTIVE_STATES
        )
        self.state[CHANNEL_PROGRAM_PAUSE] = operation_state == OPERATION_STATE_PAUSE

    async def async_update_program_options(self, program: Program | None = None) -> None:
        """根据选中的程序刷新可选程序、选项的当前值和允许值。"""
        if program is None:
            program = await self.client.get_selected_program(self.ha_id)
        self.state[CHANNEL_SELECTED_PROGRAM_STATE] = program.key if program else None

        if not self.available_programs:
            self.available_programs = [
                available.key
                for available in await self.client.get_available_programs(self.ha_id)
            ]

        if not self.PROGRAM_OPTION_CHANNELS:
            return

        # 约束只属于当前选中的程序
        for channel in self.PROGRAM_OPTION_CHANNELS:
            self.allowed_values.pop(channel, None)
            self.option_ranges.pop(channel, None)
            self.units.pop(channel, None)

        if program is None:
            return

        for option in await self.client.get_program_options(self.ha_id, program.key):
            channel = self._option_channels_by_key.get(option.key)
            if channel is None:
                continue
            if option.allowed_values:
                self.allowed_values[channel] = option.allowed_values
            if option.min is not None and option.max is not None:
                self.option_ranges[channel] = (option.min, option.max, option.step or 1)
            self.units[channel] = option.unit

        for option in program.options:
            channel = self._option_channels_by_key.get(option.key)
            if channel is not None:
                self.state[channel] = option.value

    async def _async_refresh_program_options(self) -> None:
        try:
            await self.async_update_program_options()
        except CommunicationError as err:
            LOGGER.warning(f"[{self.ha_id}] Could not update program options: {err}")
            return
        except AuthorizationError as err:
            LOGGER.error(f"[{self.ha_id}] Authorization problem! error: {err}")
            return
        if self._on_update:
            self._on_update()

    def _schedule_update(self, coro: Coroutine[Any, Any, None]) -> None:
        if self._schedule:
            self._schedule(coro)
            return
        task = asyncio.get_running_loop().create_task(coro)
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    # --- 默认通道处理器 ---

    def default_status_channel_update_handler(self, key: str) -> ChannelUpdateHandler:
        async def update(channel: str) -> None:
            data = await self.client.get_status(self.ha_id, key)
            self.state[channel] = data.value if data else None

        return update

    def default_boolean_status_channel_update_handler(
        self, key: str
    ) -> ChannelUpdateHandler:
        async def update(channel: str) -> None:
            data = await self.client.get_status(self.ha_id, key)
            self.state[channel] = data.value_as_boolean if data else None

        return update

    async def _update_power_state(self, channel: str) -> None:
        data = await self.client.get_power_state(self.ha_id)
        self.state[channel] = data.value if data else None

    async def _update_operation_state(self, channel: str) -> None:
        data = await self.client.get_operation_state(self.ha_id)
        self.state[channel] = data.value if data else None

    async def _update_active_program(self, channel: str) -> None:
        program = await self.client.get_active_program(self.ha_id)
        if program is None:
            self.reset_program_state_channels()
            return

        self.state[channel] = program.key
        remaining = program.get_option(EVENT_REMAINING_PROGRAM_TIME)
        progress = program.get_option(EVENT_PROGRAM_PROGRESS)
        self.state[CHANNEL_REMAINING_PROGRAM_TIME_STATE] = (
            _as_int(remaining.value) if remaining else None
        )
        self.state[CHANNEL_PROGRAM_PROGRESS_STATE] = (
            _as_int(progress.value) if progress else None
        )

    async def _update_selected_program(self, channel: str) -> None:
        await self.async_update_program_options()

    def register_default_channel_update_handlers(
        self, handlers: dict[str, ChannelUpdateHandler]
    ) -> None:
        handlers[CHANNEL_POWER_STATE] = self._update_power_state
        handlers[CHANNEL_DOOR_STATE] = self.default_status_channel_update_handler(
            STATUS_DOOR_STATE
        )
        handlers[CHANNEL_OPERATION_STATE] = self._update_operation_state
        handlers[CHANNEL_REMOTE_CONTROL_ACTIVE_STATE] = (
            self.default_boolean_status_channel_update_handler(
                STATUS_REMOTE_CONTROL_ACTIVE
            )
        )
        handlers[CHANNEL_REMOTE_START_ALLOWANCE_STATE] = (
            self.default_boolean_status_channel_update_handler(
                STATUS_REMOTE_CONTROL_START_ALLOWED
            )
        )
        handlers[CHANNEL_LOCAL_CONTROL_ACTIVE_STATE] = (
            self.default_boolean_status_channel_update_handler(
                STATUS_LOCAL_CONTROL_ACTIVE
            )
        )
        handlers[CHANNEL_ACTIVE_PROGRAM_STATE] = self._update_active_program
        handlers[CHANNEL_SELECTED_PROGRAM_STATE] = self._update_selected_program

    # --- 默认事件处理器 ---

    def default_event_handler(self, channel: str) -> EventHandler:
        def handle(event: Event) -> None:
            self.state[channel] = event.value

        return handle

    def default_boolean_event_handler(self, channel: str) -> EventHandler:
        def handle(event: Event) -> None:
            self.state[channel] = event.value_as_boolean

        return handle

    def default_int_event_handler(self, channel: str) -> EventHandler:
        def handle(event: Event) -> None:
            self.state[channel] = event.value_as_int

        return handle

    def _handle_operation_state_event(self, event: Event) -> None:
        self.state[CHANNEL_OPERATION_STATE] = event.value
        if event.value in (
            OPERATION_STATE_INACTIVE,
            OPERATION_STATE_READY,
            OPERATION_STATE_FINISHED,
        ):
            self.reset_program_state_channels()

    def _handle_active_program_event(self, event: Event) -> None:
        if event.value is None:
            self.reset_program_state_channels()
        else:
            self.state[CHANNEL_ACTIVE_PROGRAM_STATE] = event.value

    def _handle_selected_program_event(self, event: Event) -> None:
        self.state[CHANNEL_SELECTED_PROGRAM_STATE] = event.value
        if event.value:
            self._schedule_update(self._async_refresh_program_options())

    def register_default_event_handlers(self, handlers: dict[str, EventHandler]) -> None:
        handlers[SETTING_POWER_STATE] = self.default_event_handler(CHANNEL_POWER_STATE)
        handlers[STATUS_DOOR_STATE] = self.default_event_handler(CHANNEL_DOOR_STATE)
        handlers[STATUS_OPERATION_STATE] = self._handle_operation_state_event
        handlers[STATUS_REMOTE_CONTROL_ACTIVE] = self.default_boolean_event_handler(
            CHANNEL_REMOTE_CONTROL_ACTIVE_STATE
        )
        handlers[STATUS_REMOTE_CONTROL_START_ALLOWED] = (
            self.default_boolean_event_handler(CHANNEL_REMOTE_START_ALLOWANCE_STATE)
        )
        handlers[STATUS_LOCAL_CONTROL_ACTIVE] = self.default_boolean_event_handler(
            CHANNEL_LOCAL_CONTROL_ACTIVE_STATE
        )
        handlers[EVENT_ACTIVE_PROGRAM] = self._handle_active_program_event
        handlers[EVENT_SELECTED_PROGRAM] = self._handle_selected_program_event
        handlers[EVENT_REMAINING_PROGRAM_TIME] = self.default_int_event_handler(
            CHANNEL_REMAINING_PROGRAM_TIME_STATE
        )
        handlers[EVENT_PROGRAM_PROGRESS] = self.default_int_event_handler(
            CHANNEL_PROGRAM_PROGRESS_STATE
        )


def _as_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(float(value))
    except ValueError:
        return None


# ----------------------------------------------------------------------
# 支持程序的家电
# ----------------------------------------------------------------------


class ProgramApplianceHandler(ApplianceHandler):
    """可以选择、启动和暂停程序的家电。"""

    DERIVED_CHANNELS = (CHANNEL_PROGRAM_CONTROL, CHANNEL_PROGRAM_PAUSE)

    def configure_channel_update_handlers(self, handlers):
        self.register_default_channel_update_handlers(handlers)

    def configure_event_handlers(self, handlers):
        self.register_default_event_handlers(handlers)


class DishwasherHandler(ProgramApplianceHandler):
    pass


class WasherHandler(ProgramApplianceHandler):
    PROGRAM_OPTION_CHANNELS = {
        CHANNEL_WASHER_TEMPERATURE: OPTION_WASHER_TEMPERATURE,
        CHANNEL_WASHER_SPIN_SPEED: OPTION_WASHER_SPIN_SPEED,
        CHANNEL_WASHER_IDOS1: OPTION_WASHER_IDOS_1_DOSING_LEVEL,
        CHANNEL_WASHER_IDOS2: OPTION_WASHER_IDOS_2_DOSING_LEVEL,
    }


class DryerHandler(ProgramApplianceHandler):
    PROGRAM_OPTION_CHANNELS = {
        CHANNEL_DRYER_DRYING_TARGET: OPTION_DRYER_DRYING_TARGET,
    }


class WasherDryerHandler(ProgramApplianceHandler):
    PROGRAM_OPTION_CHANNELS = {
        **WasherHandler.PROGRAM_OPTION_CHANNELS,
        **DryerHandler.PROGRAM_OPTION_CHANNELS,
    }


class OvenHandler(ProgramApplianceHandler):
    POWER_OFF_STATE = POWER_STATE_STANDBY
    PROGRAM_OPTION_CHANNELS = {
        CHANNEL_OVEN_SETPOINT_TEMPERATURE: OPTION_OVEN_SETPOINT_TEMPERATURE,
    }

    def configure_channel_update_handlers(self, handlers):
        super().configure_channel_update_handlers(handlers)
        handlers[CHANNEL_OVEN_CURRENT_CAVITY_TEMPERATURE] = self._update_cavity_temperature

    def configure_event_handlers(self, handlers):
        super().configure_event_handlers(handlers)
        handlers[STATUS_OVEN_CURRENT_CAVITY_TEMPERATURE] = self._handle_cavity_temperature

    async def _update_cavity_temperature(self, channel: str) -> None:
        data = await self.client.get_status(
            self.ha_id, STATUS_OVEN_CURRENT_CAVITY_TEMPERATURE
        )
        self.state[channel] = data.value_as_float if data else None
        if data:
            self.units[channel] = data.unit

    def _handle_cavity_temperature(self, event: Event) -> None:
        self.state[CHANNEL_OVEN_CURRENT_CAVITY_TEMPERATURE] = event.value_as_float
        if event.unit:
            self.units[CHANNEL_OVEN_CURRENT_CAVITY_TEMPERATURE] = event.unit


class CoffeeMakerHandler(ProgramApplianceHandler):
    POWER_OFF_STATE = POWER_STATE_STANDBY
    PROGRAM_OPTION_CHANNELS = {
        CHANNEL_COFFEE_BEAN_AMOUNT: OPTION_COFFEE_BEAN_AMOUNT,
        CHANNEL_COFFEE_FILL_QUANTITY: OPTION_COFFEE_FILL_QUANTITY,
    }


# ----------------------------------------------------------------------
# 冰箱/冷冻柜
# ----------------------------------------------------------------------


class FridgeFreezerHandler(ApplianceHandler):
    SETPOINT_CHANNELS = {
        CHANNEL_REFRIGERATOR_SETPOINT_TEMPERATURE: SETTING_FRIDGE_SETPOINT_TEMPERATURE,
        CHANNEL_FREEZER_SETPOINT_TEMPERATURE: SETTING_FREEZER_SETPOINT_TEMPERATURE,
    }
    SUPER_MODE_CHANNELS = {
        CHANNEL_REFRIGERATOR_SUPER_MODE: SETTING_FRIDGE_SUPER_MODE,
        CHANNEL_FREEZER_SUPER_MODE: SETTING_FREEZER_SUPER_MODE,
    }

    def configure_channel_update_handlers(self, handlers):
        handlers[CHANNEL_DOOR_STATE] = self.default_status_channel_update_handler(
            STATUS_DOOR_STATE
        )
        for channel in self.SETPOINT_CHANNELS:
            handlers[channel] = self._update_setpoint_temperature
        for channel in self.SUPER_MODE_CHANNELS:
            handlers[channel] = self._update_super_mode

    def configure_event_handlers(self, handlers):
        handlers[STATUS_DOOR_STATE] = self.default_event_handler(CHANNEL_DOOR_STATE)
        for channel, key in self.SETPOINT_CHANNELS.items():
            handlers[key] = self._setpoint_event_handler(channel)
        for channel, key in self.SUPER_MODE_CHANNELS.items():
            handlers[key] = self.default_boolean_event_handler(channel)

    async def _update_setpoint_temperature(self, channel: str) -> None:
        data = await self.client.get_setting(self.ha_id, self.SETPOINT_CHANNELS[channel])
        if data is None or data.value is None:
            self.state[channel] = None
            return
        self.state[channel] = data.value_as_int
        self.units[channel] = data.unit

    async def _update_super_mode(self, channel: str) -> None:
        data = await self.client.get_setting(
            self.ha_id, self.SUPER_MODE_CHANNELS[channel]
        )
        self.state[channel] = data.value_as_boolean if data and data.value else None

    def _setpoint_event_handler(self, channel: str) -> EventHandler:
        def handle(event: Event) -> None:
            self.state[channel] = event.value_as_int
            if event.unit:
                self.units[channel] = event.unit

        return handle

    async def async_set_setpoint_temperature(
        self, channel: str, value: float, unit: str | None
    ) -> None:
        try:
            api_value, api_unit = convert_setpoint_temperature(value, unit)
        except ValueError as err:
            LOGGER.error(f"[{self.ha_id}] Could not set setpoint! {err}")
            return

        LOGGER.debug(f"[{self.ha_id}] Set setpoint temperature to {api_value} {api_unit}.")
        if channel == CHANNEL_REFRIGERATOR_SETPOINT_TEMPERATURE:
            await self.client.set_fridge_setpoint_temperature(
                self.ha_id, api_value, api_unit
            )
        else:
            await self.client.set_freezer_setpoint_temperature(
                self.ha_id, api_value, api_unit
            )
        self.state[channel] = api_value
        self.units[channel] = api_unit

    async def _async_handle_command(self, channel: str, value: Any) -> None:
        if channel in self.SETPOINT_CHANNELS:
            await self.async_set_setpoint_temperature(
                channel, value, self.units.get(channel) or UNIT_CELSIUS
            )
        elif channel == CHANNEL_REFRIGERATOR_SUPER_MODE:
            await self.client.set_fridge_super_mode(self.ha_id, bool(value))
            self.state[channel] = bool(value)
        elif channel == CHANNEL_FREEZER_SUPER_MODE:
            await self.client.set_freezer_super_mode(self.ha_id, bool(value))
            self.state[channel] = bool(value)
        else:
            LOGGER.debug(f"[{self.ha_id}] Channel {channel} does not accept commands.")


HANDLERS: dict[str, type[ApplianceHandler]] = {
    APPLIANCE_TYPE_DISHWASHER: DishwasherHandler,
    APPLIANCE_TYPE_WASHER: WasherHandler,
    APPLIANCE_TYPE_DRYER: DryerHandler,
    APPLIANCE_TYPE_WASHER_DRYER: WasherDryerHandler,
    APPLIANCE_TYPE_FRIDGE_FREEZER: FridgeFreezerHandler,
    APPLIANCE_TYPE_FREEZER: FridgeFreezerHandler,
    APPLIANCE_TYPE_REFRIGERATOR: FridgeFreezerHandler,
    APPLIANCE_TYPE_OVEN: OvenHandler,
    APPLIANCE_TYPE_COFFEE_MAKER: CoffeeMakerHandler,
}


def create_handler(
    client: HomeConnectApiClient,
    appliance: HomeAppliance,
    schedule: Scheduler | None = None,
    on_update: Callable[[], None] | None = None,
) -> ApplianceHandler | None:
    """按家电类型创建处理器；不支持的类型返回 None。"""
    handler_class = HANDLERS.get(appliance.type)
    if handler_class is None:
        return None
    return handler_class(client, appliance, schedule=schedule, on_update=on_update)
