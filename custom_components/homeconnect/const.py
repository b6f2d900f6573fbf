"""Constants for Home Connect."""

from homeassistant.const import Platform
from logging import Logger, getLogger

LOGGER: Logger = getLogger(__package__)

DOMAIN = "homeconnect"
ATTRIBUTION = "Data provided by https://api.home-connect.com/"

# --- API 地址和协议常量 ---
API_URL = "https://api.home-connect.com"
API_SIMULATOR_URL = "https://simulator.home-connect.com"
BSH_JSON_V1 = "application/vnd.bsh.sdk.v1+json"
EVENT_STREAM = "text/event-stream"
REQUEST_TIMEOUT = 30

# --- OAuth2 ---
AUTH_URI_PATH = "/security/oauth/authorize"
TOKEN_URI_PATH = "/security/oauth/token"
DEVICE_AUTH_URI_PATH = "/security/oauth/device_authorization"
AUTH_DEFAULT_REDIRECT_URL = "https://apiclient.home-connect.com/o2c.html"
AUTH_CODE_GRANT_SCOPE = "IdentifyAppliance Monitor Settings"
DEVICE_FLOW_SCOPE = "IdentifyAppliance Monitor Control Settings"
# 提前刷新，避免 token 在请求途中过期
TOKEN_EXPIRY_MARGIN = 60

# --- SSE ---
SSE_RETRY_DELAY = 10
# 服务器约每 55 秒发送一次 KEEP-ALIVE
SSE_READ_TIMEOUT = 120
SSE_EVENT_KEEP_ALIVE = "KEEP-ALIVE"
SSE_EVENT_CONNECTED = "CONNECTED"
SSE_EVENT_DISCONNECTED = "DISCONNECTED"

DEFAULT_SCAN_INTERVAL = 600

# 配置条目的键名
CONF_SIMULATOR = "simulator"
CONF_TOKEN = "token"

# --- Home Connect keys ---
SETTING_POWER_STATE = "BSH.Common.Setting.PowerState"
STATUS_DOOR_STATE = "BSH.Common.Status.DoorState"
STATUS_OPERATION_STATE = "BSH.Common.Status.OperationState"
STATUS_REMOTE_CONTROL_ACTIVE = "BSH.Common.Status.RemoteControlActive"
STATUS_REMOTE_CONTROL_START_ALLOWED = "BSH.Common.Status.RemoteControlStartAllowed"
STATUS_LOCAL_CONTROL_ACTIVE = "BSH.Common.Status.LocalControlActive"
COMMAND_PAUSE_PROGRAM = "BSH.Common.Command.PauseProgram"
COMMAND_RESUME_PROGRAM = "BSH.Common.Command.ResumeProgram"

EVENT_ACTIVE_PROGRAM = "BSH.Common.Root.ActiveProgram"
EVENT_SELECTED_PROGRAM = "BSH.Common.Root.SelectedProgram"
EVENT_REMAINING_PROGRAM_TIME = "BSH.Common.Option.RemainingProgramTime"
EVENT_PROGRAM_PROGRESS = "BSH.Common.Option.ProgramProgress"

SETTING_FRIDGE_SETPOINT_TEMPERATURE = (
    "Refrigeration.FridgeFreezer.Setting.SetpointTemperatureRefrigerator"
)
SETTING_FREEZER_SETPOINT_TEMPERATURE = (
    "Refrigeration.FridgeFreezer.Setting.SetpointTemperatureFreezer"
)
SETTING_FRIDGE_SUPER_MODE = "Refrigeration.FridgeFreezer.Setting.SuperModeRefrigerator"
SETTING_FREEZER_SUPER_MODE = "Refrigeration.FridgeFreezer.Setting.SuperModeFreezer"

OPTION_WASHER_TEMPERATURE = "LaundryCare.Washer.Option.Temperature"
OPTION_WASHER_SPIN_SPEED = "LaundryCare.Washer.Option.SpinSpeed"
OPTION_WASHER_IDOS_1_DOSING_LEVEL = "LaundryCare.Washer.Option.IDos1DosingLevel"
OPTION_WASHER_IDOS_2_DOSING_LEVEL = "LaundryCare.Washer.Option.IDos2DosingLevel"
OPTION_DRYER_DRYING_TARGET = "LaundryCare.Dryer.Option.DryingTarget"
OPTION_OVEN_SETPOINT_TEMPERATURE = "Cooking.Oven.Option.SetpointTemperature"
STATUS_OVEN_CURRENT_CAVITY_TEMPERATURE = "Cooking.Oven.Status.CurrentCavityTemperature"
OPTION_COFFEE_BEAN_AMOUNT = "ConsumerProducts.CoffeeMaker.Option.BeanAmount"
OPTION_COFFEE_FILL_QUANTITY = "ConsumerProducts.CoffeeMaker.Option.FillQuantity"

# --- 枚举值 ---
POWER_STATE_ON = "BSH.Common.EnumType.PowerState.On"
POWER_STATE_OFF = "BSH.Common.EnumType.PowerState.Off"
POWER_STATE_STANDBY = "BSH.Common.EnumType.PowerState.Standby"

OPERATION_STATE_INACTIVE = "BSH.Common.EnumType.OperationState.Inactive"
OPERATION_STATE_READY = "BSH.Common.EnumType.OperationState.Ready"
OPERATION_STATE_DELAYED_START = "BSH.Common.EnumType.OperationState.DelayedStart"
OPERATION_STATE_RUN = "BSH.Common.EnumType.OperationState.Run"
OPERATION_STATE_PAUSE = "BSH.Common.EnumType.OperationState.Pause"
OPERATION_STATE_FINISHED = "BSH.Common.EnumType.OperationState.Finished"

# --- 设备类型 ---
APPLIANCE_TYPE_DISHWASHER = "Dishwasher"
APPLIANCE_TYPE_WASHER = "Washer"
APPLIANCE_TYPE_DRYER = "Dryer"
APPLIANCE_TYPE_WASHER_DRYER = "WasherDryer"
APPLIANCE_TYPE_FRIDGE_FREEZER = "FridgeFreezer"
APPLIANCE_TYPE_FREEZER = "Freezer"
APPLIANCE_TYPE_REFRIGERATOR = "Refrigerator"
APPLIANCE_TYPE_OVEN = "Oven"
APPLIANCE_TYPE_COFFEE_MAKER = "CoffeeMaker"

# --- 通道 (channel) ID，对应实体在处理器 state 中的键 ---
CHANNEL_POWER_STATE = "power_state"
CHANNEL_DOOR_STATE = "door_state"
CHANNEL_OPERATION_STATE = "operation_state"
CHANNEL_REMOTE_CONTROL_ACTIVE_STATE = "remote_control_active"
CHANNEL_REMOTE_START_ALLOWANCE_STATE = "remote_start_allowed"
CHANNEL_LOCAL_CONTROL_ACTIVE_STATE = "local_control_active"
CHANNEL_ACTIVE_PROGRAM_STATE = "active_program"
CHANNEL_SELECTED_PROGRAM_STATE = "selected_program"
CHANNEL_REMAINING_PROGRAM_TIME_STATE = "remaining_program_time"
CHANNEL_PROGRAM_PROGRESS_STATE = "program_progress"
CHANNEL_PROGRAM_CONTROL = "program_control"
CHANNEL_PROGRAM_PAUSE = "program_pause"
CHANNEL_WASHER_TEMPERATURE = "washer_temperature"
CHANNEL_WASHER_SPIN_SPEED = "washer_spin_speed"
CHANNEL_WASHER_IDOS1 = "washer_idos1"
CHANNEL_WASHER_IDOS2 = "washer_idos2"
CHANNEL_DRYER_DRYING_TARGET = "dryer_drying_target"
CHANNEL_FREEZER_SETPOINT_TEMPERATURE = "freezer_setpoint_temperature"
CHANNEL_REFRIGERATOR_SETPOINT_TEMPERATURE = "refrigerator_setpoint_temperature"
CHANNEL_FREEZER_SUPER_MODE = "freezer_super_mode"
CHANNEL_REFRIGERATOR_SUPER_MODE = "refrigerator_super_mode"
CHANNEL_OVEN_CURRENT_CAVITY_TEMPERATURE = "oven_current_cavity_temperature"
CHANNEL_OVEN_SETPOINT_TEMPERATURE = "oven_setpoint_temperature"
CHANNEL_COFFEE_BEAN_AMOUNT = "coffee_bean_amount"
CHANNEL_COFFEE_FILL_QUANTITY = "coffee_fill_quantity"

# 温度单位在 API 中的写法
UNIT_CELSIUS = "°C"
UNIT_FAHRENHEIT = "°F"
UNIT_KELVIN = "K"


PLATFORMS: list[Platform] = [
    Platform.SENSOR,
    Platform.BINARY_SENSOR,
    Platform.SWITCH,
    Platform.NUMBER,
    Platform.SELECT,
]
