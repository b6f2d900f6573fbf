"""Home Connect 集成的 Home Assistant 入口文件"""

from homeassistant.config_entries import ConfigEntry
from homeassistant.const import CONF_CLIENT_ID, CONF_CLIENT_SECRET
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.aiohttp_client import async_get_clientsession

from .api import HomeConnectApiClient
from .const import DOMAIN, LOGGER, PLATFORMS, CONF_SIMULATOR, CONF_TOKEN
from .coordinator import HomeConnectCoordinator
from .models import Token


async def async_setup(hass: HomeAssistant, config: dict):
    """设置 Home Connect 集成 (配置加载前)."""
    hass.data.setdefault(DOMAIN, {})
    return True


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry):
    """从配置项加载集成"""
    LOGGER.debug("Setting up component Home Connect from config entry.")
    hass.data.setdefault(DOMAIN, {})

    @callback
    def _async_token_updated(token: Token) -> None:
        # 刷新后的 token 写回配置条目，重启后仍可使用
        hass.config_entries.async_update_entry(
            entry, data={**entry.data, CONF_TOKEN: token.as_dict()}
        )

    # 1. 实例化客户端
    client = HomeConnectApiClient(
        async_get_clientsession(hass),
        entry.data[CONF_CLIENT_ID],
        entry.data.get(CONF_CLIENT_SECRET, ""),
        token=Token.from_dict(entry.data.get(CONF_TOKEN)),
        simulated=entry.data.get(CONF_SIMULATOR, False),
        token_update_callback=_async_token_updated,
    )

    # 2. 实例化协调器并完成首次刷新
    coordinator = HomeConnectCoordinator(hass, entry, client)
    try:
        await coordinator.async_config_entry_first_refresh()
    except Exception:
        # 首次刷新可能已经打开了部分 SSE 连接
        await client.dispose()
        raise

    # 3. 将客户端和协调器存储在 hass.data 中
    hass.data[DOMAIN][entry.entry_id] = {
        "client": client,
        "coordinator": coordinator,
    }

    # 4. 转发到平台（sensor, switch 等）
    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)

    return True


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry):
    """卸载集成配置项"""
    LOGGER.debug("Unloading component Home Connect.")

    # 1. 卸载所有平台
    unload_ok = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)

    # 2. 关闭 SSE 连接
    if unload_ok and entry.entry_id in hass.data[DOMAIN]:
        data = hass.data[DOMAIN].pop(entry.entry_id)
        coordinator: HomeConnectCoordinator = data["coordinator"]
        await coordinator.async_shutdown()

    return unload_ok
