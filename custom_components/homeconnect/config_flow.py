"""Adds config flow for Home Connect, handling OAuth2 authorization (Authorization Code or Device Flow)."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import voluptuous as vol
from homeassistant import config_entries
from homeassistant.const import CONF_CLIENT_ID, CONF_CLIENT_SECRET
from homeassistant.helpers import selector
from homeassistant.helpers.aiohttp_client import async_get_clientsession

from .auth import (
    async_authorize_code,
    async_fetch_device_token,
    async_request_device_authorization,
)
from .const import (
    DOMAIN,
    LOGGER,
    API_URL,
    API_SIMULATOR_URL,
    CONF_SIMULATOR,
    CONF_TOKEN,
)
from .exceptions import (
    AuthorizationError,
    CommunicationError,
    DeviceAuthorizationPending,
)
from .models import DeviceAuthorization, Token


class HomeConnectConfigFlow(config_entries.ConfigFlow, domain=DOMAIN):
    """Config flow for Home Connect."""

    VERSION = 1

    def __init__(self) -> None:
        self._credentials: dict[str, Any] = {}
        self._device_authorization: DeviceAuthorization | None = None

    async def async_step_user(
        self,
        user_input: dict | None = None,
    ) -> config_entries.ConfigFlowResult:
        """处理用户启动的配置流程：输入 client id / secret。"""
        _errors = {}
        if user_input is not None:
            # 每个 client id 只能配置一次
            await self.async_set_unique_id(user_input[CONF_CLIENT_ID])
            self._abort_if_unique_id_configured()

            self._credentials = {
                CONF_CLIENT_ID: user_input[CONF_CLIENT_ID],
                CONF_CLIENT_SECRET: user_input.get(CONF_CLIENT_SECRET, ""),
                CONF_SIMULATOR: user_input.get(CONF_SIMULATOR, False),
            }
            result, _errors = await self._async_start_authorization()
            if result is not None:
                return result

        return self.async_show_form(
            step_id="user",
            data_schema=vol.Schema(
                {
                    vol.Required(
                        CONF_CLIENT_ID,
                        default=(user_input or {}).get(CONF_CLIENT_ID, vol.UNDEFINED),
                    ): selector.TextSelector(
                        selector.TextSelectorConfig(
                            type=selector.TextSelectorType.TEXT,
                        ),
                    ),
                    vol.Optional(CONF_CLIENT_SECRET, default=""): selector.TextSelector(
                        selector.TextSelectorConfig(
                            type=selector.TextSelectorType.PASSWORD,
                        ),
                    ),
                    vol.Optional(CONF_SIMULATOR, default=False): selector.BooleanSelector(),
                },
            ),
            errors=_errors,
        )

    async def _async_start_authorization(
        self,
    ) -> tuple[config_entries.ConfigFlowResult | None, dict[str, str]]:
        """
        开始授权：模拟器直接走 Authorization Code，正式环境进入 device 步骤。

        @return: (流程结果, 表单错误)。
        """
        session = async_get_clientsession(self.hass)
        client_id = self._credentials[CONF_CLIENT_ID]
        try:
            if self._credentials[CONF_SIMULATOR]:
                token = await async_authorize_code(session, API_SIMULATOR_URL, client_id)
                return self._async_create_or_update_entry(token), {}
            self._device_authorization = await async_request_device_authorization(
                session, API_URL, client_id
            )
        except CommunicationError as e:
            LOGGER.error(f"Authorization request failed: {e}")
            return None, {"base": "connection"}
        except Exception as exception:
            LOGGER.exception(f"Unexpected error during authorization: {exception}")
            return None, {"base": "unknown"}

        return await self.async_step_device(), {}

    async def async_step_device(
        self,
        user_input: dict | None = None,
    ) -> config_entries.ConfigFlowResult:
        """显示验证地址和用户码；用户确认后换取 token。"""
        _errors = {}
        if user_input is not None and self._device_authorization is not None:
            try:
                token = await async_fetch_device_token(
                    async_get_clientsession(self.hass),
                    API_URL,
                    self._credentials[CONF_CLIENT_ID],
                    self._credentials[CONF_CLIENT_SECRET],
                    self._device_authorization.device_code,
                )
            except DeviceAuthorizationPending:
                _errors["base"] = "authorization_pending"
            except AuthorizationError as e:
                LOGGER.warning(f"Device authorization failed: {e}")
                return self.async_abort(reason="auth")
            except CommunicationError as e:
                LOGGER.error(f"Device token request failed: {e}")
                _errors["base"] = "connection"
            except Exception as exception:
                LOGGER.exception(f"Unexpected error during authorization: {exception}")
                _errors["base"] = "unknown"
            else:
                return self._async_create_or_update_entry(token)

        authorization = self._device_authorization
        return self.async_show_form(
            step_id="device",
            data_schema=vol.Schema({}),
            description_placeholders={
                "verification_uri": authorization.verification_uri_complete
                or authorization.verification_uri,
                "user_code": authorization.user_code,
            },
            errors=_errors,
        )

    async def async_step_reauth(
        self, entry_data: Mapping[str, Any]
    ) -> config_entries.ConfigFlowResult:
        """refresh token 失效时重新授权。"""
        self._credentials = {
            CONF_CLIENT_ID: entry_data[CONF_CLIENT_ID],
            CONF_CLIENT_SECRET: entry_data.get(CONF_CLIENT_SECRET, ""),
            CONF_SIMULATOR: entry_data.get(CONF_SIMULATOR, False),
        }
        return await self.async_step_reauth_confirm()

    async def async_step_reauth_confirm(
        self,
        user_input: dict | None = None,
    ) -> config_entries.ConfigFlowResult:
        _errors = {}
        if user_input is not None:
            result, _errors = await self._async_start_authorization()
            if result is not None:
                return result

        return self.async_show_form(
            step_id="reauth_confirm",
            data_schema=vol.Schema({}),
            errors=_errors,
        )

    def _async_create_or_update_entry(
        self, token: Token
    ) -> config_entries.ConfigFlowResult:
        data_to_store = {**self._credentials, CONF_TOKEN: token.as_dict()}

        if self.source == config_entries.SOURCE_REAUTH:
            return self.async_update_reload_and_abort(
                self._get_reauth_entry(), data=data_to_store
            )

        title = "Home Connect Simulator" if self._credentials[CONF_SIMULATOR] else "Home Connect"
        return self.async_create_entry(title=title, data=data_to_store)
