"""Home Connect OAuth2 授权：Authorization Code、Device Flow 以及 token 刷新。"""

from __future__ import annotations

import asyncio
from typing import Any

import aiohttp
from yarl import URL

from .const import (
    LOGGER,
    AUTH_URI_PATH,
    TOKEN_URI_PATH,
    DEVICE_AUTH_URI_PATH,
    AUTH_DEFAULT_REDIRECT_URL,
    AUTH_CODE_GRANT_SCOPE,
    DEVICE_FLOW_SCOPE,
    REQUEST_TIMEOUT,
)
from .exceptions import (
    AuthorizationError,
    CommunicationError,
    DeviceAuthorizationPending,
)
from .models import DeviceAuthorization, Token, parse_json


async def _async_post_form(
    session: aiohttp.ClientSession, url: str, form: dict[str, str]
) -> tuple[int, dict[str, Any], str]:
    """POST 表单到授权服务器，返回 (状态码, JSON, 原始响应体)。"""
    try:
        async with session.post(
            url,
            data=form,
            timeout=aiohttp.ClientTimeout(total=REQUEST_TIMEOUT),
        ) as response:
            body = await response.text()
            return response.status, parse_json(body), body
    except (aiohttp.ClientError, asyncio.TimeoutError) as err:
        raise CommunicationError(f"Request to {url} failed: {err}") from err


async def async_authorize_code(
    session: aiohttp.ClientSession,
    api_url: str,
    client_id: str,
    redirect_uri: str = AUTH_DEFAULT_REDIRECT_URL,
    scope: str = AUTH_CODE_GRANT_SCOPE,
) -> Token:
    """
    Authorization Code Grant Flow（仅模拟器的 client_id 可用）。

    @raises CommunicationError: 授权服务器没有返回预期的重定向或 token。
    """
    LOGGER.debug(f"[oAuth] Authorize (Authorization Code Grant Flow). client_id: {client_id}")

    # 第一步：授权请求，不跟随重定向
    try:
        async with session.get(
            api_url + AUTH_URI_PATH,
            params={
                "client_id": client_id,
                "response_type": "code",
                "redirect_uri": redirect_uri,
                "scope": scope,
            },
            allow_redirects=False,
            timeout=aiohttp.ClientTimeout(total=REQUEST_TIMEOUT),
        ) as response:
            status = response.status
            location = response.headers.get("Location")
            body = await response.text()
    except (aiohttp.ClientError, asyncio.TimeoutError) as err:
        raise CommunicationError(f"Authorization request failed: {err}") from err

    if status != 302 or not location:
        LOGGER.error(f"[oAuth] Couldn't authorize against API! status: {status}")
        raise CommunicationError("Authorization request rejected", status, body)

    code = URL(location).query.get("code")
    if not code:
        raise CommunicationError("Authorization response has no code", status, location)
    LOGGER.debug(f"[oAuth] Authorization code received (http status {status}).")

    # 第二步：用 code 换取 access token
    status, payload, body = await _async_post_form(
        session,
        api_url + TOKEN_URI_PATH,
        {
            "client_id": client_id,
            "grant_type": "authorization_code",
            "redirect_uri": redirect_uri,
            "code": code,
        },
    )
    if status != 200 or "access_token" not in payload:
        LOGGER.error(f"[oAuth] Couldn't get token! status: {status}")
        raise CommunicationError("Access token request failed", status, body)

    return Token.from_response(payload)


async def async_request_device_authorization(
    session: aiohttp.ClientSession,
    api_url: str,
    client_id: str,
    scope: str = DEVICE_FLOW_SCOPE,
) -> DeviceAuthorization:
    """Device Flow 第一步：获取 user_code 和验证地址。"""
    status, payload, body = await _async_post_form(
        session,
        api_url + DEVICE_AUTH_URI_PATH,
        {"client_id": client_id, "scope": scope},
    )
    if status != 200 or "device_code" not in payload:
        raise CommunicationError("Device authorization request failed", status, body)
    return DeviceAuthorization.from_response(payload)


async def async_fetch_device_token(
    session: aiohttp.ClientSession,
    api_url: str,
    client_id: str,
    client_secret: str,
    device_code: str,
) -> Token:
    """
    Device Flow 第二步：用 device_code 换取 token。

    @raises DeviceAuthorizationPending: 用户尚未在浏览器中确认。
    @raises AuthorizationError: 用户拒绝或 device_code 已过期。
    """
    status, payload, body = await _async_post_form(
        session,
        api_url + TOKEN_URI_PATH,
        {
            "grant_type": "device_code",
            "device_code": device_code,
            "client_id": client_id,
            "client_secret": client_secret,
        },
    )
    if status == 200 and "access_token" in payload:
        return Token.from_response(payload)

    error = payload.get("error")
    if error in ("authorization_pending", "slow_down"):
        raise DeviceAuthorizationPending(error)
    if error in ("access_denied", "expired_token", "invalid_grant"):
        raise AuthorizationError(payload.get("error_description") or error)
    raise CommunicationError("Device token request failed", status, body)


async def async_refresh_token(
    session: aiohttp.ClientSession,
    api_url: str,
    client_id: str,
    client_secret: str,
    refresh_token: str,
) -> Token:
    """
    使用 refresh token 刷新 access token。

    refresh token 在两个月内未使用才会过期，定期刷新即可保持有效。
    """
    LOGGER.debug("Refreshing access token.")
    status, payload, body = await _async_post_form(
        session,
        api_url + TOKEN_URI_PATH,
        {
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
            "client_id": client_id,
            "client_secret": client_secret,
        },
    )
    if status in (400, 401):
        LOGGER.warning(f"Refresh token rejected: {payload.get('error', status)}")
        raise AuthorizationError(
            payload.get("error_description") or "Refresh token rejected"
        )
    if status != 200 or "access_token" not in payload:
        raise CommunicationError("Token refresh failed", status, body)

    return Token.from_response(payload, previous_refresh_token=refresh_token)
