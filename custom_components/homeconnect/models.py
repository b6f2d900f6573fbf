"""Home Connect API 的数据模型，以及 JSON 与模型之间的映射。"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from typing import Any


def _as_str(value: Any) -> str | None:
    """把 API 返回的值统一转换成字符串（null 保持为 None）。"""
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class _ValueMixin:
    """Data 和 Event 共用的取值辅助方法。"""

    value: str | None

    @property
    def value_as_int(self) -> int | None:
        if self.value is None:
            return None
        try:
            return int(float(self.value))
        except ValueError:
            return None

    @property
    def value_as_float(self) -> float | None:
        if self.value is None:
            return None
        try:
            return float(self.value)
        except ValueError:
            return None

    @property
    def value_as_boolean(self) -> bool:
        return self.value is not None and self.value.lower() == "true"


@dataclass
class HomeAppliance:
    """一台已注册到 Home Connect 账户的家电。"""

    ha_id: str
    name: str
    brand: str
    vib: str
    connected: bool
    type: str
    enumber: str


@dataclass
class Data(_ValueMixin):
    """A single setting or status value."""

    name: str
    value: str | None
    unit: str | None = None


@dataclass
class Option:
    key: str | None
    value: str | None
    unit: str | None = None


@dataclass
class Program:
    key: str
    options: list[Option] = field(default_factory=list)

    def get_option(self, key: str) -> Option | None:
        for option in self.options:
            if option.key == key:
                return option
        return None


@dataclass
class AvailableProgram:
    key: str
    execution: str | None = None


@dataclass
class AvailableProgramOption:
    """程序选项的约束条件（用于动态生成下拉选项）。"""

    key: str
    unit: str | None = None
    allowed_values: list[str] = field(default_factory=list)
    min: float | None = None
    max: float | None = None
    step: float | None = None


@dataclass
class Event(_ValueMixin):
    """SSE 推送的一条事件。"""

    key: str | None
    value: str | None
    unit: str | None = None


@dataclass
class Token:
    """OAuth2 token，以及用于持久化的辅助方法。"""

    access_token: str | None
    refresh_token: str | None
    expires_at: float | None = None

    def is_expired(self, margin: float = 0) -> bool:
        if not self.access_token:
            return True
        if self.expires_at is None:
            return False
        return time.time() + margin >= self.expires_at

    @classmethod
    def from_response(
        cls, data: dict[str, Any], previous_refresh_token: str | None = None
    ) -> Token:
        expires_in = data.get("expires_in")
        return cls(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token") or previous_refresh_token,
            expires_at=time.time() + float(expires_in) if expires_in else None,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Token:
        data = data or {}
        return cls(
            access_token=data.get("access_token"),
            refresh_token=data.get("refresh_token"),
            expires_at=data.get("expires_at"),
        )

    def as_dict(self) -> dict[str, Any]:
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "expires_at": self.expires_at,
        }


@dataclass
class DeviceAuthorization:
    """Device flow 第一步的响应。"""

    device_code: str
    user_code: str
    verification_uri: str
    verification_uri_complete: str | None = None
    expires_in: int | None = None
    interval: int = 5

    @classmethod
    def from_response(cls, data: dict[str, Any]) -> DeviceAuthorization:
        return cls(
            device_code=data["device_code"],
            user_code=data["user_code"],
            verification_uri=data["verification_uri"],
            verification_uri_complete=data.get("verification_uri_complete"),
            expires_in=data.get("expires_in"),
            interval=data.get("interval") or 5,
        )


# ----------------------------------------------------------------------
# JSON -> 模型
# ----------------------------------------------------------------------


def parse_json(body: str) -> dict[str, Any]:
    """解析响应体；空响应或非对象 JSON 返回空字典。"""
    try:
        result = json.loads(body) if body else {}
    except json.JSONDecodeError:
        return {}
    return result if isinstance(result, dict) else {}


def _appliance_from_json(obj: dict[str, Any]) -> HomeAppliance:
    return HomeAppliance(
        ha_id=obj["haId"],
        name=obj.get("name", ""),
        brand=obj.get("brand", ""),
        vib=obj.get("vib", ""),
        connected=bool(obj.get("connected", False)),
        type=obj.get("type", ""),
        enumber=obj.get("enumber", ""),
    )


def _option_from_json(obj: dict[str, Any]) -> Option:
    return Option(
        key=obj.get("key"),
        value=_as_str(obj.get("value")),
        unit=obj.get("unit"),
    )


def map_to_home_appliances(payload: dict[str, Any]) -> list[HomeAppliance]:
    appliances = payload.get("data", {}).get("homeappliances", [])
    return [_appliance_from_json(obj) for obj in appliances]


def map_to_home_appliance(payload: dict[str, Any]) -> HomeAppliance:
    return _appliance_from_json(payload["data"])


def map_to_data(payload: dict[str, Any]) -> Data:
    data = payload["data"]
    return Data(
        name=data["key"],
        value=_as_str(data.get("value")),
        unit=data.get("unit"),
    )


def map_to_program(payload: dict[str, Any]) -> Program:
    data = payload["data"]
    options = [_option_from_json(obj) for obj in data.get("options", [])]
    return Program(key=data["key"], options=options)


def map_to_available_programs(payload: dict[str, Any]) -> list[AvailableProgram]:
    programs = payload.get("data", {}).get("programs", [])
    return [
        AvailableProgram(
            key=obj["key"],
            execution=obj.get("constraints", {}).get("execution"),
        )
        for obj in programs
    ]


def map_to_available_program_options(
    payload: dict[str, Any],
) -> list[AvailableProgramOption]:
    result = []
    for obj in payload.get("data", {}).get("options", []):
        constraints = obj.get("constraints", {})
        result.append(
            AvailableProgramOption(
                key=obj["key"],
                unit=obj.get("unit"),
                allowed_values=[
                    _as_str(value)
                    for value in constraints.get("allowedvalues", [])
                    if value is not None
                ],
                min=constraints.get("min"),
                max=constraints.get("max"),
                step=constraints.get("stepsize"),
            )
        )
    return result


def map_to_events(payload: dict[str, Any]) -> list[Event]:
    return [
        Event(
            key=item.get("key"),
            value=_as_str(item.get("value")),
            unit=item.get("unit"),
        )
        for item in payload.get("items", [])
    ]


# ----------------------------------------------------------------------
# 模型 -> JSON
# ----------------------------------------------------------------------


def build_data_payload(
    key: str, value: Any, unit: str | None = None
) -> dict[str, Any]:
    """构造 PUT 请求体: {"data": {"key": ..., "value": ..., "unit": ...}}"""
    inner: dict[str, Any] = {"key": key, "value": value}
    if unit is not None:
        inner["unit"] = unit
    return {"data": inner}
