"""Server-Sent Events 报文解析与监听器接口."""

from __future__ import annotations

from dataclasses import dataclass

from .models import Event


@dataclass
class ServerSentEvent:
    event: str = "message"
    data: str = ""
    id: str | None = None
    retry: int | None = None


class ServerSentEventParser:
    """逐行解析 SSE 流，遇到空行时产出一个完整事件。"""

    def __init__(self):
        self.last_event_id: str | None = None
        self._reset()

    def _reset(self):
        self._event = ""
        self._data: list[str] = []
        self._retry: int | None = None
        self._has_fields = False

    def feed_line(self, line: str) -> ServerSentEvent | None:
        """处理一行（不含换行符），若该行结束了一个事件则返回该事件。"""
        if line == "":
            return self._dispatch()

        # 注释行
        if line.startswith(":"):
            return None

        if ":" in line:
            name, value = line.split(":", 1)
            if value.startswith(" "):
                value = value[1:]
        else:
            name, value = line, ""

        if name == "event":
            self._event = value
        elif name == "data":
            self._data.append(value)
        elif name == "id":
            if "\0" not in value:
                self.last_event_id = value
        elif name == "retry":
            if value.isdigit():
                self._retry = int(value)
        else:
            return None

        self._has_fields = True
        return None

    def _dispatch(self) -> ServerSentEvent | None:
        if not self._has_fields:
            return None

        event = ServerSentEvent(
            event=self._event or "message",
            data="\n".join(self._data),
            id=self.last_event_id,
            retry=self._retry,
        )
        self._reset()
        return event


class ServerSentEventListener:
    """某台家电 (haId) 的 SSE 事件监听器。"""

    def __init__(self, ha_id: str):
        self.ha_id = ha_id

    def on_event(self, event: Event) -> None:
        """收到一条事件时调用。"""

    def on_reconnect(self) -> None:
        """SSE 连接即将重连时调用。"""
