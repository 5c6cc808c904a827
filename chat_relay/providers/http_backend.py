"""HTTP 对话后端适配器。

本模块负责：

1. 把一条用户消息和当前会话 ID 组装成 `{message, conversation_id}` 请求体。
2. 调用 `POST {backend_url}/api/chat` 并处理网络/超时异常。
3. 把响应归类为统一的标记结果：
   - 2xx 且结构正确 -> BackendReply
   - 网络错误或超时 -> TransportError
   - 非 2xx -> BackendError（原因取 body 的 detail / error 字段）
   - 2xx 但结构不符合约定 -> ProtocolViolation

也就是“后端 JSON ⇄ 项目内部标记结果”的唯一转换层，
上层 RelayClient 只看到 BackendReply / BackendFailure。
"""

from typing import Any, Optional

import httpx

from chat_relay.domain.exceptions import (
    GENERIC_FAILURE_REASON,
    BackendError,
    ProtocolViolation,
    TransportError,
)
from chat_relay.domain.models import BackendFailure, BackendReply, BackendResult


class HttpChatBackend:
    """基于 httpx 的对话后端客户端。

    - name: 后端名称（供日志/调试使用）。
    - exchange: 对外统一调用入口，返回 BackendResult，从不抛出传输类异常。
    """

    name = "http"

    def __init__(self, settings):
        # Settings 里包含 backend_url、chat_path、超时等配置
        self._settings = settings

    @property
    def url(self) -> str:
        base = str(getattr(self._settings, "backend_url", "http://localhost:8000")).rstrip("/")
        path = getattr(self._settings, "chat_path", None) or "/api/chat"
        return f"{base}{path}"

    def exchange(self, message: str, conversation_id: Optional[str]) -> BackendResult:
        """执行一次请求-响应。

        步骤：
        1. 构造请求 payload（conversation_id 为空时显式发送 null）。
        2. 发送请求，超时与网络错误统一归为 TransportError。
        3. 非 2xx 归为 BackendError。
        4. 解析 2xx 响应体，结构不符归为 ProtocolViolation。
        """

        payload = {"message": message, "conversation_id": conversation_id}
        try:
            with httpx.Client(timeout=self._settings.http_timeout, trust_env=False) as client:
                resp = client.post(
                    self.url,
                    json=payload,
                    headers={"Content-Type": "application/json"},
                )
        except httpx.TimeoutException as e:
            # 超时与网络失败行为一致，只是错误码不同
            return BackendFailure(
                TransportError(code="TIMEOUT", message=GENERIC_FAILURE_REASON, cause=str(e))
            )
        except httpx.RequestError as e:
            return BackendFailure(
                TransportError(code="NETWORK_ERROR", message=GENERIC_FAILURE_REASON, cause=str(e))
            )
        if not 200 <= resp.status_code < 300:
            return BackendFailure(
                BackendError(
                    code="API_ERROR",
                    message=self._error_reason(resp),
                    http_status=resp.status_code,
                )
            )
        return self._parse_response(resp)

    @staticmethod
    def _error_reason(resp: Any) -> str:
        """从错误响应体中提取可读原因。

        后端约定使用 `detail`；经过前端代理转发时字段名会变成 `error`，两者都识别。
        """

        try:
            body = resp.json()
        except ValueError:
            return GENERIC_FAILURE_REASON
        if isinstance(body, dict):
            for key in ("detail", "error"):
                value = body.get(key)
                if isinstance(value, str) and value.strip():
                    return value
        return GENERIC_FAILURE_REASON

    def _parse_response(self, resp: Any) -> BackendResult:
        """将 2xx 响应体解析为 BackendReply。"""

        try:
            data = resp.json()
        except ValueError:
            return self._malformed("Backend returned a non-JSON body")
        if not isinstance(data, dict):
            return self._malformed("Backend returned a non-object body")
        response = data.get("response")
        if not isinstance(response, str):
            return self._malformed("Backend response is missing the 'response' field")
        conversation_id = data.get("conversation_id")
        if conversation_id is not None and not isinstance(conversation_id, str):
            return self._malformed("Backend returned a non-string 'conversation_id'")
        return BackendReply(
            response=response,
            conversation_id=conversation_id or None,
        )

    @staticmethod
    def _malformed(message: str) -> BackendFailure:
        return BackendFailure(ProtocolViolation(code="MALFORMED_RESPONSE", message=message, http_status=502))
