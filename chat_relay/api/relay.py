"""对话中继核心模块。

RelayClient 把用户的一次输入转换为一轮与后端关联的消息交换：
乐观追加用户消息、携带会话 ID 调用后端、把结果对账到 MessageStore 与
ConversationSession，并维护 idle / awaiting / failed 调用状态。

MessageStore 与 ConversationSession 只由 RelayClient 写入，
展示层只能读取 messages / state 等只读视图。
"""

import logging
import threading
import time
from typing import Any, Dict, Optional, Tuple
from uuid import uuid4

from chat_relay.domain.exceptions import (
    UNKNOWN_FAILURE_REASON,
    BusinessError,
    ConcurrencyRejected,
    ProtocolViolation,
    TransportError,
    ValidationError,
)
from chat_relay.domain.message_store import MessageStore
from chat_relay.domain.models import BackendFailure, BackendReply, CallState, Message, TurnResult
from chat_relay.domain.session import ConversationSession
from chat_relay.infrastructure.logging.logger import logger, preview
from chat_relay.infrastructure.storage.transcript import TranscriptRecorder
from chat_relay.providers.base import ChatBackend


class RelayClient:
    def __init__(
        self,
        backend: ChatBackend,
        store: MessageStore,
        session: Optional[ConversationSession] = None,
        transcript: Optional[TranscriptRecorder] = None,
    ):
        self._backend = backend
        self._store = store
        self._session = session or ConversationSession()
        self._transcript = transcript
        self._state = CallState.idle()
        # 同一时刻最多一轮 awaiting，非阻塞获取
        self._gate = threading.Lock()
        self._closed = False
        for message in self._store:
            self._record_message(message)

    # ---- 只读视图 ----

    @property
    def messages(self) -> Tuple[Message, ...]:
        return self._store.messages

    @property
    def conversation_id(self) -> Optional[str]:
        return self._session.current_id()

    @property
    def state(self) -> CallState:
        return self._state

    @property
    def error(self) -> Optional[str]:
        """最近一次失败原因，下一轮成功后清除。"""
        return self._state.reason if self._state.status == "failed" else None

    @property
    def is_awaiting(self) -> bool:
        return self._state.status == "awaiting"

    @property
    def is_typing(self) -> bool:
        return self._state.is_typing

    @property
    def closed(self) -> bool:
        return self._closed

    # ---- 操作 ----

    def send(self, text: str) -> TurnResult:
        """发送一轮用户消息。

        Args:
            text: 用户输入，去掉首尾空白后不能为空。原文按输入发送。

        Returns:
            TurnResult，失败时 assistant_message 为 None，state 为 failed。

        Raises:
            ValidationError: 输入为空白或 Relay 已关闭，不改变任何状态。
            ConcurrencyRejected: 已有一轮在等待响应，不追加消息也不发请求。
        """
        self._ensure_open()
        if text is None or not str(text).strip():
            raise ValidationError(code="EMPTY_MESSAGE", message="Message must not be empty")
        if not self._gate.acquire(blocking=False):
            self._log(logging.WARNING, "Rejected concurrent send", {"conversation_id": self.conversation_id})
            raise ConcurrencyRejected(
                code="TURN_IN_FLIGHT",
                message="A message is already awaiting a response",
                http_status=409,
            )
        try:
            return self._run_turn(str(text))
        except BaseException:
            # 被中断（如 KeyboardInterrupt）时不能停留在 awaiting
            if self._state.status == "awaiting":
                self._state = CallState.failed(
                    TransportError(code="INTERRUPTED", message="Request was interrupted")
                )
                self._log(logging.WARNING, "Turn interrupted", {"conversation_id": self.conversation_id})
            raise
        finally:
            self._gate.release()

    def new_conversation(self) -> None:
        """开始新会话：会话 ID 与消息存储一起重置，不能单独重置其一。"""
        self._ensure_open()
        if not self._gate.acquire(blocking=False):
            raise ConcurrencyRejected(
                code="TURN_IN_FLIGHT",
                message="Cannot start a new conversation while a message is awaiting a response",
                http_status=409,
            )
        try:
            previous = self._session.current_id()
            self._reset()
            self._log(logging.INFO, "Started new conversation", {"previous_conversation_id": previous})
            self._record_event("reset", previous_conversation_id=previous)
            self._record_message(self._store.last())
        finally:
            self._gate.release()

    def close(self) -> None:
        """释放 Relay：重置状态，之后不再接受 send。"""
        if self._closed:
            return
        with self._gate:
            self._reset()
            self._closed = True
        self._log(logging.INFO, "Relay closed", {})

    def __enter__(self) -> "RelayClient":
        return self

    def __exit__(self, *exc) -> bool:
        self.close()
        return False

    # ---- 内部实现 ----

    def _run_turn(self, text: str) -> TurnResult:
        start_time = time.time()
        log_ctx: Dict[str, Any] = {
            "trace_id": f"tr-{uuid4().hex}",
            "backend": getattr(self._backend, "name", "unknown"),
            "conversation_id": self._session.current_id(),
        }

        # 1. 乐观追加用户消息，失败也不回滚
        user_msg = self._store.append("user", text)
        self._record_message(user_msg)
        self._state = CallState.awaiting()
        self._log(logging.INFO, "Sending user message", log_ctx, message_id=user_msg.id, preview=preview(text))

        # 2. 唯一一次后端请求
        result = self._exchange(text, log_ctx)
        if isinstance(result, BackendFailure):
            return self._fail(user_msg, result.error, log_ctx)

        # 3. 对账会话 ID
        error = self._reconcile_session(result, log_ctx)
        if error is not None:
            return self._fail(user_msg, error, log_ctx)

        # 4. 追加助手消息
        assistant_msg = self._store.append("assistant", result.response)
        self._record_message(assistant_msg)
        self._state = CallState.idle()
        self._log(
            logging.INFO,
            "Completed turn",
            log_ctx,
            elapsed_seconds=round(time.time() - start_time, 2),
            user_message_id=user_msg.id,
            assistant_message_id=assistant_msg.id,
        )
        return TurnResult(
            user_message=user_msg,
            state=self._state,
            assistant_message=assistant_msg,
            conversation_id=self._session.current_id(),
        )

    def _exchange(self, text: str, log_ctx: Dict[str, Any]):
        try:
            return self._backend.exchange(text, self._session.current_id())
        except BusinessError as e:
            return BackendFailure(e)
        except Exception as e:
            # 后端实现抛出未归类异常时按传输失败处理
            logger.exception("Backend raised unexpected error", extra={"extra": dict(log_ctx)})
            return BackendFailure(
                TransportError(code="UNKNOWN_ERROR", message=UNKNOWN_FAILURE_REASON, cause=repr(e))
            )

    def _reconcile_session(self, reply: BackendReply, log_ctx: Dict[str, Any]) -> Optional[ProtocolViolation]:
        issued = reply.conversation_id
        if issued is None:
            return None
        if self._session.is_bound:
            if issued == self._session.current_id():
                return None
            return ProtocolViolation(
                code="CONVERSATION_ID_MISMATCH",
                message=(
                    f"Backend returned conversation id {issued!r} "
                    f"for conversation {self._session.current_id()!r}"
                ),
                http_status=502,
                bound_id=self._session.current_id(),
                received_id=issued,
            )
        try:
            self._session.bind(issued)
        except ProtocolViolation as e:
            return e
        log_ctx["conversation_id"] = issued
        self._log(logging.INFO, "Bound conversation", log_ctx)
        self._record_event("bind", conversation_id=issued)
        return None

    def _fail(self, user_msg: Message, error: BusinessError, log_ctx: Dict[str, Any]) -> TurnResult:
        self._state = CallState.failed(error)
        level = logging.ERROR if isinstance(error, ProtocolViolation) else logging.WARNING
        self._log(
            level,
            "Turn failed",
            log_ctx,
            user_message_id=user_msg.id,
            error_code=error.code,
            error_type=type(error).__name__,
            http_status=error.http_status,
            reason=error.message,
        )
        self._record_event("failure", error_code=error.code, reason=error.message)
        return TurnResult(
            user_message=user_msg,
            state=self._state,
            assistant_message=None,
            conversation_id=self._session.current_id(),
        )

    def _reset(self) -> None:
        self._session.reset()
        self._store.reset()
        self._state = CallState.idle()

    def _ensure_open(self) -> None:
        if self._closed:
            raise ValidationError(code="RELAY_CLOSED", message="Relay has been closed")

    def _record_message(self, message: Optional[Message]) -> None:
        if self._transcript is None or message is None:
            return
        try:
            self._transcript.record_message(message, self._session.current_id())
        except BusinessError as e:
            self._log(logging.ERROR, "Transcript write failed", {}, error_code=e.code, reason=e.message)

    def _record_event(self, event: str, **fields: Any) -> None:
        if self._transcript is None:
            return
        try:
            self._transcript.record_event(event, **fields)
        except BusinessError as e:
            self._log(logging.ERROR, "Transcript write failed", {}, error_code=e.code, reason=e.message)

    @staticmethod
    def _log(level: int, message: str, log_ctx: Dict[str, Any], **fields: Any) -> None:
        payload = dict(log_ctx)
        payload.update(fields)
        logger.log(level, message, extra={"extra": payload})
