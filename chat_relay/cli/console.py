"""终端对话控制台。

按追加顺序渲染 Relay 的消息存储，awaiting 期间显示“正在输入”提示，
最近一次失败原因一直显示到下一轮成功为止。
控制台只读取 Relay 的只读视图，并且只调用 send / new_conversation。
"""

from __future__ import annotations

import argparse
import sys
from typing import Callable, List, Optional

from chat_relay.api.relay import RelayClient
from chat_relay.api.service import create_relay
from chat_relay.config.settings import Settings
from chat_relay.domain.exceptions import ConcurrencyRejected, ValidationError
from chat_relay.domain.models import Message

LABELS = {"user": "You", "assistant": "Catalyst"}

HELP_TEXT = "Commands: /new start a new conversation, /history show messages, /quit exit"


def format_message(message: Message) -> str:
    """格式化单条消息：[时:分] 发送方: 内容。"""
    stamp = message.created_at.astimezone().strftime("%H:%M")
    return f"[{stamp}] {LABELS.get(message.sender, message.sender)}: {message.text}"


class ChatConsole:
    """逐行读取输入并驱动 RelayClient 的交互式控制台。

    input_fn / output_fn 可替换，便于测试。
    """

    def __init__(
        self,
        relay: RelayClient,
        input_fn: Callable[[str], str] = input,
        output_fn: Callable[[str], None] = print,
    ):
        self.relay = relay
        self._input = input_fn
        self._output = output_fn
        self._shown = 0

    def run(self) -> int:
        self._output(HELP_TEXT)
        self.render_new()
        while True:
            try:
                line = self._input("> ")
            except (EOFError, KeyboardInterrupt):
                self._output("")
                return 0
            command = line.strip()
            if command in ("/quit", "/exit"):
                return 0
            if command == "/new":
                self.new_conversation()
                continue
            if command == "/history":
                self.render_all()
                continue
            try:
                self.submit(line)
            except KeyboardInterrupt:
                # 中断当前这一轮，控制台继续运行
                self._output(f"[error] {self.relay.error or 'Request was interrupted'}")

    def submit(self, text: str) -> None:
        """发送一轮输入，并渲染新增消息与失败原因。"""
        if not text.strip() or self.relay.is_awaiting:
            # 空白输入与 awaiting 期间都不触发 send
            return
        try:
            self._output(f"{LABELS['assistant']} is typing...")
            self.relay.send(text)
        except ValidationError:
            return
        except ConcurrencyRejected as e:
            self._output(f"[system] {e.message}")
            return
        self.render_new()
        if self.relay.error:
            self._output(f"[error] {self.relay.error}")

    def new_conversation(self) -> None:
        try:
            self.relay.new_conversation()
        except ConcurrencyRejected as e:
            self._output(f"[system] {e.message}")
            return
        self._shown = 0
        self._output("[system] New conversation")
        self.render_new()

    def render_new(self) -> None:
        messages = self.relay.messages
        # 只输出尚未渲染过的消息
        for message in messages[self._shown:]:
            self._output(format_message(message))
        self._shown = len(messages)

    def render_all(self) -> None:
        for message in self.relay.messages:
            self._output(format_message(message))
        if self.relay.conversation_id:
            self._output(f"[system] conversation: {self.relay.conversation_id}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chat-relay", description="Chat with the Catalyst backend")
    parser.add_argument("--backend-url", help="Backend base URL, e.g. http://localhost:8000")
    parser.add_argument("--timeout", type=float, help="HTTP timeout in seconds")
    parser.add_argument("--transcript-dir", help="Write a JSONL transcript to this directory")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """命令行入口：按参数覆盖配置，创建 Relay 并运行控制台。"""
    args = build_parser().parse_args(argv)
    overrides = {}
    if args.backend_url:
        overrides["backend_url"] = args.backend_url
    if args.timeout is not None:
        overrides["http_timeout"] = args.timeout
    if args.transcript_dir:
        overrides["transcript_dir"] = args.transcript_dir
    with create_relay(Settings(**overrides)) as relay:
        return ChatConsole(relay).run()


if __name__ == "__main__":
    sys.exit(main())
