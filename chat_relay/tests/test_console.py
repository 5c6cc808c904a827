from chat_relay.api.relay import RelayClient
from chat_relay.cli.console import ChatConsole, build_parser
from chat_relay.domain.exceptions import BackendError
from chat_relay.domain.message_store import MessageStore
from chat_relay.domain.models import BackendFailure, BackendReply


class ScriptedBackend:
    name = "scripted"

    def __init__(self, *results):
        self.results = list(results)
        self.calls = []

    def exchange(self, message, conversation_id):
        self.calls.append((message, conversation_id))
        return self.results.pop(0)


def run_console(backend, lines):
    relay = RelayClient(backend=backend, store=MessageStore("Hi, I'm Catalyst"))
    inputs = iter(lines)
    output = []

    def fake_input(prompt):
        try:
            return next(inputs)
        except StopIteration:
            raise EOFError

    code = ChatConsole(relay, input_fn=fake_input, output_fn=output.append).run()
    return code, relay, output


def test_console_renders_turn_in_order():
    backend = ScriptedBackend(BackendReply(response="Hello back", conversation_id="abc"))
    code, relay, output = run_console(backend, ["Hello", "/quit"])
    assert code == 0
    rendered = [line for line in output if line.startswith("[") and ":" in line and "] " in line]
    assert rendered[0].endswith("Catalyst: Hi, I'm Catalyst")
    assert rendered[1].endswith("You: Hello")
    assert rendered[2].endswith("Catalyst: Hello back")
    assert "Catalyst is typing..." in output
    assert relay.conversation_id == "abc"


def test_console_shows_failure_reason():
    backend = ScriptedBackend(BackendFailure(BackendError(code="API_ERROR", message="rate limited", http_status=500)))
    _, relay, output = run_console(backend, ["Hello"])
    assert "[error] rate limited" in output
    assert len(relay.messages) == 2


def test_console_ignores_blank_input_and_starts_new_conversation():
    backend = ScriptedBackend(
        BackendReply(response="one", conversation_id="abc"),
        BackendReply(response="two", conversation_id="def"),
    )
    _, relay, output = run_console(backend, ["   ", "first", "/new", "second"])
    assert backend.calls == [("first", None), ("second", None)]
    assert "[system] New conversation" in output
    assert relay.conversation_id == "def"
    assert [m.text for m in relay.messages] == ["Hi, I'm Catalyst", "second", "two"]


def test_parser_accepts_backend_options():
    args = build_parser().parse_args(["--backend-url", "http://x.test", "--timeout", "5"])
    assert args.backend_url == "http://x.test"
    assert args.timeout == 5.0


def test_console_survives_interrupted_turn():
    class InterruptOnce(ScriptedBackend):
        def exchange(self, message, conversation_id):
            if not self.calls:
                self.calls.append((message, conversation_id))
                raise KeyboardInterrupt
            return super().exchange(message, conversation_id)

    backend = InterruptOnce(BackendReply(response="Hi", conversation_id="abc"))
    code, relay, output = run_console(backend, ["first", "second", "/quit"])
    assert code == 0
    assert "[error] Request was interrupted" in output
    assert backend.calls == [("first", None), ("second", None)]
    assert relay.state.status == "idle"
    assert [m.text for m in relay.messages] == ["Hi, I'm Catalyst", "first", "second", "Hi"]
