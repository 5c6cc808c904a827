"""Minimal demonstration of one relay turn against a running backend."""

from chat_relay import create_relay

if __name__ == "__main__":
    with create_relay() as relay:
        question = "What does my cash flow look like this month?"
        result = relay.send(question)
        print("User:", question)
        if result.ok:
            print("Catalyst:", result.assistant_message.text)
            print("Conversation:", relay.conversation_id)
        else:
            print("Error:", relay.error)
