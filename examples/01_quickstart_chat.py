from __future__ import annotations

import os

from chatwire import ApiError, ChatAPI, ChatMessage, DecodeFailure, Success, TransportFailure
from chatwire.clients.parsing import extract_text


class MissingEnvVarError(RuntimeError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Set {name} before running this example.")


def require_env(name: str) -> str:
    value = os.getenv(name)
    if not value:
        raise MissingEnvVarError(name)
    return value


def main() -> None:
    api_key = require_env("OPENAI_API_KEY")
    model = os.getenv("CHATWIRE_CHAT_MODEL", "gpt-4o-mini")

    with ChatAPI(model=model, api_key=api_key, verbose=1) as api:
        result = api.chat.create(
            [
                ChatMessage.system("Answer in one sentence."),
                ChatMessage.user("What does a server-sent event stream look like?"),
            ],
            max_tokens=64,
        )

    match result:
        case Success(value=response):
            print("text:", extract_text(response))
            print("usage:", response.usage)
        case ApiError(type=error_type, message=message):
            print("api error:", error_type, message)
        case TransportFailure(cause=cause):
            print("transport failure:", cause)
        case DecodeFailure(raw=raw):
            print("undecodable response:", raw)


if __name__ == "__main__":
    main()
