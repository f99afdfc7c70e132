from __future__ import annotations

import os

from chatwire import ChatAPI, Success
from chatwire.clients.parsing import extract_chunk_text


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
    model = os.getenv("CHATWIRE_STREAM_MODEL", "gpt-4o-mini")
    api = ChatAPI(model=model, api_key=api_key)

    print("== pull events ==")
    for event in api.chat.stream("Give me three short words.", max_tokens=16):
        if isinstance(event, Success):
            print(extract_chunk_text(event.value), end="", flush=True)
        else:
            print("\nevent error:", event.as_error())
    print()

    print("== callbacks, cancelled after five events ==")
    stream = api.chat.stream("Count from one to twenty.", max_tokens=96)
    seen: list[object] = []

    def on_event(event) -> None:
        seen.append(event)
        if isinstance(event, Success):
            print(extract_chunk_text(event.value), end="", flush=True)
        if len(seen) == 5:
            stream.cancel()

    stream.run(on_event, on_complete=lambda: print("\ncompleted"))
    print("\ncancelled:", stream.cancelled)
    api.close()


if __name__ == "__main__":
    main()
