from __future__ import annotations

import asyncio
import os

from chatwire import ChatAPI, Success
from chatwire.clients.parsing import extract_chunk_text, extract_text


class MissingEnvVarError(RuntimeError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Set {name} before running this example.")


def require_env(name: str) -> str:
    value = os.getenv(name)
    if not value:
        raise MissingEnvVarError(name)
    return value


async def main() -> None:
    api_key = require_env("OPENAI_API_KEY")
    model = os.getenv("CHATWIRE_STREAM_MODEL", "gpt-4o-mini")

    async with ChatAPI(model=model, api_key=api_key, max_pending=8) as api:
        result = await api.chat.create_async("Name a prime number.", max_tokens=8)
        if isinstance(result, Success):
            print("create_async:", extract_text(result.value))

        async with api.chat.stream_async("Write a haiku about queues.", max_tokens=48) as stream:
            async for event in stream:
                if isinstance(event, Success):
                    print(extract_chunk_text(event.value), end="", flush=True)
        print()


if __name__ == "__main__":
    asyncio.run(main())
