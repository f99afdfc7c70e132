DEFAULT_MODEL = "gpt-4o"
DEFAULT_API_BASE = "https://api.openai.com/v1"

__version__ = "0.1.0"
__author__ = "chatwire contributors"
__copyright__ = f"Copyright (c) 2026, {__author__}."
__homepage__ = "https://github.com/chatwire/chatwire"
__docs__ = "Typed chat-completion client with a streaming event bridge."

__all__ = [
    "DEFAULT_API_BASE",
    "DEFAULT_MODEL",
    "__author__",
    "__copyright__",
    "__docs__",
    "__homepage__",
    "__version__",
]
