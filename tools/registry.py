from typing import Callable, Dict, List, Optional

from app.config import VALID_HANDLERS, action_for_handler
from tools.schemas import HandlerEntry


class CommandRegistry:
    """
    Handler name → registry entry.

    Handlers receive a single payload dict (the command merged with the
    routed entities) and may be sync or async.
    """

    def __init__(self):
        self._entries: Dict[str, HandlerEntry] = {}

    def register(self, handler_name: str, handler: Callable, description: str = ""):
        if handler_name not in VALID_HANDLERS:
            raise ValueError(f"Unknown handler: {handler_name}")
        if not callable(handler):
            raise TypeError(f"Handler for {handler_name} is not callable")

        self._entries[handler_name] = {
            "handler": handler,
            "action": action_for_handler(handler_name),
            "description": description,
        }

    def get(self, handler_name: str) -> Optional[Callable]:
        entry = self._entries.get(handler_name)
        return entry["handler"] if entry else None

    def describe(self, handler_name: str) -> Optional[HandlerEntry]:
        return self._entries.get(handler_name)

    def names(self) -> List[str]:
        return sorted(self._entries)

    def __contains__(self, handler_name: str) -> bool:
        return handler_name in self._entries
