
"""
Command Dispatch Runner

Hands a routed command to its capability handler:
- Handler selection from the routing decision
- Payload assembly (command + extracted entities)
- Sync or async handler invocation
- Failures turned into a response envelope
"""

import inspect
import time
from typing import Any, Dict, Union

from app.config import DEFAULT_HANDLER
from tools.registry import CommandRegistry
from tools.responses import handler_response
from tools.schemas import RoutingDecision
from infra.logger import logger_dispatch, LogContext


# ═══════════════════════════════════════════════════════════════════════════════
# MAIN DISPATCH
# ═══════════════════════════════════════════════════════════════════════════════

async def run_command(
    registry: CommandRegistry,
    decision: RoutingDecision,
    command: Union[str, Dict[str, Any]],
) -> dict:
    """
    Execute a routed command.

    Args:
        registry: Registered capability handlers
        decision: Routing decision for the command
        command: Raw utterance or a payload dict

    Returns:
        Handler response envelope with success status and data/error
    """
    handler_name = _select_handler(registry, decision)
    handler = registry.get(handler_name)

    if handler is None:
        logger_dispatch.error(f"HANDLER_NOT_FOUND | handler={handler_name}")
        return handler_response(
            handler=handler_name,
            success=False,
            error=f"No handler registered: {handler_name}"
        )

    payload = _build_payload(decision, command)
    _log_dispatch_start(handler_name, decision)

    start_time = time.perf_counter()
    try:
        result = handler(payload)
        if inspect.isawaitable(result):
            result = await result

    except Exception as e:
        duration_ms = (time.perf_counter() - start_time) * 1000
        _log_dispatch_failed(handler_name, str(e), duration_ms)
        return handler_response(
            handler=handler_name,
            success=False,
            error=str(e),
            meta={"intent": decision.intent, "duration_ms": duration_ms}
        )

    duration_ms = (time.perf_counter() - start_time) * 1000
    _log_dispatch_complete(handler_name, duration_ms)

    return handler_response(
        handler=handler_name,
        success=True,
        data=result,
        meta={"intent": decision.intent, "duration_ms": duration_ms}
    )


# ═══════════════════════════════════════════════════════════════════════════════
# HELPER FUNCTIONS
# ═══════════════════════════════════════════════════════════════════════════════

def _select_handler(registry: CommandRegistry, decision: RoutingDecision) -> str:
    """Routed handler when registered, the chat handler otherwise"""
    if not decision.should_route:
        return DEFAULT_HANDLER

    if decision.handler not in registry:
        logger_dispatch.warning(
            f"HANDLER_UNREGISTERED | handler={decision.handler} | fallback={DEFAULT_HANDLER}"
        )
        return DEFAULT_HANDLER

    return decision.handler


def _build_payload(decision: RoutingDecision, command: Union[str, Dict[str, Any]]) -> dict:
    """Command fields merged with the decision's entities (entities win)"""
    if isinstance(command, str):
        payload = {"text": command}
    else:
        payload = dict(command)

    payload.update(decision.entities)
    payload["intent"] = decision.intent
    payload["action"] = decision.action
    return payload


# ═══════════════════════════════════════════════════════════════════════════════
# LOGGING HELPERS
# ═══════════════════════════════════════════════════════════════════════════════

def _log_dispatch_start(handler_name: str, decision: RoutingDecision):
    context = {
        "handler": handler_name,
        "intent": decision.intent,
        "confidence": f"{decision.confidence:.2f}"
    }
    logger_dispatch.debug(f"DISPATCH_START | {LogContext.format_dict(context)}")


def _log_dispatch_complete(handler_name: str, duration_ms: float):
    context = {"handler": handler_name, "duration_ms": f"{duration_ms:.2f}"}
    logger_dispatch.info(f"DISPATCH_SUCCESS | {LogContext.format_dict(context)}")


def _log_dispatch_failed(handler_name: str, error: str, duration_ms: float):
    """Log handler exception"""
    context = {
        "handler": handler_name,
        "duration_ms": f"{duration_ms:.2f}",
        "error": error[:100]
    }
    logger_dispatch.warning(f"DISPATCH_EXCEPTION | {LogContext.format_dict(context)}")
