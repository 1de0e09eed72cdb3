"""
Test suite for command dispatch
"""

import asyncio

import pytest

from app.runner import run_command
from tools.registry import CommandRegistry
from tools.schemas import RoutingDecision


def decision_for(intent, handler, action, entities=None):
    return RoutingDecision(
        intent=intent,
        confidence=0.9,
        handler=handler,
        action=action,
        entities=entities or {},
        reasoning="test",
        should_route=handler != "ChatHandler",
        processing_time_ms=5,
    )


def build_registry(calls):
    registry = CommandRegistry()

    def pomodoro(payload):
        calls.append(("pomodoro", payload))
        return f"timer {payload.get('duration')}"

    async def chat(payload):
        calls.append(("chat", payload))
        return "chatting"

    registry.register("PomodoroHandler", pomodoro, "Focus timers")
    registry.register("ChatHandler", chat, "General conversation")
    return registry


def test_routed_command_gets_entities():
    calls = []
    registry = build_registry(calls)
    decision = decision_for(
        "START_TIMER", "PomodoroHandler", "pomodoro", {"duration": "25", "unit": "minutes"}
    )

    result = asyncio.run(run_command(registry, decision, {"text": "start a timer", "duration": "10"}))

    assert result["success"] is True
    assert result["handler"] == "PomodoroHandler"
    assert result["data"]["value"] == "timer 25"
    assert result["data"]["meta"]["intent"] == "START_TIMER"

    handler_name, payload = calls[0]
    assert handler_name == "pomodoro"
    assert payload["text"] == "start a timer"
    assert payload["unit"] == "minutes"
    assert payload["intent"] == "START_TIMER"


def test_chat_decision_goes_to_chat_handler():
    calls = []
    registry = build_registry(calls)

    result = asyncio.run(run_command(
        registry, decision_for("GENERAL_CHAT", "ChatHandler", "chat"), "hello there"
    ))

    assert result["success"] is True
    assert result["data"]["value"] == "chatting"
    assert calls[0][1]["text"] == "hello there"


def test_unregistered_handler_falls_back_to_chat():
    calls = []
    registry = build_registry(calls)

    result = asyncio.run(run_command(
        registry, decision_for("PLAY_MUSIC", "MusicHandler", "music"), "play jazz"
    ))

    assert result["handler"] == "ChatHandler"
    assert calls[0][0] == "chat"


def test_handler_exception_becomes_failed_response():
    registry = CommandRegistry()

    def broken(payload):
        raise RuntimeError("task store offline")

    registry.register("PlanningHandler", broken)

    result = asyncio.run(run_command(
        registry, decision_for("CREATE_TASK", "PlanningHandler", "planning"), "add a task"
    ))

    assert result["success"] is False
    assert result["error"] == "task store offline"
    assert result["data"]["value"] is None


def test_missing_chat_handler():
    registry = CommandRegistry()

    result = asyncio.run(run_command(
        registry, decision_for("GENERAL_CHAT", "ChatHandler", "chat"), "hi"
    ))

    assert result["success"] is False
    assert "ChatHandler" in result["error"]


def test_registry():
    print("Testing CommandRegistry...")
    registry = build_registry([])

    assert registry.names() == ["ChatHandler", "PomodoroHandler"]
    assert "PomodoroHandler" in registry
    assert "MusicHandler" not in registry
    assert registry.get("MusicHandler") is None
    entry = registry.describe("PomodoroHandler")
    assert entry["handler"] is registry.get("PomodoroHandler")
    assert entry["action"] == "pomodoro"
    assert entry["description"] == "Focus timers"

    with pytest.raises(ValueError):
        registry.register("WeatherHandler", lambda payload: None)
    with pytest.raises(TypeError):
        registry.register("MusicHandler", "not callable")
    print("✓ CommandRegistry tests passed")
