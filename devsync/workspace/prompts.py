"""User-facing messages and questions.

Every dialog of the engine goes through a ``Prompter``: a message with a
severity and optional action labels.  ``show`` returns the chosen label, or
``None`` when the message was dismissed.
"""

from __future__ import annotations

from collections.abc import Sequence
from functools import partial
from typing import Protocol, runtime_checkable

import anyio
import click
from anyio import to_thread
from loguru import logger

from devsync.workspace.models.enums import MessageLevel

_LEVEL_STYLES = {
    MessageLevel.INFO: {"fg": "cyan"},
    MessageLevel.WARNING: {"fg": "yellow"},
    MessageLevel.ERROR: {"fg": "red", "bold": True},
}


@runtime_checkable
class Prompter(Protocol):
    async def show(self, level: MessageLevel, message: str, *actions: str) -> str | None:
        """Show ``message``; return the selected action or ``None`` if dismissed."""
        ...


class ConsolePrompter:
    """Interactive prompter on the controlling terminal.

    Actions are listed with a number; an empty answer dismisses the
    question.  Runs in a worker thread so the event loop keeps going while
    the user thinks.  One dialog is on the terminal at a time; concurrent
    callers wait their turn in arrival order.
    """

    def __init__(self) -> None:
        self._lock = anyio.Lock()

    async def show(self, level: MessageLevel, message: str, *actions: str) -> str | None:
        async with self._lock:
            _log(level, message)
            return await to_thread.run_sync(partial(_ask, level, message, actions))


class NonInteractivePrompter:
    """Prompter for unattended runs.

    Answers with the first action found in ``preferred``; otherwise the
    question counts as dismissed.
    """

    def __init__(self, preferred: Sequence[str] = ()) -> None:
        self._preferred = tuple(preferred)

    async def show(self, level: MessageLevel, message: str, *actions: str) -> str | None:
        _log(level, message)
        for action in self._preferred:
            if action in actions:
                logger.info("Prompt: answered {!r}", action)
                return action
        if actions:
            logger.info("Prompt: dismissed (choices: {})", ", ".join(actions))
        return None


def _log(level: MessageLevel, message: str) -> None:
    logger.log(level.name, message)


def _ask(level: MessageLevel, message: str, actions: Sequence[str]) -> str | None:
    click.secho(message, err=True, **_LEVEL_STYLES[level])
    if not actions:
        return None

    for number, action in enumerate(actions, start=1):
        click.echo(f"  [{number}] {action}", err=True)
    answer = click.prompt(
        "Choose an action (empty to dismiss)",
        default="",
        show_default=False,
        err=True,
    )
    answer = answer.strip()
    if not answer:
        return None
    if answer.isdigit() and 1 <= int(answer) <= len(actions):
        return actions[int(answer) - 1]
    for action in actions:
        if action.lower() == answer.lower():
            return action
    click.secho(f"Unknown action {answer!r}, dismissed.", err=True, fg="yellow")
    return None
