"""Interactive selection backends for project and assertion pickers.

Defines the ``Prompter`` Protocol the dApp client depends on, with two
implementations:

1. **QuestionaryPrompter** — terminal pickers via questionary.
2. **ScriptedPrompter** — deterministic answers for tests and
   non-interactive use.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Generic, Protocol, TypeVar, runtime_checkable

import questionary

from pcl.core.errors import SelectionCancelled

T = TypeVar("T")


class Choice(Generic[T]):
    """A labelled option; ``title`` is shown, ``value`` is returned."""

    __slots__ = ("title", "value")

    def __init__(self, title: str, value: T) -> None:
        self.title = title
        self.value = value

    def __repr__(self) -> str:
        return f"Choice({self.title!r})"


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class Prompter(Protocol):
    """Single- and multi-choice selection capability."""

    def select_one(self, message: str, choices: Sequence[Choice[T]]) -> T:
        """Return the value of exactly one chosen option."""
        ...

    def select_many(self, message: str, choices: Sequence[Choice[T]]) -> list[T]:
        """Return the values of the chosen options (possibly none)."""
        ...


# ---------------------------------------------------------------------------
# Implementations
# ---------------------------------------------------------------------------


class QuestionaryPrompter:
    """Terminal pickers.  Ctrl-C / Esc raise ``SelectionCancelled``."""

    def __init__(self, style: questionary.Style | None = None) -> None:
        self._style = style

    def select_one(self, message: str, choices: Sequence[Choice[T]]) -> T:
        answer = questionary.select(
            message,
            choices=[questionary.Choice(c.title, value=c) for c in choices],
            style=self._style,
        ).ask()
        if answer is None:
            raise SelectionCancelled("Selection cancelled.")
        return answer.value

    def select_many(self, message: str, choices: Sequence[Choice[T]]) -> list[T]:
        answer = questionary.checkbox(
            message,
            choices=[questionary.Choice(c.title, value=c) for c in choices],
            style=self._style,
        ).ask()
        if answer is None:
            raise SelectionCancelled("Selection cancelled.")
        return [c.value for c in answer]


class ScriptedPrompter:
    """Answers prompts from a script of choice titles.

    Parameters
    ----------
    one:
        Titles returned, in order, by successive ``select_one`` calls.
    many:
        Title lists returned, in order, by successive ``select_many`` calls.

    Every prompt received is recorded in ``prompts`` as
    ``(message, [titles])``.  Running out of script, or scripting a title
    that was not offered, raises ``SelectionCancelled``.
    """

    def __init__(
        self,
        one: Sequence[str] = (),
        many: Sequence[Sequence[str]] = (),
    ) -> None:
        self._one = list(one)
        self._many = [list(m) for m in many]
        self.prompts: list[tuple[str, list[str]]] = []

    def select_one(self, message: str, choices: Sequence[Choice[T]]) -> T:
        self.prompts.append((message, [c.title for c in choices]))
        if not self._one:
            raise SelectionCancelled(f"No scripted answer for {message!r}")
        return self._pick(self._one.pop(0), choices)

    def select_many(self, message: str, choices: Sequence[Choice[T]]) -> list[T]:
        self.prompts.append((message, [c.title for c in choices]))
        if not self._many:
            raise SelectionCancelled(f"No scripted answer for {message!r}")
        return [self._pick(title, choices) for title in self._many.pop(0)]

    @staticmethod
    def _pick(title: str, choices: Sequence[Choice[Any]]) -> Any:
        for choice in choices:
            if choice.title == title:
                return choice.value
        raise SelectionCancelled(f"Scripted answer {title!r} was not offered")
