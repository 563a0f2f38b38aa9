"""Unit tests for the selection capability."""

from __future__ import annotations

import pytest

from pcl.core.errors import SelectionCancelled
from pcl.core.selection import Choice, Prompter, QuestionaryPrompter, ScriptedPrompter


class _FakeQuestion:
    def __init__(self, answer):
        self._answer = answer

    def ask(self):
        return self._answer


class TestScriptedPrompter:
    def test_select_one_by_title(self):
        prompter = ScriptedPrompter(one=["beta"])
        value = prompter.select_one("Pick", [Choice("alpha", 1), Choice("beta", 2)])
        assert value == 2
        assert prompter.prompts == [("Pick", ["alpha", "beta"])]

    def test_select_many_by_title(self):
        prompter = ScriptedPrompter(many=[["a", "c"]])
        values = prompter.select_many("Pick", [Choice("a", 1), Choice("b", 2), Choice("c", 3)])
        assert values == [1, 3]

    def test_empty_selection(self):
        prompter = ScriptedPrompter(many=[[]])
        assert prompter.select_many("Pick", [Choice("a", 1)]) == []

    def test_exhausted_script_cancels(self):
        with pytest.raises(SelectionCancelled):
            ScriptedPrompter().select_one("Pick", [Choice("a", 1)])

    def test_unknown_title_cancels(self):
        with pytest.raises(SelectionCancelled):
            ScriptedPrompter(one=["z"]).select_one("Pick", [Choice("a", 1)])

    def test_satisfies_protocol(self):
        assert isinstance(ScriptedPrompter(), Prompter)
        assert isinstance(QuestionaryPrompter(), Prompter)


class TestQuestionaryPrompter:
    def test_select_one_returns_value(self, monkeypatch):
        captured = {}

        def _select(message, choices, style=None):
            captured["titles"] = [c.title for c in choices]
            return _FakeQuestion(choices[1].value)

        monkeypatch.setattr("pcl.core.selection.questionary.select", _select)
        value = QuestionaryPrompter().select_one("Pick", [Choice("a", "A"), Choice("b", "B")])
        assert value == "B"
        assert captured["titles"] == ["a", "b"]

    def test_select_many_returns_values(self, monkeypatch):
        def _checkbox(message, choices, style=None):
            return _FakeQuestion([choices[0].value, choices[2].value])

        monkeypatch.setattr("pcl.core.selection.questionary.checkbox", _checkbox)
        values = QuestionaryPrompter().select_many(
            "Pick", [Choice("a", 1), Choice("b", 2), Choice("c", 3)]
        )
        assert values == [1, 3]

    def test_ctrl_c_cancels(self, monkeypatch):
        monkeypatch.setattr(
            "pcl.core.selection.questionary.select",
            lambda message, choices, style=None: _FakeQuestion(None),
        )
        with pytest.raises(SelectionCancelled):
            QuestionaryPrompter().select_one("Pick", [Choice("a", 1)])
