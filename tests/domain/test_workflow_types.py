"""Tests for the canonical workflow value objects."""

import pytest

from obras_kernel.domain.workflow import Guard, Transition, Workflow

GUARD = Guard("listo", "Document is ready")


def _workflow(**overrides):
    values = dict(
        name="doc",
        description="Document lifecycle",
        initial_state="draft",
        states=("draft", "sent", "closed"),
        transitions=(
            Transition("draft", "sent", action="send", guard=GUARD),
            Transition("sent", "closed", action="close"),
            Transition("draft", "closed", action="discard"),
        ),
        terminal_states=("closed",),
    )
    values.update(overrides)
    return Workflow(**values)


class TestLookup:
    def test_find_transition(self):
        t = _workflow().find_transition("draft", "sent")

        assert t.action == "send"
        assert t.guard == GUARD

    def test_missing_transition(self):
        assert _workflow().find_transition("sent", "draft") is None

    def test_outgoing_in_declaration_order(self):
        assert [t.action for t in _workflow().outgoing("draft")] == ["send", "discard"]

    def test_is_terminal(self):
        wf = _workflow()

        assert wf.is_terminal("closed")
        assert not wf.is_terminal("draft")


class TestConstruction:
    def test_unknown_initial_state(self):
        with pytest.raises(ValueError, match="initial state"):
            _workflow(initial_state="nope")

    def test_unknown_state_in_transition(self):
        with pytest.raises(ValueError, match="unknown state"):
            _workflow(transitions=(Transition("draft", "archived", action="archive"),))

    def test_terminal_with_outgoing_edge(self):
        with pytest.raises(ValueError, match="terminal state"):
            _workflow(
                transitions=(Transition("closed", "draft", action="reopen"),),
            )

    def test_frozen(self):
        with pytest.raises(AttributeError):
            _workflow().name = "other"
