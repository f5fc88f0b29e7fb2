from dataclasses import FrozenInstanceError

import pytest

from llm_core.domain.exceptions import ValidationError
from llm_core.domain.history import ConversationHistory, replayable_turns
from llm_core.domain.models import CompletionResult, ConversationTurn, SamplingParams


def test_turn_is_immutable_and_role_normalized():
    turn = ConversationTurn(role=" User ", content="hi")
    assert turn.role == "user"
    with pytest.raises(FrozenInstanceError):
        turn.content = "changed"


def test_turn_rejects_unknown_role():
    with pytest.raises(ValidationError) as exc:
        ConversationTurn(role="tool", content="x")
    assert exc.value.code == "INVALID_ROLE"


def test_sampling_params_clamped():
    params = SamplingParams(temperature=3.5, top_p=-0.2, frequency_penalty=-9, max_output_tokens=0)
    clamped = params.clamped()
    assert clamped.temperature == 2.0
    assert clamped.top_p == 0.0
    assert clamped.frequency_penalty == -2.0
    assert clamped.max_output_tokens == 1


def test_completion_result_clamps_cached_tokens():
    res = CompletionResult(success=True, input_tokens=5, cached_input_tokens=9, output_tokens=-3)
    assert res.cached_input_tokens == 5
    assert res.output_tokens == 0


def test_empty_result_is_failure():
    res = CompletionResult.empty()
    assert res.success is False
    assert res.output_text is None
    assert res.total_tokens == 0


def test_history_snapshot_is_independent():
    history = ConversationHistory()
    history.append("user", "a")
    snap = history.snapshot()
    history.append("assistant", "b")
    snap.append(ConversationTurn(role="user", content="c"))
    assert len(history) == 2
    assert [t.content for t in snap] == ["a", "c"]


def test_history_replace_copies_input():
    source = [ConversationTurn(role="user", content="a")]
    history = ConversationHistory()
    history.replace(source)
    source.append(ConversationTurn(role="user", content="b"))
    assert len(history) == 1
    history.clear()
    assert len(source) == 2
    assert history.formatted() == []


def test_replayable_turns_skip_instruction_roles_and_blank():
    turns = [
        ConversationTurn(role="system", content="sys"),
        ConversationTurn(role="developer", content="dev"),
        ConversationTurn(role="user", content="u"),
        ConversationTurn(role="assistant", content="   "),
        ConversationTurn(role="assistant", content="a"),
    ]
    assert [(t.role, t.content) for t in replayable_turns(turns)] == [("user", "u"), ("assistant", "a")]
