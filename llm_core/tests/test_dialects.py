from llm_core.domain.models import CompletionRequest, ConversationTurn, SamplingParams
from llm_core.providers.chat_completions import ChatCompletionsDialect
from llm_core.providers.responses import ResponsesDialect

from conftest import chat_body, responses_body


def _request(stop=None, history=None):
    return CompletionRequest(
        model="gpt-4o",
        sampling=SamplingParams(
            temperature=0.2,
            top_p=0.8,
            frequency_penalty=0.5,
            max_output_tokens=50,
            stop_sequences=list(stop or []),
        ),
        instructions="Answer in one line.",
        history=history or [],
        prompt="What is 2+2?",
    )


def test_chat_payload_fields_and_message_order():
    history = [
        ConversationTurn(role="system", content="old system"),
        ConversationTurn(role="user", content="hello"),
        ConversationTurn(role="assistant", content="hi"),
    ]
    payload = ChatCompletionsDialect().build_payload(_request(history=history))

    assert payload["model"] == "gpt-4o"
    assert payload["max_completion_tokens"] == 50
    assert payload["frequency_penalty"] == 0.5
    assert payload["temperature"] == 0.2
    assert payload["top_p"] == 0.8
    assert "stop" not in payload
    assert payload["messages"] == [
        {"role": "system", "content": "Answer in one line."},
        {"role": "user", "content": "hello"},
        {"role": "assistant", "content": "hi"},
        {"role": "user", "content": "What is 2+2?"},
    ]


def test_chat_payload_sends_stop_when_present():
    payload = ChatCompletionsDialect().build_payload(_request(stop=["END"]))
    assert payload["stop"] == ["END"]


def test_chat_parse_usage_and_text():
    result = ChatCompletionsDialect().parse_response(
        chat_body("4", prompt_tokens=30, cached=10, completion_tokens=7, reasoning=3)
    )
    assert result.success is True
    assert result.output_text == "4"
    assert (result.input_tokens, result.cached_input_tokens) == (30, 10)
    assert (result.output_tokens, result.reasoning_tokens) == (7, 3)


def test_chat_parse_missing_choices_is_success_without_text():
    result = ChatCompletionsDialect().parse_response({"usage": {"prompt_tokens": 3}})
    assert result.success is True
    assert result.output_text is None
    assert result.input_tokens == 3


def test_responses_payload_never_sends_unsupported_fields():
    history = [
        ConversationTurn(role="developer", content="dev note"),
        ConversationTurn(role="user", content="hello"),
        ConversationTurn(role="assistant", content="hi"),
    ]
    payload = ResponsesDialect().build_payload(_request(stop=["END"], history=history))

    assert set(payload) == {"model", "input", "instructions", "max_output_tokens", "temperature", "top_p"}
    assert payload["instructions"] == "Answer in one line."
    assert payload["max_output_tokens"] == 50
    assert payload["input"] == [
        {"role": "user", "content": "hello"},
        {"role": "assistant", "content": "hi"},
        {"role": "user", "content": "What is 2+2?"},
    ]


def test_responses_parse_usage_and_first_message_text():
    body = responses_body("pong", input_tokens=12, cached=20, output_tokens=4, reasoning=2)
    body["output"].append({"type": "message", "content": [{"type": "output_text", "text": "second"}]})

    result = ResponsesDialect().parse_response(body)
    assert result.output_text == "pong"
    assert result.input_tokens == 12
    # cached 不超过 input
    assert result.cached_input_tokens == 12
    assert (result.output_tokens, result.reasoning_tokens) == (4, 2)


def test_responses_parse_skips_blank_parts_and_non_message_items():
    body = {
        "output": [
            {"type": "reasoning", "content": [{"type": "output_text", "text": "thinking"}]},
            {
                "type": "Message",
                "content": [
                    {"type": "refusal", "refusal": "no"},
                    {"type": "output_text", "text": "  "},
                    {"type": "OUTPUT_TEXT", "text": "answer"},
                ],
            },
        ]
    }
    assert ResponsesDialect().parse_response(body).output_text == "answer"


def test_responses_parse_without_message_has_no_text():
    result = ResponsesDialect().parse_response(responses_body(None))
    assert result.success is True
    assert result.output_text is None
