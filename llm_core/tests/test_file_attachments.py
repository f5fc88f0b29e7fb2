import pytest

from llm_core.providers.files import REPLAY_USER_TURNS_ONLY, clean_file_ids

from conftest import FakeResponse, responses_body


def test_clean_file_ids_drops_blank_and_trims():
    assert clean_file_ids([" file-1 ", "", "   ", None, "file-2"]) == ["file-1", "file-2"]
    assert clean_file_ids(None) == []


@pytest.mark.asyncio
async def test_file_mode_replays_user_turns_only(fake_http, responses_client):
    responses_client.history.append("system", "S")
    responses_client.history.append("user", "U1")
    responses_client.history.append("assistant", "A1")
    responses_client.history.append("developer", "D")
    fake_http.queue(FakeResponse(200, responses_body("done")))

    attachments = responses_client.file_attachments()
    assert attachments.replay_policy == REPLAY_USER_TURNS_ONLY
    result = await attachments.complete_with_files("Summarize", None, ["f1", "f2"])

    assert result.success is True
    items = fake_http.last_json["input"]
    assert items == [
        {"role": "user", "content": [{"type": "input_text", "text": "U1"}]},
        {
            "role": "user",
            "content": [
                {"type": "input_file", "file_id": "f1"},
                {"type": "input_file", "file_id": "f2"},
                {"type": "input_text", "text": "Summarize"},
            ],
        },
    ]
    assert all("A1" not in str(item) for item in items)
    assert fake_http.last_json["instructions"] == "Be brief."
    assert "frequency_penalty" not in fake_http.last_json


@pytest.mark.asyncio
async def test_history_records_text_only_after_file_request(fake_http, responses_client):
    fake_http.queue(FakeResponse(200, responses_body("summary")))

    await responses_client.file_attachments().complete_with_files("Summarize", "Be terse.", ["file-9"])

    assert responses_client.history.formatted() == [("user", "Summarize"), ("assistant", "summary")]


@pytest.mark.asyncio
async def test_blank_file_ids_fall_back_to_text_request(fake_http, responses_client):
    responses_client.history.append("user", "U1")
    responses_client.history.append("assistant", "A1")
    fake_http.queue(FakeResponse(200, responses_body("ok")))

    await responses_client.file_attachments().complete_with_files("hi", None, ["", "  "])

    # 纯文本请求照常回放 assistant 消息
    assert fake_http.last_json["input"] == [
        {"role": "user", "content": "U1"},
        {"role": "assistant", "content": "A1"},
        {"role": "user", "content": "hi"},
    ]


@pytest.mark.asyncio
async def test_file_request_failure_leaves_history_unchanged(fake_http, responses_client):
    responses_client.history.append("user", "U1")
    fake_http.queue(FakeResponse(503, {"error": "unavailable"}))

    result = await responses_client.file_attachments().complete_with_files("x", None, ["f1"])

    assert result.success is False
    assert responses_client.history.formatted() == [("user", "U1")]
