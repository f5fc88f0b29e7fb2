import pytest

from llm_core.agents.profile import AgentProfile
from llm_core.config.settings import Settings
from llm_core.domain.exceptions import ValidationError
from llm_core.providers import create_client
from llm_core.providers.openai_client import OpenAIClient

from conftest import FakeResponse, chat_body, make_config


def test_create_client_returns_openai_client():
    client = create_client(make_config("responses"))
    assert isinstance(client, OpenAIClient)
    assert client.api_variant == "responses"


@pytest.mark.parametrize(
    "overrides",
    [
        {"api_key": None},
        {"api_key": "   "},
        {"provider": "glm"},
        {"api_variant": "completions"},
    ],
)
def test_create_client_returns_none_for_unusable_config(overrides):
    assert create_client(make_config(**overrides)) is None


def test_create_client_none_config():
    assert create_client(None) is None


def test_settings_to_client_config():
    s = Settings(
        openai_api_key="sk-settings-123456",
        api_variant="responses",
        model="GPT_4_1_Mini",
        temperature=0.3,
        stop_sequences=["###"],
        input_usd_per_1m=0.4,
    )

    cfg = s.to_client_config()

    assert cfg.api_variant == "responses"
    assert cfg.model == "gpt-4.1-mini"
    assert cfg.sampling.temperature == 0.3
    assert cfg.sampling.stop_sequences == ["###"]
    assert cfg.fallback_rates.input_usd_per_1m == 0.4
    assert cfg.api_key == "sk-settings-123456"


def test_settings_rejects_short_api_key():
    with pytest.raises(ValueError):
        Settings(openai_api_key="short")


def _profile_dict(**extra):
    data = {
        "name": "Reviewer",
        "agent_id": "rev-1",
        "instructions": "You review code.",
        "client": {
            "api_variant": "chat_completions",
            "model": "gpt-4o",
            "api_key": "sk-profile-123456",
            "sampling": {"temperature": 0.1, "max_output_tokens": 300},
            "fallback_rates": {"input_usd_per_1m": 2.5},
        },
        "initial_history": [
            "system: ignored on replay",
            "user: What does this do?",
            "assistant: It parses YAML.",
            "plain line",
        ],
    }
    data.update(extra)
    return data


def test_agent_profile_effective_instructions():
    profile = AgentProfile.from_dict(_profile_dict())
    assert profile.effective_instructions() == "You review code."
    assert profile.effective_instructions("") == ""

    profile.instructions = None
    assert profile.effective_instructions() == "You are a helpful assistant."


def test_agent_profile_initial_turns():
    turns = AgentProfile.from_dict(_profile_dict()).initial_turns()
    assert [(t.role, t.content) for t in turns] == [
        ("system", "ignored on replay"),
        ("user", "What does this do?"),
        ("assistant", "It parses YAML."),
        ("user", "plain line"),
    ]


@pytest.mark.asyncio
async def test_agent_profile_build_client_seeds_history(fake_http):
    profile = AgentProfile.from_dict(_profile_dict())
    client = profile.build_client()
    fake_http.queue(FakeResponse(200, chat_body("ok")))

    await client.complete("Next?")

    sent = [(m["role"], m["content"]) for m in fake_http.last_json["messages"]]
    assert sent == [
        ("system", "You review code."),
        ("user", "What does this do?"),
        ("assistant", "It parses YAML."),
        ("user", "plain line"),
        ("user", "Next?"),
    ]
    assert fake_http.last_json["max_completion_tokens"] == 300
    assert client.fallback_rates.input_usd_per_1m == 2.5


def test_agent_profile_without_key_builds_no_client():
    data = _profile_dict()
    data["client"]["api_key"] = ""
    assert AgentProfile.from_dict(data).build_client() is None


def test_agent_profile_unknown_field_rejected():
    data = _profile_dict()
    data["client"]["colour"] = "blue"
    with pytest.raises(ValidationError) as exc:
        AgentProfile.from_dict(data)
    assert exc.value.code == "INVALID_AGENT_PROFILE"


def test_agent_profile_from_yaml(tmp_path):
    path = tmp_path / "agent.yaml"
    path.write_text(
        "name: Helper\n"
        "client:\n"
        "  api_variant: responses\n"
        "  api_key: sk-yaml-1234567\n"
        "default_upload_purpose: assistants\n",
        encoding="utf-8",
    )

    profile = AgentProfile.from_yaml(path)

    assert profile.name == "Helper"
    assert profile.client_config.api_variant == "responses"
    assert profile.default_upload_purpose == "assistants"
