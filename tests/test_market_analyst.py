from types import SimpleNamespace

import pytest

from negotiation import market_analyst


class FakeCompletions:
    def __init__(self, reply):
        self.reply = reply
        self.requests = []

    def create(self, **kwargs):
        self.requests.append(kwargs)
        return SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=self.reply))],
            usage=SimpleNamespace(prompt_tokens=120, completion_tokens=80),
        )


def test_ask_market_question_returns_model_text(monkeypatch):
    completions = FakeCompletions("Average rents are $1,800 in this area.")
    fake_client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    monkeypatch.setattr(market_analyst, "get_openai_client", lambda: fake_client)

    answer = market_analyst.ask_market_question(market_analyst.build_market_question("Austin, TX", 2000))

    assert answer == "Average rents are $1,800 in this area."
    request = completions.requests[0]
    assert request["model"] == market_analyst.DEFAULT_OPENAI_MODEL
    assert request["messages"][0]["content"] == market_analyst.MARKET_ANALYST_SYSTEM_PROMPT
    assert "Austin, TX" in request["messages"][1]["content"]
    assert "$2,000" in request["messages"][1]["content"]


def test_missing_api_key(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)

    assert market_analyst.semantic_analysis_available() is False
    with pytest.raises(RuntimeError):
        market_analyst.get_openai_client()
