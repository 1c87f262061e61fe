"""Tests for keyword extraction (LLM with heuristic fallback)."""

import json
from unittest.mock import Mock, patch
import pytest

from keywords.extractor import KeywordExtractor, heuristic_keywords, parse_keyword_response
from keywords.llm_client import LLMClient
from keywords.prompt_template import KEYWORD_EXTRACTION_PROMPT


class TestHeuristicKeywords:

    def test_drops_stop_words(self):
        assert heuristic_keywords("I want a fast Python web framework") == ["fast", "python", "web", "framework"]

    def test_keeps_symbols_in_language_names(self):
        assert heuristic_keywords("I'm looking for a C++ game engine") == ["c++", "game", "engine"]

    def test_dedupes_and_limits(self):
        assert heuristic_keywords("rust rust cli parser async tokio http server") == [
            "rust", "cli", "parser", "async", "tokio"
        ]

    def test_only_stop_words(self):
        assert heuristic_keywords("show me some projects") == []


class TestParseKeywordResponse:

    def test_plain_json(self):
        assert parse_keyword_response('{"keywords": ["React", "state", "react"]}') == ["react", "state"]

    def test_json_wrapped_in_prose(self):
        text = 'Sure! Here you go:\n```json\n{"keywords": ["kubernetes", "operator"]}\n```'
        assert parse_keyword_response(text) == ["kubernetes", "operator"]

    def test_no_json(self):
        with pytest.raises(json.JSONDecodeError):
            parse_keyword_response("I cannot help with that")

    def test_missing_keywords(self):
        with pytest.raises(ValueError):
            parse_keyword_response('{"terms": ["a"]}')

    def test_empty_keywords(self):
        with pytest.raises(ValueError):
            parse_keyword_response('{"keywords": ["", "  "]}')


class TestKeywordExtractor:

    def test_heuristic_only(self):
        response = KeywordExtractor().extract("  a Go static site generator  ")
        assert response.keywords == ["go", "static", "site", "generator"]
        assert response.search_query == "go static site generator"
        assert response.to_api()["searchQuery"] == "go static site generator"

    def test_uses_llm_keywords(self):
        llm = Mock()
        llm.send_prompt.return_value = '{"keywords": ["machine-learning", "pytorch"]}'

        response = KeywordExtractor(llm).extract("deep learning library for python")

        assert response.keywords == ["machine-learning", "pytorch"]
        assert response.search_query == "machine-learning pytorch"
        prompt = llm.send_prompt.call_args[0][0]
        assert "deep learning library for python" in prompt

    def test_falls_back_on_bad_llm_output(self):
        llm = Mock()
        llm.send_prompt.return_value = "no idea"

        response = KeywordExtractor(llm).extract("terminal file manager")

        assert response.keywords == ["terminal", "file", "manager"]

    def test_falls_back_on_llm_failure(self):
        llm = Mock()
        llm.send_prompt.side_effect = RuntimeError("timeout")

        response = KeywordExtractor(llm).extract("terminal file manager")

        assert response.keywords == ["terminal", "file", "manager"]

    def test_no_keywords_uses_trimmed_query(self):
        response = KeywordExtractor().extract("  show me something  ")
        assert response.keywords == []
        assert response.search_query == "show me something"


def test_prompt_template_formats():
    prompt = KEYWORD_EXTRACTION_PROMPT.format(query="vector database")
    assert "vector database" in prompt
    assert '{"keywords"' in prompt


class TestLLMClient:

    def test_anthropic_uses_compatible_endpoint(self):
        with patch("keywords.llm_client.OpenAI") as mock_openai:
            LLMClient(provider="anthropic", model="claude-3-5-haiku-20241022", api_key="sk-ant")
        assert mock_openai.call_args[1]["base_url"] == "https://api.anthropic.com/v1"

    def test_rejects_unknown_provider(self):
        with pytest.raises(ValueError):
            LLMClient(provider="cohere", model="x", api_key="k")

    def test_requires_api_key(self):
        with pytest.raises(ValueError):
            LLMClient(provider="openai", model="gpt-4o-mini", api_key="")

    def test_send_prompt_returns_text(self):
        with patch("keywords.llm_client.OpenAI") as mock_openai:
            client = LLMClient(provider="openai", model="gpt-4o-mini", api_key="sk")
            completion = Mock()
            completion.choices = [Mock(message=Mock(content='{"keywords": ["x"]}'))]
            mock_openai.return_value.chat.completions.create.return_value = completion

            text = client.send_prompt("hello", system="be brief")

        assert text == '{"keywords": ["x"]}'
        messages = mock_openai.return_value.chat.completions.create.call_args[1]["messages"]
        assert messages[0] == {"role": "system", "content": "be brief"}

    def test_send_prompt_empty_content(self):
        with patch("keywords.llm_client.OpenAI") as mock_openai:
            client = LLMClient(provider="openai", model="gpt-4o-mini", api_key="sk")
            completion = Mock()
            completion.choices = [Mock(message=Mock(content=None))]
            mock_openai.return_value.chat.completions.create.return_value = completion

            assert client.send_prompt("hello") == ""
