"""
Keyword extractor - turns a natural-language project request into a search query.

Uses the LLM when one is configured and falls back to a stop-word heuristic
otherwise (or when the LLM call or its output is unusable).
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional

from keywords.llm_client import LLMClient
from keywords.prompt_template import KEYWORD_EXTRACTION_PROMPT
from models.data_models import KeywordExtractionResponse

logger = logging.getLogger(__name__)

MAX_KEYWORDS = 5

STOP_WORDS = {
    "a", "an", "and", "any", "are", "as", "at", "be", "best", "build", "building",
    "can", "could", "do", "find", "for", "from", "good", "help", "i", "in",
    "into", "is", "it", "like", "looking", "m", "me", "my", "need", "of", "on", "or",
    "please", "project", "projects", "repo", "repos", "repository", "repositories",
    "s", "search", "show", "some", "something", "t", "that", "the", "there", "this",
    "to", "tool", "tools", "want", "was", "which", "with", "would", "you",
}

TOKEN_PATTERN = re.compile(r"[a-z0-9][a-z0-9+#.\-]*")


def heuristic_keywords(query: str, max_keywords: int = MAX_KEYWORDS) -> List[str]:
    """
    Extract keywords by dropping stop words.

    Keeps first-occurrence order and removes duplicates.

    Examples:
        "I want a fast Python web framework" -> ["fast", "python", "web", "framework"]
    """
    keywords: List[str] = []
    for token in TOKEN_PATTERN.findall(query.lower()):
        token = token.rstrip(".-")
        if not token or token in STOP_WORDS or token in keywords:
            continue
        keywords.append(token)
        if len(keywords) == max_keywords:
            break
    return keywords


def parse_keyword_response(response_text: str) -> List[str]:
    """
    Parse the keyword list from an LLM response.

    Handles cases where the LLM wraps the JSON in prose or a code block.

    Raises:
        json.JSONDecodeError: If no valid JSON found
        ValueError: If the JSON has no usable keyword list
    """
    payload: Optional[Dict[str, Any]] = None
    try:
        payload = json.loads(response_text)
    except json.JSONDecodeError:
        start = response_text.find("{")
        end = response_text.rfind("}")
        if start < 0 or end <= start:
            raise
        payload = json.loads(response_text[start:end + 1])

    keywords = payload.get("keywords") if isinstance(payload, dict) else None
    if not isinstance(keywords, list):
        raise ValueError("keywords must be a list")

    cleaned: List[str] = []
    for keyword in keywords:
        if not isinstance(keyword, str):
            continue
        keyword = keyword.strip().lower()
        if keyword and keyword not in cleaned:
            cleaned.append(keyword)
    if not cleaned:
        raise ValueError("keywords must not be empty")
    return cleaned[:MAX_KEYWORDS]


class KeywordExtractor:
    """Search-query builder for free-text project requests."""

    def __init__(self, llm_client: Optional[LLMClient] = None):
        """
        Args:
            llm_client: Optional LLM client; without one only the heuristic is used
        """
        self.llm_client = llm_client

    def extract(self, query: str) -> KeywordExtractionResponse:
        """
        Extract search keywords from a request.

        Returns:
            keywords plus the space-joined search query; the trimmed input is
            used as the search query when no keyword survives
        """
        trimmed = query.strip()
        keywords: List[str] = []

        if self.llm_client is not None and trimmed:
            try:
                response_text = self.llm_client.send_prompt(
                    KEYWORD_EXTRACTION_PROMPT.format(query=trimmed)
                )
                keywords = parse_keyword_response(response_text)
                logger.info(f"LLM extracted keywords {keywords} from '{trimmed}'")
            except (json.JSONDecodeError, ValueError) as e:
                logger.warning(f"Unusable LLM keyword response, using heuristic: {e}")
            except Exception as e:
                logger.warning(f"LLM keyword extraction failed, using heuristic: {e}")

        if not keywords:
            keywords = heuristic_keywords(trimmed)
            logger.debug(f"Heuristic keywords {keywords} from '{trimmed}'")

        search_query = " ".join(keywords) if keywords else trimmed
        return KeywordExtractionResponse(keywords=keywords, search_query=search_query)
