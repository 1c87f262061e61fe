"""
Keyword extraction prompt template for LLM.

Kept separate from the extractor so the wording can be tuned on its own.
"""

KEYWORD_EXTRACTION_PROMPT = """You turn a developer's description of the open-source project they are looking for into GitHub repository search keywords.

RULES:
- Return between 1 and 5 keywords, most important first.
- Prefer technology names, domains and project types ("react", "orm", "static-site-generator").
- Drop filler words ("I want", "looking for", "a project that").
- Do not include GitHub qualifiers such as language:, stars: or is:public.
- Lower-case everything.

OUTPUT FORMAT:
Return ONLY a JSON object, no other text:
{{"keywords": ["keyword1", "keyword2"]}}

REQUEST:
{query}
"""
