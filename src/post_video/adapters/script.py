"""IScriptGenerator using the generative-text client."""

import json
import re
from typing import Optional

from post_video.domain.errors import GenerationError
from post_video.domain.models import ScriptResult
from post_video.ports.interfaces import IScriptGenerator, ITextGenerator

MAX_IMAGE_QUERIES = 7
# Long posts are cut before prompting; the script only needs the gist
MAX_CONTENT_CHARS = 12000

LANGUAGE_NAMES = {
    "en-US": "English",
    "en-GB": "British English",
    "en-AU": "Australian English",
    "en-IN": "Indian English",
    "es-US": "Latin American Spanish",
    "es-ES": "Spanish",
    "fr-FR": "French",
    "de-DE": "German",
    "it-IT": "Italian",
    "pt-BR": "Brazilian Portuguese",
    "ja-JP": "Japanese",
    "ko-KR": "Korean",
    "zh-CN": "Simplified Chinese",
    "hi-IN": "Hindi",
}

SCRIPT_PROMPT = """You are writing the narration for a vertical short-form video based on a blog post.

Title: {title}

Post content:
{content}

Write a spoken script in {language_name} that takes 60 to 90 seconds to read aloud
(roughly 150 to 220 words). Open with a hook, keep sentences short, and end with a
one-line takeaway. Do not include stage directions, emojis, hashtags or speaker labels.

Also write between 5 and 7 short stock-photo search queries (in English, 2 to 4 words
each) for images that illustrate the script in order.

Respond with JSON only, no markdown, in exactly this shape:
{{"script": "...", "imageQueries": ["...", "..."]}}"""


def build_prompt(content: str, title: str, language: str) -> str:
    return SCRIPT_PROMPT.format(
        title=title,
        content=content[:MAX_CONTENT_CHARS],
        language_name=LANGUAGE_NAMES.get(language, language),
    )


def parse_script_response(text: str) -> ScriptResult:
    """Parse the model's JSON answer. Anything malformed raises GenerationError."""
    content = (text or "").strip()
    if "```json" in content:
        content = content.split("```json")[1].split("```")[0]
    elif "```" in content:
        content = content.split("```")[1].split("```")[0]
    content = content.strip()

    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        # Tolerate prose around a single JSON object
        match = re.search(r"\{[\s\S]*\}", content)
        if not match:
            raise GenerationError(f"Script response is not JSON: {content[:120]!r}", stage="script")
        try:
            data = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            raise GenerationError(f"Script response is not valid JSON: {e}", stage="script") from e

    if not isinstance(data, dict):
        raise GenerationError("Script response must be a JSON object", stage="script")

    script = data.get("script")
    if not isinstance(script, str) or not script.strip():
        raise GenerationError("Script response has no script text", stage="script")

    queries = data.get("imageQueries")
    if not isinstance(queries, list):
        raise GenerationError("Script response has no imageQueries list", stage="script")
    queries = [q.strip() for q in queries if isinstance(q, str) and q.strip()]
    if not queries:
        raise GenerationError("Script response has no usable image queries", stage="script")

    return ScriptResult(script=script.strip(), image_queries=queries[:MAX_IMAGE_QUERIES])


class LLMScriptGenerator(IScriptGenerator):
    """Prompts the text generator for a narration script and image queries."""

    def __init__(self, text_generator: ITextGenerator, model: Optional[str] = None):
        self._llm = text_generator
        self._model = model

    async def generate(self, content: str, title: str, language: str) -> ScriptResult:
        prompt = build_prompt(content, title, language)
        response = await self._llm.complete(prompt, self._model)
        result = parse_script_response(response)
        print(f"  ✅ Script: {len(result.script)} characters, {len(result.image_queries)} image queries")
        return result
