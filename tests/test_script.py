import asyncio

import pytest
from conftest import FakeTextGenerator

from post_video.adapters.script import LLMScriptGenerator, build_prompt, parse_script_response
from post_video.domain.errors import GenerationError


def test_parses_fenced_json():
    text = '```json\n{"script": " Hello there. ", "imageQueries": ["a", "b", " ", 3]}\n```'

    result = parse_script_response(text)

    assert result.script == "Hello there."
    assert result.image_queries == ["a", "b"]


def test_parses_json_surrounded_by_prose():
    text = 'Here you go: {"script": "Hi", "imageQueries": ["q1"]} Enjoy!'

    assert parse_script_response(text).image_queries == ["q1"]


def test_truncates_to_seven_queries():
    queries = ", ".join(f'"q{i}"' for i in range(10))

    result = parse_script_response('{"script": "Hi", "imageQueries": [%s]}' % queries)

    assert len(result.image_queries) == 7


@pytest.mark.parametrize(
    "text",
    [
        "",
        "no json at all",
        '{"script": "Hi", "imageQueries": [',
        '["script", "imageQueries"]',
        '{"script": "", "imageQueries": ["a"]}',
        '{"script": "Hi"}',
        '{"script": "Hi", "imageQueries": []}',
    ],
)
def test_malformed_responses_are_hard_failures(text):
    with pytest.raises(GenerationError) as exc:
        parse_script_response(text)
    assert exc.value.stage == "script"


def test_parse_failure_is_not_retried():
    llm = FakeTextGenerator("not json")
    generator = LLMScriptGenerator(llm)

    with pytest.raises(GenerationError):
        asyncio.run(generator.generate("content", "title", "en-US"))
    assert llm.calls == 1


def test_prompt_names_language_and_caps_content():
    prompt = build_prompt("x" * 20000, "Title", "fr-FR")

    assert "French" in prompt
    assert "x" * 12001 not in prompt
