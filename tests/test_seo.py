"""SEO task prompts, grounding gating and text fallback."""

import pytest
from google.genai import types

import creator_studio
from creator_studio import (
    ChannelAuditTask,
    GenerationError,
    HashtagsTask,
    TagsTask,
    build_seo_task,
    generate_seo_content,
)
from conftest import fake_client, response_with_parts

FIELDS = {
    "audit": {"url": "https://www.youtube.com/@example"},
    "title": {"keywords": "wordpress tutorial"},
    "optimize": {"title": "My WP video", "keywords": "wordpress"},
    "description": {"topic": "speed up wordpress", "keywords": "caching"},
    "hashtags": {"topic": "home gardening tips"},
    "tags": {"topic": "home gardening tips"},
}


def text_response(text):
    return response_with_parts(types.Part.from_text(text=text))


@pytest.mark.asyncio
async def test_audit_enables_search_grounding():
    client, models = fake_client(text_response("Score: 72"))

    result = await generate_seo_content(client, "audit", FIELDS["audit"])

    assert result == "Score: 72"
    tools = models.calls[0]["config"].tools
    assert len(tools) == 1
    assert tools[0].google_search is not None
    assert "https://www.youtube.com/@example" in models.calls[0]["contents"]


@pytest.mark.asyncio
@pytest.mark.parametrize("kind", ["title", "optimize", "description", "hashtags", "tags"])
async def test_other_tasks_send_no_tools(kind):
    client, models = fake_client(text_response("ok"))

    await generate_seo_content(client, kind, FIELDS[kind])

    assert models.calls[0]["config"].tools is None
    assert models.calls[0]["model"] == creator_studio.TEXT_MODEL


@pytest.mark.asyncio
async def test_hashtags_prompt_carries_topic():
    client, models = fake_client(text_response("#garden"))

    await generate_seo_content(client, HashtagsTask(topic="home gardening tips"))

    prompt = models.calls[0]["contents"]
    assert isinstance(prompt, str)
    assert "home gardening tips" in prompt
    assert models.calls[0]["config"].tools is None


@pytest.mark.asyncio
async def test_empty_response_falls_back():
    client, _ = fake_client(types.GenerateContentResponse(candidates=[]))

    result = await generate_seo_content(client, "title", FIELDS["title"])

    assert result == "No content generated."


@pytest.mark.asyncio
async def test_api_failure_propagates():
    client, _ = fake_client(error=ConnectionError("network down"))

    with pytest.raises(GenerationError):
        await generate_seo_content(client, "hashtags", FIELDS["hashtags"])


@pytest.mark.asyncio
async def test_unknown_kind_fails_before_dispatch():
    client, models = fake_client(text_response("ok"))

    with pytest.raises(ValueError):
        await generate_seo_content(client, "thumbnail", {"topic": "x"})

    assert models.calls == []


def test_unrelated_fields_are_ignored():
    task = build_seo_task("hashtags", {"topic": "chess", "keywords": "ignored", "url": "x"})

    assert task == HashtagsTask(topic="chess")


def test_missing_required_field_is_rejected():
    with pytest.raises(ValueError):
        build_seo_task("optimize", {"keywords": "wordpress"})


def test_empty_field_gives_empty_placeholder():
    task = build_seo_task("title", {"keywords": ""})

    assert 'focus keywords: "".' in task.render_prompt()


def test_audit_falls_back_to_free_text():
    task = build_seo_task("audit", {"text": "Linus Tech Tips"})

    assert isinstance(task, ChannelAuditTask)
    assert "Linus Tech Tips" in task.render_prompt()


def test_each_prompt_uses_its_fields():
    optimize = build_seo_task("optimize", FIELDS["optimize"]).render_prompt()
    description = build_seo_task("description", FIELDS["description"]).render_prompt()

    assert '"My WP video"' in optimize and '"wordpress"' in optimize
    assert "Topic: speed up wordpress" in description
    assert "Keywords to include: caching" in description


def test_tags_prompt_requests_volume_list():
    prompt = TagsTask(topic="sourdough").render_prompt()

    assert '"sourdough"' in prompt
    assert '{"tag": "example", "volume": "High"}' in prompt
