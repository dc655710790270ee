"""Tests for the rewrite queue and article writer."""

import asyncio
import json

import pendulum
import pytest

from fakes import ScriptedClient, article_json, newsroom_responder
from newsdesk.errors import InconsistentState, NotFound, ParseFailure, RemoteTaskFailed
from newsdesk.generation import ArticleWriter, BackoffRetry, GeneratedArticle, NoRetry
from newsdesk.models import Lead, LeadStatus, LocalizedText, SourceRef
from newsdesk.pipeline import Outcome, RewritePipeline

SENTINEL = "Pending rewrite for: "


def seed_pending(storage, headlines, category_id=None):
    """Create a task with one rewrite_pending lead and placeholder per headline."""
    task = storage.create_task("seed", category_id=category_id)
    leads = storage.create_leads(
        [
            Lead(
                task_id=task.id,
                headline=headline,
                source=SourceRef(name="Wire", url=f"https://news.test/{n}"),
            )
            for n, headline in enumerate(headlines)
        ]
    )
    for lead in leads:
        article = storage.create_placeholder_article(
            LocalizedText.same(lead.headline),
            f"{SENTINEL}{lead.headline}",
            pendulum.now("UTC"),
            sources=[lead.source],
            category_id=category_id,
        )
        storage.link_lead_to_article(lead.id, article.id, LeadStatus.REWRITE_PENDING)
    return [storage.get_lead(lead.id) for lead in leads]


def make_pipeline(storage, limiter, responder, retry_policy=None, batch_size=2):
    client = ScriptedClient(responder)
    writer = ArticleWriter(limiter, client, retry_policy=retry_policy)
    return RewritePipeline(storage, writer, batch_size=batch_size), client


class TestDrain:
    @pytest.mark.asyncio
    async def test_one_failing_lead_does_not_stop_the_others(self, storage, limiter):
        leads = seed_pending(storage, ["A1", "A2", "Broken", "A4", "A5"])
        pipeline, _ = make_pipeline(storage, limiter, newsroom_responder(fail_headlines=["Broken"]))

        result = await pipeline.drain()

        assert result.processed == 5
        assert result.succeeded == 4
        assert result.failed == 1
        failed = [item for item in result.details if item.outcome == Outcome.ERROR]
        assert [item.id for item in failed] == [leads[2].id]
        assert "500" in failed[0].error

        statuses = {lead.headline: storage.get_lead(lead.id).status for lead in leads}
        assert statuses["Broken"] == LeadStatus.ERROR
        assert all(s == LeadStatus.REWRITTEN for h, s in statuses.items() if h != "Broken")
        assert storage.get_article(leads[2].article_id).is_placeholder(SENTINEL)

    @pytest.mark.asyncio
    async def test_article_gets_generated_and_translated_content(self, storage, limiter):
        category = storage.create_category("Energy", "Power and grids")
        lead = seed_pending(storage, ["Grid upgrade"], category_id=category.id)[0]
        pipeline, client = make_pipeline(storage, limiter, newsroom_responder())

        await pipeline.drain()

        article = storage.get_article(lead.article_id)
        assert article.title_en == "Grid upgrade"
        assert article.content_en == "<p>Grid upgrade body</p>"
        assert article.title_cn == "[Simplified Chinese] Grid upgrade"
        assert article.content_my == "[Malay] <p>Grid upgrade body</p>"
        assert article.sources == [
            SourceRef(name="example.com", url="https://www.example.com/grid-upgrade")
        ]
        assert article.category_id == category.id
        assert not article.is_placeholder(SENTINEL)
        assert "Category context: Energy - Power and grids" in client.calls[0]["query"]

    @pytest.mark.asyncio
    async def test_calls_are_sequential_generation_then_four_translations(self, storage, limiter):
        seed_pending(storage, ["Grid upgrade"])
        pipeline, client = make_pipeline(storage, limiter, newsroom_responder())

        await pipeline.drain()

        prompts = [call["query"] for call in client.calls]
        assert len(prompts) == 5
        assert prompts[0].startswith("Write a news article")
        assert "title from English into Simplified Chinese" in prompts[1]
        assert "body from English into Simplified Chinese" in prompts[2]
        assert "title from English into Malay" in prompts[3]
        assert "body from English into Malay" in prompts[4]
        assert [call["expect_json"] for call in client.calls] == [True, False, False, False, False]

    @pytest.mark.asyncio
    async def test_translation_failure_keeps_english(self, storage, limiter):
        lead = seed_pending(storage, ["Grid upgrade"])[0]
        base = newsroom_responder()

        def respond(prompt):
            if "into Malay" in prompt:
                return RemoteTaskFailed("translation failed")
            return base(prompt)

        pipeline, _ = make_pipeline(storage, limiter, respond)

        result = await pipeline.drain()

        article = storage.get_article(lead.article_id)
        assert result.succeeded == 1
        assert article.title_my == "Grid upgrade"
        assert article.content_my == "<p>Grid upgrade body</p>"
        assert article.title_cn.startswith("[Simplified Chinese]")
        assert set(result.details[0].fallbacks) == {"title_my", "body_my"}
        assert storage.get_lead(lead.id).status == LeadStatus.REWRITTEN

    @pytest.mark.asyncio
    async def test_empty_translation_keeps_english(self, storage, limiter):
        lead = seed_pending(storage, ["Grid upgrade"])[0]
        base = newsroom_responder()

        def respond(prompt):
            if "title from English into Simplified Chinese" in prompt:
                return "   "
            return base(prompt)

        pipeline, _ = make_pipeline(storage, limiter, respond)
        result = await pipeline.drain()

        assert storage.get_article(lead.article_id).title_cn == "Grid upgrade"
        assert list(result.details[0].fallbacks) == ["title_cn"]

    @pytest.mark.asyncio
    async def test_leads_queued_mid_drain_are_consumed(self, storage, limiter):
        seed_pending(storage, ["First"])
        base = newsroom_responder()
        queued = []

        def respond(prompt):
            if prompt.startswith("Write a news article") and not queued:
                queued.extend(seed_pending(storage, ["Late"]))
            return base(prompt)

        pipeline, _ = make_pipeline(storage, limiter, respond)
        result = await pipeline.drain()

        assert result.processed == 2
        assert storage.get_lead(queued[0].id).status == LeadStatus.REWRITTEN

    @pytest.mark.asyncio
    async def test_lead_without_article_is_marked_error(self, storage, limiter):
        task = storage.create_task("seed")
        orphan = storage.create_leads([Lead(task_id=task.id, headline="Orphan")])[0]
        storage.set_lead_status(orphan.id, LeadStatus.REWRITE_PENDING)
        good = seed_pending(storage, ["Fine"])[0]
        pipeline, client = make_pipeline(storage, limiter, newsroom_responder())

        result = await pipeline.drain()

        assert result.processed == 2
        assert storage.get_lead(orphan.id).status == LeadStatus.ERROR
        assert storage.get_lead(good.id).status == LeadStatus.REWRITTEN
        assert "has no article" in result.details[0].error
        assert len(client.calls) == 5

    @pytest.mark.asyncio
    async def test_concurrent_drains_do_not_process_a_lead_twice(self, storage, limiter):
        seed_pending(storage, ["A", "B", "C"])
        pipeline, client = make_pipeline(storage, limiter, newsroom_responder())

        first, second = await asyncio.gather(pipeline.drain(), pipeline.drain())

        assert first.processed + second.processed == 3
        assert len(client.prompts("Write a news article")) == 3

    @pytest.mark.asyncio
    async def test_empty_queue(self, storage, limiter):
        pipeline, client = make_pipeline(storage, limiter, newsroom_responder())
        result = await pipeline.drain()
        assert result.processed == 0
        assert client.calls == []


class TestSingleArticle:
    @pytest.mark.asyncio
    async def test_rewrites_article_and_updates_linked_lead(self, storage, limiter):
        lead = seed_pending(storage, ["Grid upgrade"])[0]
        pipeline, _ = make_pipeline(storage, limiter, newsroom_responder())

        result = await pipeline.rewrite_article(lead.article_id)

        assert result.succeeded == 1
        assert storage.get_lead(lead.id).status == LeadStatus.REWRITTEN
        assert storage.get_article(lead.article_id).title_cn.startswith("[Simplified Chinese]")

    @pytest.mark.asyncio
    async def test_failure_marks_linked_lead_error(self, storage, limiter):
        lead = seed_pending(storage, ["Broken"])[0]
        pipeline, _ = make_pipeline(storage, limiter, newsroom_responder(fail_headlines=["Broken"]))

        result = await pipeline.rewrite_article(lead.article_id)

        assert result.failed == 1
        assert storage.get_lead(lead.id).status == LeadStatus.ERROR

    @pytest.mark.asyncio
    async def test_article_without_lead(self, storage, limiter):
        article = storage.create_placeholder_article(
            LocalizedText.same("Standalone"), f"{SENTINEL}Standalone", pendulum.now("UTC")
        )
        pipeline, _ = make_pipeline(storage, limiter, newsroom_responder())

        result = await pipeline.rewrite_article(article.id)

        assert result.succeeded == 1
        assert storage.get_article(article.id).content_en == "<p>Standalone body</p>"

    @pytest.mark.asyncio
    async def test_unknown_article(self, storage, limiter):
        pipeline, _ = make_pipeline(storage, limiter, newsroom_responder())
        with pytest.raises(NotFound):
            await pipeline.rewrite_article(999)


class TestRequeue:
    @pytest.mark.asyncio
    async def test_error_lead_goes_back_to_queue_and_succeeds(self, storage, limiter):
        lead = seed_pending(storage, ["Flaky"])[0]
        failing = {"on": True}
        base = newsroom_responder()

        def respond(prompt):
            if failing["on"] and prompt.startswith("Write a news article"):
                return RemoteTaskFailed("overloaded")
            return base(prompt)

        pipeline, _ = make_pipeline(storage, limiter, respond)
        await pipeline.drain()
        assert storage.get_lead(lead.id).status == LeadStatus.ERROR

        failing["on"] = False
        requeued = pipeline.requeue_lead(lead.id)
        assert requeued.status == LeadStatus.REWRITE_PENDING

        result = await pipeline.drain()
        assert result.succeeded == 1
        assert storage.get_lead(lead.id).status == LeadStatus.REWRITTEN

    def test_only_error_leads_can_be_requeued(self, storage, limiter):
        lead = seed_pending(storage, ["Waiting"])[0]
        pipeline, _ = make_pipeline(storage, limiter, newsroom_responder())
        with pytest.raises(InconsistentState):
            pipeline.requeue_lead(lead.id)

    def test_error_lead_without_article_cannot_be_requeued(self, storage, limiter):
        task = storage.create_task("seed")
        lead = storage.create_leads([Lead(task_id=task.id, headline="Orphan")])[0]
        storage.set_lead_status(lead.id, LeadStatus.ERROR)
        pipeline, _ = make_pipeline(storage, limiter, newsroom_responder())
        with pytest.raises(InconsistentState):
            pipeline.requeue_lead(lead.id)

    def test_unknown_lead(self, storage, limiter):
        pipeline, _ = make_pipeline(storage, limiter, newsroom_responder())
        with pytest.raises(NotFound):
            pipeline.requeue_lead(404)


class TestRetryPolicy:
    def test_backoff_delays(self):
        policy = BackoffRetry(max_retries=2, base_delay=5.0, factor=2.0)
        error = RemoteTaskFailed("x")
        assert policy.next_delay(0, error) == 5.0
        assert policy.next_delay(1, error) == 10.0
        assert policy.next_delay(2, error) is None

    def test_backoff_ignores_other_errors(self):
        policy = BackoffRetry(max_retries=2)
        assert policy.next_delay(0, InconsistentState("x")) is None

    def test_no_retry(self):
        assert NoRetry().next_delay(0, RemoteTaskFailed("x")) is None

    @pytest.mark.asyncio
    async def test_generation_retried_until_success(self, storage, limiter):
        lead = seed_pending(storage, ["Flaky"])[0]
        base = newsroom_responder()
        failures = {"left": 2}

        def respond(prompt):
            if prompt.startswith("Write a news article") and failures["left"]:
                failures["left"] -= 1
                return RemoteTaskFailed("overloaded")
            return base(prompt)

        pipeline, client = make_pipeline(
            storage, limiter, respond, retry_policy=BackoffRetry(max_retries=2, base_delay=0)
        )
        result = await pipeline.drain()

        assert result.succeeded == 1
        assert len(client.prompts("Write a news article")) == 3
        assert storage.get_lead(lead.id).status == LeadStatus.REWRITTEN

    @pytest.mark.asyncio
    async def test_default_policy_does_not_retry(self, storage, limiter):
        seed_pending(storage, ["Flaky"])
        pipeline, client = make_pipeline(
            storage, limiter, lambda prompt: RemoteTaskFailed("overloaded")
        )
        result = await pipeline.drain()

        assert result.failed == 1
        assert len(client.calls) == 1


class TestGeneratedArticle:
    def test_nested_shape(self):
        article = GeneratedArticle.from_payload(
            {
                "titles": {"en": "Nested"},
                "article": {"en_html": "<p>x</p>"},
                "source_urls": ["https://a.test", 7],
                "meta": {"image_url": "https://img.test/1.png"},
            }
        )
        assert article.title == "Nested"
        assert article.content_html == "<p>x</p>"
        assert article.source_urls == ["https://a.test"]
        assert article.image_url == "https://img.test/1.png"

    def test_flat_shape_from_answer(self):
        article = GeneratedArticle.from_payload(json.loads(article_json("Flat", ["https://a.test"])))
        assert article.title == "Flat"
        assert article.image_url is None

    def test_missing_body(self):
        with pytest.raises(ParseFailure):
            GeneratedArticle.from_payload({"title": "No body"})

    def test_not_an_object(self):
        with pytest.raises(ParseFailure):
            GeneratedArticle.from_payload(["title"])
