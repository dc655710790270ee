"""Tests for the discovery task state machine."""

import asyncio
import threading

import pendulum
import pytest

from fakes import ScriptedClient, headlines_json
from newsdesk.discovery import DiscoveryEngine
from newsdesk.errors import NotFound, PollTimeout
from newsdesk.models import LeadStatus, TaskStatus
from newsdesk.pipeline import TaskRunner
from newsdesk.storage import InMemoryStorage

SENTINEL = "Pending rewrite for: "

TWO_HEADLINES = headlines_json(
    {"title": "Grid upgrade", "url": "https://news.test/grid", "source": "Wire", "date": "2026-05-04"},
    {"title": "Wind record", "url": "https://news.test/wind", "source": "Daily"},
)


class Answers:
    """Mutable answer so one runner can see different service responses."""

    def __init__(self, answer):
        self.answer = answer

    def __call__(self, prompt):
        return self.answer


def make_runner(storage, limiter, answer, on_completed=None):
    answers = Answers(answer)
    engine = DiscoveryEngine(storage, limiter, ScriptedClient(answers))
    return TaskRunner(storage, engine, SENTINEL, on_completed=on_completed), answers


class StalledClient(ScriptedClient):
    """Never answers, like a service that stopped completing requests."""

    def __init__(self):
        super().__init__(lambda prompt: "[]")
        self.started = asyncio.Event()

    async def query(self, query, options=None, expect_json=True, cancel_event=None):
        self.started.set()
        await asyncio.Event().wait()


class ThreadRecordingStorage(InMemoryStorage):
    """Remembers which threads wrote leads and placeholders."""

    def __init__(self):
        super().__init__()
        self.write_threads = set()

    def create_leads(self, leads):
        self.write_threads.add(threading.get_ident())
        return super().create_leads(leads)

    def create_placeholder_article(self, *args, **kwargs):
        self.write_threads.add(threading.get_ident())
        return super().create_placeholder_article(*args, **kwargs)


class TestTaskRunner:
    @pytest.mark.asyncio
    async def test_run_creates_leads_with_placeholders(self, storage, limiter):
        category = storage.create_category("Energy")
        task = storage.create_task("renewables", category_id=category.id)
        runner, _ = make_runner(storage, limiter, TWO_HEADLINES)

        result = await runner.run(task.id)

        assert result.status == TaskStatus.COMPLETED
        assert result.created == 2
        assert storage.get_task(task.id).status == TaskStatus.COMPLETED

        leads = storage.list_leads_for_task(task.id)
        assert [lead.headline for lead in leads] == ["Grid upgrade", "Wind record"]
        assert all(lead.status == LeadStatus.REWRITE_PENDING for lead in leads)

        article = storage.get_article(leads[0].article_id)
        assert article.title_en == article.title_cn == article.title_my == "Grid upgrade"
        assert article.content_en == f"{SENTINEL}Grid upgrade"
        assert article.content_my == f"{SENTINEL}Grid upgrade"
        assert article.is_placeholder(SENTINEL)
        assert article.news_date.date().isoformat() == "2026-05-04"
        assert article.sources[0].url == "https://news.test/grid"
        assert article.category_id == category.id

    @pytest.mark.asyncio
    async def test_missing_publication_date_defaults_to_discovery_time(self, storage, limiter):
        task = storage.create_task("renewables")
        runner, _ = make_runner(storage, limiter, TWO_HEADLINES)
        before = pendulum.now("UTC")

        await runner.run(task.id)

        wind = storage.list_leads_for_task(task.id)[1]
        assert storage.get_article(wind.article_id).news_date >= before

    @pytest.mark.asyncio
    async def test_rerun_replaces_previous_leads(self, storage, limiter):
        task = storage.create_task("renewables")
        three = headlines_json(
            {"title": "One", "url": "https://news.test/1"},
            {"title": "Two", "url": "https://news.test/2"},
            {"title": "Three", "url": "https://news.test/3"},
        )
        runner, answers = make_runner(storage, limiter, three)
        await runner.run(task.id)
        old_articles = [lead.article_id for lead in storage.list_leads_for_task(task.id)]

        answers.answer = TWO_HEADLINES
        result = await runner.run(task.id)

        leads = storage.list_leads_for_task(task.id)
        assert result.removed == 3
        assert [lead.headline for lead in leads] == ["Grid upgrade", "Wind record"]
        assert all(storage.get_article(article_id) is None for article_id in old_articles)
        assert len(storage.articles) == 2

    @pytest.mark.asyncio
    async def test_rerun_with_same_answer_is_idempotent(self, storage, limiter):
        task = storage.create_task("renewables")
        runner, _ = make_runner(storage, limiter, TWO_HEADLINES)

        await runner.run(task.id)
        await runner.run(task.id)

        assert len(storage.list_leads_for_task(task.id)) == 2
        assert len(storage.articles) == 2

    @pytest.mark.asyncio
    async def test_duplicate_headline_in_one_answer_creates_one_lead(self, storage, limiter):
        task = storage.create_task("solar")
        answer = headlines_json(
            {"title": "Solar Policy", "url": "https://a.test/solar", "source": "A"},
            {"title": "Solar Policy", "url": "https://b.test/solar", "source": "B"},
        )
        runner, _ = make_runner(storage, limiter, answer)

        result = await runner.run(task.id)

        leads = storage.list_leads_for_task(task.id)
        assert result.created == 1
        assert len(leads) == 1
        assert leads[0].source.name == "A"

    @pytest.mark.asyncio
    async def test_failure_marks_task_failed_and_keeps_previous_leads(self, storage, limiter):
        task = storage.create_task("renewables")
        runner, answers = make_runner(storage, limiter, TWO_HEADLINES)
        await runner.run(task.id)

        answers.answer = PollTimeout("req-1", 150)
        with pytest.raises(PollTimeout):
            await runner.run(task.id)

        failed = storage.get_task(task.id)
        assert failed.status == TaskStatus.FAILED
        assert "timed out after 150 polls" in failed.error
        assert len(storage.list_leads_for_task(task.id)) == 2

    @pytest.mark.asyncio
    async def test_rerun_clears_previous_error(self, storage, limiter):
        task = storage.create_task("renewables")
        runner, answers = make_runner(storage, limiter, PollTimeout("req-1", 3))
        with pytest.raises(PollTimeout):
            await runner.run(task.id)

        answers.answer = TWO_HEADLINES
        await runner.run(task.id)

        task = storage.get_task(task.id)
        assert task.status == TaskStatus.COMPLETED
        assert task.error is None

    @pytest.mark.asyncio
    async def test_unknown_task(self, storage, limiter):
        runner, _ = make_runner(storage, limiter, "[]")
        with pytest.raises(NotFound):
            await runner.run(404)

    @pytest.mark.asyncio
    async def test_completion_hook_failure_does_not_fail_run(self, storage, limiter):
        seen = []

        def hook(result):
            seen.append(result.task_id)
            raise RuntimeError("queue unavailable")

        task = storage.create_task("renewables")
        runner, _ = make_runner(storage, limiter, TWO_HEADLINES, on_completed=hook)

        result = await runner.run(task.id)

        assert seen == [task.id]
        assert result.status == TaskStatus.COMPLETED
        assert storage.get_task(task.id).status == TaskStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_cancelled_run_marks_task_failed(self, storage, limiter):
        task = storage.create_task("renewables")
        client = StalledClient()
        runner = TaskRunner(storage, DiscoveryEngine(storage, limiter, client), SENTINEL)

        run = asyncio.create_task(runner.run(task.id))
        await asyncio.wait_for(client.started.wait(), timeout=5)
        assert storage.get_task(task.id).status == TaskStatus.RUNNING

        run.cancel()
        with pytest.raises(asyncio.CancelledError):
            await run

        cancelled = storage.get_task(task.id)
        assert cancelled.status == TaskStatus.FAILED
        assert cancelled.error == "Run cancelled"

    @pytest.mark.asyncio
    async def test_storage_writes_run_off_the_event_loop(self, limiter):
        storage = ThreadRecordingStorage()
        task = storage.create_task("renewables")
        runner, _ = make_runner(storage, limiter, TWO_HEADLINES)

        result = await runner.run(task.id)

        assert result.created == 2
        assert storage.write_threads
        assert threading.get_ident() not in storage.write_threads
