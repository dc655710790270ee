"""Article generation and translation through the rate-limited client."""

import logging
from typing import Dict, Optional

from ..client import AsyncQueryClient, QueryOptions
from ..errors import NewsdeskError
from ..models import LANGUAGES, Category, LocalizedText, SourceRef
from ..scheduler import RateLimiter
from .models import GeneratedArticle, RewrittenContent
from .prompts import build_rewrite_prompt, build_translation_prompt
from .retry import NoRetry, RetryPolicy

logger = logging.getLogger(__name__)


class _Fallback(Exception):
    """Translation unavailable; caller keeps the English text."""


class ArticleWriter:
    """Generate an English article for a headline, then translate it."""

    def __init__(
        self,
        limiter: RateLimiter,
        client: AsyncQueryClient,
        options: Optional[QueryOptions] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ) -> None:
        """
        Initialize writer.

        Args:
            limiter: Shared outbound call scheduler
            client: Query service client
            options: Routing options for generation and translation calls
            retry_policy: Applied to the generation call only
        """
        self.limiter = limiter
        self.client = client
        self.options = options or client.default_options
        self.retry_policy = retry_policy or NoRetry()

    async def generate(self, headline: str, category: Optional[Category] = None) -> GeneratedArticle:
        """
        Generate the English article.

        Raises:
            SubmissionFailed, PollTimeout, RemoteTaskFailed, ParseFailure
        """
        prompt = build_rewrite_prompt(headline, category)

        async def call():
            return await self.limiter.submit(self.client.query, prompt, self.options, expect_json=True)

        payload = await self.retry_policy.run(call, label=f"Generation for {headline[:40]!r}")
        return GeneratedArticle.from_payload(payload)

    async def _translate(self, text: str, language: str, kind: str) -> str:
        prompt = build_translation_prompt(text, language, kind)
        try:
            answer = await self.limiter.submit(self.client.query, prompt, self.options, expect_json=False)
        except NewsdeskError as e:
            logger.warning("Translation of %s into %s failed, keeping English: %s", kind, language, e)
            raise _Fallback(str(e)) from e

        answer = answer.strip() if isinstance(answer, str) else ""
        if not answer:
            logger.warning("Empty %s translation into %s, keeping English", kind, language)
            raise _Fallback("empty translation")
        return answer

    async def write(self, headline: str, category: Optional[Category] = None) -> RewrittenContent:
        """
        Generate and translate, one call at a time.

        Translation failures fall back to the English text and are listed
        in ``RewrittenContent.fallbacks``; generation failures propagate.
        """
        generated = await self.generate(headline, category)

        titles: Dict[str, str] = {"en": generated.title}
        bodies: Dict[str, str] = {"en": generated.content_html}
        fallbacks: Dict[str, str] = {}

        for language in LANGUAGES:
            if language == "en":
                continue
            for kind, english, target in (
                ("title", generated.title, titles),
                ("body", generated.content_html, bodies),
            ):
                try:
                    target[language] = await self._translate(english, language, kind)
                except _Fallback as e:
                    target[language] = english
                    fallbacks[f"{kind}_{language}"] = str(e)

        return RewrittenContent(
            titles=LocalizedText(**titles),
            bodies=LocalizedText(**bodies),
            sources=[SourceRef.from_url(url) for url in generated.source_urls],
            image_url=generated.image_url,
            fallbacks=fallbacks,
        )
