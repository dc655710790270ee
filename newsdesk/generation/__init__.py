"""Article generation and translation."""

from .models import GeneratedArticle, RewrittenContent
from .prompts import LANGUAGE_NAMES, build_rewrite_prompt, build_translation_prompt
from .retry import BackoffRetry, NoRetry, RetryPolicy, retry_policy_from_config
from .writer import ArticleWriter

__all__ = [
    "ArticleWriter",
    "BackoffRetry",
    "GeneratedArticle",
    "LANGUAGE_NAMES",
    "NoRetry",
    "RetryPolicy",
    "RewrittenContent",
    "build_rewrite_prompt",
    "build_translation_prompt",
    "retry_policy_from_config",
]
