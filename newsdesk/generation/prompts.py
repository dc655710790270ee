"""Prompt text for article generation and translation."""

from typing import Optional

from ..models import Category

LANGUAGE_NAMES = {
    "en": "English",
    "cn": "Simplified Chinese",
    "my": "Malay",
}


def build_rewrite_prompt(headline: str, category: Optional[Category] = None) -> str:
    """Ask for a publish-ready English article about ``headline`` as JSON."""
    category_section = ""
    if category is not None:
        category_section = f"Category context: {category.name_en}"
        if category.description_en:
            category_section += f" - {category.description_en}"
        category_section += ". Tailor content to match the category context and theme.\n"

    return f"""Write a news article in English for the following headline and return it as JSON.

Headline: "{headline}"
{category_section}
Return ONLY valid JSON with this shape:
{{
  "title": string,
  "content_html": string,
  "source_urls": string[],
  "image_url": string | null
}}

Content rules:
- Provide concise, publish-ready HTML paragraphs and bullet lists in "content_html".
- List every source you used in "source_urls".
- Do not include markdown code fences.
- Keep output strictly valid JSON."""


def build_translation_prompt(text: str, language: str, kind: str = "body") -> str:
    """Ask for ``text`` translated into ``language``, nothing else."""
    target = LANGUAGE_NAMES.get(language, language)
    keep_html = " Keep all HTML tags unchanged." if kind == "body" else ""
    return (
        f"Translate the following news {kind} from English into {target}.{keep_html} "
        f"Return ONLY the translation, with no explanations.\n\n{text}"
    )
