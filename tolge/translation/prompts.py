"""
Prompt construction for Tolge.
"""
from typing import Optional, Sequence

from tolge.core.article import Article

COMPLETION_SENTINEL = "TRANSLATION_COMPLETE"
ARTICLE_DELIMITER = "---"

DEFAULT_SYSTEM_PROMPT = """You are an experienced science and news translator and editor.
Translate the articles below into fluent, publication-quality {language}.
Keep the meaning, tone and structure of the original. Keep every paragraph
break. Keep every hyperlink in the [anchor text](url) form, translating the
anchor text but never changing the URL. Do not add commentary or summaries."""

OUTPUT_CONTRACT = """Output rules:
- If anything about the task is unclear (terminology, tone, audience), ask ONE
  short clarifying question and output nothing else. Do not write the marker
  below when asking a question.
- When you are ready to deliver the translation, write the marker
  {sentinel} on its own line, followed by the translated articles in the
  given order.
- Separate consecutive articles with a line containing only {delimiter}
- For each article, write only the translated body text with paragraphs
  separated by blank lines. Do not repeat the title or the URL."""


def build_system_prompt(system_prompt: Optional[str] = None, language: str = "Estonian") -> str:
    """Return the caller's system prompt, or the default one for a target language."""
    if system_prompt and system_prompt.strip():
        return system_prompt.strip()
    return DEFAULT_SYSTEM_PROMPT.format(language=language)


def render_article(index: int, article: Article) -> str:
    """
    Serialize one article for the initial request.

    Args:
        index: 1-based position of the article
        article: Article to render

    Returns:
        Article block with url, title and markdown content
    """
    lines = [
        f"ARTICLE {index}",
        f"URL: {article.url}",
        f"TITLE: {article.display_title}",
    ]
    if article.estonian_title:
        lines.append("(The title above is already translated; use it as given.)")
    lines.append("CONTENT:")
    lines.append(article.content)
    return "\n".join(lines)


def build_initial_prompt(
    articles: Sequence[Article],
    system_prompt: Optional[str] = None,
    custom_instructions: Optional[str] = None,
    language: str = "Estonian",
) -> str:
    """
    Build the first message of a translation conversation.

    Args:
        articles: Articles to translate, in output order
        system_prompt: Caller override for the instruction text
        custom_instructions: Extra instructions appended after the system prompt
        language: Target language used by the default instruction text

    Returns:
        One message holding instructions, output rules and all articles
    """
    parts = [build_system_prompt(system_prompt, language)]

    if custom_instructions and custom_instructions.strip():
        parts.append(f"Additional instructions:\n{custom_instructions.strip()}")

    parts.append(OUTPUT_CONTRACT.format(sentinel=COMPLETION_SENTINEL, delimiter=ARTICLE_DELIMITER))
    parts.append(f"There are {len(articles)} article(s) to translate.")
    parts.extend(render_article(i, article) for i, article in enumerate(articles, 1))

    return "\n\n".join(parts)
