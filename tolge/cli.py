"""
Command-line interface for Tolge.
"""
import os
import sys
import argparse
import logging
import asyncio
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv

from tolge.config import get_config
from tolge.core.errors import TolgeError
from tolge.extract.extractor import ArticleExtractor
from tolge.formatters.document import ArticleMeta
from tolge.service import (
    QuestionPending,
    ScrapeRequest,
    TranslationService,
    openai_provider_factory,
)
from tolge.translation.provider import MockProvider, ModelProvider

logger = logging.getLogger(__name__)


def configure_logging(verbose: bool = False):
    """
    Configure logging to a dated file and the console.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(f"tolge_{datetime.now().strftime('%Y%m%d')}.log"),
            logging.StreamHandler()
        ]
    )


def parse_args(argv: Optional[List[str]] = None):
    """
    Parse command-line arguments.

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(description="Tolge - Article Translation Assistant")
    parser.add_argument("urls", nargs="*", help="Article URLs to translate")
    parser.add_argument("--urls-file", help="File with one URL per line ('URL | title' sets a translated title)")
    parser.add_argument("--title", action="append", default=[], help="Translated title for the URL at the same position")
    parser.add_argument("--prompt-file", help="File holding the instruction text sent to the model")
    parser.add_argument("--instructions", help="Extra instructions appended to the instruction text")
    parser.add_argument("--api-key", help="Model API key (default: OPENAI_API_KEY)")
    parser.add_argument("--session-id", help="Session identifier to use")
    parser.add_argument("--output-dir", help="Output directory")
    parser.add_argument("--format", choices=["docx", "html"], help="Document format")
    parser.add_argument("--dry-run", action="store_true", help="Use a canned model reply instead of the real service")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def read_urls_file(path: str):
    """
    Read URLs (and optional titles) from a text file.

    Args:
        path: Path to the file; blank lines and # comments are skipped

    Returns:
        Tuple of (urls, titles)
    """
    urls, titles = [], []
    with open(path, 'r', encoding='utf-8') as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith('#'):
                continue
            url, _, title = line.partition('|')
            urls.append(url.strip())
            titles.append(title.strip() or None)
    return urls, titles


class ProviderCache:
    """
    Provider factory handing out one provider per credential, so that all
    rounds of a run share a client and its usage counters.
    """
    def __init__(self, dry_run: bool = False):
        self.dry_run = dry_run
        self.providers: Dict[str, ModelProvider] = {}

    def __call__(self, api_key: str) -> ModelProvider:
        if api_key not in self.providers:
            self.providers[api_key] = MockProvider() if self.dry_run else openai_provider_factory(api_key)
        return self.providers[api_key]

    def usage(self) -> List[Dict]:
        return [provider.get_usage_stats() for provider in self.providers.values()]

    def log_usage(self):
        for stats in self.usage():
            logger.info(f"Model usage: {stats}")


def ask(question: str) -> str:
    print(f"\nThe translator asks:\n{question}\n")
    return input("Your answer: ").strip()


async def async_main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the application.
    """
    # Explicitly reload environment variables from .env file
    load_dotenv(override=True)

    args = parse_args(argv)
    configure_logging(args.verbose)

    urls = list(args.urls)
    titles: List[Optional[str]] = list(args.title)
    if args.urls_file:
        file_urls, file_titles = read_urls_file(args.urls_file)
        titles = titles + [None] * (len(urls) - len(titles)) + file_titles
        urls.extend(file_urls)

    if not urls:
        logger.error("No URLs given")
        return 1

    system_prompt = None
    if args.prompt_file:
        system_prompt = Path(args.prompt_file).read_text(encoding='utf-8')

    output_dir = args.output_dir or get_config('output.directory', 'output')
    doc_format = args.format or get_config('output.format', 'docx')
    os.makedirs(output_dir, exist_ok=True)

    providers = ProviderCache(dry_run=args.dry_run)
    api_key = args.api_key or ("dry-run" if args.dry_run else None)

    service = TranslationService(
        extractor=ArticleExtractor(show_progress=True),
        provider_factory=providers,
    )

    logger.info(f"Starting Tolge for {len(urls)} URL(s)")
    scraped = await service.scrape(ScrapeRequest(
        urls=urls,
        api_key=api_key,
        estonian_titles=titles,
        session_id=args.session_id,
        system_prompt=system_prompt,
        custom_instructions=args.instructions,
    ))

    for error in scraped.errors:
        logger.warning(f"Skipped {error.url}: {error.error}")
    for summary in scraped.articles:
        logger.info(f"Extracted: {summary.title} ({summary.url})")

    result = await service.translate(scraped.session_id)
    while isinstance(result, QuestionPending):
        answer = ask(result.question)
        while not answer:
            answer = ask(result.question)
        result = await service.answer(result.session_id, answer)

    metadata = [ArticleMeta(title=a.title, url=a.url) for a in scraped.articles]
    payload = service.download(result.translation, metadata, doc_format)

    output_path = os.path.join(output_dir, payload.filename)
    with open(output_path, 'wb') as f:
        f.write(payload.data)

    logger.info(f"Translation saved to {output_path}")
    providers.log_usage()
    return 0


def main():
    """
    Entry point for the command-line script.
    """
    try:
        return asyncio.run(async_main())
    except KeyboardInterrupt:
        logger.info("Process interrupted by user")
        return 1
    except TolgeError as e:
        logger.error(str(e))
        return 1
    except Exception as e:
        logger.exception(f"An error occurred: {e}")
        return 1

if __name__ == "__main__":
    sys.exit(main())
