"""Location reviews and snippets gathered for a post before generation."""

from src.crawl.mock_crawl import generate_mock_crawl_data, generate_mock_summary, run_crawl

__all__ = ["generate_mock_crawl_data", "generate_mock_summary", "run_crawl"]
