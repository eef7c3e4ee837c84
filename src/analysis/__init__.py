"""Text heuristics run against every generated post version."""

from src.analysis.plagiarism import check_plagiarism
from src.analysis.seo import analyze_seo

__all__ = ["check_plagiarism", "analyze_seo"]
