"""PaySavvy scoring layers."""

from paysavvy.analyzers.ai_verdict import AIVerdictAnalyzer
from paysavvy.analyzers.brand_match import BrandMatchAnalyzer
from paysavvy.analyzers.heuristics import HeuristicAnalyzer
from paysavvy.analyzers.redirects import RedirectChainAnalyzer

# Evaluation order; also the order reasons appear in an assessment.
ALL_ANALYZERS = [
    HeuristicAnalyzer,
    BrandMatchAnalyzer,
    RedirectChainAnalyzer,
    AIVerdictAnalyzer,
]

__all__ = [
    "ALL_ANALYZERS",
    "AIVerdictAnalyzer",
    "BrandMatchAnalyzer",
    "HeuristicAnalyzer",
    "RedirectChainAnalyzer",
]
