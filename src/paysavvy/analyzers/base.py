"""Base analyzer interface for PaySavvy scoring layers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from paysavvy.brands import BrandIndex
from paysavvy.models import AIVerdict, LayerResult, RedirectHop
from paysavvy.urls import ParsedURL


@dataclass
class ScanContext:
    """Everything a layer may look at for one assessment.

    Layers record their typed result in ``details`` under their ``key`` so
    the scorer can read match types, confidences and the like afterwards.
    """

    url: str
    parsed: ParsedURL
    index: BrandIndex
    redirect_chain: list[RedirectHop] = field(default_factory=list)
    ai_verdict: AIVerdict | None = None
    details: dict[str, Any] = field(default_factory=dict)


class BaseAnalyzer(ABC):
    """Abstract base class for the four scoring layers.

    Each layer inspects one aspect of a scan (URL text, brand registry,
    redirect chain, AI verdict) and contributes an integer score plus
    human-readable flags.
    """

    name: str = ""
    key: str = ""

    def __init__(self, config: dict[str, Any] | None = None) -> None:
        self.config = config or {}

    @abstractmethod
    def run(self, context: ScanContext) -> LayerResult:
        """Run this layer against a scan context.

        Args:
            context: The per-scan context.

        Returns:
            A LayerResult with the layer's score and flags.
        """
        ...
