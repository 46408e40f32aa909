"""Rich terminal output renderer for PaySavvy."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from paysavvy.models import RiskAssessment, TrustLevel


console = Console()

TRUST_COLORS = {
    TrustLevel.SAFE: "green",
    TrustLevel.SUSPICIOUS: "yellow",
    TrustLevel.DANGEROUS: "bold red",
    TrustLevel.UNKNOWN: "cyan",
    TrustLevel.ERROR: "magenta",
}

LAYER_TITLES = {
    "heuristics": "Heuristics",
    "brand_check": "Brand Check",
    "redirects": "Redirects",
    "ai_analysis": "AI Analysis",
}


def render_assessment(assessment: RiskAssessment, verbose: bool = False) -> None:
    """Print a Rich-formatted assessment to the terminal.

    Args:
        assessment: The completed RiskAssessment to render.
        verbose: If True, show each layer's flags in the breakdown table.
    """
    console.print()
    _render_header(assessment)
    _render_verdict_panel(assessment)
    if assessment.layers:
        _render_breakdown_table(assessment, verbose)
    if assessment.reasons:
        _render_reasons(assessment)
    _render_recommendation(assessment)
    console.print()


def _render_header(assessment: RiskAssessment) -> None:
    """Render the scan header with URL and timestamp."""
    console.print(
        Panel(
            f"[bold]Target:[/bold] {escape(assessment.url)}\n"
            f"[bold]Scanned:[/bold] {assessment.timestamp}",
            title="[bold blue]PaySavvy Link Check[/bold blue]",
            border_style="blue",
        )
    )


def _render_verdict_panel(assessment: RiskAssessment) -> None:
    """Render the trust level, score and confidence."""
    color = TRUST_COLORS.get(assessment.trust_level, "white")
    content = Text.assemble(
        Text(f"{assessment.trust_level.value}", style=f"bold {color}"),
        f"   score {assessment.score:+d}",
        f"   confidence {assessment.confidence:.0%}",
    )
    if assessment.brand is not None:
        content.append(
            f"\nVerified brand: {assessment.brand.name} ({assessment.brand.region})",
            style="green",
        )
    elif assessment.impersonated_brand:
        content.append(f"\nImpersonating: {assessment.impersonated_brand}", style="red")

    console.print(Panel(content, border_style=color))


def _render_breakdown_table(assessment: RiskAssessment, verbose: bool) -> None:
    """Render the per-layer score table."""
    table = Table(title="Layer Breakdown", show_lines=True)
    table.add_column("Layer", min_width=14)
    table.add_column("Score", justify="right", width=7)

    if verbose:
        table.add_column("Flags", min_width=40)

    for key, layer in assessment.layers.items():
        row = [LAYER_TITLES.get(key, key), f"{layer.score:+d}"]
        if verbose:
            row.append("\n".join(f"* {escape(flag)}" for flag in layer.flags) or "[dim]No flags[/dim]")
        table.add_row(*row)

    console.print(table)


def _render_reasons(assessment: RiskAssessment) -> None:
    color = TRUST_COLORS.get(assessment.trust_level, "white")
    console.print(
        Panel(
            "\n".join(f"- {escape(reason)}" for reason in assessment.reasons),
            title="[bold]Evidence[/bold]",
            border_style=color,
        )
    )


def _render_recommendation(assessment: RiskAssessment) -> None:
    """Render the recommendation panel."""
    color = TRUST_COLORS.get(assessment.trust_level, "white")
    console.print(
        Panel(
            assessment.recommendation,
            title="[bold]Recommendation[/bold]",
            border_style=color,
        )
    )
