"""Terminal rendering of suggestion records with rich."""

from typing import Iterable, Optional

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from chef_assistant.models.models import SuggestionRecord


_DIFFICULTY_STYLES = {
    "facile": "green",
    "easy": "green",
    "moyen": "yellow",
    "moyenne": "yellow",
    "medium": "yellow",
    "difficile": "red",
    "hard": "red",
}


def difficulty_style(difficulty: Optional[str]) -> str:
    """Map a difficulty label (English or French) to a rich style."""
    return _DIFFICULTY_STYLES.get((difficulty or "").lower(), "dim")


def match_style(score: int) -> str:
    if score >= 90:
        return "green"
    if score >= 70:
        return "yellow"
    return "red"


def render_record(record: SuggestionRecord) -> Panel:
    """Build a panel for one record, skipping fields the model left empty."""
    parts = [Text(record.description)]

    meta = Text()
    if record.cooking_time:
        meta.append(f"⏱ {record.cooking_time}  ")
    if record.servings:
        meta.append(f"👥 {record.servings} servings  ")
    if record.difficulty:
        meta.append(record.difficulty, style=difficulty_style(record.difficulty))
    if meta.plain:
        parts.append(meta)

    if record.ingredients:
        parts.append(Text("Ingredients: ", style="bold") + Text(", ".join(record.ingredients)))

    if record.instructions:
        parts.append(Text("Instructions:", style="bold"))
        for number, step in enumerate(record.instructions, start=1):
            parts.append(Text(f"  {number}. {step}"))

    subtitle = None
    if record.match_score:
        subtitle = Text(f"{record.match_score}% match", style=match_style(record.match_score))

    return Panel(Group(*parts), title=Text(record.name, style="bold"), subtitle=subtitle, title_align="left")


def render_suggestions(records: Iterable[SuggestionRecord], console: Optional[Console] = None) -> None:
    console = console or Console()
    for record in records:
        console.print(render_record(record))
