"""
Typer CLI for the problem quality pipeline.

Commands:
    problemqa parse         - Segment a document into candidate problems
    problemqa classify      - Suggest subject and difficulty tier, flag duplicates
    problemqa difficulty    - Estimate structural difficulty
    problemqa review        - Run the heuristic reviewer
    problemqa score         - Compute quality scores
    problemqa similarity    - Compare two problems (duplicate / variant detection)
    problemqa ingest        - Parse, analyze, review and store a document
    problemqa batch-review  - AI-review stored problems awaiting the AI stage
    problemqa rescore       - Recompute quality scores of approved problems

Usage:
    problemqa parse exam.txt
    problemqa review problem.json --json
    problemqa classify --text "다음 방정식을 풀어라. x + 3 = 5" --corpus corpus.json
    problemqa ingest exam.txt --grade HIGH_1 --source-grade B
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import typer
from loguru import logger
from rich import print as rprint
from rich.console import Console
from rich.table import Table

from config import get_settings
from problemqa.classification.difficulty import DifficultyEstimator
from problemqa.classification.subject import SubjectClassifier
from problemqa.core.models import CorpusEntry, ProblemRecord, SourceInfo
from problemqa.quality.scorer import QualityScorer
from problemqa.review.reviewer import HeuristicReviewer
from problemqa.segmentation.segmenter import TextSegmenter, parse_document
from problemqa.similarity.comprehensive import calculate_comprehensive_similarity

app = typer.Typer(
    help="problemqa: parse, classify, review and score problem content",
    no_args_is_help=True,
)

console = Console()


# ========================================
# Input helpers
# ========================================


def _load_text(path: Path | None, text: str | None) -> str:
    if text is not None:
        return text
    if path is None:
        rprint("[red]✗[/red] Provide a file path or --text")
        raise typer.Exit(code=1)
    if not path.exists():
        rprint(f"[red]✗[/red] File not found: {path}")
        raise typer.Exit(code=1)
    return path.read_text(encoding="utf-8")


def _record_from_dict(data: dict[str, Any]) -> ProblemRecord:
    options = data.get("options")
    if isinstance(options, list):
        options = json.dumps(options, ensure_ascii=False)

    source = None
    if data.get("source"):
        source = SourceInfo(
            grade=data["source"].get("grade"),
            trust_score=data["source"].get("trustScore"),
        )

    return ProblemRecord(
        id=data.get("id"),
        content=data.get("content", ""),
        type=data.get("type", "SHORT_ANSWER"),
        answer=data.get("answer") or "",
        options=options,
        explanation=data.get("explanation"),
        difficulty=data.get("difficulty", "MEDIUM"),
        grade_level=data.get("gradeLevel"),
        usage_count=data.get("usageCount", 0),
        correct_rate=data.get("correctRate"),
        source=source,
    )


def _load_records(path: Path) -> list[ProblemRecord]:
    """Problems from a JSON file (object or array) or a plain-text document."""
    raw = _load_text(path, None)
    if path.suffix.lower() == ".json":
        data = json.loads(raw)
        items = data if isinstance(data, list) else [data]
        return [_record_from_dict(item) for item in items]

    result = TextSegmenter().parse(raw)
    return [candidate.to_record() for candidate in result.problems]


def _load_corpus(path: Path | None) -> list[CorpusEntry]:
    if path is None:
        return []
    data = json.loads(_load_text(path, None))
    return [CorpusEntry(id=str(item["id"]), content=item["content"]) for item in data]


def _echo_json(data: Any) -> None:
    typer.echo(json.dumps(data, ensure_ascii=False, indent=2))


def _preview(text: str, length: int = 50) -> str:
    text = " ".join(text.split())
    return text if len(text) <= length else text[:length] + "..."


# ========================================
# Analyzer commands
# ========================================


@app.command("parse")
def parse_command(
    path: Path = typer.Argument(..., help="Document to segment"),
    mime_type: str = typer.Option("text/plain", "--mime", help="MIME type of the document"),
    as_json: bool = typer.Option(False, "--json", help="Print the parse result as JSON"),
) -> None:
    """Segment a document into candidate problems."""
    if not path.exists():
        rprint(f"[red]✗[/red] File not found: {path}")
        raise typer.Exit(code=1)

    result = parse_document(path.read_bytes(), mime_type)

    if as_json:
        _echo_json(result.to_dict())
        return

    table = Table(title=f"Parsed Problems ({len(result.problems)})", show_header=True)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Type", style="cyan")
    table.add_column("Options", justify="right")
    table.add_column("Answer", style="green")
    table.add_column("Content")

    for i, problem in enumerate(result.problems, 1):
        table.add_row(
            str(i),
            problem.type.value,
            str(len(problem.options or [])),
            problem.answer or "-",
            _preview(problem.content),
        )
    console.print(table)

    for error in result.errors:
        rprint(f"[yellow]⚠[/yellow] {error}")

    if not result.success:
        raise typer.Exit(code=1)


@app.command("classify")
def classify_command(
    path: Path | None = typer.Argument(None, help="File holding the problem text"),
    text: str | None = typer.Option(None, "--text", "-t", help="Problem text"),
    corpus: Path | None = typer.Option(None, "--corpus", help="JSON array of {id, content}"),
    threshold: float | None = typer.Option(None, "--threshold", help="Duplicate threshold"),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
) -> None:
    """Suggest a subject and difficulty tier, and flag near-duplicates."""
    settings = get_settings()
    content = _load_text(path, text)
    existing = _load_corpus(corpus)[: settings.duplicate_corpus_limit]

    result = SubjectClassifier().classify(
        content, existing, threshold=threshold if threshold is not None else settings.duplicate_threshold
    )

    if as_json:
        _echo_json(result.to_dict())
        return

    rprint("\n[bold cyan]Classification[/bold cyan]")
    rprint(f"  Subject: {result.suggested_subject or '-'} ({result.subject_confidence:.0%})")
    rprint(f"  Difficulty tier: {result.suggested_difficulty.value} ({result.difficulty_confidence:.0%})")
    rprint(f"  Keywords: {', '.join(result.keywords) or '-'}")

    if result.duplicates:
        table = Table(title="Possible Duplicates", show_header=True)
        table.add_column("ID", style="cyan")
        table.add_column("Similarity", justify="right", style="yellow")
        table.add_column("Content")
        for match in result.duplicates:
            table.add_row(match.id, f"{match.similarity:.2f}", _preview(match.content))
        console.print(table)


@app.command("difficulty")
def difficulty_command(
    path: Path | None = typer.Argument(None, help="File holding the problem text"),
    text: str | None = typer.Option(None, "--text", "-t", help="Problem text"),
    option: list[str] = typer.Option([], "--option", "-o", help="Answer option (repeatable)"),
    grade: str | None = typer.Option(None, "--grade", help="Grade level, e.g. MIDDLE_2"),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
) -> None:
    """Estimate structural difficulty."""
    content = _load_text(path, text)
    result = DifficultyEstimator().estimate(content, option, grade)

    if as_json:
        _echo_json(result.to_dict())
        return

    table = Table(title=f"Difficulty: {result.level.value} ({result.score})", show_header=True)
    table.add_column("Factor", style="cyan")
    table.add_column("Value", justify="right")
    for name, value in result.factors.as_weighted_dict().items():
        table.add_row(name, str(value))
    console.print(table)

    rprint(f"  Confidence: {result.confidence:.2f}")
    for suggestion in result.suggestions:
        rprint(f"  [yellow]→[/yellow] {suggestion}")


@app.command("review")
def review_command(
    path: Path = typer.Argument(..., help="Problem JSON (object or array) or text document"),
    as_json: bool = typer.Option(False, "--json", help="Print results as JSON"),
) -> None:
    """Run the heuristic reviewer on one or more problems."""
    settings = get_settings()
    reviewer = HeuristicReviewer(approve_confidence=settings.review_approve_confidence)
    results = [reviewer.review(record) for record in _load_records(path)]

    if as_json:
        _echo_json([r.to_dict() for r in results])
        return

    styles = {"APPROVE": "green", "REVISE": "yellow", "REJECT": "red"}
    table = Table(title="Review Results", show_header=True)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Action")
    table.add_column("Confidence", justify="right")
    table.add_column("Checks", justify="right")
    table.add_column("Issues")

    for i, result in enumerate(results, 1):
        action = result.recommended_action.value
        table.add_row(
            str(i),
            f"[{styles[action]}]{action}[/{styles[action]}]",
            f"{result.overall_confidence:.2f}",
            f"{result.quality_checks.passed}/5",
            "; ".join(result.detected_issues) or "-",
        )
    console.print(table)


@app.command("score")
def score_command(
    path: Path = typer.Argument(..., help="Problem JSON (object or array) or text document"),
    as_json: bool = typer.Option(False, "--json", help="Print scores as JSON"),
) -> None:
    """Compute quality scores."""
    scorer = QualityScorer()
    scores = [scorer.score(record) for record in _load_records(path)]

    if as_json:
        _echo_json([s.to_dict() for s in scores])
        return

    table = Table(title="Quality Scores", show_header=True)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Accuracy", justify="right")
    table.add_column("Clarity", justify="right")
    table.add_column("Difficulty Fit", justify="right")
    table.add_column("Trust", justify="right")
    table.add_column("Usage", justify="right")
    table.add_column("Overall", justify="right", style="bold")

    for i, s in enumerate(scores, 1):
        table.add_row(
            str(i),
            str(s.accuracy_score),
            str(s.clarity_score),
            str(s.difficulty_fit),
            str(s.trust_score),
            str(s.usage_score),
            str(s.overall_score),
        )
    console.print(table)


@app.command("similarity")
def similarity_command(
    first: Path = typer.Argument(..., help="First problem text file"),
    second: Path = typer.Argument(..., help="Second problem text file"),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
) -> None:
    """Compare two problems for duplicates and numeric-substitution variants."""
    settings = get_settings()
    result = calculate_comprehensive_similarity(
        _load_text(first, None),
        _load_text(second, None),
        duplicate_threshold=settings.similarity_duplicate_threshold,
        variant_threshold=settings.similarity_variant_threshold,
    )

    if as_json:
        _echo_json(result.to_dict())
        return

    rprint(f"\n[bold cyan]Similarity: {result.overall_similarity:.2f}[/bold cyan]")
    rprint(f"  Text: {result.text_similarity:.2f}")
    rprint(f"  Semantic: {result.semantic_similarity:.2f}")
    rprint(f"  Formula: {result.formula_similarity:.2f}")
    rprint(f"  Numeric substitution: {result.numeric_substitution.confidence:.2f}")
    if result.is_duplicate:
        rprint("[red]✗ Duplicate[/red]")
    elif result.is_variant:
        rprint("[yellow]⚠ Variant[/yellow]")
    else:
        rprint("[green]✓ Distinct[/green]")


# ========================================
# Storage commands
# ========================================


def _open_repository(database_url: str | None):
    from problemqa.db.database import create_db_engine, init_db

    engine = create_db_engine(database_url)
    init_db(engine)
    return engine


@app.command("ingest")
def ingest_command(
    path: Path = typer.Argument(..., help="Document to ingest"),
    grade: str | None = typer.Option(None, "--grade", help="Grade level of the document"),
    source_name: str | None = typer.Option(None, "--source", help="Source name"),
    source_grade: str = typer.Option("D", "--source-grade", help="Source trust grade (A-E)"),
    database_url: str | None = typer.Option(None, "--db", help="Database URL (default: settings)"),
) -> None:
    """Parse, analyze, review and store a document."""
    from problemqa.db.database import session_scope
    from problemqa.db.repository import ProblemRepository
    from problemqa.workflow.pipeline import ContentPipeline

    settings = get_settings()
    text = _load_text(path, None)
    engine = _open_repository(database_url)
    pipeline = ContentPipeline.from_settings(settings)

    with session_scope(engine) as session:
        repo = ProblemRepository(session)
        source = None
        if source_name:
            source = SourceInfo(grade=source_grade)
            repo.default_source_id = repo.add_source(source_name, grade=source_grade).id

        report = pipeline.ingest(
            text,
            corpus=repo.corpus(settings.duplicate_corpus_limit),
            grade_level=grade,
            source=source,
            store=repo,
        )

        table = Table(title=f"Ingested {len(report.problems)} problems", show_header=True)
        table.add_column("ID", style="dim")
        table.add_column("Status", style="cyan")
        table.add_column("Stage")
        table.add_column("Action")
        table.add_column("Quality", justify="right")
        for item in report.problems:
            table.add_row(
                item.problem_id or "-",
                item.state.status.value,
                item.state.review_stage.value,
                item.review.recommended_action.value if item.review else "-",
                str(item.quality.overall_score),
            )
        console.print(table)

    for error in report.parse.errors:
        rprint(f"[yellow]⚠[/yellow] {error}")

    logger.info(f"Ingest of {path.name} complete")


@app.command("batch-review")
def batch_review_command(
    limit: int | None = typer.Option(None, "--limit", help="Max problems to review"),
    database_url: str | None = typer.Option(None, "--db", help="Database URL (default: settings)"),
) -> None:
    """AI-review stored problems awaiting the AI stage."""
    from problemqa.db.database import session_scope
    from problemqa.db.repository import ProblemRepository
    from problemqa.workflow.batch import BatchReviewer

    settings = get_settings()
    engine = _open_repository(database_url)
    reviewer = HeuristicReviewer(approve_confidence=settings.review_approve_confidence)

    with session_scope(engine) as session:
        report = BatchReviewer(reviewer).run(
            ProblemRepository(session), limit=limit or settings.batch_review_limit
        )

    rprint(f"\n[green]✓[/green] Reviewed {report.processed} problems")
    if report.failed:
        rprint(f"[yellow]⚠[/yellow] {report.failed} problems failed, check logs for details")


@app.command("rescore")
def rescore_command(
    database_url: str | None = typer.Option(None, "--db", help="Database URL (default: settings)"),
) -> None:
    """Recompute quality scores of every approved problem."""
    from problemqa.db.database import session_scope
    from problemqa.db.repository import ProblemRepository

    engine = _open_repository(database_url)
    with session_scope(engine) as session:
        count = ProblemRepository(session).recompute_approved()

    rprint(f"\n[green]✓[/green] Rescored {count} approved problems")


def run() -> None:
    """Entry point for the CLI."""
    settings = get_settings()
    logger.remove()
    logger.add(sys.stderr, level=settings.log_level, format="<level>{message}</level>")
    if settings.log_file:
        logger.add(settings.log_file, level=settings.log_level, rotation="10 MB")
    app()


if __name__ == "__main__":
    run()
