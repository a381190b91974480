"""Colorized terminal summary of a completed run."""

import typer

from multi_eval.envelope.domain.envelope import Envelope, Phase
from multi_eval.evaluation.domain.assessment import RiskLabel
from multi_eval.evaluation.domain.matrix import AssessmentMatrix
from multi_eval.ledger.domain.run import Run

# ---------------------------------------------------------------------------
# ANSI helpers
# ---------------------------------------------------------------------------
_RESET = "\033[0m"
_BOLD = "\033[1m"
_DIM = "\033[2m"
_CYAN = "\033[36m"
_YELLOW = "\033[33m"
_GREEN = "\033[32m"
_RED = "\033[31m"
_BLUE = "\033[34m"
_WHITE = "\033[97m"

# Maximum display width for a model id column (chars, excluding padding).
_MAX_ID_LEN = 14
_PREVIEW_LEN = 60

_LABEL_COLORS = {
    RiskLabel.LOW: _GREEN,
    RiskLabel.MEDIUM: _YELLOW,
    RiskLabel.HIGH: _RED,
}


def _rule(width: int = 72, color: str = _DIM) -> None:
    typer.echo(f"{color}{'─' * width}{_RESET}")


def _truncate(name: str, max_len: int = _MAX_ID_LEN) -> str:
    """Truncate a model id to max_len, appending '…' if needed."""
    if len(name) <= max_len:
        return name
    return name[: max_len - 1] + "…"


def _preview(text: str) -> str:
    flat = " ".join(text.split())
    return flat[:_PREVIEW_LEN] + ("…" if len(flat) > _PREVIEW_LEN else "")


def _section(title: str) -> None:
    typer.echo("")
    _rule(color=_BLUE)
    typer.echo(f"{_BLUE}{_BOLD}  {title}{_RESET}")
    typer.echo("")


def _print_outputs(envelope: Envelope) -> None:
    """One row per item: model id, latency, and either a preview or the error."""
    id_w = max(len(_truncate(name=m)) for m in envelope.model_ids)
    typer.echo(f"  {_DIM}{'Model':<{id_w}}  {'Latency':>8}  Output{_RESET}")
    typer.echo(f"  {'─' * id_w}  {'─' * 8}  {'─' * 40}")
    for item in envelope.items:
        latency = f"{item.latency_ms}ms"
        if item.ok:
            body = f"{_WHITE}{_preview(text=item.text)}{_RESET}"
        else:
            body = f"{_RED}ERROR: {item.error}{_RESET}"
        typer.echo(
            f"  {_CYAN}{_truncate(name=item.model_id):<{id_w}}{_RESET}"
            f"  {_DIM}{latency:>8}{_RESET}  {body}"
        )


def _label_cell(label: RiskLabel | None, width: int) -> str:
    if label is None:
        return f"{_DIM}{'—':>{width}}{_RESET}"
    return f"{_LABEL_COLORS[label]}{label.value:>{width}}{_RESET}"


def _print_matrix(matrix: AssessmentMatrix, judges: Envelope) -> None:
    """Judges as rows, primary models as columns; absent verdicts show as '—'."""
    targets = matrix.primary_model_ids
    col_w = max([len(_truncate(name=t)) for t in targets] + [6])
    judge_w = max(len(_truncate(name=r.judge_model_id)) for r in matrix.rows)

    header = f"  {_DIM}{'Judge':<{judge_w}}{_RESET}"
    for target in targets:
        header += f"  {_CYAN}{_BOLD}{_truncate(name=target):>{col_w}}{_RESET}"
    typer.echo(header)
    typer.echo(f"  {'─' * (judge_w + len(targets) * (col_w + 2))}")

    for row in matrix.rows:
        line = f"  {_WHITE}{_truncate(name=row.judge_model_id):<{judge_w}}{_RESET}"
        if row.error is not None:
            line += f"  {_RED}ERROR: {row.error}{_RESET}"
        else:
            for target in targets:
                label = matrix.label(
                    judge_model_id=row.judge_model_id, target_model_id=target
                )
                line += "  " + _label_cell(label=label, width=col_w)
        typer.echo(line)

    worst = f"  {_DIM}{'Highest':<{judge_w}}{_RESET}"
    for target in targets:
        worst += "  " + _label_cell(
            label=matrix.highest_risk(target_model_id=target), width=col_w
        )
    typer.echo(f"  {'─' * (judge_w + len(targets) * (col_w + 2))}")
    typer.echo(worst)

    dropped = [
        (item.model_id, target)
        for item in judges.items
        if item.structured is not None
        for target in item.structured.get("droppedTargets", [])
    ]
    if dropped:
        typer.echo("")
        typer.echo(f"  {_YELLOW}{_BOLD}Dropped assessments  ({len(dropped)}){_RESET}")
        for judge, target in dropped:
            typer.echo(f"  {_DIM}[{judge}]{_RESET} unknown target '{target}'")


def print_run(run: Run, elapsed: str) -> None:
    """Print a colorized summary of every phase the run went through."""
    typer.echo("")
    _rule(color=_CYAN)
    typer.echo(f"{_CYAN}{_BOLD}  multi-eval  ·  Run Complete{_RESET}")
    _rule(color=_CYAN)
    typer.echo("")

    meta_rows: list[tuple[str, str]] = [
        ("Run ID", f"{run.id[:8]}-..."),
        ("Mode", run.mode.value),
        ("State", run.state.value + (" (cancelled)" if run.cancelled else "")),
        ("Prompt", _preview(text=run.prompt)),
        ("Elapsed", elapsed),
    ]
    label_w = max(len(label) for label, _ in meta_rows)
    for label, value in meta_rows:
        typer.echo(f"  {_DIM}{label:<{label_w}}{_RESET}  {_WHITE}{value}{_RESET}")

    primary = run.envelope(phase=Phase.PRIMARY) or run.envelope(phase=Phase.SINGLE)
    if primary is not None:
        _section(title="Primary Outputs")
        _print_outputs(envelope=primary)

    judges = run.envelope(phase=Phase.JUDGE_MULTI)
    if judges is not None and primary is not None:
        _section(title="Risk Matrix")
        matrix = AssessmentMatrix.from_envelope(
            envelope=judges, primary_model_ids=primary.model_ids
        )
        _print_matrix(matrix=matrix, judges=judges)

    report = run.envelope(phase=Phase.JUDGE_SINGLE)
    if report is not None:
        _section(title=f"Evaluation Report  ·  {report.model_ids[0]}")
        item = report.items[0]
        typer.echo(item.text if item.ok else f"{_RED}ERROR: {item.error}{_RESET}")

    if run.final_answer is not None:
        _section(title=f"Final Answer  ·  {run.orchestrator_model_id}")
        typer.echo(run.final_answer)
        if run.rationale:
            typer.echo("")
            typer.echo(f"  {_DIM}Rationale:{_RESET} {run.rationale}")

    typer.echo("")
    _rule(color=_CYAN)
    typer.echo("")
