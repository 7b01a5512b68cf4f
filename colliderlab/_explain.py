"""
Narrative explanation renderer for collider analyses.

``explain_analysis`` takes a finished :class:`~colliderlab.analysis.Analysis`
and returns a formatted multi-line string. ``Analysis.explain()`` calls it.
"""
from __future__ import annotations

import pandas as pd

_SEP = "━" * 66


# ── Shared helpers ─────────────────────────────────────────────────────────────

def _list_vars(names: list[str]) -> str:
    if len(names) == 1:
        return names[0]
    return ", ".join(names[:-1]) + f" and {names[-1]}"


def _role(dag, variable: str) -> str:
    parents = sorted(dag.parents(variable))
    children = sorted(dag.children(variable))
    if len(parents) >= 2:
        return f"a collider: it is caused by both {_list_vars(parents)}"
    if len(children) >= 2:
        return f"a common cause of {_list_vars(children)}"
    return "neither a collider nor a common cause in the graph"


# ── Section builders ───────────────────────────────────────────────────────────

def _dag_section(dag, extra: list[str]) -> str:
    lines = [
        "CAUSAL STRUCTURE (DAG)",
        "The data were simulated from these causal relationships:",
    ]
    for cause, effect in dag.edges:
        lines.append(f"  • {cause} → {effect}")
    lines.append("")
    colliders = sorted(dag.colliders())
    if colliders:
        lines.append(f"Colliders in the graph: {_list_vars(colliders)}.")
    for var in extra:
        lines.append(f"The added variable {var} is {_role(dag, var)}.")
    return "\n".join(lines)


def _coefficient_section(comparison, truth: dict[str, float]) -> str:
    table = comparison.table
    lines = [
        "COEFFICIENTS",
        f"Baseline model    : {comparison.baseline.formula}",
        f"Alternative model : {comparison.alternative.formula}",
        "",
    ]
    for name, row in table.iterrows():
        if name not in truth:
            continue
        true = truth[name]
        base, alt = row["baseline"], row["alternative"]
        parts = [f"  {name}: true {true:+.2f}"]
        if pd.notna(base):
            parts.append(f"baseline {base:+.3f}")
        if pd.notna(alt):
            parts.append(f"alternative {alt:+.3f}")
        lines.append(", ".join(parts))

        if pd.notna(base) and pd.notna(alt):
            closer = "alternative" if abs(alt - true) < abs(base - true) else "baseline"
            flipped = (base > 0) != (alt > 0) and abs(base) > 0.05 and abs(alt) > 0.05
            note = f"    The {closer} model is closer to the truth"
            if flipped:
                note += "; the sign flips between the two models"
            lines.append(note + ".")
    return "\n".join(lines)


def _prediction_section(report) -> str:
    lines = ["PREDICTION"]
    for row in report.table.itertuples(index=False):
        if row.metric != "rmse":
            continue
        verdict = "improves" if row.improved else "does not improve"
        lines.append(
            f"  {row.model}: test RMSE {row.baseline:.4f} → {row.alternative:.4f} "
            f"({verdict} with the extra variable)"
        )
    lines += [
        "",
        f"Best workflow by {report._metric}: {report.best}.",
        "Better prediction says nothing about causation: a model can",
        "forecast well precisely because it conditions on a collider.",
    ]
    return "\n".join(lines)


# ── Entry point ────────────────────────────────────────────────────────────────

def explain_analysis(analysis) -> str:
    extra = [v for v in analysis.alternative if v not in analysis.baseline]
    sections = [
        _SEP,
        f"  {analysis.title.upper()}",
        _SEP,
        "",
        _dag_section(analysis.dag, extra),
        "",
        _coefficient_section(analysis.coefficients, analysis.truth),
    ]
    if analysis.comparison is not None:
        sections += ["", _prediction_section(analysis.comparison)]
    sections += ["", _SEP]
    return "\n".join(sections)
