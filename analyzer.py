"""Client-side aggregation for the dashboard.

Everything here is pure: rows in, summaries out. Amounts come back from the
backend's numeric columns either as numbers or as strings, so they are always
coerced with ``float``.
"""
from collections import defaultdict


def _amount(row: dict) -> float:
    raw = row.get("amount")
    if raw in (None, ""):
        return 0.0
    try:
        return float(raw)
    except (TypeError, ValueError):
        return 0.0


def summarize_by_key(rows: list[dict], key: str) -> list[dict]:
    """Group rows by ``key`` in one pass: ``[{key: ..., "total": .., "count": ..}]``.

    Groups keep first-seen order. Rows without a value for ``key`` land in
    ``"Other"``, which is also the catch-all member of both closed enums.
    """
    totals = {}
    for row in rows or []:
        k = row.get(key) or "Other"
        if k not in totals:
            totals[k] = {"total": 0.0, "count": 0}
        totals[k]["total"] += _amount(row)
        totals[k]["count"] += 1
    return [{key: k, "total": v["total"], "count": v["count"]} for k, v in totals.items()]


def normalize_summary(rows: list[dict], key: str) -> list[dict]:
    """Coerce rows returned by the aggregation procedures to the local shape."""
    out = []
    for r in rows or []:
        out.append({
            key: r.get(key) or "Other",
            "total": float(r.get("total") or 0),
            "count": int(r.get("count") or 0),
        })
    return out


def summary_total(summary: list[dict]) -> float:
    return sum(float(s.get("total") or 0) for s in summary or [])


def dashboard_totals(expense_summary: list[dict], funding_summary: list[dict]) -> dict:
    expenses = summary_total(expense_summary)
    funding = summary_total(funding_summary)
    return {"funding": funding, "expenses": expenses, "balance": funding - expenses}


def build_program_summaries(programs: list[dict], expenses: list[dict], funding: list[dict]) -> list[dict]:
    """Per-program totals with ``balance = funding - expenses``.

    Rows with no ``program_id`` (or pointing at a program that is not in
    ``programs``, e.g. one that was just deleted) are skipped.
    """
    spent = defaultdict(float)
    for e in expenses or []:
        if e.get("program_id"):
            spent[e["program_id"]] += _amount(e)

    funded = defaultdict(float)
    for f in funding or []:
        if f.get("program_id"):
            funded[f["program_id"]] += _amount(f)

    summaries = []
    for p in programs or []:
        pid = p["id"]
        exp_total = spent.get(pid, 0.0)
        fund_total = funded.get(pid, 0.0)
        summaries.append({
            "id": pid,
            "name": p.get("name", ""),
            "budget": float(p.get("budget") or 0),
            "expenses": exp_total,
            "funding": fund_total,
            "status": p.get("status") or "active",
            "balance": fund_total - exp_total,
        })
    return summaries


def budget_usage(summary: dict) -> float:
    """Percent of the program budget consumed by its expenses."""
    budget = summary.get("budget") or 0
    if budget <= 0:
        return 0.0
    return summary.get("expenses", 0.0) / budget * 100


def chart_data(summary: list[dict], key: str) -> tuple[list[str], list[float]]:
    labels = [s[key] for s in summary]
    values = [float(s["total"]) for s in summary]
    return labels, values
