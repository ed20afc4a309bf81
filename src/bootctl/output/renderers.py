"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO).  The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from bootctl.output.console import create_console, get_output, style_for_status

if TYPE_CHECKING:
    from rich.console import Console

    from bootctl.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal,
    which is the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"

    # For list results, return names only
    items = result.data.get("items") or result.data.get("steps")
    if items and isinstance(items, list):
        return "\n".join(_extract_name(item) for item in items if _extract_name(item))

    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _extract_name(item: Any) -> str:
    if isinstance(item, dict):
        for key in ("name", "id"):
            val = item.get(key)
            if val is not None:
                return str(val)
    return ""


def _status_line(console: Console, result: ServiceResult) -> None:
    """Print the OK/ERROR status line."""
    label = Text("OK", style="boot.ok")
    op = Text(f"  {result.op}", style="boot.op")
    console.print(label, op, end="")
    console.print()


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="boot.key")
    if key == "id" or key.endswith("_id"):
        v = Text(str(value), style="boot.id")
    elif isinstance(value, (dict, list)):
        v = Text(json.dumps(value, separators=(",", ":"), default=str))
    else:
        v = Text(str(value))
    console.print(k, v, end="")
    console.print()


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print meta block (verbose only)."""
    if not result.meta:
        return
    console.print()
    console.print(Text("  meta:", style="dim"))
    for k, v in result.meta.items():
        console.print(Text(f"    {k}: {v}"))


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="boot.error")
    op = Text(f"  {result.op}", style="boot.op")
    sep = Text(" — ")
    console.print(label, op, sep, Text(msg))

    if err and err.detail:
        steps = err.detail.get("steps")
        if isinstance(steps, list) and steps:
            console.print(_step_table(steps, verbose=verbose))
        if verbose:
            console.print(Text("  detail:", style="dim"))
            for k, v in err.detail.items():
                if k != "steps":
                    console.print(Text(f"    {k}: {v}"))


# ── Bootstrap renderers ───────────────────────────────────────────────


def _step_table(steps: list[dict[str, Any]], *, verbose: bool = False) -> Table:
    """Per-step outcome table, in execution order."""
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Step", style="boot.id", no_wrap=True)
    table.add_column("Criticality")
    table.add_column("Status")
    table.add_column("ms", justify="right", style="dim")
    table.add_column("Error")

    for step in steps:
        status = str(step.get("status", ""))
        duration = step.get("duration_ms")
        error = str(step.get("error") or "")
        if not verbose and len(error) > 60:
            error = error[:57] + "..."
        table.add_row(
            str(step.get("name", "")),
            str(step.get("criticality", "")),
            Text(status, style=style_for_status(status)),
            f"{duration:.2f}" if isinstance(duration, (int, float)) else "",
            error,
        )
    return table


def _render_bootstrap(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    steps = result.data.get("steps", [])
    if steps:
        console.print(_step_table(steps, verbose=verbose))

    report = result.data.get("report", {})
    console.print(
        f"\n{len(report.get('succeeded', []))} succeeded, "
        f"{len(report.get('failed', {}))} degraded, "
        f"{len(report.get('skipped', []))} skipped"
    )

    session = result.data.get("session")
    if session:
        console.print(
            Text(f"  session: {session['user_id']} (last active {session['last_activity']})")
        )

    deferred = result.data.get("deferred") or {}
    if deferred:
        console.print(Text("  deferred:", style="boot.key"))
        for name, outcome in deferred.items():
            console.print(Text(f"    {name}: {outcome}"))
    if verbose:
        _render_meta(console, result)


def _render_step_list(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    steps = result.data.get("steps", [])
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Step", style="boot.id", no_wrap=True)
    table.add_column("Criticality")
    table.add_column("Guarded")
    if verbose:
        table.add_column("Description")

    for index, step in enumerate(steps, 1):
        crit = str(step.get("criticality", ""))
        row: list[Any] = [
            str(index),
            str(step.get("name", "")),
            Text(crit, style="boot.error" if crit == "critical" else ""),
            "yes" if step.get("guarded") else "",
        ]
        if verbose:
            row.append(str(step.get("description", "")))
        table.add_row(*row)

    console.print(table)
    console.print(f"\n{result.data.get('count', len(steps))} steps")


# ── Identity / contacts / alerts renderers ────────────────────────────


def _render_identity(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for key in ("kind", "user_id", "fingerprint", "cleared"):
        if key in result.data and result.data[key] is not None:
            _field(console, key, result.data[key])
    if verbose and result.data.get("session_token"):
        _field(console, "session_token", result.data["session_token"])


def _render_contacts(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    items = result.data.get("items", [])
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Name", style="bold")
    table.add_column("Phone", style="boot.id", no_wrap=True)
    for item in items:
        table.add_row(str(item.get("name", "")), str(item.get("phone", "")))
    console.print(table)
    console.print(f"\n{result.data.get('count', len(items))} contacts")


def _render_alert(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    alert = result.data.get("alert")
    if alert:
        for key in ("type", "severity", "route", "message"):
            if key in alert:
                _field(console, key, alert[key])
    else:
        console.print(Text("  no alert raised", style="dim"))
    _field(console, "handlers", result.data.get("handlers", 0))


# ── Generic renderer ──────────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)
    if verbose:
        _render_meta(console, result)


_OP_RENDERERS: dict[str, Any] = {
    # bootstrap
    "bootstrap": _render_bootstrap,
    "list_steps": _render_step_list,
    # identity
    "resolve_identity": _render_identity,
    "login": _render_identity,
    "logout": _render_identity,
    # contacts
    "load_contacts": _render_contacts,
    # alerts
    "emit_alert": _render_alert,
    "log_event": _render_alert,
}
