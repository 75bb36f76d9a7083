"""Operation-specific Rich renderers for ServiceResult.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from loopsync.output.console import create_console, get_output

if TYPE_CHECKING:
    from rich.console import Console

    from loopsync.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich."""
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
        return f"ERROR: {result.op}: {msg}"
    version = result.data.get("version")
    if version is not None:
        return str(version)
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    console.print(Text("OK", style="ls.ok"), Text(f"  {result.op}", style="ls.op"), sep="")


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="ls.key")
    if key.endswith("_id"):
        v = Text(str(value), style="ls.id")
    elif "version" in key:
        v = Text(str(value), style="ls.version")
    elif isinstance(value, (dict, list)):
        v = Text(json.dumps(value, separators=(",", ":")))
    else:
        v = Text(str(value))
    console.print(k, v, sep="")


def _domain_table(domains: dict[str, int]) -> Table:
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Domain", style="ls.domain")
    table.add_column("Items", justify="right")
    for name, count in domains.items():
        table.add_row(name, str(count))
    return table


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    console.print(
        Text("ERROR", style="ls.error"),
        Text(f"  {result.op}", style="ls.op"),
        Text(": "),
        Text(msg),
        sep="",
    )

    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(Text(f"    {k}: {v}"))


# ── Op renderers ──────────────────────────────────────────────────────


def _render_snapshot(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Snapshot summary: header fields, then a per-domain item table."""
    _status_line(console, result)
    domains = result.data.get("domains") or {}
    for key, value in result.data.items():
        if key != "domains":
            _field(console, key, value)
    if domains:
        console.print(_domain_table(domains))


def _render_status(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    data = result.data
    _field(console, "identity_id", data.get("identity_id"))
    _field(console, "local_present", data.get("local_present"))
    _field(console, "remote_version", data.get("remote_version"))
    if verbose:
        _field(console, "remote_updated_at", data.get("remote_updated_at"))
    if data.get("in_sync"):
        console.print(Text("  in sync", style="ls.match"))
    else:
        differing = data.get("differing_domains") or []
        label = ", ".join(differing) if differing else "no remote document"
        console.print(Text(f"  differs: {label}", style="ls.mismatch"))


def _render_dispatch(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    data = result.data
    _field(console, "identity_id", data.get("identity_id"))
    _field(console, "applied", data.get("applied"))
    if verbose:
        _field(console, "load_outcome", data.get("load_outcome"))
        _field(console, "loaded_version", data.get("loaded_version"))
    _field(console, "version", data.get("version"))
    _field(console, "written", data.get("written"))


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    "local_show": _render_snapshot,
    "local_clear": _render_generic,
    "remote_show": _render_snapshot,
    "status": _render_status,
    "dispatch": _render_dispatch,
}
