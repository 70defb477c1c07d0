"""``specgate routes`` -- list the path/method pairs a spec declares.

Since the validator matches paths literally, this is the exact set of
request paths it will let through.
"""

from __future__ import annotations

import typer


def routes_command(
    spec: str = typer.Argument(..., help="Spec file path, URL, or '-' for stdin."),
) -> None:
    """List every declared route with its required parameters.

    Example::

        specgate routes openapi.yaml
        specgate --json routes https://example.com/openapi.json
    """
    from specgate.exceptions import SpecgateError
    from specgate.output import error, get_output, info
    from specgate.parser import dereference, iter_operations, load_spec, validate_spec_version

    try:
        raw = load_spec(spec)
        validate_spec_version(raw)
        paths = dereference(raw)["paths"]
    except SpecgateError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    rows: list[list[str]] = []
    for op in iter_operations(paths):
        required = ", ".join(
            f"{p.name} ({p.location.value})" for p in op.required_parameters
        )
        rows.append([op.method.value.upper(), op.path, op.operation_id or "-", required or "-"])

    if not rows:
        info("No operations declared in this spec.")
        return

    title = raw.get("info", {}).get("title", "API")
    get_output().print_table(
        ["Method", "Path", "Operation", "Required"],
        rows,
        title=f"{title} -- Routes ({len(rows)})",
    )
