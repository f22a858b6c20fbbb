"""Command line interface for inspecting and maintaining the audit trail."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import List, NoReturn, Optional

import typer

from audittrail import AuditStore, create_audit_store, load_config
from audittrail.errors import ExportUnsupported, ValidationFailure
from audittrail.models import LogFilters
from audittrail.security import (
    SignatureBinder,
    StaticIdentityVerifier,
    clear_with_signature,
    hash_password,
)

app = typer.Typer(help="CLI for the audit trail")


@app.callback()
def main() -> None:
    """audittrail CLI entry point."""
    pass


def _get_store() -> AuditStore:
    return create_audit_store(load_config())


def _fail(message: str) -> NoReturn:
    typer.secho(message, fg=typer.colors.RED)
    raise typer.Exit(code=1)


def _parse_details(pairs: List[str]) -> dict:
    details = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            _fail(f"Invalid detail '{pair}', expected key=value")
        details[key.strip()] = value
    return details


@app.command("log")
def log_command(
    user_id: str,
    action: str,
    entity: str,
    detail: List[str] = typer.Option([], "--detail", "-d", help="Detail as key=value"),
    reason: Optional[str] = typer.Option(None, help="Reason, required for DELETE"),
    correlation_id: Optional[str] = typer.Option(None, "--correlation-id"),
) -> None:
    """
    Record an action in the audit trail.

    Example:
        audittrail log u-admin UPDATE settings -d theme=dark
        audittrail log u-admin DELETE report --reason "duplicate upload"
    """
    store = _get_store()
    try:
        entry = store.log_action(
            user_id,
            action,
            entity,
            _parse_details(detail),
            reason=reason,
            correlation_id=correlation_id,
        )
    except ValidationFailure as exc:
        _fail(str(exc))
    typer.echo(f"{entry.id}\t{entry.correlation_id}")


@app.command("list")
def list_command(
    page: int = typer.Option(1, min=1),
    page_size: Optional[int] = typer.Option(None, "--page-size", min=1),
    user: List[str] = typer.Option([], "--user", help="Filter by user id"),
    action: List[str] = typer.Option([], "--action", help="Filter by action type"),
    entity: List[str] = typer.Option([], "--entity", help="Filter by entity"),
    from_: Optional[datetime] = typer.Option(None, "--from", help="Inclusive lower bound"),
    to: Optional[datetime] = typer.Option(None, "--to", help="Inclusive upper bound"),
    correlation_id: Optional[str] = typer.Option(None, "--correlation-id"),
    text: Optional[str] = typer.Option(None, help="Case-insensitive text search"),
) -> None:
    """
    List audit entries, newest last.

    Example:
        audittrail list --action DELETE --page-size 50
        # Output: 2026-01-01T10:00:00Z  u-admin  DELETE  audit  cleanup
        #         Page 1/1 (1 entries)
    """
    store = _get_store()
    filters = LogFilters(
        user_id=user or None,
        action_type=action or None,
        entity=entity or None,
        from_=from_,
        to=to,
        correlation_id=correlation_id,
        text=text,
    )
    result = store.get_logs(page=page, page_size=page_size, filters=filters)
    if not result.items:
        typer.echo("No audit entries found")
    for entry in result.items:
        typer.echo(
            "\t".join(
                [
                    entry.timestamp.isoformat(),
                    entry.user_id,
                    entry.action_type.value,
                    entry.entity,
                    entry.reason or "",
                ]
            )
        )
    typer.echo(f"Page {result.page}/{result.total_pages} ({result.total} entries)")


@app.command("export")
def export_command(
    format: str = typer.Option("json", "--format", "-f", help="json or csv"),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Target file, '-' for stdout"
    ),
) -> None:
    """Export the full audit trail to a file."""
    store = _get_store()
    try:
        bundle = store.export_logs(format)
    except ExportUnsupported as exc:
        _fail(str(exc))

    if output is not None and str(output) == "-":
        typer.echo(bundle.content)
        return
    target = output or Path(bundle.filename)
    target.write_text(bundle.content, encoding="utf-8")
    typer.echo(f"Exported to {target}")


@app.command("clear")
def clear_command(
    username: str = typer.Option(..., prompt=True),
    password: str = typer.Option(..., prompt=True, hide_input=True),
    reason: str = typer.Option(..., prompt=True, help="Justification for the clear"),
    comment: Optional[str] = typer.Option(None),
) -> None:
    """
    Clear the audit trail under an electronic signature.

    The signer is verified against the configured users. The clear itself is
    recorded as a DELETE entry carrying the signature.
    """
    config = load_config()
    store = create_audit_store(config)
    binder = SignatureBinder(StaticIdentityVerifier.from_config(config))
    try:
        outcome = clear_with_signature(store, binder, username, password, reason, comment)
    except ValidationFailure as exc:
        _fail(str(exc))
    if not outcome.ok:
        _fail(f"Verification failed: {outcome.error}")
    typer.echo(f"Cleared {outcome.result.cleared} entries")
    typer.echo(f"Signature: {outcome.signature.signature_hash}")


@app.command("hash-password")
def hash_password_command(
    password: str = typer.Option(..., prompt=True, hide_input=True, confirmation_prompt=True),
) -> None:
    """Print a password hash for a ``users`` entry in the config file."""
    typer.echo(hash_password(password))


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    app()
