"""SafeCaption CLI -- local validation and account administration."""

import json

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from safecaption import __version__, config

console = Console()


def _store(data_dir: str | None):
    from safecaption.auth.store import JsonDataStore

    return JsonDataStore(data_dir)


def _require_profile(store, email: str):
    profile = store.get_profile_by_email(email)
    if profile is None:
        raise click.ClickException(f"No user with email {email}")
    return profile


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--data-dir",
    envvar="SAFECAPTION_DATA_DIR",
    default=None,
    help="Directory of the JSON data store (default ~/.safecaption)",
)
@click.option("--log-level", default=None, help="Logging level (default from SAFECAPTION_LOG_LEVEL)")
@click.pass_context
def main(ctx: click.Context, data_dir: str | None, log_level: str | None):
    """SafeCaption -- heuristic moderation for Instagram captions.

    Validate captions locally and manage users and API keys of the
    hosted API.
    """
    config.configure_logging(log_level)
    ctx.ensure_object(dict)
    ctx.obj["data_dir"] = data_dir


# ── Validate ─────────────────────────────────────────────────────────


@main.command()
@click.argument("caption")
@click.option("--hashtag", "-t", "hashtags", multiple=True, help="Hashtag to score (repeatable)")
@click.option("--hate-speech/--no-hate-speech", default=True)
@click.option("--spam/--no-spam", default=True)
@click.option("--compliance/--no-compliance", default=True)
@click.option("--optimize-hashtags/--no-optimize-hashtags", default=True)
@click.option("--json", "as_json", is_flag=True, help="Print the raw JSON response")
def validate(
    caption: str,
    hashtags: tuple[str, ...],
    hate_speech: bool,
    spam: bool,
    compliance: bool,
    optimize_hashtags: bool,
    as_json: bool,
):
    """Validate CAPTION without going through the API."""
    from safecaption.validation import ContentValidator, ValidationOptions, ValidationRequest
    from safecaption.validation.rules import MAX_CAPTION_LENGTH, text_length

    if not caption:
        raise click.ClickException("Caption is required")
    if text_length(caption) > MAX_CAPTION_LENGTH:
        raise click.ClickException(
            f"Caption exceeds Instagram limit of {MAX_CAPTION_LENGTH} characters"
        )

    request = ValidationRequest(
        caption=caption,
        hashtags=hashtags,
        options=ValidationOptions(
            check_hate_speech=hate_speech,
            check_spam=spam,
            check_compliance=compliance,
            optimize_hashtags=optimize_hashtags,
        ),
    )
    result = ContentValidator().run(request)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        return

    verdict = "[green]SAFE[/]" if result.safe else "[red]UNSAFE[/]"
    console.print(Panel(f"{verdict}  score [bold]{result.score}[/]/100", title="SafeCaption"))

    for issue in result.issues:
        console.print(f"  [red]x[/] {issue}")

    table = Table(title="Metrics")
    table.add_column("Metric", style="cyan")
    table.add_column("Score", justify="right", style="green")
    table.add_row("Engagement", str(result.metrics.engagement_score))
    table.add_row("Readability", str(result.metrics.readability_score))
    table.add_row("Hashtag relevance", str(result.metrics.hashtag_relevance))
    console.print(table)

    if result.suggestions.caption is not None:
        console.print(f"\n[bold]Suggested caption:[/] {result.suggestions.caption}")
    if result.suggestions.hashtags:
        console.print(f"[bold]Suggested hashtags:[/] {' '.join(result.suggestions.hashtags)}")


# ── Users ────────────────────────────────────────────────────────────


@main.group()
def users():
    """Manage user profiles."""


@users.command("create")
@click.argument("email")
@click.pass_context
def users_create(ctx: click.Context, email: str):
    """Create a free-tier user and print a dashboard session token."""
    from safecaption.errors import InputError

    store = _store(ctx.obj["data_dir"])
    try:
        profile = store.create_profile(email)
    except InputError as e:
        raise click.ClickException(e.message)
    session = store.create_session(profile.id)

    console.print(f"[green]Created user[/] {profile.email} ({profile.id})")
    console.print(f"Session token (expires {session.expires_at}):")
    click.echo(session.token)


@users.command("show")
@click.argument("email")
@click.pass_context
def users_show(ctx: click.Context, email: str):
    """Show a user's plan and usage counters."""
    from safecaption.auth.gate import rate_limit_for_tier

    profile = _require_profile(_store(ctx.obj["data_dir"]), email)

    table = Table(title=profile.email)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("ID", profile.id)
    table.add_row("Tier", profile.subscription_tier)
    table.add_row("Status", profile.subscription_status)
    table.add_row("Calls this month", f"{profile.api_calls_count}/{profile.api_calls_limit}")
    table.add_row("Requests/minute", str(rate_limit_for_tier(profile.subscription_tier)))
    console.print(table)


# ── Keys ─────────────────────────────────────────────────────────────


@main.group()
def keys():
    """Manage API keys."""


@keys.command("create")
@click.argument("email")
@click.argument("name")
@click.pass_context
def keys_create(ctx: click.Context, email: str, name: str):
    """Issue a new API key NAME for the user EMAIL."""
    store = _store(ctx.obj["data_dir"])
    profile = _require_profile(store, email)
    record = store.create_api_key(profile.id, name)

    console.print(f"[green]Created key[/] {record.name} ({record.id}). Store it now; it is not shown again:")
    click.echo(record.key)


@keys.command("list")
@click.argument("email")
@click.pass_context
def keys_list(ctx: click.Context, email: str):
    """List a user's API keys."""
    store = _store(ctx.obj["data_dir"])
    profile = _require_profile(store, email)
    records = store.list_api_keys(profile.id)

    if not records:
        console.print("[yellow]No API keys.[/]")
        return

    table = Table(title=f"API keys for {profile.email}")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Prefix")
    table.add_column("Uses", justify="right")
    table.add_column("Last used")
    table.add_column("Active")
    for r in records:
        table.add_row(
            r.id,
            r.name,
            r.prefix,
            str(r.usage_count),
            r.last_used or "-",
            "yes" if r.is_active else "[red]no[/]",
        )
    console.print(table)


@keys.command("revoke")
@click.argument("email")
@click.argument("key_id")
@click.pass_context
def keys_revoke(ctx: click.Context, email: str, key_id: str):
    """Deactivate one of a user's API keys."""
    store = _store(ctx.obj["data_dir"])
    profile = _require_profile(store, email)
    if not store.deactivate_api_key(profile.id, key_id):
        raise click.ClickException(f"No key {key_id} for {email}")
    console.print(f"[green]Revoked[/] {key_id}")


# ── Plans ────────────────────────────────────────────────────────────


@main.command()
def plans():
    """Show the pricing table."""
    from safecaption.auth.gate import rate_limit_for_tier
    from safecaption.billing.plans import PRICING_PLANS, format_price

    table = Table(title="SafeCaption plans")
    table.add_column("Plan", style="cyan")
    table.add_column("Monthly", justify="right")
    table.add_column("Yearly", justify="right")
    table.add_column("Calls/month", justify="right")
    table.add_column("Requests/minute", justify="right")
    for plan in PRICING_PLANS.values():
        table.add_row(
            plan.name,
            format_price(plan.price_monthly),
            format_price(plan.price_yearly),
            f"{plan.monthly_call_limit:,}",
            f"{rate_limit_for_tier(plan.id):,}",
        )
    console.print(table)


if __name__ == "__main__":
    main()
