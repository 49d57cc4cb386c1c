"""Main module entrypoint for local runtime execution.

This module validates startup configuration and launches the FastAPI service
or runs a one-off ledger replay.
"""

import argparse
import asyncio
import json

import uvicorn

from token_portfolio.bootstrap import bootstrap_create_application, bootstrap_create_components
from token_portfolio.config import AppSettings, config_load_settings
from token_portfolio.domain import cutoff_now, cutoff_parse_date, domain_normalize_token
from token_portfolio.logging_setup import logging_configure


def main() -> None:
    """Run selected runtime command with validated startup configuration.

    Returns:
        None: This function does not return a runtime value.

    Raises:
        SettingsLoadError: Raised when configuration validation fails.
    """

    argument_parser = argparse.ArgumentParser(description="Token portfolio ledger runtime entrypoint")
    argument_parser.add_argument(
        "command",
        nargs="?",
        default="api",
        choices=("api", "replay"),
        help="Runtime command: `api` starts server, `replay` prints ledger balances at a cutoff as JSON",
        type=str,
    )
    argument_parser.add_argument(
        "--date",
        dest="date_value",
        type=str,
        help="Optional ISO-8601 cutoff date for `replay`; defaults to now",
    )
    argument_parser.add_argument(
        "--token",
        dest="token",
        type=str,
        help="Optional token filter for `replay`",
    )
    parsed_arguments = argument_parser.parse_args()

    settings = config_load_settings()
    logging_configure(settings.log_level)

    if parsed_arguments.command == "replay":
        try:
            cutoff = cutoff_parse_date(parsed_arguments.date_value) if parsed_arguments.date_value else cutoff_now()
        except ValueError as error:
            argument_parser.error(str(error))
        token = parsed_arguments.token
        if token is not None:
            try:
                token = domain_normalize_token(token)
            except ValueError as error:
                argument_parser.error(f"Invalid token: {error}")
        print(json.dumps(main_replay_balances(settings, cutoff, token), indent=2))
        return

    application = bootstrap_create_application(settings)
    uvicorn.run(
        application,
        host=settings.application_host,
        port=settings.application_port,
        log_level=settings.log_level.lower(),
    )


def main_replay_balances(settings: AppSettings, cutoff: int, token: str | None = None) -> dict[str, object]:
    """Replay the configured ledger and render balances as a JSON-ready payload.

    Args:
        settings: Validated runtime settings.
        cutoff: Inclusive epoch-seconds cutoff.
        token: Optional token filter, case-insensitive.

    Returns:
        dict[str, object]: Cutoff, record counts and balances rendered as strings.

    Raises:
        ValueError: Raised when token is blank.
        LedgerReadError: Raised when the ledger cannot be read.
    """

    normalized_token = domain_normalize_token(token) if token is not None else None
    components = bootstrap_create_components(settings)
    snapshot = asyncio.run(components.replayer.ledger_replay(cutoff))
    balances = snapshot.balances
    if normalized_token is not None:
        balances = {normalized_token: snapshot.snapshot_balance(normalized_token)}
    return {
        "cutoff": snapshot.cutoff,
        "included_records": snapshot.included_record_count,
        "skipped_records": snapshot.skipped_record_count,
        "balances": {balance_token: str(balance) for balance_token, balance in balances.items()},
    }


if __name__ == "__main__":
    main()
