"""Linha de comando dos apps de exemplo.

Uso:
    witloop weather --token TOKEN [--debug]
    witloop direct-messages --credentials PATH [--processed-to ID] [--debug]
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import Sequence

from witloop.adapters.interactive import InteractiveInput
from witloop.adapters.twitter import (
    DirectMessageConnector,
    TwitterApiError,
    create_twitter_api_client,
)
from witloop.application.engine import ConversationEngine
from witloop.apps.direct_messages import DirectMessageHandler
from witloop.apps.weather import WeatherHandler
from witloop.config import Settings, get_settings, load_credentials
from witloop.domain.errors import RateLimitError, WitloopError
from witloop.infra.nlu_client import create_wit_client
from witloop.observability.logging import configure_logging

RESUME_FROM_TIP = -1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="witloop", description=__doc__.splitlines()[0])
    subparsers = parser.add_subparsers(dest="command", required=True)

    weather = subparsers.add_parser("weather", help="Interactive weather bot on the terminal")
    weather.add_argument("--token", default=None, help="Server access token for wit.ai")
    weather.add_argument(
        "--debug", action="store_true", help="Print extra debugging information"
    )

    direct = subparsers.add_parser("direct-messages", help="Weather bot over direct messages")
    direct.add_argument("--credentials", default="", help="Path to credentials file")
    direct.add_argument(
        "--processed-to",
        type=int,
        default=RESUME_FROM_TIP,
        help="Override ID to start processing from (-1 = current upstream tip)",
    )
    direct.add_argument(
        "--debug", action="store_true", help="Print extra debugging information"
    )
    return parser


def describe_error(exc: BaseException) -> str:
    """Diagnóstico exibido ao usuário antes de sair com status 1."""
    if isinstance(exc, RateLimitError):
        return f"Rate limited, reset at {exc.reset_at.isoformat()}"
    if isinstance(exc, TwitterApiError) and exc.errors:
        return "\n".join(
            f"Error #{index} - Code: {code} Msg: {message}"
            for index, (code, message) in enumerate(exc.errors, start=1)
        )
    return f"There was an error running the script: {exc}"


def validate_settings(settings: Settings, command: str) -> None:
    """Valida a configuração usada pelo subcomando antes de iniciar.

    Raises:
        ValueError: configuração inválida (mensagens unidas por "; ")
    """
    validation_errors: list[str] = []
    validation_errors.extend(settings.validate_nlu_config())
    validation_errors.extend(settings.validate_engine_config())
    if command == "direct-messages":
        validation_errors.extend(settings.validate_connector_config())

    if validation_errors:
        error_msg = "; ".join(validation_errors)
        raise ValueError(f"Configuração inválida: {error_msg}")


async def run_weather(args: argparse.Namespace, settings: Settings) -> None:
    nlu = create_wit_client(settings, access_token=args.token, debug=args.debug)
    async with nlu:
        engine = ConversationEngine.from_settings(settings, nlu, WeatherHandler())
        await engine.run(InteractiveInput())


async def run_direct_messages(args: argparse.Namespace, settings: Settings) -> None:
    credentials = load_credentials(args.credentials)
    api = create_twitter_api_client(settings, credentials, debug=args.debug)
    nlu = create_wit_client(settings, access_token=credentials.wit_server_token, debug=args.debug)
    try:
        if args.processed_to == RESUME_FROM_TIP:
            connector = DirectMessageConnector.from_settings(settings, api)
            await connector.set_processed_marker_to_current()
        else:
            connector = DirectMessageConnector.from_settings(
                settings, api, processed_to_id=args.processed_to
            )
        print(f"Processed to: {connector.processed_to_id}")

        engine = ConversationEngine.from_settings(settings, nlu, DirectMessageHandler(connector))
        await engine.run(connector)
        if connector.fetch_error is not None:
            raise connector.fetch_error
    finally:
        await nlu.close()
        await api.close()


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(
        "DEBUG" if args.debug else settings.log_level,
        settings.service_name,
        settings.log_format,
    )

    runner = run_weather if args.command == "weather" else run_direct_messages
    try:
        validate_settings(settings, args.command)
        asyncio.run(runner(args, settings))
    except (WitloopError, ValueError) as exc:
        print(describe_error(exc))
        return 1
    except KeyboardInterrupt:
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
