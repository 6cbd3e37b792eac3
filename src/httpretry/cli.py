"""CLI interface for httpretry"""

import json
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import click
import requests

from httpretry.domain.config import RetryConfig
from httpretry.domain.errors import ConfigurationError, HttpRetryError
from httpretry.infrastructure.backoff import BackoffFactory
from httpretry.infrastructure.config.config_manager import ConfigManager
from httpretry.infrastructure.debug import DebugExecutor
from httpretry.infrastructure.executor import RequestsExecutor
from httpretry.infrastructure.request_builder import RequestBuilder, new_request
from httpretry.infrastructure.retry import RetryOptions, retry, retry_options_from_config

logger = logging.getLogger(__name__)

BACKOFF_CHOICES = ["exponential", "truncated_exponential", "constant"]


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration"""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
    logging.getLogger().setLevel(level)


def _die(message: str, verbose: bool = False, exc: Optional[Exception] = None) -> None:
    """Exit with a user-friendly error message"""
    if exc is not None:
        logger.error(message, exc_info=verbose)
    else:
        logger.error(message)
    raise click.ClickException(message)


def parse_headers(values: Tuple[str, ...]) -> Dict[str, str]:
    """Parse repeated 'Name: value' options"""
    headers: Dict[str, str] = {}
    for item in values:
        name, sep, value = item.partition(":")
        if not sep or not name.strip():
            raise click.BadParameter(f"expected 'Name: value', got {item!r}", param_hint="--header")
        headers[name.strip()] = value.strip()
    return headers


def parse_queries(values: Tuple[str, ...]) -> List[Tuple[str, str]]:
    """Parse repeated 'key=value' options"""
    queries: List[Tuple[str, str]] = []
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected 'key=value', got {item!r}", param_hint="--query")
        queries.append((key, value))
    return queries


def _build_options(
    retry_config: RetryConfig,
    max_attempts: Optional[int],
    backoff: Optional[str],
    max_exponent: Optional[int],
    delay: Optional[float],
) -> RetryOptions:
    """Merge CLI overrides into the configured retry options"""
    backoff_config = retry_config.backoff.model_dump()
    if backoff:
        backoff_config["strategy"] = backoff
    if max_exponent is not None:
        backoff_config["max_exponent"] = max_exponent
    if delay is not None:
        backoff_config["duration"] = delay

    return retry_options_from_config(
        {
            "max_attempts": max_attempts if max_attempts is not None else retry_config.max_attempts,
            "backoff": backoff_config,
        }
    )


def _output_response(response: requests.Response, include: bool) -> None:
    """Print response to console"""
    if include:
        click.echo(f"HTTP {response.status_code} {response.reason or ''}".rstrip())
        for name, value in response.headers.items():
            click.echo(f"{name}: {value}")
        click.echo("")
    click.echo(response.text)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to .httpretry.yml config file",
)
@click.pass_context
def cli(ctx, verbose: bool, config: Path):
    """httpretry - HTTP requests with automatic retry and backoff"""
    ctx.ensure_object(dict)
    setup_logging(verbose)
    ctx.obj["config_path"] = config
    ctx.obj["verbose"] = verbose


@cli.command()
@click.argument("method", type=str)
@click.argument("url", type=str)
@click.option("--header", "-H", "headers", multiple=True, help="Request header 'Name: value' (repeatable)")
@click.option("--query", "-q", "queries", multiple=True, help="Query parameter 'key=value' (repeatable)")
@click.option("--data", "-d", type=str, help="Raw request body")
@click.option("--json", "json_body", type=str, help="JSON request body")
@click.option("--max-attempts", type=click.IntRange(min=1), help="Maximum attempts. Overrides config.")
@click.option(
    "--backoff",
    type=click.Choice(BACKOFF_CHOICES, case_sensitive=False),
    help="Backoff strategy. Overrides config.",
)
@click.option("--max-exponent", type=click.IntRange(min=0), help="Exponent cap for truncated_exponential")
@click.option("--delay", type=click.FloatRange(min=0), help="Wait in seconds for constant backoff")
@click.option("--timeout", type=click.FloatRange(min=0, min_open=True), help="Per-attempt timeout in seconds")
@click.option("--debug", is_flag=True, help="Dump every request and response")
@click.option("--include", "-i", is_flag=True, help="Print status line and headers")
@click.pass_context
def request(
    ctx,
    method: str,
    url: str,
    headers: Tuple[str, ...],
    queries: Tuple[str, ...],
    data: Optional[str],
    json_body: Optional[str],
    max_attempts: Optional[int],
    backoff: Optional[str],
    max_exponent: Optional[int],
    delay: Optional[float],
    timeout: Optional[float],
    debug: bool,
    include: bool,
):
    """Send one HTTP request, retrying transient failures.

    METHOD: HTTP method (GET, POST, ...)
    URL: Absolute URL, or a path relative to http.base_url from config
    """
    verbose = ctx.obj.get("verbose", False)
    if data is not None and json_body is not None:
        raise click.UsageError("--data and --json are mutually exclusive")

    try:
        payload = json.loads(json_body) if json_body is not None else None
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"invalid JSON: {e}", param_hint="--json")

    request_headers = parse_headers(headers)
    params = parse_queries(queries)
    status = 0

    try:
        config_manager = ConfigManager(config_path=ctx.obj.get("config_path"))
        http_config = config_manager.get_http_config()
        options = _build_options(config_manager.get_retry_config(), max_attempts, backoff, max_exponent, delay)

        body_options = {"headers": request_headers, "params": params, "body": data, "json": payload}
        if url.startswith(("http://", "https://")):
            merged = dict(http_config.headers)
            merged.update(request_headers)
            body_options["headers"] = merged
            prepared = new_request(method, url, **body_options)
        elif http_config.base_url:
            builder = RequestBuilder(http_config.base_url, http_config.headers)
            prepared = builder.new_request(method, url, **body_options)
        else:
            raise click.UsageError(f"URL {url!r} is not absolute and no http.base_url is configured")

        executor = RequestsExecutor(
            timeout=timeout if timeout is not None else http_config.timeout,
            verify=http_config.verify,
        )
        with executor:
            sender = DebugExecutor(executor, click.get_text_stream("stderr")) if debug or http_config.debug else executor
            logger.info(f"{prepared.method} {prepared.url} (max_attempts={options.max_attempts})")
            response = retry(sender, prepared, options)
            _output_response(response, include)
            status = response.status_code
            response.close()

    except click.ClickException:
        raise
    except ConfigurationError as e:
        _die(str(e), verbose=verbose, exc=e)
    except HttpRetryError as e:
        _die(f"Request failed: {e}", verbose=verbose, exc=e)
    except Exception as e:
        _die(f"Fatal error: {e}", verbose=verbose, exc=e)

    if status >= 400:
        sys.exit(1)


@cli.command(name="backoff")
@click.option(
    "--strategy",
    type=click.Choice(BACKOFF_CHOICES, case_sensitive=False),
    default="truncated_exponential",
    show_default=True,
)
@click.option("--max-exponent", type=click.IntRange(min=0), default=6, show_default=True)
@click.option("--delay", type=click.FloatRange(min=0), default=1.0, show_default=True)
@click.option("--attempts", type=click.IntRange(min=1), default=10, show_default=True)
def backoff_command(strategy: str, max_exponent: int, delay: float, attempts: int):
    """Print one sampled wait per attempt number for a backoff strategy."""
    strategy_impl = BackoffFactory.create(strategy, {"max_exponent": max_exponent, "duration": delay})
    click.echo(f"Strategy: {strategy_impl!r}")
    for attempt in range(1, attempts + 1):
        click.echo(f"attempt {attempt}: {strategy_impl.backoff(attempt):.3f}s")


def main():
    """Main entry point"""
    cli(obj={})


if __name__ == "__main__":
    main()
