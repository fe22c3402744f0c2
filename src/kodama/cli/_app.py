"""CliApp — Typer アプリケーション定義。

サブコマンド:
    serve: 行エコーサーバーを SIGINT/SIGTERM まで稼働させる。
    init: .kodama/config.toml を生成する。
    config: 解決済みの設定を JSON で表示する。

stdout には config の出力のみ、進捗・エラーは stderr に出力する。
エラーメッセージには解決方法を含める。
"""

from __future__ import annotations

import asyncio
import importlib.metadata
import logging
import sys
import tomllib
from pathlib import Path
from typing import Annotated

import typer
from pydantic import ValidationError

from kodama.cli._init_handler import InitError, run_init
from kodama.config import resolve_config
from kodama.echo import create_session_reporter, run_server
from kodama.models.config import EchoMode, KodamaConfig, LogLevel
from kodama.models.exit_code import ExitCode

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


app = typer.Typer(
    name="kodama",
    help="Line echo server with signal-driven graceful shutdown.",
    add_completion=False,
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    """--version 指定時にバージョン番号を出力して終了する。"""
    if value:
        print(importlib.metadata.version("kodama"))
        raise typer.Exit()


def main() -> None:
    """CLI エントリポイント。pyproject.toml の [project.scripts] から呼び出される。"""
    app()


@app.callback()
def root_callback(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            help="Show version and exit.",
            callback=_version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Line echo server with signal-driven graceful shutdown."""


@app.command()
def serve(
    host: Annotated[str | None, typer.Option(help="Address to bind.")] = None,
    port: Annotated[
        int | None,
        typer.Option(help="TCP port (0 picks a free port).", min=0, max=65535),
    ] = None,
    mode: Annotated[
        EchoMode | None,
        typer.Option(help="Echo mode: plain or accumulate."),
    ] = None,
    max_line_bytes: Annotated[
        int | None,
        typer.Option("--max-line-bytes", help="Max bytes per line.", min=1),
    ] = None,
    shutdown_timeout: Annotated[
        float | None,
        typer.Option(
            "--shutdown-timeout",
            help="Seconds to wait for active sessions on shutdown.",
            min=0.001,
        ),
    ] = None,
    log_level: Annotated[
        LogLevel | None,
        typer.Option("--log-level", help="Log level for stderr logging."),
    ] = None,
    report_sessions: Annotated[
        bool | None,
        typer.Option(
            "--report-sessions/--no-report-sessions",
            help="Show session progress on stderr.",
        ),
    ] = None,
) -> None:
    """Serve line echo until SIGINT/SIGTERM."""
    config_overrides = _build_config_overrides(
        host=host,
        port=port,
        mode=mode,
        max_line_bytes=max_line_bytes,
        shutdown_timeout=shutdown_timeout,
        log_level=log_level,
        report_sessions=report_sessions,
    )
    config = _resolve_config_or_exit(config_overrides)
    _configure_logging(config.log_level)

    reporter = create_session_reporter(enabled=config.report_sessions)
    try:
        asyncio.run(run_server(config, reporter=reporter))
    except OSError as e:
        print(
            f"Error: Cannot listen on {config.host}:{config.port}: {e}\n"
            "Use --port to choose another port, or stop the process using it.",
            file=sys.stderr,
        )
        raise typer.Exit(code=ExitCode.EXECUTION_ERROR) from None

    raise typer.Exit(code=ExitCode.SUCCESS)


@app.command()
def init(
    force: Annotated[
        bool, typer.Option("--force", help="Overwrite existing files with defaults.")
    ] = False,
) -> None:
    """Initialize .kodama/ directory with a default configuration file."""
    try:
        result = run_init(Path.cwd(), force=force)
    except InitError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise typer.Exit(code=ExitCode.INPUT_ERROR) from None

    for path in result.created:
        print(f"  Created: {path}", file=sys.stderr)
    for path in result.skipped:
        print(f"  Skipped (already exists): {path}", file=sys.stderr)

    if not result.created:
        print(
            "\nAll files already exist. Use --force to overwrite.",
            file=sys.stderr,
        )


@app.command("config")
def show_config() -> None:
    """Print the resolved configuration as JSON."""
    config = _resolve_config_or_exit(None)
    print(config.model_dump_json(indent=2))


# --- ヘルパー ---


def _build_config_overrides(
    *,
    host: str | None,
    port: int | None,
    mode: EchoMode | None,
    max_line_bytes: int | None,
    shutdown_timeout: float | None,
    log_level: LogLevel | None,
    report_sessions: bool | None,
) -> dict[str, object]:
    """CLI オプションから config_overrides 辞書を構築する。

    None 値は resolve_config 側で「未指定」として除外される。
    """
    return {
        "host": host,
        "port": port,
        "mode": mode.value if mode is not None else None,
        "max_line_bytes": max_line_bytes,
        "shutdown_timeout": shutdown_timeout,
        "log_level": log_level.value if log_level is not None else None,
        "report_sessions": report_sessions,
    }


def _resolve_config_or_exit(
    config_overrides: dict[str, object] | None,
) -> KodamaConfig:
    """設定を解決する。失敗時はエラーを stderr に表示して終了コード 4 で終了する。"""
    try:
        return resolve_config(cli_overrides=config_overrides)
    except (ValidationError, tomllib.TOMLDecodeError, TypeError) as e:
        print(
            f"Error: Invalid configuration: {e}\n"
            "Check .kodama/config.toml for syntax errors or invalid values.",
            file=sys.stderr,
        )
        raise typer.Exit(code=ExitCode.INPUT_ERROR) from None
    except PermissionError as e:
        print(
            f"Error: Cannot read configuration file: {e}\n"
            "Check file permissions for .kodama/config.toml.",
            file=sys.stderr,
        )
        raise typer.Exit(code=ExitCode.INPUT_ERROR) from None


def _configure_logging(level: LogLevel) -> None:
    """ルートロガーを stderr 出力で設定する。"""
    logging.basicConfig(
        level=level.value.upper(),
        stream=sys.stderr,
        format=_LOG_FORMAT,
    )
