"""Command parser for shell input."""

import shlex

from cli.models import (
    CommandRequest,
    DownloadCommand,
    OpenCommand,
    QrCommand,
    ShareCommand,
    SweepCommand,
)


class ParseError(Exception):
    """Raised when command parsing fails."""

    pass


def parse_command(input_line: str) -> CommandRequest:
    """Parse user input into a CommandRequest object.

    Args:
        input_line: Raw user input from REPL

    Returns:
        CommandRequest object (one of Share/Open/Download/Sweep/Qr)

    Raises:
        ParseError: If command syntax is invalid
    """
    if not input_line.strip():
        raise ParseError("Empty command")

    try:
        tokens = shlex.split(input_line)
    except ValueError as e:
        raise ParseError(f"Invalid syntax: {e}")

    if not tokens:
        raise ParseError("Empty command")

    command_name = tokens[0]

    if command_name == "share":
        return _parse_share(tokens[1:])
    elif command_name == "open":
        return _parse_open(tokens[1:])
    elif command_name == "download":
        return _parse_download(tokens[1:])
    elif command_name == "sweep":
        return _parse_sweep(tokens[1:])
    elif command_name == "qr":
        return _parse_qr(tokens[1:])
    else:
        raise ParseError(f"Unknown command: {command_name}")


def _parse_share(args: list[str]) -> ShareCommand:
    """Parse 'share <file> [file ...]' command."""
    if not args:
        raise ParseError("share requires at least one file")

    return ShareCommand(file_list=tuple(args))


def _parse_open(args: list[str]) -> OpenCommand:
    """Parse 'open <locator>' command."""
    if len(args) != 1:
        raise ParseError("open requires exactly 1 argument: <locator>")

    return OpenCommand(locator=args[0])


def _parse_download(args: list[str]) -> DownloadCommand:
    """Parse 'download <index|all> [output_dir]' command."""
    if not 1 <= len(args) <= 2:
        raise ParseError("download requires 1 or 2 arguments: <index|all> [output_dir]")

    target_arg = args[0].lower()
    output_dir = args[1] if len(args) > 1 else None

    if target_arg == "all":
        return DownloadCommand(target="all", output_dir=output_dir)

    try:
        index = int(target_arg)
    except ValueError:
        raise ParseError(f"Invalid file index: {args[0]}")
    if index < 1:
        raise ParseError("File index starts at 1")

    return DownloadCommand(target=index, output_dir=output_dir)


def _parse_sweep(args: list[str]) -> SweepCommand:
    """Parse 'sweep' command."""
    if args:
        raise ParseError("sweep takes no arguments")

    return SweepCommand()


def _parse_qr(args: list[str]) -> QrCommand:
    """Parse 'qr <text> [size] [output_path]' command."""
    if not 1 <= len(args) <= 3:
        raise ParseError("qr requires 1 to 3 arguments: <text> [size] [output_path]")

    size = None
    if len(args) > 1:
        try:
            size = int(args[1])
        except ValueError:
            raise ParseError(f"Invalid QR size: {args[1]}")
        if size <= 0:
            raise ParseError("QR size must be positive")

    output_path = args[2] if len(args) > 2 else None
    return QrCommand(text=args[0], size=size, output_path=output_path)
