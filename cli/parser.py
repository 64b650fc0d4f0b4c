"""Command parser for CLI input."""

import shlex

from cli.models import (
    AssembleCommand,
    CommandRequest,
    DownloadCommand,
    SplitCommand,
    UploadCommand,
)


class ParseError(Exception):
    """Raised when command parsing fails."""

    pass


def parse_command(input_line: str) -> CommandRequest:
    """Parse user input into a CommandRequest object.

    Args:
        input_line: Raw user input from REPL

    Returns:
        CommandRequest object (one of Upload/Download/Split/Assemble)

    Raises:
        ParseError: If command syntax is invalid
    """
    try:
        tokens = shlex.split(input_line)
    except ValueError as e:
        raise ParseError(f"Invalid syntax: {e}")

    if not tokens:
        raise ParseError("Empty command")

    command_name, args = tokens[0], tokens[1:]

    if command_name == "upload":
        return _parse_upload(args)
    elif command_name == "download":
        return _parse_download(args)
    elif command_name == "split":
        return _parse_split(args)
    elif command_name == "assemble":
        return _parse_assemble(args)
    else:
        raise ParseError(f"Unknown command: {command_name}")


def _parse_upload(args: list[str]) -> UploadCommand:
    """Parse 'upload file-list' command."""
    if not args:
        raise ParseError("upload requires at least one file")
    return UploadCommand(file_list=tuple(args))


def _parse_download(args: list[str]) -> DownloadCommand:
    """Parse 'download <base_url>' command."""
    if len(args) != 1:
        raise ParseError("download requires exactly 1 argument: <base_url>")
    return DownloadCommand(url=args[0])


def _parse_split(args: list[str]) -> SplitCommand:
    """Parse 'split <file> <store_dir>' command."""
    if len(args) != 2:
        raise ParseError("split requires exactly 2 arguments: <file> <store_dir>")
    file_path, store_dir = args
    return SplitCommand(file_path=file_path, store_dir=store_dir)


def _parse_assemble(args: list[str]) -> AssembleCommand:
    """Parse 'assemble <store_dir> [output_dir]' command."""
    if len(args) not in (1, 2):
        raise ParseError("assemble requires 1 or 2 arguments: <store_dir> [output_dir]")
    if len(args) == 2:
        return AssembleCommand(store_dir=args[0], output_dir=args[1])
    return AssembleCommand(store_dir=args[0])
