"""REPL with prompt_toolkit for user interaction."""

import os
import sys
from typing import Optional
from prompt_toolkit import PromptSession
from prompt_toolkit.history import InMemoryHistory

from cli.commands import (
    get_session,
    handle_download,
    handle_open,
    handle_qr,
    handle_share,
    handle_sweep,
)
from cli.completer import AirdropCompleter
from cli.constants import (
    HELP_TEXT,
    LOGO,
    PROMPT_TEXT,
    STYLE,
    WELCOME_HELP,
    WELCOME_TITLE,
)
from cli.models import (
    DownloadCommand,
    OpenCommand,
    QrCommand,
    ShareCommand,
    SweepCommand,
)
from cli.parser import ParseError, parse_command
from cli.session import AirdropSession


def clear_screen() -> None:
    """Clear the terminal screen (cross-platform)."""
    if sys.platform == "win32":
        os.system("cls")
    else:
        os.system("clear")


def show_logo() -> None:
    """Display AirDrop logo with ANSI colors."""
    print(LOGO)


async def dispatch_command(cmd_obj, session: AirdropSession) -> str:
    """Dispatch parsed command to appropriate handler."""
    if isinstance(cmd_obj, ShareCommand):
        return await handle_share(cmd_obj, session)
    elif isinstance(cmd_obj, OpenCommand):
        return await handle_open(cmd_obj, session)
    elif isinstance(cmd_obj, DownloadCommand):
        return await handle_download(cmd_obj, session)
    elif isinstance(cmd_obj, SweepCommand):
        return await handle_sweep(cmd_obj, session)
    elif isinstance(cmd_obj, QrCommand):
        return await handle_qr(cmd_obj, session)
    else:
        return f"Unknown command type: {type(cmd_obj)}"


async def repl_loop(initial_locator: Optional[str] = None) -> None:
    """Start interactive REPL with prompt_toolkit."""
    history = InMemoryHistory()
    prompt: PromptSession = PromptSession(
        completer=AirdropCompleter(), history=history, style=STYLE
    )

    session = get_session()
    await session.start()

    clear_screen()
    show_logo()
    print(WELCOME_TITLE)
    print(WELCOME_HELP)

    if initial_locator:
        print(await session.open(initial_locator))

    try:
        while True:
            try:
                user_input = await prompt.prompt_async([("class:prompt", PROMPT_TEXT)])

                if not user_input.strip():
                    continue

                if user_input.strip() == "exit":
                    print("Goodbye!")
                    break

                if user_input.strip() == "help":
                    print(HELP_TEXT)
                    continue

                if user_input.strip() == "clear":
                    clear_screen()
                    show_logo()
                    print(WELCOME_TITLE)
                    print(WELCOME_HELP)
                    continue

                cmd_obj = parse_command(user_input)
                result = await dispatch_command(cmd_obj, session)
                print(result)

            except ParseError as e:
                print(f"Error: {e}")
            except KeyboardInterrupt:
                continue
            except EOFError:
                print("\nGoodbye!")
                break
    finally:
        await session.close()
