"""
Interactive prompts.

Everything that asks the user a question goes through a ``Prompter`` so
the clone recovery flow can be driven by a script in tests.
"""

from __future__ import annotations

from typing import Protocol

import click


class Prompter(Protocol):
    def ask(self, prompt: str, default: str = "") -> str:
        """Ask ``prompt``; an empty answer returns ``default``.

        Raises:
            EOFError: If no answer can be read (closed stdin, Ctrl-D).
        """
        ...


class TerminalPrompter:
    """Reads answers from the terminal via ``click.prompt``."""

    def ask(self, prompt: str, default: str = "") -> str:
        try:
            answer = click.prompt(
                prompt,
                default=default,
                show_default=False,
                prompt_suffix=" ",
            )
        except click.Abort as e:
            # click folds EOF and Ctrl-C on the prompt into Abort.
            raise EOFError(f"No answer to: {prompt}") from e
        return str(answer)
