"""Interactive answers for toolchain selection and key passwords."""

from __future__ import annotations

import typer

__all__ = ["PromptSecret", "PromptSelection"]


class PromptSelection:
    def choose(self, prompt: str) -> str:
        return str(typer.prompt(prompt))


class PromptSecret:
    """Reads the key password without echoing it."""

    def secret(self, prompt: str) -> str:
        return str(typer.prompt(prompt, hide_input=True))
