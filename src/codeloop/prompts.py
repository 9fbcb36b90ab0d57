# codeloop: Load prompt templates from codeloop.resources via importlib.resources and optionally format them with dynamic values.

from importlib import resources
from typing import Iterable


def get_prompt(name: str, **kwargs) -> str:
    """
    Load a text prompt from the codeloop.resources package.

    If kwargs are provided, apply str.format(**kwargs) to the content so prompts
    can contain placeholders (e.g., {manifest}). Without kwargs the raw text is
    returned and braces are left alone.
    """
    data = resources.files("codeloop.resources").joinpath(name).read_text(encoding="utf-8")
    if kwargs:
        return data.format(**kwargs)
    return data


def build_session_system_prompt(manifest: Iterable[str], context_text: str = "") -> str:
    """System message for an editing session: tool rules, the file manifest and optional project context."""
    listing = "\n".join(f"- {p}" for p in manifest) or "(no files)"
    context_section = ""
    if context_text and context_text.strip():
        context_section = "\n## Project Context\n" + context_text.strip() + "\n"
    return get_prompt("prompt_session_system.txt", manifest=listing, context_section=context_section)
