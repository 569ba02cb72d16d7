"""Helpers for lightweight command parsing and normalization."""

from __future__ import annotations

import difflib
import shlex
import string
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

# Characters to trim from bare command tokens (common punctuation + whitespace)
_COMMAND_PUNCT = string.punctuation + "–—"  # include dash variants

TRUE_WORDS = {"1", "y", "yes", "true", "on", "public"}


def _sanitize_token(token: str) -> str:
    """Strip punctuation around a token and lowercase it."""
    return token.strip(_COMMAND_PUNCT + " ").lower()


def _pick_best_match(candidate: str, options: Sequence[str]) -> Tuple[Optional[str], float]:
    """Return the best matching option and the similarity score."""
    if not options:
        return None, 0.0
    best_name = None
    best_ratio = 0.0
    for opt in options:
        ratio = difflib.SequenceMatcher(None, candidate, opt).ratio()
        if ratio > best_ratio:
            best_ratio = ratio
            best_name = opt
    return best_name, best_ratio


def _min_ratio(length: int) -> float:
    if length <= 3:
        return 1.0
    if length == 4:
        return 0.92
    return 0.82


def split_command(text: str) -> Tuple[str, str]:
    """Split ``/cmd rest of line`` into the lowercased command and its arguments."""
    stripped = (text or "").strip()
    if not stripped:
        return "", ""
    parts = stripped.split(None, 1)
    cmd = parts[0].lower()
    return cmd, parts[1].strip() if len(parts) > 1 else ""


def resolve_subcommand(token: str, options: Iterable[str], *, fuzzy: bool = True) -> Optional[str]:
    """Map a user token onto one of ``options``, tolerating small typos."""
    clean = _sanitize_token(token or "")
    if not clean:
        return None
    option_list = [opt.lower() for opt in options]
    if clean in option_list:
        return clean
    if not fuzzy:
        return None
    best_name, score = _pick_best_match(clean, option_list)
    if best_name and score >= _min_ratio(len(clean)):
        return best_name
    return None


def promote_bare_command(text: str, known_commands: Iterable[str], *, fuzzy: bool = True) -> Optional[str]:
    """Convert bare input like "task list" into a slash command string.

    Returns None for text that already starts with a slash or does not look
    like a known command.
    """
    if not text:
        return None
    stripped = text.lstrip()
    if not stripped or stripped.startswith('/'):
        return None

    parts = stripped.split(None, 1)
    remainder = parts[1].strip() if len(parts) > 1 else ''
    bare_names = [cmd.lstrip('/').lower() for cmd in known_commands if isinstance(cmd, str) and cmd.lstrip('/')]
    match = resolve_subcommand(parts[0], bare_names, fuzzy=fuzzy)
    if not match:
        return None
    return f"/{match} {remainder}".rstrip()


def parse_options(args: str) -> Tuple[List[str], Dict[str, str]]:
    """Split arguments into positional words and ``key=value`` options.

    Quoting follows shell rules so ``title="Fix login page"`` stays one value.
    Unbalanced quotes fall back to plain whitespace splitting.
    """
    try:
        tokens = shlex.split(args or "")
    except ValueError:
        tokens = (args or "").split()
    positional: List[str] = []
    options: Dict[str, str] = {}
    for token in tokens:
        key, sep, value = token.partition("=")
        if sep and key and key.replace("_", "").isalnum():
            options[key.lower()] = value
        else:
            positional.append(token)
    return positional, options


def parse_flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in TRUE_WORDS


__all__ = [
    "split_command",
    "resolve_subcommand",
    "promote_bare_command",
    "parse_options",
    "parse_flag",
]
