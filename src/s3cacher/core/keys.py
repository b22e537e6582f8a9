"""Cache key templates.

A key template is literal text with optional ``{{ ... }}`` placeholders::

    deps-{{ hashGlob "**/requirements*.txt" }}
    build-{{ hashFiles "go.mod" "go.sum" }}

``hashGlob`` hashes every regular file matched by one glob pattern, in sorted
order. ``hashFiles`` hashes the listed files in the order given.
"""

import glob
import os
import re
import shlex

from ..ports.hash import HashPort
from .errors import KeyTemplateError

_PLACEHOLDER = re.compile(r"\{\{(.*?)\}\}", re.DOTALL)


def glob_files(pattern: str) -> list[str]:
    """Expand a glob to a sorted list of regular files."""
    return sorted(p for p in glob.glob(pattern, recursive=True) if os.path.isfile(p))


def hash_glob(pattern: str, hasher: HashPort) -> str:
    """Hash the files matched by ``pattern``."""
    return hasher.hash_files(glob_files(pattern))


def render_key(template: str, hasher: HashPort) -> str:
    """Expand every placeholder in ``template`` into a literal key."""
    out: list[str] = []
    pos = 0
    for match in _PLACEHOLDER.finditer(template):
        literal = template[pos : match.start()]
        _check_literal(template, literal)
        out.append(literal)
        out.append(_evaluate(match.group(1), hasher))
        pos = match.end()

    tail = template[pos:]
    _check_literal(template, tail)
    out.append(tail)
    return "".join(out)


def _check_literal(template: str, text: str) -> None:
    if "{{" in text or "}}" in text:
        raise KeyTemplateError(f"failed to parse template {template!r}: unbalanced braces")


def _evaluate(expr: str, hasher: HashPort) -> str:
    try:
        words = shlex.split(expr)
    except ValueError as e:
        raise KeyTemplateError(f"failed to parse template action {expr.strip()!r}: {e}") from e

    if not words:
        raise KeyTemplateError("empty template action")

    func, args = words[0], words[1:]
    if func == "hashGlob":
        if len(args) != 1:
            raise KeyTemplateError(f"hashGlob expects one pattern, got {len(args)}")
        return hash_glob(args[0], hasher)
    if func == "hashFiles":
        if not args:
            raise KeyTemplateError("hashFiles expects at least one file")
        return hasher.hash_files(args)
    raise KeyTemplateError(f"function {func!r} not defined")
