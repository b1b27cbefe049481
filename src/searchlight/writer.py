"""Saving an answer from ``searchlight ask --output``.

The file is Markdown: the question as a heading, the model's answer, then one
footnote per context chunk naming the page it came from. Relative output
paths stay inside the working directory. An existing file is replaced only
after confirmation, through an atomic rename.
"""

from __future__ import annotations

import contextlib
import os
import tempfile
from pathlib import Path

import typer

from searchlight.models import Chunk, RunResult


# ------------------------------------------------------------------
# Rendering
# ------------------------------------------------------------------


def render_markdown(result: RunResult) -> str:
    """Return the run's answer as a Markdown document."""
    body = f"# {result.question.strip()}\n\n{result.answer.text.strip()}\n"
    return add_attribution(body, result.answer.chunks)


def add_attribution(content: str, chunks: list[Chunk]) -> str:
    """Append a footnote attribution block for *chunks* to *content*.

    Format:
      [^1]: https://example.com/page, chunk 0
    """
    if not chunks:
        return content

    footnotes = [
        f"[^{i}]: {chunk.source_url}, chunk {chunk.ordinal}"
        for i, chunk in enumerate(chunks, start=1)
    ]
    return content.rstrip() + "\n\n---\n\n" + "\n".join(footnotes) + "\n"


# ------------------------------------------------------------------
# Output location
# ------------------------------------------------------------------


def validate_output_path(output: str, allowed_base: Path | None = None) -> Path:
    """Resolve the ``--output`` argument of ``searchlight ask``.

    An absolute path is taken as given. A relative one is resolved against
    *allowed_base* (the working directory by default) and must stay inside it.

    Raises:
        ValueError: If a relative path resolves outside *allowed_base*.
    """
    requested = Path(output)
    if requested.is_absolute():
        return requested.resolve()

    base = (allowed_base or Path.cwd()).resolve()
    target = (base / requested).resolve()
    if not target.is_relative_to(base):
        raise ValueError(
            f"Answer file '{output}' would land in '{target.parent}', outside "
            f"'{base}'. Path traversal is not permitted."
        )
    return target


def check_overwrite(path: Path, yes: bool) -> bool:
    """Ask before replacing an earlier answer file; ``--yes`` answers for the user."""
    if not path.exists() or yes:
        return True
    return typer.confirm(f"  {path.name} already holds an answer. Replace it?", default=False)


# ------------------------------------------------------------------
# Writing
# ------------------------------------------------------------------


def write_output(path: Path, content: str) -> None:
    """Save the rendered answer to *path*, creating missing directories.

    The Markdown goes to a hidden sibling file first and is moved over *path*
    in one ``os.replace``.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, partial = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".partial", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)
        os.replace(partial, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(partial)
        raise
