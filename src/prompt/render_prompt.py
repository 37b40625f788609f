"""Render prompt templates in src/prompt/promptFiles using pystache.

Each reviewer call uses a system/user template pair. Templates may include
two partials:

* ``{{> rubric}}``: the scoring rubric, chosen by name so that the scoring
  policy can be swapped without touching the templates;
* ``{{> json_output_rules}}``: the shared "return only JSON" instruction.

Partials may be wrapped in a Markdown code fence; the fence is stripped.

Usage:
    python -m src.prompt.render_prompt [template_filename] [context.json]
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import pystache

PROMPTS_DIR = Path(__file__).parent / "promptFiles"

DEFAULT_RUBRIC = "weighted_rubric"
SHARED_PARTIALS = ("json_output_rules",)


def _read_prompt(name: str) -> str:
    p = PROMPTS_DIR / name
    if not p.exists():
        raise FileNotFoundError(f"Prompt file not found: {p}")
    return p.read_text(encoding="utf-8")


def _strip_code_fences(s: str) -> str:
    """Strip a single leading and trailing code-fence block if present.

    Handles fences like ``` or ```` optionally followed by a language tag.
    """
    lines = s.splitlines()
    if not lines:
        return s
    first = lines[0].lstrip()
    last = lines[-1].lstrip()
    if first.startswith("```"):
        lines = lines[1:]
    if lines and last.startswith("```"):
        lines = lines[:-1]
    return "\n".join(lines).strip()


def available_rubrics() -> list[str]:
    """Names of rubric partials shipped in ``promptFiles``."""
    return sorted(p.stem for p in PROMPTS_DIR.glob("*_rubric.md"))


def load_partials(rubric: str = DEFAULT_RUBRIC) -> dict[str, str]:
    partials = {
        name: _strip_code_fences(_read_prompt(f"{name}.md")) for name in SHARED_PARTIALS
    }
    partials["rubric"] = _strip_code_fences(_read_prompt(f"{rubric}.md"))
    return partials


def render_template(
    template_name: str,
    context: dict | None = None,
    *,
    rubric: str = DEFAULT_RUBRIC,
) -> str:
    renderer = pystache.Renderer(partials=load_partials(rubric))
    return renderer.render(_read_prompt(template_name), context or {}).strip()


def render_prompts(
    system_template: str,
    user_template: str,
    context: dict | None = None,
    *,
    rubric: str = DEFAULT_RUBRIC,
) -> tuple[str, str]:
    """Render a system and user prompt pair from two separate templates.

    Returns:
        (system_prompt, user_prompt)

    Raises:
        FileNotFoundError: If a template or the named rubric does not exist
    """
    renderer = pystache.Renderer(partials=load_partials(rubric))

    rendered_system = renderer.render(_read_prompt(system_template), context or {})
    rendered_user = renderer.render(_read_prompt(user_template), context or {})
    return rendered_system.strip(), rendered_user.strip()


def _load_context(path: str) -> dict:
    return json.loads(Path(path).read_text(encoding="utf-8"))


if __name__ == "__main__":
    tpl = sys.argv[1] if len(sys.argv) > 1 else "system_bulk_review.md"
    ctx = None
    if len(sys.argv) > 2:
        ctx = _load_context(sys.argv[2])
    print(render_template(tpl, ctx))
