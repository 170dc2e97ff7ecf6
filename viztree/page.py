"""HTML page assembly: shell template, inlined script, and the embedded snapshot."""
from __future__ import annotations

import html
import json
import re
from dataclasses import dataclass
from pathlib import Path

from viztree.resources import read_asset

_TOKEN_PATTERN = re.compile(r"{{\s*([A-Za-z_][A-Za-z0-9_]*)\s*}}")
_REQUIRED_TOKENS = frozenset({"title", "script", "snapshot"})
_SCRIPT_CLOSE_PATTERN = re.compile(r"</script", re.IGNORECASE)

# Characters that can end a <script> block or an HTML comment, plus the two
# line separators JavaScript rejects inside string literals.
_SCRIPT_UNSAFE = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


class TemplateError(ValueError):
    pass


def encode_snapshot(text: str) -> str:
    """Return *text* as a JavaScript string literal safe inside ``<script>``.

    Lone surrogates (undecodable input bytes) become U+FFFD.
    """
    text = text.encode("utf-8", "surrogatepass").decode("utf-8", "replace")
    encoded = json.dumps(text, ensure_ascii=False)
    for char, escape in _SCRIPT_UNSAFE.items():
        encoded = encoded.replace(char, escape)
    return encoded


def fill_tokens(template: str, values: dict[str, str]) -> str:
    def replace(match: re.Match[str]) -> str:
        token = match.group(1)
        if token not in values:
            raise TemplateError(f"Unresolved placeholder '{token}'")
        return values[token]

    return _TOKEN_PATTERN.sub(replace, template)


def _check_shell(shell: str) -> None:
    found = _TOKEN_PATTERN.findall(shell)
    unknown = sorted(set(found) - _REQUIRED_TOKENS)
    if unknown:
        raise TemplateError(f"Page template has unknown placeholders: {', '.join(unknown)}")
    for token in sorted(_REQUIRED_TOKENS):
        count = found.count(token)
        if count != 1:
            raise TemplateError(
                f"Page template must use '{{{{ {token} }}}}' exactly once (found {count})"
            )


def _check_script(script: str, origin: str) -> None:
    if _SCRIPT_CLOSE_PATTERN.search(script):
        raise TemplateError(f"{origin} contains '</script' and cannot be inlined")


@dataclass(frozen=True, slots=True)
class PageTemplate:
    shell: str
    script: str
    title: str = "Viztree"

    @classmethod
    def load(
        cls,
        *,
        script_path: Path | None = None,
        title: str = "Viztree",
        shell: str | None = None,
    ) -> PageTemplate:
        """Load and validate the page parts; any defect is a :class:`TemplateError`."""
        resolved_shell = shell if shell is not None else read_asset("page.html")
        if script_path is not None:
            try:
                script = script_path.read_text(encoding="utf-8")
            except OSError as exc:
                raise TemplateError(f"Cannot read script {script_path}: {exc}") from exc
            origin = str(script_path)
        else:
            script = read_asset("viz.js")
            origin = "Bundled viz.js"
        _check_shell(resolved_shell)
        _check_script(script, origin)
        return cls(shell=resolved_shell, script=script, title=title)

    def render(self, snapshot: str) -> str:
        return fill_tokens(
            self.shell,
            {
                "title": html.escape(self.title),
                "script": self.script,
                "snapshot": encode_snapshot(snapshot),
            },
        )
