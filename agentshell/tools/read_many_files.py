"""Read many files tool for agentshell."""

from __future__ import annotations

import asyncio
import glob
import logging
import stat
from pathlib import Path
from typing import Any, Dict, List

from agentshell.core.context import RunContext
from agentshell.errors import ToolInputError
from agentshell.tools.base import BaseTool, ToolDeclaration, join_under_root
from agentshell.tools.schema import Schema

logger = logging.getLogger(__name__)

GLOB_CHARS = frozenset("*?[]")
ADVISORY_OPTIONS = ("exclude", "include", "recursive", "useDefaultExcludes", "file_filtering_options")

DESCRIPTION = (
    "Reads content from multiple files given as paths or glob patterns relative to the "
    "project root. Text file contents are concatenated into a single string, each "
    "preceded by '---{filePath} ---'. Binary files (images, PDFs, etc.) are listed by "
    "path with a note that their content is not included; missing paths and "
    "directories are listed with a marker. Glob patterns like 'src/**/*.js' are "
    "supported. Prefer a single-file reading tool for one file unless the user asks "
    "for this tool."
)


def has_glob(pattern: str) -> bool:
    return any(ch in GLOB_CHARS for ch in pattern)


def _read_bytes(path: Path) -> bytes:
    with open(path, "rb") as f:
        return f.read()


class ReadManyFilesTool(BaseTool):
    """Concatenates many files with path markers; never fails per file."""

    NAME = "read_many_files"

    def declaration(self) -> ToolDeclaration:
        return ToolDeclaration(
            name=self.NAME,
            description=DESCRIPTION,
            parameters=Schema.object(
                {
                    "paths": Schema.array(
                        Schema.string(),
                        "Required. Glob patterns or paths relative to the project root. "
                        "Examples: ['src/**/*.ts'], ['README.md', 'docs/']",
                    ),
                    "exclude": Schema.array(
                        Schema.string(),
                        "Optional. Glob patterns for files/directories to exclude. "
                        "Example: '**/*.log', 'temp/'",
                    ),
                    "include": Schema.array(
                        Schema.string(),
                        "Optional. Additional glob patterns to include, merged with `paths`.",
                    ),
                    "recursive": Schema.boolean(
                        "Optional. Whether to search recursively (primarily controlled by "
                        "`**` in glob patterns). Defaults to true."
                    ),
                    "useDefaultExcludes": Schema.boolean(
                        "Optional. Whether to apply default exclusion patterns "
                        "(e.g. node_modules, .git). Defaults to true."
                    ),
                    "file_filtering_options": Schema.object(
                        {
                            "respect_gemini_ignore": Schema.boolean(
                                "Optional. Respect .geminiignore patterns. Defaults to true."
                            ),
                            "respect_git_ignore": Schema.boolean(
                                "Optional. Respect .gitignore patterns. Defaults to true."
                            ),
                        },
                        description="Whether to respect ignore files (not implemented yet).",
                    ),
                },
                required=("paths",),
            ),
            response=Schema.object({"content": Schema.string()}),
        )

    def expand(self, patterns: List[Any]) -> List[Path]:
        """Resolve entries under the project root, expanding globs.

        Literal paths are kept whether or not they exist. The result is
        deduplicated in first-seen order.
        """
        resolved: List[Path] = []
        for pattern in patterns:
            if not isinstance(pattern, str):
                raise ToolInputError(f"invalid path pattern: {pattern!r}")
            full = join_under_root(self.project_root, pattern)
            if has_glob(pattern):
                matches = sorted(glob.glob(str(full), recursive=True, include_hidden=True))
                resolved.extend(Path(m) for m in matches)
            else:
                resolved.append(full)

        seen: set[Path] = set()
        unique: List[Path] = []
        for path in resolved:
            if path not in seen:
                seen.add(path)
                unique.append(path)
        return unique

    async def execute(self, ctx: RunContext, args: Dict[str, Any]) -> Dict[str, Any]:
        paths = args.get("paths")
        if not isinstance(paths, list):
            raise ToolInputError("missing or invalid 'paths' argument")

        ignored = [opt for opt in ADVISORY_OPTIONS if opt in args]
        if ignored:
            logger.debug("read_many_files: ignoring advisory options %s", ", ".join(ignored))

        parts: List[str] = []
        for path in self.expand(paths):
            ctx.raise_if_cancelled()
            parts.append(await self._render(path))

        return {"content": "".join(parts)}

    async def _render(self, path: Path) -> str:
        try:
            st = path.stat()
        except FileNotFoundError:
            return f"---{path} (Not Found)---\n"
        except OSError as e:
            return f"---{path} (Error: {e})---\n"

        if stat.S_ISDIR(st.st_mode):
            return f"---{path} (Directory)---\n"

        try:
            data = await asyncio.to_thread(_read_bytes, path)
        except OSError as e:
            return f"---{path} (Error reading: {e})---\n"

        if b"\x00" in data:
            return f"---{path} (Binary File, content not included)---\n"
        return f"---{path} --- {data.decode('utf-8', errors='replace')}\n"
