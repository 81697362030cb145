"""External compilers used by the transform pipelines.

The server depends on each tool only through a narrow text-in/text-out
contract.  The default implementations shell out to ``esbuild`` and to a
small Node.js driver around ``@vue/compiler-sfc``, both resolved from the
served project so the browser gets whatever versions the project pins.
"""

from __future__ import annotations

import json
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Protocol, Sequence

from .descriptor import SFCBlock
from .errors import CompileError
from .observability.logging import get_logger

logger = get_logger("esmdev.compilers")

_STDERR_LIMIT = 2000

# Exchanges one JSON request/response over stdin/stdout.
VUE_DRIVER = r"""
const { parse, compileScript, compileTemplate } = require('@vue/compiler-sfc');
let input = '';
process.stdin.setEncoding('utf8');
process.stdin.on('data', (chunk) => { input += chunk; });
process.stdin.on('end', () => {
  const request = JSON.parse(input);
  try {
    let code;
    if (request.op === 'script') {
      const { descriptor, errors } = parse(request.source, { filename: request.filename });
      if (errors.length) throw errors[0];
      code = compileScript(descriptor, { id: request.id }).content;
    } else {
      const result = compileTemplate({
        source: request.source,
        id: request.id,
        filename: request.filename,
      });
      if (result.errors.length) {
        throw new Error(result.errors.map((e) => (e && e.message) || String(e)).join('\n'));
      }
      code = result.code;
    }
    process.stdout.write(JSON.stringify({ code }));
  } catch (err) {
    process.stdout.write(JSON.stringify({ error: String((err && err.message) || err) }));
  }
});
"""


class ScriptCompiler(Protocol):
    """Compiles a component's script block into plain JavaScript."""

    def compile_script(self, block: SFCBlock, component_id: str, filename: str) -> str:
        ...


class TemplateCompiler(Protocol):
    """Compiles a component template into a module exporting ``render``."""

    def compile_template(self, source: str, component_id: str, filename: str) -> str:
        ...


class SyntaxTranspiler(Protocol):
    """Lowers JSX (and similar syntax) to ESM JavaScript."""

    def transform(self, source: str, filename: str) -> str:
        ...


class Bundler(Protocol):
    """Bundles an entry file and its dependencies into one ESM file."""

    def bundle(self, entry: Path) -> str:
        ...


def run_tool(
    command: Sequence[str],
    *,
    tool: str,
    input_text: Optional[str] = None,
    cwd: Optional[Path] = None,
    timeout: Optional[float] = None,
) -> str:
    """Run an external tool and return its stdout, raising ``CompileError`` on failure."""
    logger.debug("Running %s: %s", tool, " ".join(command))
    try:
        completed = subprocess.run(
            list(command),
            input=input_text,
            capture_output=True,
            text=True,
            encoding="utf-8",
            cwd=str(cwd) if cwd is not None else None,
            timeout=timeout,
            check=False,
        )
    except FileNotFoundError as exc:
        raise CompileError(
            f"{tool} executable not found: {command[0]}",
            hint=f"Install {tool} or point the server at it explicitly",
        ) from exc
    except subprocess.TimeoutExpired as exc:
        raise CompileError(f"{tool} timed out after {timeout} seconds") from exc
    if completed.returncode != 0:
        detail = (completed.stderr or completed.stdout or "").strip()
        raise CompileError(f"{tool} failed: {detail[:_STDERR_LIMIT]}")
    return completed.stdout


class EsbuildTranspiler:
    """JSX -> ESM transform through ``esbuild`` reading from stdin."""

    def __init__(
        self,
        executable: str = "esbuild",
        *,
        cwd: Optional[Path] = None,
        jsx_factory: Optional[str] = None,
        jsx_fragment: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.executable = executable
        self.cwd = cwd
        self.jsx_factory = jsx_factory
        self.jsx_fragment = jsx_fragment
        self.timeout = timeout

    def command(self, filename: str) -> List[str]:
        command = [
            self.executable,
            "--loader=jsx",
            "--format=esm",
            f"--sourcefile={filename}",
            "--log-level=error",
        ]
        if self.jsx_factory:
            command.append(f"--jsx-factory={self.jsx_factory}")
        if self.jsx_fragment:
            command.append(f"--jsx-fragment={self.jsx_fragment}")
        return command

    def transform(self, source: str, filename: str) -> str:
        return run_tool(
            self.command(filename),
            tool="esbuild",
            input_text=source,
            cwd=self.cwd,
            timeout=self.timeout,
        )


class EsbuildBundler:
    """Single-file ESM bundles through ``esbuild --bundle``."""

    def __init__(
        self,
        executable: str = "esbuild",
        *,
        cwd: Optional[Path] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.executable = executable
        self.cwd = cwd
        self.timeout = timeout

    def command(self, entry: Path) -> List[str]:
        return [
            self.executable,
            str(entry),
            "--bundle",
            "--format=esm",
            "--log-level=error",
        ]

    def bundle(self, entry: Path) -> str:
        return run_tool(
            self.command(entry),
            tool="esbuild",
            cwd=self.cwd,
            timeout=self.timeout,
        )


class VueCompiler:
    """Script and template compilation through ``@vue/compiler-sfc``."""

    def __init__(
        self,
        node: str = "node",
        *,
        cwd: Optional[Path] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.node = node
        self.cwd = cwd
        self.timeout = timeout

    def _request(self, payload: dict) -> str:
        output = run_tool(
            [self.node, "-e", VUE_DRIVER],
            tool="@vue/compiler-sfc",
            input_text=json.dumps(payload),
            cwd=self.cwd,
            timeout=self.timeout,
        )
        try:
            response = json.loads(output)
        except json.JSONDecodeError as exc:
            raise CompileError(
                f"Unexpected output from @vue/compiler-sfc: {output[:200]!r}",
                path=payload.get("filename"),
            ) from exc
        if "error" in response:
            raise CompileError(response["error"], path=payload.get("filename"))
        return response["code"]

    def compile_script(self, block: SFCBlock, component_id: str, filename: str) -> str:
        return self._request(
            {
                "op": "script",
                "source": block.to_source(),
                "id": component_id,
                "filename": filename,
            }
        )

    def compile_template(self, source: str, component_id: str, filename: str) -> str:
        return self._request(
            {
                "op": "template",
                "source": source,
                "id": component_id,
                "filename": filename,
            }
        )


@dataclass
class Toolchain:
    """The external collaborators one router instance works with."""

    script_compiler: ScriptCompiler
    template_compiler: TemplateCompiler
    transpiler: SyntaxTranspiler
    bundler: Bundler

    @classmethod
    def from_settings(cls, settings) -> "Toolchain":
        root = settings.project_root
        vue = VueCompiler(settings.node_bin, cwd=root, timeout=settings.tool_timeout)
        return cls(
            script_compiler=vue,
            template_compiler=vue,
            transpiler=EsbuildTranspiler(
                settings.esbuild_bin,
                cwd=root,
                jsx_factory=settings.jsx_factory,
                jsx_fragment=settings.jsx_fragment,
                timeout=settings.tool_timeout,
            ),
            bundler=EsbuildBundler(settings.esbuild_bin, cwd=root, timeout=settings.tool_timeout),
        )


__all__ = [
    "ScriptCompiler",
    "TemplateCompiler",
    "SyntaxTranspiler",
    "Bundler",
    "EsbuildTranspiler",
    "EsbuildBundler",
    "VueCompiler",
    "Toolchain",
    "run_tool",
]
