"""Shared fixtures for the module server tests."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from textwrap import dedent
from typing import List

import pytest

from esmdev.compilers import Toolchain
from esmdev.config import Settings
from esmdev.descriptor import SFCBlock
from esmdev.errors import CompileError
from esmdev.router import ModuleRouter


def pytest_configure(config):
    """Register markers for pytest."""
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


@pytest.fixture(autouse=True)
def _restore_esmdev_logger():
    """Undo handler and propagation changes made by configure_logging."""
    logger = logging.getLogger("esmdev")
    level, propagate, handlers = logger.level, logger.propagate, list(logger.handlers)
    yield
    logger.setLevel(level)
    logger.propagate = propagate
    logger.handlers[:] = handlers


class FakeScriptCompiler:
    """Returns the script block content unchanged (it is already JavaScript)."""

    def __init__(self) -> None:
        self.calls: List[tuple] = []

    def compile_script(self, block: SFCBlock, component_id: str, filename: str) -> str:
        self.calls.append((block.content, component_id, filename))
        return block.content


class FakeTemplateCompiler:
    def __init__(self) -> None:
        self.calls: List[tuple] = []

    def compile_template(self, source: str, component_id: str, filename: str) -> str:
        self.calls.append((source, component_id, filename))
        return (
            'import { h } from "vue"\n'
            f"export function render() {{ return h(\"div\", {json.dumps(source.strip())}) }}\n"
        )


class FakeTranspiler:
    def transform(self, source: str, filename: str) -> str:
        return f"/* {filename} */\n" + source.replace("<App />", "h(App)")


class FakeBundler:
    def __init__(self) -> None:
        self.entries: List[Path] = []

    def bundle(self, entry: Path) -> str:
        self.entries.append(entry)
        return f"// bundled from {entry.name}\nexport default {json.dumps(entry.read_text())}\n"


class FailingBundler:
    def bundle(self, entry: Path) -> str:
        raise CompileError(f"Could not resolve import in {entry.name}")


def make_toolchain(bundler=None) -> Toolchain:
    return Toolchain(
        script_compiler=FakeScriptCompiler(),
        template_compiler=FakeTemplateCompiler(),
        transpiler=FakeTranspiler(),
        bundler=bundler or FakeBundler(),
    )


APP_COMPONENT = dedent(
    """\
    <template>
      <div class="app">{{ message }}</div>
    </template>

    <script>
    import { ref } from 'vue'
    import Child from './Child.vue'
    export default {
      components: { Child },
      setup() { return { message: ref('hi') } }
    }
    </script>

    <style>
    .app { color: red; }
    </style>

    <style scoped>
    .app { margin: 0; }
    </style>
    """
)


def write_package(node_modules: Path, name: str, manifest: dict, files: dict) -> Path:
    package_dir = node_modules / name
    package_dir.mkdir(parents=True, exist_ok=True)
    (package_dir / "package.json").write_text(json.dumps(manifest), encoding="utf-8")
    for relative, content in files.items():
        target = package_dir / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
    return package_dir


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A small served project with sources and installed packages."""
    root = tmp_path / "project"
    (root / "src").mkdir(parents=True)
    (root / "index.html").write_text(
        '<!doctype html>\n<div id="app"></div>\n<script type="module" src="/src/main.js"></script>\n',
        encoding="utf-8",
    )
    (root / "src" / "main.js").write_text(
        dedent(
            """\
            import { createApp } from 'vue'
            import App from './App.vue'
            import './style.css'
            import logo from './logo.png'
            createApp(App).mount('#app')
            """
        ),
        encoding="utf-8",
    )
    (root / "src" / "style.css").write_text("body { margin: 0; }\n", encoding="utf-8")
    (root / "src" / "App.vue").write_text(APP_COMPONENT, encoding="utf-8")
    (root / "src" / "Bare.vue").write_text("<style>p { color: blue; }</style>\n", encoding="utf-8")
    (root / "src" / "app.jsx").write_text(
        "import React from 'react'\nimport App from './App.js'\nrender(<App />)\n",
        encoding="utf-8",
    )
    (root / "src" / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\n")
    (root / "src" / "notes.txt").write_text("plain notes\n", encoding="utf-8")

    node_modules = root / "node_modules"
    write_package(
        node_modules,
        "vue",
        {"name": "vue", "version": "3.4.0", "main": "index.js", "module": "dist/vue.esm.js"},
        {"index.js": "module.exports = {}\n", "dist/vue.esm.js": "export const createApp = () => {}\n"},
    )
    write_package(
        node_modules,
        "left-pad",
        {"name": "left-pad", "version": "1.3.0", "main": "index.js"},
        {"index.js": "module.exports = leftPad\n"},
    )
    return root


@pytest.fixture
def settings(project: Path, tmp_path: Path) -> Settings:
    return Settings(root=project, cache_dir=str(tmp_path / "bundles"))


@pytest.fixture
def toolchain() -> Toolchain:
    return make_toolchain()


@pytest.fixture
def router(settings: Settings, toolchain: Toolchain) -> ModuleRouter:
    return ModuleRouter(settings, toolchain)


@pytest.fixture
def failing_toolchain() -> Toolchain:
    return make_toolchain(bundler=FailingBundler())


@pytest.fixture
def fake_bundler() -> FakeBundler:
    return FakeBundler()
