"""System-level static checks for dependency direction between layers.

Shared utilities sit below the engine, and the engine sits below the CLI actor.
Imports may only point to the same layer or downward.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from tests.shared.static_analysis_helpers import (
    REPO_ROOT,
    discover_runtime_python_files,
    imports_for_source,
    is_equal_or_child,
    module_name_for_file,
)

_LAYERS = (
    ("packages.edr_shared", 0),
    ("packages.edr_engine", 1),
    ("actors", 2),
)


@dataclass(frozen=True)
class _Violation:
    """One layer-direction violation with stable source location."""

    file_path: Path
    line: int
    message: str

    def format(self) -> str:
        """Render violation for assertion output."""
        return f"{self.file_path}:{self.line}: {self.message}"


def _layer_for(module_name: str) -> int | None:
    for prefix, layer in _LAYERS:
        if is_equal_or_child(module_name, prefix):
            return layer
    return None


def test_lower_layers_do_not_import_higher_layers() -> None:
    """Reject static import edges from lower layers to higher layers."""
    violations: list[_Violation] = []
    for file_path in discover_runtime_python_files():
        caller = module_name_for_file(repo_root=REPO_ROOT, file_path=file_path)
        caller_layer = _layer_for(caller)
        if caller_layer is None:
            continue

        source = file_path.read_text(encoding="utf-8")
        for ref in imports_for_source(source=source, caller_module=caller):
            target_layer = _layer_for(ref.module_name)
            if target_layer is not None and target_layer > caller_layer:
                violations.append(
                    _Violation(
                        file_path=file_path,
                        line=ref.line,
                        message=f"{caller} (layer {caller_layer}) imports "
                        f"{ref.module_name} (layer {target_layer})",
                    )
                )

    assert not violations, "\n".join(v.format() for v in violations)


def test_runtime_discovery_covers_every_layer() -> None:
    """Guard against the scan silently matching nothing."""
    modules = {
        module_name_for_file(repo_root=REPO_ROOT, file_path=path)
        for path in discover_runtime_python_files()
    }

    assert "packages.edr_shared.errors.normalize" in modules
    assert "packages.edr_engine.engine" in modules
    assert "actors.cli.main" in modules
    assert not any(".tests." in name for name in modules)


def test_relative_imports_resolve_against_the_caller() -> None:
    refs = imports_for_source(
        source="from .records import Record\nfrom ..edr_shared import errors\n",
        caller_module="packages.edr_engine.sink",
    )

    assert [ref.module_name for ref in refs] == [
        "packages.edr_engine.records",
        "packages.edr_shared",
    ]
