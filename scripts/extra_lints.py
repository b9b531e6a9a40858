#!/usr/bin/env python3
"""Custom linting rules for code quality.

Rules:
1. No class-based tests in test files (use module-level functions)
2. No imports inside functions in library code
3. No mutable default arguments
4. No print() statements in library code (use logging)
5. No TODO/FIXME comments without issue references
6. No global random state in library code (take a source from the caller)

Usage: python scripts/extra_lints.py [root]
"""

import ast
import re
import sys
from dataclasses import dataclass
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
LINTED_DIRECTORIES = ("src", "tests")

# Constructors of explicit generators are fine; everything else on these
# modules reads or writes hidden global state.
ALLOWED_RANDOM_ATTRS = {"Random", "SystemRandom"}
ALLOWED_NUMPY_RANDOM_ATTRS = {
    "default_rng",
    "Generator",
    "SeedSequence",
    "PCG64",
    "PCG64DXSM",
    "Philox",
    "SFC64",
    "MT19937",
    "BitGenerator",
}

TODO_PATTERN = re.compile(r"#\s*(TODO|FIXME)(?!:\s*\w+-\d+)", re.IGNORECASE)


@dataclass
class LintError:
    file: Path
    line: int
    column: int
    rule: str
    message: str

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.column}: {self.rule}: {self.message}"


def _dotted_name(node: ast.AST) -> str | None:
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        base = _dotted_name(node.value)
        return None if base is None else f"{base}.{node.attr}"
    return None


class LintVisitor(ast.NodeVisitor):
    """AST visitor that checks for lint violations."""

    def __init__(self, file: Path) -> None:
        self.file = file
        self.errors: list[LintError] = []
        self.is_test_file = file.name.startswith("test_") or file.name == "conftest.py"
        self._function_depth = 0

    def _add_error(self, node: ast.AST, rule: str, message: str) -> None:
        lineno = getattr(node, "lineno", 0)
        col_offset = getattr(node, "col_offset", 0)
        self.errors.append(LintError(self.file, lineno, col_offset, rule, message))

    def visit_ClassDef(self, node: ast.ClassDef) -> None:
        if self.is_test_file and node.name.startswith("Test"):
            # Hypothesis stateful tests inherit from *.TestCase
            is_hypothesis_stateful = any(
                isinstance(base, ast.Attribute) and base.attr == "TestCase"
                for base in node.bases
            )
            if not is_hypothesis_stateful:
                self._add_error(
                    node,
                    "no-class-tests",
                    f"Class-based test '{node.name}'. Use functions.",
                )
        self.generic_visit(node)

    def _visit_function(self, node: ast.FunctionDef | ast.AsyncFunctionDef) -> None:
        for default in node.args.defaults + node.args.kw_defaults:
            if default is not None and self._is_mutable_default(default):
                self._add_error(
                    default,
                    "mutable-default",
                    "Mutable default argument. Use None instead.",
                )
        self._function_depth += 1
        self.generic_visit(node)
        self._function_depth -= 1

    visit_FunctionDef = _visit_function
    visit_AsyncFunctionDef = _visit_function

    def _is_mutable_default(self, node: ast.AST) -> bool:
        if isinstance(node, (ast.List, ast.Dict, ast.Set)):
            return True
        return (
            isinstance(node, ast.Call)
            and isinstance(node.func, ast.Name)
            and node.func.id in ("list", "dict", "set")
        )

    def _check_import(self, node: ast.Import | ast.ImportFrom) -> None:
        if self._function_depth > 0 and not self.is_test_file:
            self._add_error(
                node,
                "import-in-function",
                "Import inside function. Move to module level.",
            )
        self.generic_visit(node)

    visit_Import = _check_import
    visit_ImportFrom = _check_import

    def visit_Call(self, node: ast.Call) -> None:
        if not self.is_test_file:
            if isinstance(node.func, ast.Name) and node.func.id == "print":
                self._add_error(
                    node, "no-print", "Use logging instead of print() in library code."
                )
            self._check_global_random(node)
        self.generic_visit(node)

    def _check_global_random(self, node: ast.Call) -> None:
        name = _dotted_name(node.func)
        if name is None:
            return
        module, _, attr = name.rpartition(".")
        if module == "random" and attr not in ALLOWED_RANDOM_ATTRS:
            allowed = False
        elif module in ("np.random", "numpy.random"):
            allowed = attr in ALLOWED_NUMPY_RANDOM_ATTRS
        else:
            return
        if not allowed:
            self._add_error(
                node,
                "global-random",
                f"{name}() uses global random state. Take a source from the caller.",
            )


def check_todo_comments(file: Path, source: str) -> list[LintError]:
    """Check for TODO/FIXME without issue references."""
    errors: list[LintError] = []
    for i, line in enumerate(source.splitlines(), 1):
        match = TODO_PATTERN.search(line)
        if match:
            msg = f"{match.group(1)} needs issue reference (e.g., TODO: PROJ-123)."
            errors.append(LintError(file, i, match.start(), "todo-needs-issue", msg))
    return errors


def lint_source(path: Path, source: str) -> list[LintError]:
    """Lint ``source`` as if it were the contents of ``path``."""
    try:
        tree = ast.parse(source)
    except SyntaxError as e:
        return [LintError(path, e.lineno or 0, e.offset or 0, "syntax-error", str(e))]
    visitor = LintVisitor(path)
    visitor.visit(tree)
    return visitor.errors + check_todo_comments(path, source)


def lint_file(path: Path) -> list[LintError]:
    """Lint a single file and return any errors."""
    return lint_source(path, path.read_text())


def lint_tree(root: Path = ROOT) -> list[LintError]:
    """Lint every Python file under the linted directories of ``root``."""
    errors: list[LintError] = []
    for directory in LINTED_DIRECTORIES:
        dir_path = root / directory
        if not dir_path.exists():
            continue
        for py_file in sorted(dir_path.rglob("*.py")):
            errors.extend(lint_file(py_file))
    return errors


def main(argv: list[str]) -> int:
    root = Path(argv[1]) if len(argv) > 1 else ROOT
    errors = lint_tree(root)

    if errors:
        for error in sorted(errors, key=lambda e: (str(e.file), e.line, e.column)):
            print(error)
        print(f"\nFound {len(errors)} custom lint error(s)")
        return 1

    print("All custom lint checks passed!")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
