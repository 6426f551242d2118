"""
Import-boundary enforcement.

1. Kernel purity     -- inventory_kernel/** may not import the sync or
                        config packages, at module level or inside a function.
2. Config isolation  -- inventory_config/** may not import inventory_sync.

All scanning is done via AST; these tests are read-only.
"""

import ast
import glob
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]


def _python_files(package: str) -> list[Path]:
    return sorted(Path(p) for p in glob.glob(f"{ROOT / package}/**/*.py", recursive=True))


def _extract_imports(filepath: Path) -> list[tuple[int, str]]:
    """Return (line_number, module) for every import in *filepath*."""
    tree = ast.parse(filepath.read_text(), filename=str(filepath))

    results: list[tuple[int, str]] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                results.append((node.lineno, alias.name))
        elif isinstance(node, ast.ImportFrom):
            if node.module and node.level == 0:
                results.append((node.lineno, node.module))
    return results


def _matches_any(module: str, prefixes: tuple[str, ...]) -> bool:
    return any(module == p or module.startswith(f"{p}.") for p in prefixes)


def _violations(package: str, forbidden: tuple[str, ...]) -> list[str]:
    found = []
    for filepath in _python_files(package):
        for lineno, module in _extract_imports(filepath):
            if _matches_any(module, forbidden):
                found.append(f"  {filepath.relative_to(ROOT)}:{lineno} imports '{module}'")
    return found


class TestKernelPurity:

    FORBIDDEN_PREFIXES = ("inventory_sync", "inventory_config")

    def test_kernel_files_exist(self):
        assert _python_files("inventory_kernel")

    def test_kernel_does_not_import_outer_packages(self):
        violations = _violations("inventory_kernel", self.FORBIDDEN_PREFIXES)

        assert not violations, (
            "inventory_kernel/** must not import outer packages:\n"
            + "\n".join(violations)
        )


class TestConfigIsolation:

    def test_config_does_not_import_sync(self):
        violations = _violations("inventory_config", ("inventory_sync",))

        assert not violations, (
            "inventory_config/** must not import inventory_sync:\n"
            + "\n".join(violations)
        )
