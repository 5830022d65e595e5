#!/usr/bin/env python3
from __future__ import annotations

import ast
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SETTINGS_PATH = ROOT / "themecookie" / "settings.py"
ENV_EXAMPLE_PATH = ROOT / ".env.example"

SETTINGS_ENV_HELPERS = {"os.getenv", "_env_bool", "_env_int", "_env_str"}


def _call_name(node: ast.Call) -> str | None:
    func = node.func
    if isinstance(func, ast.Name):
        return func.id
    if isinstance(func, ast.Attribute) and isinstance(func.value, ast.Name):
        return f"{func.value.id}.{func.attr}"
    return None


def settings_env_names(settings_path: Path = SETTINGS_PATH) -> set[str]:
    tree = ast.parse(settings_path.read_text(encoding="utf-8"))
    names: set[str] = set()
    for node in ast.walk(tree):
        if not isinstance(node, ast.Call) or _call_name(node) not in SETTINGS_ENV_HELPERS:
            continue
        if not node.args:
            continue
        first = node.args[0]
        # The helpers' own `os.getenv(name)` calls pass a variable, not a literal.
        if isinstance(first, ast.Constant) and isinstance(first.value, str):
            names.add(first.value)
    return names


def env_example_names(env_example_path: Path = ENV_EXAMPLE_PATH) -> tuple[set[str], set[str]]:
    names: set[str] = set()
    duplicates: set[str] = set()
    for raw_line in env_example_path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key = line.split("=", 1)[0].strip()
        if not key:
            continue
        if key in names:
            duplicates.add(key)
        names.add(key)
    return names, duplicates


def find_contract_problems(
    settings_path: Path = SETTINGS_PATH,
    env_example_path: Path = ENV_EXAMPLE_PATH,
) -> list[str]:
    settings_names = settings_env_names(settings_path)
    env_names, duplicate_names = env_example_names(env_example_path)

    problems = [f"missing from .env.example: {name}" for name in sorted(settings_names - env_names)]
    problems += [f"unknown key in .env.example: {name}" for name in sorted(env_names - settings_names)]
    problems += [f"duplicate key in .env.example: {name}" for name in sorted(duplicate_names)]
    return problems


def main() -> int:
    problems = find_contract_problems()
    if problems:
        print("Environment contract check failed.")
        for problem in problems:
            print(f"- {problem}")
        return 1
    print(f"Environment contract check passed: {len(settings_env_names())} settings keys.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
