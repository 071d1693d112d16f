from __future__ import annotations

from ._utils import iter_python_files, matches_prefix, parse_imports, rel_name, reltool_root


def test_rich_is_only_imported_by_the_console() -> None:
    offenders: list[str] = []
    for file_path in iter_python_files(reltool_root()):
        rel = rel_name(file_path)
        if rel == "output/console.py":
            continue
        for item in parse_imports(file_path):
            if matches_prefix(item.module, "rich"):
                offenders.append(f"{rel}:{item.line}: direct rich import '{item.module}'")

    assert not offenders, "Direct rich usage policy violations:\n" + "\n".join(offenders)
