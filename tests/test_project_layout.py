from __future__ import annotations

from pathlib import Path


def test_required_package_paths_exist() -> None:
    root = Path(__file__).resolve().parents[1]
    required = [
        "src/xml_indexing/reader.py",
        "src/xml_indexing/cli.py",
        "src/xml_indexing/index/__init__.py",
        "src/xml_indexing/index/scanner.py",
        "src/xml_indexing/index/store.py",
        "src/xml_indexing/logging/__init__.py",
    ]
    for rel in required:
        assert (root / rel).exists(), rel
