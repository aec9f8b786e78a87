#!/usr/bin/env python3
"""
Pytest configuration shared by the namefmt tests.

Keeps every test away from the real per-user config directory and provides
a sample tree with the kinds of files namefmt has to deal with.
"""

import pytest


@pytest.fixture(autouse=True)
def isolated_config_home(tmp_path, monkeypatch):
    """Point the per-user config directory at a temporary location."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    monkeypatch.setenv("APPDATA", str(home / "AppData"))
    monkeypatch.delenv("NAMEFMT_DEBUG", raising=False)
    return home


@pytest.fixture
def testbed(tmp_path):
    """
    Build a small tree of badly named files:

        testbed/
            file with spaces.txt
            FileWithMixedCase.rs
            another-file-with-dashes.js
            UPPERCASE_FILE.py
            my-executable.exe
            package-project/Cargo.toml
            package-project/src file.rs
            subdirectory/nested file with spaces.md
            subdirectory/CamelCaseFile.ts
            node-project/package.json
            node-project/main file.js
    """
    root = tmp_path / "testbed"
    for sub in ("package-project", "subdirectory", "node-project"):
        (root / sub).mkdir(parents=True)

    for name in ("file with spaces.txt", "FileWithMixedCase.rs", "another-file-with-dashes.js",
                 "UPPERCASE_FILE.py", "my-executable.exe", "package-project/src file.rs",
                 "subdirectory/nested file with spaces.md", "subdirectory/CamelCaseFile.ts",
                 "node-project/main file.js"):
        (root / name).touch()

    (root / "package-project" / "Cargo.toml").write_text(
        '[package]\nname = "test-package"\nversion = "0.1.0"\n')
    (root / "node-project" / "package.json").write_text(
        '{\n  "name": "test-project",\n  "version": "1.0.0"\n}\n')
    return root
