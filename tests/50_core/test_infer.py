# tests/50_core/test_infer.py
"""Tests for module discovery and inference."""

from collections.abc import Mapping
from pathlib import Path

import cabalize.config.config_types as mod_types
import cabalize.modules as mod_modules
import cabalize.value as mod_value


ROOT = Path("/pkg")


def _scanner(
    tree: Mapping[str, list[str]], warnings: mod_value.Warnings | None = None
) -> mod_modules.ModuleScanner:
    """A scanner over an in-memory tree of ``source-dir -> files``."""
    calls: list[str] = []

    def list_files(directory: Path) -> list[str]:
        rel = directory.relative_to(ROOT).as_posix()
        calls.append(rel)
        if rel not in tree:
            raise FileNotFoundError(rel)
        return sorted(tree[rel])

    scanner = mod_modules.ModuleScanner(
        ROOT, warnings=warnings if warnings is not None else mod_value.Warnings(), list_files=list_files
    )
    scanner.calls = calls  # type: ignore[attr-defined]
    return scanner


def _infer(
    fields: dict,
    tree: Mapping[str, list[str]],
    *,
    conditionals: tuple = (),
    exposes_modules: bool = True,
) -> mod_modules.InferredModules:
    return mod_modules.infer(
        fields.get("source-dirs", ()),
        fields,
        conditionals,
        scanner=_scanner(tree),
        exposes_modules=exposes_modules,
        paths_module="Paths_foo",
    )


TREE = {"src": ["Foo.hs", "Bar.hs", "Data/Baz.lhs", "notes.txt", "lower/X.hs"]}


# --- library policies --------------------------------------------------------------


def test_nothing_given_exposes_everything() -> None:
    result = _infer({"source-dirs": ["src"]}, TREE)
    assert result.exposed == ("Bar", "Data.Baz", "Foo")
    assert result.other == ("Paths_foo",)
    assert result.autogen == ()


def test_exposed_given_infers_other() -> None:
    """Discovered modules not exposed become other-modules, then Paths."""
    result = _infer({"source-dirs": ["src"], "exposed-modules": ["Foo"]}, TREE)
    assert result.exposed == ("Foo",)
    assert result.other == ("Bar", "Data.Baz", "Paths_foo")


def test_other_given_infers_exposed() -> None:
    result = _infer({"source-dirs": ["src"], "other-modules": ["Bar"]}, TREE)
    assert result.exposed == ("Data.Baz", "Foo")
    assert result.other == ("Bar",)


def test_both_given_infers_nothing() -> None:
    result = _infer(
        {"source-dirs": ["src"], "exposed-modules": ["Foo"], "other-modules": []},
        TREE,
    )
    assert result.exposed == ("Foo",)
    assert result.other == ()


def test_no_source_dirs_discovers_nothing() -> None:
    result = _infer({}, TREE)
    assert result.exposed == ()
    assert result.other == ("Paths_foo",)


def test_paths_module_on_disk_is_not_duplicated() -> None:
    result = _infer(
        {"source-dirs": ["src"], "exposed-modules": ["Foo"]},
        {"src": ["Foo.hs", "Paths_foo.hs"]},
    )
    assert result.other == ("Paths_foo",)


def test_paths_module_declared_is_claimed() -> None:
    result = _infer(
        {"source-dirs": ["src"], "exposed-modules": ["Foo", "Paths_foo"]},
        {"src": ["Foo.hs"]},
    )
    assert result.other == ()


def test_generated_modules_are_autogen() -> None:
    # --- execute ---
    result = _infer(
        {
            "source-dirs": ["src"],
            "exposed-modules": ["Foo"],
            "generated-exposed-modules": ["Gen.A"],
            "generated-other-modules": ["Gen.B"],
        },
        {"src": ["Foo.hs"]},
    )

    # --- verify ---
    assert result.exposed == ("Foo", "Gen.A")
    assert result.other == ("Paths_foo", "Gen.B")
    assert result.autogen == ("Gen.A", "Gen.B")


# --- executables -------------------------------------------------------------------


def test_executable_main_module_is_claimed() -> None:
    # --- execute ---
    result = _infer(
        {"source-dirs": ["app"], "main": "Main.hs"},
        {"app": ["Main.hs", "Options.hs"]},
        exposes_modules=False,
    )

    # --- verify ---
    assert result.exposed == ()
    assert result.other == ("Options", "Paths_foo")


def test_executable_main_as_module_name() -> None:
    result = _infer(
        {"source-dirs": ["app"], "main": "App.Cli.run"},
        {"app": ["App/Cli.hs", "App/Util.hs"]},
        exposes_modules=False,
    )
    assert result.other == ("App.Util", "Paths_foo")


# --- conditionals ------------------------------------------------------------------


def test_modules_named_in_conditionals_are_claimed() -> None:
    # --- setup ---
    windows = mod_types.Conditional(
        "os(windows)",
        {"other-modules": ["Platform.Windows"]},
        {"other-modules": ["Platform.Posix"]},
    )
    tree = {"src": ["Foo.hs", "Platform/Windows.hs", "Platform/Posix.hs"]}

    # --- execute ---
    result = _infer({"source-dirs": ["src"]}, tree, conditionals=(windows,))

    # --- verify ---
    assert result.exposed == ("Foo",)


def test_branch_source_dirs_are_inferred_into_the_branch() -> None:
    # --- setup ---
    tree = {"src": ["Foo.hs"], "windows": ["Foo/Windows.hs"]}
    section = mod_types.Section(
        kind="library",
        name=None,
        fields={"source-dirs": ["src"]},
        conditionals=(
            mod_types.Conditional("os(windows)", {"source-dirs": ["windows"]}),
        ),
    )

    # --- execute ---
    result = mod_modules.infer_section(section, "foo", _scanner(tree))

    # --- verify ---
    assert result.fields["exposed-modules"] == ["Foo"]
    assert result.fields["other-modules"] == ["Paths_foo"]
    (branch,) = result.conditionals
    assert branch.then == {"source-dirs": ["windows"], "other-modules": ["Foo.Windows"]}


def test_branch_without_source_dirs_is_left_alone() -> None:
    # --- setup ---
    section = mod_types.Section(
        kind="executable",
        name="foo",
        fields={"source-dirs": ["app"], "main": "Main.hs"},
        conditionals=(mod_types.Conditional("flag(x)", {"ghc-options": ["-O2"]}),),
    )

    # --- execute ---
    result = mod_modules.infer_section(section, "foo", _scanner({"app": ["Main.hs"]}))

    # --- verify ---
    assert result.conditionals[0].then == {"ghc-options": ["-O2"]}


def test_modules_named_in_nested_conditionals_are_claimed() -> None:
    # --- setup ---
    inner = mod_types.Conditional("flag(y)", {"other-modules": ["Platform.Posix"]})
    middle = mod_types.Conditional("flag(x)", {}, {"when": [inner]})
    outer = mod_types.Conditional("os(linux)", {"when": [middle]})
    tree = {"src": ["Foo.hs", "Platform/Posix.hs"]}

    # --- execute ---
    result = _infer({"source-dirs": ["src"]}, tree, conditionals=(outer,))

    # --- verify ---
    assert result.exposed == ("Foo",)
    assert result.other == ("Paths_foo",)


def test_nested_branch_source_dirs_are_claimed() -> None:
    """Modules under a nested branch's source-dirs are listed only there."""
    # --- setup ---
    tree = {"src": ["Foo.hs"], "posix": ["Foo/Posix.hs"]}
    nested = mod_types.Conditional("!os(osx)", {"source-dirs": ["posix"]})
    section = mod_types.Section(
        kind="library",
        name=None,
        fields={"source-dirs": ["src", "posix"]},
        conditionals=(mod_types.Conditional("os(linux)", {"when": [nested]}),),
    )

    # --- execute ---
    result = mod_modules.infer_section(section, "foo", _scanner(tree))

    # --- verify ---
    assert result.fields["exposed-modules"] == ["Foo"]
    assert result.fields["other-modules"] == ["Paths_foo"]
    (outer,) = result.conditionals
    assert "other-modules" not in outer.then
    (inner,) = outer.then["when"]
    assert inner.then == {"source-dirs": ["posix"], "other-modules": ["Foo.Posix"]}


def test_custom_setup_is_not_inferred() -> None:
    section = mod_types.Section("custom-setup", None, {"dependencies": [("Cabal", None)]})
    assert mod_modules.infer_section(section, "foo", _scanner({})) is section


# --- scanner -------------------------------------------------------------------------


def test_missing_source_dir_warns_once() -> None:
    # --- setup ---
    warnings = mod_value.Warnings()
    scanner = _scanner({}, warnings)

    # --- execute ---
    first = scanner.discover(["src"])
    second = scanner.discover(["src"])

    # --- verify ---
    assert first == second == []
    assert list(warnings) == ['Specified source-dir "src" does not exist']
    assert scanner.calls == ["src"]  # type: ignore[attr-defined]


def test_discover_deduplicates_across_dirs() -> None:
    scanner = _scanner({"a": ["Foo.hs"], "b": ["Foo.hs", "Bar.hs"]})
    assert scanner.discover(["a", "b"]) == ["Foo", "Bar"]


def test_infer_package_paths_name_uses_underscores() -> None:
    # --- setup ---
    package = mod_types.Package(
        name="my-pkg",
        version="1",
        fields={},
        sections=(mod_types.Section("library", None, {}),),
    )

    # --- execute ---
    result = mod_modules.infer_package_modules(package, _scanner({}))

    # --- verify ---
    assert result.sections[0].fields == {"other-modules": ["Paths_my_pkg"]}
