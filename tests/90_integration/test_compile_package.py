# tests/90_integration/test_compile_package.py
"""End-to-end compilation of package trees (nothing written)."""

from pathlib import Path

import cabalize.build as mod_build
from tests.utils import (
    compile_manifest,
    dedent,
    make_resolver,
    store_defaults,
    write_files,
    write_manifest,
)


# --- module inference ---------------------------------------------------------------


def test_library_infers_other_modules(tmp_path: Path) -> None:
    """Undeclared modules become other-modules, followed by Paths_<name>."""
    # --- execute ---
    result = compile_manifest(
        tmp_path / "foo",
        """
        name: foo
        library:
          source-dirs: src
          exposed-modules: Foo
        """,
        files=["src/Foo.hs", "src/Bar.hs"],
    )

    # --- verify ---
    assert result.warnings == ()
    assert result.cabal_file == tmp_path / "foo" / "foo.cabal"
    assert result.text == dedent(
        """
        name: foo
        version: 0.0.0
        build-type: Simple
        cabal-version: >= 1.10

        library
          exposed-modules:
              Foo
          other-modules:
              Bar
              Paths_foo
          hs-source-dirs:
              src
          default-language: Haskell2010
        """
    )


def test_conditional_source_dirs(tmp_path: Path) -> None:
    """Modules found only under a branch's source-dirs stay in that branch."""
    # --- execute ---
    result = compile_manifest(
        tmp_path / "foo",
        """
        name: foo
        library:
          source-dirs: src
          when:
            condition: os(windows)
            then:
              source-dirs: windows
            else:
              source-dirs: posix
        """,
        files=["src/Foo.hs", "windows/Foo/Windows.hs", "posix/Foo/Posix.hs"],
    )

    # --- verify ---
    assert result.text.endswith(
        dedent(
            """
            library
              exposed-modules:
                  Foo
              other-modules:
                  Paths_foo
              hs-source-dirs:
                  src
              if os(windows)
                other-modules:
                    Foo.Windows
                hs-source-dirs:
                    windows
              else
                other-modules:
                    Foo.Posix
                hs-source-dirs:
                    posix
              default-language: Haskell2010
            """
        )
    )


def test_executable_main_module(tmp_path: Path) -> None:
    result = compile_manifest(
        tmp_path / "foo",
        """
        name: foo
        executables:
          foo:
            main: Foo
            source-dirs: app
        """,
        files=["app/Foo.hs", "app/Util.hs"],
    )

    assert result.text.endswith(
        dedent(
            """
            executable foo
              main-is: Foo.hs
              other-modules:
                  Util
                  Paths_foo
              hs-source-dirs:
                  app
              ghc-options: -main-is Foo
              default-language: Haskell2010
            """
        )
    )


def test_missing_source_dir_warns(tmp_path: Path) -> None:
    result = compile_manifest(
        tmp_path / "foo",
        """
        name: foo
        source-dirs: src
        library: {}
        executable:
          main: Main.hs
        """,
    )

    assert result.warnings == ('Specified source-dir "src" does not exist',)


# --- globs ---------------------------------------------------------------------------


def test_unmatched_glob_warns_once(tmp_path: Path) -> None:
    # --- execute ---
    result = compile_manifest(
        tmp_path / "foo",
        """
        name: foo
        extra-source-files: "*.md"
        """,
    )

    # --- verify ---
    assert result.warnings == (
        'Specified pattern "*.md" for extra-source-files does not match any files',
    )
    assert "extra-source-files" not in result.text
    assert "cabal-version: >= 1.10\n" in result.text


def test_globs_expand_relative_to_package(tmp_path: Path) -> None:
    result = compile_manifest(
        tmp_path / "foo",
        """
        name: foo
        extra-doc-files:
          - "*.md"
          - CHANGELOG.md
        """,
        files=["README.md", "CHANGELOG.md", "docs/guide.md"],
    )

    assert result.warnings == ()
    assert "extra-doc-files:\n    CHANGELOG.md\n    README.md\n" in result.text
    assert "cabal-version: >= 1.18\n" in result.text


# --- header ---------------------------------------------------------------------------


def test_github_header(tmp_path: Path) -> None:
    # --- execute ---
    result = compile_manifest(
        tmp_path / "foo",
        """
        name: foo
        github: sol/foo
        """,
    )

    # --- verify ---
    assert result.text == dedent(
        """
        name: foo
        version: 0.0.0
        homepage: https://github.com/sol/foo#readme
        bug-reports: https://github.com/sol/foo/issues
        build-type: Simple
        cabal-version: >= 1.10

        source-repository head
          type: git
          location: https://github.com/sol/foo
        """
    )


def test_homepage_null_suppresses_default(tmp_path: Path) -> None:
    result = compile_manifest(
        tmp_path / "foo",
        """
        name: foo
        github: sol/foo
        homepage: null
        """,
    )

    assert "homepage" not in result.text
    assert "bug-reports: https://github.com/sol/foo/issues\n" in result.text


def test_author_license_and_flags(tmp_path: Path) -> None:
    # --- execute ---
    result = compile_manifest(
        tmp_path / "foo",
        """
        name: foo
        version: 1.2
        author: Jane Doe
        license: MIT
        flags:
          fast:
            description: Go fast
            manual: true
            default: false
        """,
        files={"LICENSE": "MIT\n"},
    )

    # --- verify ---
    assert result.text == dedent(
        """
        name: foo
        version: 1.2
        author: Jane Doe
        maintainer: Jane Doe
        license: MIT
        license-file: LICENSE
        build-type: Simple
        cabal-version: >= 1.10

        flag fast
          description: Go fast
          manual: True
          default: False
        """
    )


def test_empty_license_file_suppresses_default(tmp_path: Path) -> None:
    result = compile_manifest(
        tmp_path / "foo",
        """
        name: foo
        license-file: []
        """,
        files={"LICENSE": "MIT\n"},
    )

    assert result.text == dedent(
        """
        name: foo
        version: 0.0.0
        build-type: Simple
        cabal-version: >= 1.10
        """
    )


def test_custom_setup(tmp_path: Path) -> None:
    result = compile_manifest(
        tmp_path / "foo",
        """
        name: foo
        dependencies: base
        custom-setup:
          dependencies:
            - base
            - Cabal
        """,
    )

    assert result.text == dedent(
        """
        name: foo
        version: 0.0.0
        build-type: Custom
        cabal-version: >= 1.24

        custom-setup
          setup-depends:
              base
            , Cabal
        """
    )


# --- merging and defaults ----------------------------------------------------------------


def test_global_fields_reach_every_section(tmp_path: Path) -> None:
    # --- execute ---
    result = compile_manifest(
        tmp_path / "foo",
        """
        name: foo
        dependencies:
          - base >= 4 && < 5
        library:
          dependencies: text
        tests:
          spec:
            main: Spec.hs
            dependencies:
              - foo
        """,
    )

    # --- verify ---
    assert "  build-depends:\n      base >=4 && <5\n    , text\n" in result.text
    assert result.text.endswith(
        dedent(
            """
            test-suite spec
              type: exitcode-stdio-1.0
              main-is: Spec.hs
              other-modules:
                  Paths_foo
              build-depends:
                  base >=4 && <5
                , foo
              default-language: Haskell2010
            """
        )
    )


def test_dependencies_are_kept_as_given(tmp_path: Path) -> None:
    """Repeated names are neither merged nor dropped."""
    # --- execute ---
    result = compile_manifest(
        tmp_path / "foo",
        """
        name: foo
        dependencies:
          - base >= 4
        library:
          dependencies:
            - base < 5
            - base < 5
        """,
    )

    # --- verify ---
    assert "  build-depends:\n      base >=4\n    , base <5\n    , base <5\n" in result.text


def test_github_defaults(tmp_path: Path) -> None:
    # --- setup ---
    store_defaults(
        tmp_path / "store",
        "sol/hpack-template",
        "2017",
        """
        default-extensions: RecordWildCards
        ghc-options: -Wall
        library:
          source-dirs: src
        """,
    )

    # --- execute ---
    result = compile_manifest(
        tmp_path / "foo",
        """
        name: foo
        defaults: sol/hpack-template@2017
        ghc-options: -O2
        library: {}
        """,
        files=["src/Foo.hs"],
    )

    # --- verify ---
    assert result.text.endswith(
        dedent(
            """
            library
              exposed-modules:
                  Foo
              other-modules:
                  Paths_foo
              hs-source-dirs:
                  src
              default-extensions: RecordWildCards
              ghc-options: -Wall -O2
              default-language: Haskell2010
            """
        )
    )


# --- layout hints --------------------------------------------------------------------------


ALIGNED = """\
name:           foo
version:        0.0.0
build-type:     Simple
cabal-version:  >= 1.10

library
    exposed-modules:
        Foo
    hs-source-dirs:
        src
    default-language: Haskell2010
"""

MANIFEST = """
name: foo
library:
  source-dirs: src
"""


def test_regenerating_is_stable(tmp_path: Path) -> None:
    # --- setup ---
    files = ["src/Foo.hs", "src/Bar.hs"]
    first = compile_manifest(tmp_path / "foo", MANIFEST, files=files)

    # --- execute ---
    second = compile_manifest(
        tmp_path / "foo", MANIFEST, files=files, previous=first.output
    )

    # --- verify ---
    assert second.text == first.text


def test_previous_layout_is_kept(tmp_path: Path) -> None:
    """Alignment and indentation of the previous file carry over."""
    # --- execute ---
    result = compile_manifest(
        tmp_path / "foo", MANIFEST, files=["src/Foo.hs"], previous=ALIGNED
    )

    # --- verify ---
    assert result.text == (
        "name:           foo\n"
        "version:        0.0.0\n"
        "build-type:     Simple\n"
        "cabal-version:  >= 1.10\n"
        "\n"
        "library\n"
        "    exposed-modules:\n"
        "        Foo\n"
        "    other-modules:\n"
        "        Paths_foo\n"
        "    hs-source-dirs:\n"
        "        src\n"
        "    default-language: Haskell2010\n"
    )


def test_alignment_survives_description_text(tmp_path: Path) -> None:
    """A ``Word: text`` line inside a description does not break alignment."""
    # --- setup ---
    manifest = """
    name: foo
    description: |
      First paragraph.

      Note: second paragraph
    library:
      source-dirs: src
    """
    files = ["src/Foo.hs"]
    first = compile_manifest(tmp_path / "foo", manifest, files=files, previous=ALIGNED)

    # --- execute ---
    second = compile_manifest(
        tmp_path / "foo", manifest, files=files, previous=first.output
    )

    # --- verify ---
    assert first.text.startswith("name:           foo\n")
    assert "\n    Note: second paragraph\n" in first.text
    assert second.text == first.text


def test_existing_cabal_file_provides_hints(tmp_path: Path) -> None:
    # --- setup ---
    root = tmp_path / "foo"
    manifest = write_manifest(root, MANIFEST)
    write_files(root, {"src/Foo.hs": "", "foo.cabal": ALIGNED})

    # --- execute ---
    result = mod_build.compile_package(
        manifest, resolver=make_resolver(tmp_path / "store", package_dir=root)
    )

    # --- verify ---
    assert result.text.startswith("name:           foo\n")
    assert "\n    hs-source-dirs:\n        src\n" in result.text
