"""Tests for contextengine.analysis.dependencies — the import graph builder."""

import os

import contextengine.analysis.dependencies as deps_mod
from contextengine.analysis.dependencies import (
    DependencyError,
    DependencyGraph,
    FileEntry,
    ImportSpecifier,
    PathResolver,
    analyze_dependencies,
    extract_imports,
    get_dependency_summary,
)
from contextengine.analysis.parser import parse_source
from contextengine.analysis.walker import (
    EXCLUDED_DIR,
    HIDDEN_DIR,
    PARSE_FAILED,
    READ_FAILED,
)


def _edges(graph):
    return [(e["from"], e["to"]) for e in graph.to_dict()["edges"]]


# ---------------------------------------------------------------------------
# Import extraction
# ---------------------------------------------------------------------------


class TestExtractImports:
    def test_static_imports_in_order(self):
        parsed = parse_source(
            "import a from './a';\n"
            "import { b } from '../lib/b';\n"
            "import React from 'react';\n",
            "typescript",
            path="/src/x.ts",
        )
        specs = extract_imports(parsed)
        assert [s.specifier for s in specs] == ["./a", "../lib/b", "react"]
        assert all(s.importer == "/src/x.ts" for s in specs)

    def test_side_effect_import(self):
        parsed = parse_source("import './polyfill';\n", "javascript")
        assert [s.specifier for s in extract_imports(parsed)] == ["./polyfill"]

    def test_type_only_import(self):
        parsed = parse_source("import type { Props } from './types';\n", "typescript")
        assert [s.specifier for s in extract_imports(parsed)] == ["./types"]

    def test_escape_sequences_decoded(self):
        parsed = parse_source(
            "import a from \"./\\u0061\";\nimport b from './it\\'s';\n",
            "javascript",
        )
        assert [s.specifier for s in extract_imports(parsed)] == ["./a", "./it's"]

    def test_empty_specifier(self):
        parsed = parse_source("import '';\n", "javascript")
        assert [s.specifier for s in extract_imports(parsed)] == [""]

    def test_reexport_is_not_an_import(self):
        parsed = parse_source("export { x } from './x';\n", "javascript")
        assert extract_imports(parsed) == []

    def test_is_relative(self):
        assert ImportSpecifier("./a", "/f.ts").is_relative
        assert ImportSpecifier("../a", "/f.ts").is_relative
        assert not ImportSpecifier("lodash", "/f.ts").is_relative
        assert not ImportSpecifier("@scope/pkg", "/f.ts").is_relative


# ---------------------------------------------------------------------------
# Path resolution
# ---------------------------------------------------------------------------


class TestPathResolver:
    def _files(self, *paths):
        return [FileEntry(path=p, relative_path=os.path.basename(p)) for p in paths]

    def test_strip_recognised_extension(self):
        resolver = PathResolver([])
        assert resolver.strip("/a/util.ts") == "/a/util"
        assert resolver.strip("/a/util.jsx") == "/a/util"
        assert resolver.strip("/a/util.json") == "/a/util.json"
        assert resolver.strip("/a/util.test.ts") == "/a/util.test"

    def test_extensionless_specifier(self):
        resolver = PathResolver(self._files("/p/util.ts"))
        assert resolver.resolve("/p", "./util").path == "/p/util.ts"

    def test_explicit_extension(self):
        resolver = PathResolver(self._files("/p/util.ts"))
        assert resolver.resolve("/p", "./util.ts").path == "/p/util.ts"

    def test_js_specifier_finds_ts_file(self):
        resolver = PathResolver(self._files("/p/util.ts"))
        assert resolver.resolve("/p", "./util.js").path == "/p/util.ts"

    def test_parent_directory(self):
        resolver = PathResolver(self._files("/p/shared.ts"))
        assert resolver.resolve("/p/sub", "../shared").path == "/p/shared.ts"

    def test_no_match(self):
        resolver = PathResolver(self._files("/p/util.ts"))
        assert resolver.resolve("/p", "./missing") is None

    def test_directory_index_not_expanded(self):
        resolver = PathResolver(self._files("/p/lib/index.ts"))
        assert resolver.resolve("/p", "./lib") is None

    def test_first_discovered_wins(self):
        resolver = PathResolver(self._files("/p/b.js", "/p/b.ts"))
        assert resolver.resolve("/p", "./b").path == "/p/b.js"


# ---------------------------------------------------------------------------
# Graph assembly
# ---------------------------------------------------------------------------


class TestAnalyzeDependencies:
    def test_single_edge(self, tmp_path, make_tree):
        make_tree(tmp_path, {"a.ts": "import './b';\n", "b.ts": "export const b = 1;\n"})
        graph = analyze_dependencies(str(tmp_path))
        assert isinstance(graph, DependencyGraph)
        data = graph.to_dict()
        assert data["totalFiles"] == 2
        assert data["totalDependencies"] == 1
        assert data["edges"] == [{"from": "a.ts", "to": "b.ts", "type": "import"}]

    def test_nodes_carry_absolute_paths(self, tmp_path, make_tree):
        make_tree(tmp_path, {"a.ts": "", "b.ts": ""})
        data = analyze_dependencies(str(tmp_path)).to_dict()
        assert [n["id"] for n in data["nodes"]] == ["a.ts", "b.ts"]
        for node in data["nodes"]:
            assert os.path.isabs(node["path"])
            assert node["path"].endswith(node["id"])

    def test_missing_target(self, tmp_path, make_tree):
        make_tree(tmp_path, {"a.ts": "import x from './missing';\n"})
        data = analyze_dependencies(str(tmp_path)).to_dict()
        assert data["totalFiles"] == 1
        assert data["edges"] == []

    def test_package_import_ignored(self, tmp_path, make_tree):
        make_tree(
            tmp_path,
            {"a.ts": "import pkg from 'some-package';\n", "some-package.ts": ""},
        )
        data = analyze_dependencies(str(tmp_path)).to_dict()
        assert data["totalDependencies"] == 0

    def test_root_missing(self, tmp_path):
        given = str(tmp_path / "nope")
        result = analyze_dependencies(given)
        assert isinstance(result, DependencyError)
        data = result.to_dict()
        assert data["error"]
        assert data["directory"] == given
        assert "nodes" not in data
        assert "edges" not in data

    def test_root_is_a_file(self, tmp_path, make_tree):
        make_tree(tmp_path, {"a.ts": ""})
        result = analyze_dependencies(str(tmp_path / "a.ts"))
        assert isinstance(result, DependencyError)

    def test_forward_reference(self, tmp_path, make_tree):
        # "a/x.ts" is walked before "z.ts"
        make_tree(tmp_path, {"a/x.ts": "import { z } from '../z';\n", "z.ts": ""})
        assert _edges(analyze_dependencies(str(tmp_path))) == [("a/x.ts", "z.ts")]

    def test_nested_ids_are_posix(self, tmp_path, make_tree):
        make_tree(
            tmp_path,
            {
                "src/app.tsx": "import Button from './components/Button';\n",
                "src/components/Button.tsx": "export default function Button() { return <button />; }\n",
            },
        )
        assert _edges(analyze_dependencies(str(tmp_path))) == [
            ("src/app.tsx", "src/components/Button.tsx")
        ]

    def test_jsx_file(self, tmp_path, make_tree):
        make_tree(
            tmp_path,
            {
                "view.jsx": "import b from './b';\nexport const V = () => <div>{b}</div>;\n",
                "b.js": "export default 1;\n",
            },
        )
        assert _edges(analyze_dependencies(str(tmp_path))) == [("view.jsx", "b.js")]

    def test_duplicate_imports_produce_duplicate_edges(self, tmp_path, make_tree):
        make_tree(
            tmp_path,
            {"a.ts": "import { x } from './b';\nimport { y } from './b';\n", "b.ts": ""},
        )
        assert _edges(analyze_dependencies(str(tmp_path))) == [
            ("a.ts", "b.ts"),
            ("a.ts", "b.ts"),
        ]

    def test_unparseable_file_keeps_node(self, tmp_path, make_tree):
        make_tree(
            tmp_path,
            {"bad.ts": "import { from './good';\n", "good.ts": "import './bad';\n"},
        )
        graph = analyze_dependencies(str(tmp_path))
        data = graph.to_dict()
        assert [n["id"] for n in data["nodes"]] == ["bad.ts", "good.ts"]
        assert _edges(graph) == [("good.ts", "bad.ts")]
        failed = [s for s in graph.skipped if s.reason == PARSE_FAILED]
        assert [os.path.basename(s.path) for s in failed] == ["bad.ts"]

    def test_hidden_and_node_modules_skipped(self, tmp_path, make_tree):
        make_tree(
            tmp_path,
            {
                "a.ts": "import './node_modules/lib/x';\nimport './.cache/y';\n",
                "node_modules/lib/x.ts": "",
                ".cache/y.ts": "",
            },
        )
        graph = analyze_dependencies(str(tmp_path))
        assert graph.total_files == 1
        assert graph.total_dependencies == 0
        reasons = {os.path.basename(s.path): s.reason for s in graph.skipped}
        assert reasons == {".cache": HIDDEN_DIR, "node_modules": EXCLUDED_DIR}

    def test_non_source_files_ignored(self, tmp_path, make_tree):
        make_tree(tmp_path, {"a.ts": "import './data.json';\n", "data.json": "{}"})
        graph = analyze_dependencies(str(tmp_path))
        assert graph.total_files == 1
        assert graph.total_dependencies == 0

    def test_referential_integrity_and_counts(self, tmp_path, make_tree):
        make_tree(
            tmp_path,
            {
                "index.ts": "import './lib/a';\nimport './lib/b';\nimport 'react';\n",
                "lib/a.ts": "import { b } from './b';\nimport { c } from '../c';\n",
                "lib/b.tsx": "import './a';\n",
                "lib/none.js": "export default 0;\n",
            },
        )
        data = analyze_dependencies(str(tmp_path)).to_dict()
        ids = {n["id"] for n in data["nodes"]}
        assert data["totalFiles"] == len(data["nodes"]) == 4
        assert data["totalDependencies"] == len(data["edges"]) == 4
        for edge in data["edges"]:
            assert edge["from"] in ids
            assert edge["to"] in ids
        assert not any(e["from"] == "lib/none.js" for e in data["edges"])

    def test_idempotent(self, tmp_path, make_tree):
        make_tree(
            tmp_path,
            {"a.ts": "import './b';\n", "b.ts": "import './c';\n", "c.ts": ""},
        )
        first = analyze_dependencies(str(tmp_path)).to_dict()
        second = analyze_dependencies(str(tmp_path)).to_dict()
        assert first == second

    def test_relative_root(self, tmp_path, make_tree, monkeypatch):
        make_tree(tmp_path, {"proj/a.ts": "import './b';\n", "proj/b.ts": ""})
        monkeypatch.chdir(tmp_path)
        graph = analyze_dependencies("proj")
        assert graph.directory == "proj"
        assert _edges(graph) == [("a.ts", "b.ts")]


# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------


class TestDependencySummary:
    def test_summary(self):
        text = get_dependency_summary(
            {"directory": "/src", "totalFiles": 3, "totalDependencies": 2}
        )
        assert text == (
            "Directory: /src\n"
            "Total Files: 3\n"
            "Total Dependencies: 2\n"
            "Average Dependencies per File: 0.67"
        )

    def test_zero_files(self):
        text = get_dependency_summary(
            {"directory": "/empty", "totalFiles": 0, "totalDependencies": 0}
        )
        assert text.endswith("Average Dependencies per File: 0.00")

    def test_error(self):
        assert get_dependency_summary({"error": "boom", "directory": "/x"}) == "Error: boom"


class TestUnreadableAndAliasedFiles:
    def test_invalid_utf8_still_parsed(self, tmp_path):
        (tmp_path / "a.js").write_bytes(b"// caf\xe9\nimport b from './b';\n")
        (tmp_path / "b.js").write_text("export default 1;\n", encoding="utf-8")
        graph = analyze_dependencies(str(tmp_path))
        assert _edges(graph) == [("a.js", "b.js")]
        assert graph.skipped == []

    def test_read_failure_keeps_node(self, tmp_path, make_tree, monkeypatch):
        make_tree(tmp_path, {"a.ts": "import './b';\n", "b.ts": "import './a';\n"})
        real_extract = deps_mod.extract_file_imports

        def flaky(path):
            if path.endswith("a.ts"):
                raise PermissionError(13, "Permission denied", path)
            return real_extract(path)

        monkeypatch.setattr(deps_mod, "extract_file_imports", flaky)
        graph = analyze_dependencies(str(tmp_path))
        assert [n.id for n in graph.nodes] == ["a.ts", "b.ts"]
        assert _edges(graph) == [("b.ts", "a.ts")]
        failed = [s for s in graph.skipped if s.reason == READ_FAILED]
        assert [os.path.basename(s.path) for s in failed] == ["a.ts"]

    def test_symlinked_directory_gives_distinct_nodes(self, tmp_path, make_tree):
        make_tree(tmp_path, {"lib/x.ts": "", "main.ts": "import './lib2/x';\n"})
        os.symlink(tmp_path / "lib", tmp_path / "lib2")
        graph = analyze_dependencies(str(tmp_path))
        assert [n.id for n in graph.nodes] == ["lib/x.ts", "lib2/x.ts", "main.ts"]
        assert _edges(graph) == [("main.ts", "lib2/x.ts")]

    def test_escaped_specifier_resolves(self, tmp_path, make_tree):
        make_tree(tmp_path, {"a.ts": 'import b from "./\\u0062";\n', "b.ts": ""})
        assert _edges(analyze_dependencies(str(tmp_path))) == [("a.ts", "b.ts")]
