"""Tests for per-file indexing and the shared analysis context."""

import dataclasses
from types import MappingProxyType


class TestFileIndex:
    """build_file_index()"""

    def test_index_collects_definitions_and_exports(self, context_for):
        context = context_for(
            {"src/a.ts": "import fs from 'fs';\nfunction h() {}\nexport const run = () => h();\n"}
        )
        index = context.index_for("src/a.ts")
        assert [fn.name for fn in index.functions] == ["h", "run"]
        assert index.exported_names == frozenset({"run"})
        assert [imp.module for imp in index.imports] == ["fs"]

    def test_call_sites_include_references_and_jsx(self, context_for):
        context = context_for({
            "src/a.tsx": "export const App = () => <Header title={title} />;\n",
            "src/b.ts": "items.map(normalize);\nnormalize(x);\nnew Widget();\n",
        })
        assert context.call_site_count("Header") == 1
        assert context.call_site_count("normalize") == 2
        assert context.call_site_count("Widget") == 1
        assert context.call_site_count("map") == 1
        assert context.call_site_count("missing") == 0

    def test_unknown_path_gives_empty_index(self, context_for):
        context = context_for({})
        assert context.index_for("nowhere.ts").functions == ()
        assert context.duplicates_in("nowhere.ts") == ()

    def test_context_is_read_only(self, context_for):
        context = context_for({"src/a.ts": "export const a = 1;\n"})
        assert isinstance(context.indexes, MappingProxyType)
        assert isinstance(context.call_sites, MappingProxyType)

    def test_context_holds_only_merged_data(self, context_for):
        context = context_for({"src/a.ts": "export const a = 1;\n"})
        assert [f.name for f in dataclasses.fields(context)] == [
            "settings", "indexes", "call_sites", "duplicates",
        ]


class TestDuplicates:
    """Duplicate flagging across the file set."""

    LOOP = (
        "for (const order of orders) {\n"
        "  if (order.total > limit) {\n"
        "    alerts.push(order.id);\n"
        "  }\n"
        "}\n"
    )

    def test_nested_occurrences_are_suppressed(self, context_for):
        context = context_for({"src/a.ts": self.LOOP * 3})
        occurrences = context.duplicates_in("src/a.ts")
        assert [o.candidate.span.start_line for o in occurrences] == [1, 6, 11]
        assert all(o.occurrences == 3 for o in occurrences)
        assert occurrences[0].other_locations == ("src/a.ts:11", "src/a.ts:6")
