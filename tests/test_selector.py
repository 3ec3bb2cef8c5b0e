import pytest

from conftest import make_file
from repo_sense import selector
from repo_sense.config import SelectionConfig

MARKER = "\n... (truncated)"


def paths(files):
    return [f.path for f in files]


class TestSelectKeyFiles:
    def test_empty_input(self):
        assert selector.select_key_files([]) == []

    def test_tier_order(self, repo_files):
        result = selector.select_key_files(repo_files)
        assert paths(result) == [
            "README.md",
            "LICENSE",
            "package.json",
            "tsconfig.json",
            "index.js",
            "src/app/index.ts",
            "src/lib/util.ts",
            "src/components/Header.tsx",
        ]

    def test_returns_records_unchanged_when_under_budget(self, repo_files):
        result = selector.select_key_files(repo_files)
        by_path = {f.path: f for f in repo_files}
        assert all(f == by_path[f.path] for f in result)

    def test_root_entry_point_before_nested(self):
        files = [make_file("src/app/index.js"), make_file("index.js")]
        result = selector.select_key_files(files)
        assert paths(result)[:2] == ["index.js", "src/app/index.js"]

    def test_docs_win_over_source_under_tight_budget(self):
        cfg = SelectionConfig(max_total_size=1000)
        files = [make_file("pkg/src/core.py", size=600), make_file("README.md", size=600)]
        assert paths(selector.select_key_files(files, cfg)) == ["README.md"]

    def test_doc_names_are_case_sensitive(self):
        cfg = SelectionConfig(min_selected_before_fallback=0)
        assert selector.select_key_files([make_file("readme.md")], cfg) == []

    def test_rejection_ends_every_later_tier(self):
        cfg = SelectionConfig(max_total_size=1000)
        files = [
            make_file("README.md", size=900),
            make_file("package.json", size=200),
            make_file("main.js", size=10),
            make_file("x/src/a.py", size=10),
            make_file("notes.txt", size=1),
        ]
        assert paths(selector.select_key_files(files, cfg)) == ["README.md"]

    def test_rejection_stops_the_rest_of_the_tier(self):
        cfg = SelectionConfig(max_total_size=1000)
        files = [
            make_file("README.md", size=500),
            make_file("LICENSE", size=600),
            make_file("CONTRIBUTING.md", size=10),
        ]
        assert paths(selector.select_key_files(files, cfg)) == ["README.md"]

    def test_file_filling_budget_exactly_is_kept(self):
        cfg = SelectionConfig(max_total_size=1000)
        files = [make_file("README.md", size=400), make_file("LICENSE", size=600)]
        assert paths(selector.select_key_files(files, cfg)) == ["README.md", "LICENSE"]

    def test_dedup_across_tiers(self):
        files = [make_file("lib/src/README.md"), make_file("lib/src/other.py")]
        result = selector.select_key_files(files)
        assert paths(result) == ["lib/src/README.md", "lib/src/other.py"]

    def test_source_tier_sorted_by_marker_then_depth(self):
        files = [
            make_file("a/api/x.py"),
            make_file("a/src/deep/y.py"),
            make_file("b/src/z.py"),
            make_file("a/lib/w.py"),
        ]
        result = selector.select_key_files(files)
        assert paths(result)[:4] == ["b/src/z.py", "a/src/deep/y.py", "a/lib/w.py", "a/api/x.py"]

    def test_root_src_directory_does_not_match_marker(self):
        cfg = SelectionConfig(min_selected_before_fallback=0)
        assert selector.select_key_files([make_file("src/util.py")], cfg) == []

    def test_source_tier_capped(self):
        files = [make_file(f"pkg/src/f{i:02}.py") for i in range(25)]
        result = selector.select_key_files(files)
        assert paths(result) == [f"pkg/src/f{i:02}.py" for i in range(20)]


class TestTruncation:
    def test_oversized_file_truncated_and_halts(self):
        big = make_file("README.md", content="a" * (150 * 1024))
        files = [big, make_file("LICENSE", size=10), make_file("package.json", size=10)]
        result = selector.select_key_files(files)

        assert len(result) == 1
        assert len(result[0].content) == 100 * 1024 + len(MARKER)
        assert result[0].content.endswith(MARKER)
        assert result[0].size == len(result[0].content)

    def test_original_record_untouched(self):
        big = make_file("README.md", content="a" * 300)
        cfg = SelectionConfig(max_file_size=100)
        selector.select_key_files([big], cfg)
        assert big.size == 300
        assert len(big.content) == 300

    def test_truncated_file_let_through_past_budget(self):
        cfg = SelectionConfig(max_file_size=100, max_total_size=150)
        files = [
            make_file("README.md", size=80),
            make_file("LICENSE", size=300),
            make_file("CONTRIBUTING.md", size=1),
        ]
        result = selector.select_key_files(files, cfg)
        assert paths(result) == ["README.md", "LICENSE"]
        assert sum(f.size for f in result) == 80 + 100 + len(MARKER)

    def test_truncated_file_under_budget_continues(self):
        cfg = SelectionConfig(max_file_size=10, max_total_size=1000)
        files = [make_file("README.md", size=50), make_file("LICENSE", size=5)]
        result = selector.select_key_files(files, cfg)
        assert paths(result) == ["README.md", "LICENSE"]
        assert result[0].size == 10 + len(MARKER)

    def test_truncation_uses_recorded_size(self):
        # size, not content length, decides whether a file is oversized
        cfg = SelectionConfig(max_file_size=100)
        file = make_file("README.md", size=500, content="short")
        result = selector.select_key_files([file], cfg)
        assert result[0].content == "short" + MARKER


class TestFallback:
    def test_adds_root_files_sorted(self):
        files = [
            make_file("README.md"),
            make_file("setup.py"),
            make_file("requirements.txt"),
            make_file("pkg/module.py"),
            make_file("pkg/sub/deep.py"),
            make_file("Makefile"),
        ]
        result = selector.select_key_files(files)
        assert paths(result) == [
            "README.md",
            "Makefile",
            "pkg/module.py",
            "requirements.txt",
            "setup.py",
        ]

    def test_not_used_when_enough_selected(self, repo_files):
        result = selector.select_key_files(repo_files)
        assert "docs/guide.md" not in paths(result)

    def test_capped(self):
        files = [make_file(f"f{i:02}.txt") for i in range(30)]
        result = selector.select_key_files(files)
        assert paths(result) == [f"f{i:02}.txt" for i in range(20)]

    def test_skipped_after_budget_rejection(self):
        cfg = SelectionConfig(max_total_size=100)
        files = [make_file("README.md", size=90), make_file("package.json", size=50), make_file("a.txt", size=1)]
        assert paths(selector.select_key_files(files, cfg)) == ["README.md"]


class TestSelectionProperties:
    def test_idempotent(self, repo_files):
        once = selector.select_key_files(repo_files)
        assert selector.select_key_files(once) == once

    def test_idempotent_with_truncation(self):
        once = selector.select_key_files([make_file("README.md", content="a" * (150 * 1024))])
        assert selector.select_key_files(once) == once

    @pytest.mark.parametrize("total", [1_000, 5_000, 20_000])
    def test_budget_overflow_bounded(self, total):
        cfg = SelectionConfig(max_file_size=2_000, max_total_size=total)
        files = [make_file(f"pkg/src/f{i}.py", size=(i * 397) % 3_000 + 1) for i in range(60)]
        files += [make_file("README.md", size=2_500), make_file("index.js", size=1_500)]
        result = selector.select_key_files(files, cfg)
        assert sum(f.size for f in result) <= total + cfg.max_file_size + len(MARKER)

    def test_deterministic(self, repo_files):
        assert selector.select_key_files(repo_files) == selector.select_key_files(list(repo_files))


class TestSelectionBudget:
    def test_total_tracks_selected(self):
        budget = selector.SelectionBudget(SelectionConfig(max_file_size=50, max_total_size=1000))
        budget.commit(make_file("a", size=10))
        budget.commit(make_file("b", size=80))
        assert budget.total_size == sum(f.size for f in budget.selected)
        assert "a" in budget
        assert "c" not in budget
        assert not budget.exhausted

    def test_rejection_marks_exhausted(self):
        budget = selector.SelectionBudget(SelectionConfig(max_total_size=10))
        assert budget.commit(make_file("a", size=11)) is False
        assert budget.exhausted
        assert budget.selected == []


class TestEstimateLanguages:
    def test_orders_by_count(self):
        files = [make_file(p) for p in ("a.ts", "b.tsx", "c.py", "d.js", "README.md")]
        assert selector.estimate_languages(files) == ["TypeScript", "Python", "JavaScript"]

    def test_unknown_extensions_ignored(self):
        assert selector.estimate_languages([make_file("Makefile"), make_file("x.toml")]) == []
