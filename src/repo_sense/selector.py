"""Budgeted selection of the files most likely to explain a repository.

Candidates are ranked in tiers (documentation, configuration, entry points,
source directories, then a root-level fallback) and committed against a
shared size budget. Once the budget rejects a candidate nothing else is
selected, in that tier or any later one.
"""

import logging
from collections import Counter
from pathlib import PurePosixPath
from typing import Any, Callable, NamedTuple, Sequence

from repo_sense.config import SelectionConfig
from repo_sense.models import FileRecord

logger = logging.getLogger(__name__)

EXTENSION_LANGUAGES = {
    ".ts": "TypeScript",
    ".tsx": "TypeScript",
    ".js": "JavaScript",
    ".jsx": "JavaScript",
    ".py": "Python",
    ".go": "Go",
    ".java": "Java",
    ".rb": "Ruby",
    ".php": "PHP",
    ".c": "C",
    ".cpp": "C++",
    ".cs": "C#",
    ".swift": "Swift",
    ".kt": "Kotlin",
    ".rs": "Rust",
    ".scala": "Scala",
    ".html": "HTML",
    ".css": "CSS",
    ".scss": "SCSS",
    ".sass": "Sass",
    ".vue": "Vue",
    ".svelte": "Svelte",
}


class SelectionBudget:
    """Running size accounting for a single selection run."""

    def __init__(self, cfg: SelectionConfig):
        self.cfg = cfg
        self.total_size = 0
        self.selected: list[FileRecord] = []
        self.exhausted = False
        self._paths: set[str] = set()

    def __contains__(self, path: str) -> bool:
        return path in self._paths

    def __len__(self) -> int:
        return len(self.selected)

    def _append(self, file: FileRecord) -> None:
        self.selected.append(file)
        self._paths.add(file.path)
        self.total_size += file.size

    def truncate(self, file: FileRecord) -> FileRecord:
        content = file.content[: self.cfg.max_file_size] + self.cfg.truncation_marker
        return file.model_copy(update={"content": content, "size": len(content)})

    def commit(self, file: FileRecord) -> bool:
        """Try to add a file; returns False once the budget is spent.

        Oversized files are truncated and always appended, even when that
        pushes the total past the cap. Any other file that would overflow the
        cap is rejected without being appended.
        """
        if file.size > self.cfg.max_file_size:
            self._append(self.truncate(file))
            if self.total_size >= self.cfg.max_total_size:
                self.exhausted = True
            return not self.exhausted

        if self.total_size + file.size > self.cfg.max_total_size:
            self.exhausted = True
            return False

        self._append(file)
        return True


class Tier(NamedTuple):
    name: str
    matches: Callable[[FileRecord], bool]
    sort_key: Callable[[FileRecord], Any] | None = None
    limit: int | None = None


def _first_marker_index(path: str, markers: Sequence[str]) -> int:
    return next((i for i, marker in enumerate(markers) if marker in path), len(markers))


def build_tiers(cfg: SelectionConfig) -> list[Tier]:
    return [
        Tier("docs", lambda f: f.name in cfg.doc_names),
        Tier("config", lambda f: f.name in cfg.config_names),
        Tier(
            "entry points",
            lambda f: f.name in cfg.entry_point_names,
            sort_key=lambda f: f.depth,
        ),
        Tier(
            "source dirs",
            lambda f: any(marker in f.path for marker in cfg.priority_dirs),
            sort_key=lambda f: (_first_marker_index(f.path, cfg.priority_dirs), f.depth),
            limit=cfg.max_source_files,
        ),
    ]


def fallback_tier(cfg: SelectionConfig) -> Tier:
    return Tier(
        "root fallback",
        lambda f: f.depth <= cfg.max_fallback_depth,
        sort_key=lambda f: f.path,
        limit=cfg.max_fallback_files,
    )


def rank_and_commit(budget: SelectionBudget, files: Sequence[FileRecord], tier: Tier) -> int:
    """Commit one tier's candidates in rank order. Returns how many were added."""
    candidates = [f for f in files if f.path not in budget and tier.matches(f)]
    if tier.sort_key is not None:
        # sorted() is stable, so input order breaks ties
        candidates = sorted(candidates, key=tier.sort_key)
    if tier.limit is not None:
        candidates = candidates[: tier.limit]

    before = len(budget)
    for file in candidates:
        if file.path in budget:
            continue
        if not budget.commit(file):
            break
    added = len(budget) - before
    logger.debug(f"Tier '{tier.name}': {len(candidates)} candidates, {added} selected")
    return added


def select_key_files(
    files: Sequence[FileRecord],
    cfg: SelectionConfig | None = None,
) -> list[FileRecord]:
    cfg = cfg or SelectionConfig()
    budget = SelectionBudget(cfg)

    for tier in build_tiers(cfg):
        rank_and_commit(budget, files, tier)
        if budget.exhausted:
            break

    # TODO: revisit whether one rejected candidate should end every later tier
    if not budget.exhausted and len(budget) < cfg.min_selected_before_fallback:
        rank_and_commit(budget, files, fallback_tier(cfg))

    if budget.exhausted:
        logger.info(
            f"Selection budget reached at {budget.total_size} chars "
            f"after {len(budget)} of {len(files)} files"
        )
    return budget.selected


def estimate_languages(files: Sequence[FileRecord]) -> list[str]:
    """Languages present in ``files``, most common first."""
    counts: Counter[str] = Counter()
    for file in files:
        language = EXTENSION_LANGUAGES.get(PurePosixPath(file.path).suffix.lower())
        if language:
            counts[language] += 1
    return [language for language, _ in counts.most_common()]
