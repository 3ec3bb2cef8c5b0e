"""Turn selected files and raw model responses into a structured analysis."""

import json
import logging
import re
from typing import Sequence

from repo_sense import models
from repo_sense.models import FileRecord
from repo_sense.selector import estimate_languages

logger = logging.getLogger(__name__)

TREE_MAX_DEPTH = 3  # directory levels shown below the root

DIR_PURPOSES = {
    "src": "Source code",
    "app": "Application code",
    "lib": "Library/utility code",
    "components": "React components",
    "pages": "Page components",
    "api": "API routes",
    "public": "Static assets",
    "tests": "Test files",
    "docs": "Documentation",
}

PACKAGE_FRAMEWORKS = {
    "next": "Next.js",
    "react": "React",
    "vue": "Vue.js",
    "@angular/core": "Angular",
    "svelte": "Svelte",
    "express": "Express",
    "fastify": "Fastify",
    "nestjs": "NestJS",
    "@nestjs/core": "NestJS",
    "gatsby": "Gatsby",
    "nuxt": "Nuxt.js",
}

CONFIG_FILE_FRAMEWORKS = {
    "next.config.js": "Next.js",
    "next.config.mjs": "Next.js",
    "vue.config.js": "Vue.js",
    "angular.json": "Angular",
    "gatsby-config.js": "Gatsby",
    "nuxt.config.js": "Nuxt.js",
    "nuxt.config.ts": "Nuxt.js",
    "vite.config.js": "Vite",
    "vite.config.ts": "Vite",
}

REQUIREMENTS_FRAMEWORKS = {"django": "Django", "flask": "Flask", "fastapi": "FastAPI"}
GO_MOD_FRAMEWORKS = {"gin-gonic/gin": "Gin", "gorilla/mux": "Gorilla"}

MAX_ENTRY_POINTS = 5
MAX_PATTERNS = 10
MAX_NOTABLE = 5
MAX_DEPENDENCIES = 10
MAX_CONFIG_FILES = 5
MAX_LANGUAGES = 5

_SOURCE_FILE = re.compile(r"([a-zA-Z0-9_\-/.]+\.(?:ts|js|py|go|java|rb))")
_BULLET = re.compile(r"^[-*•]\s*")
_PATTERN_KEYWORDS = ("pattern", "architecture", "convention", "uses", "follows")
_NOTABLE_KEYWORDS = ("notable", "important", "well-structured", "comprehensive")


def _file_names(files: Sequence[FileRecord]) -> list[str]:
    return [f.name for f in files]


def _find_package_json(files: Sequence[FileRecord]) -> dict | None:
    file = next((f for f in files if f.path == "package.json" or f.path.endswith("/package.json")), None)
    if file is None:
        return None
    try:
        data = json.loads(file.content)
    except json.JSONDecodeError:
        logger.debug(f"Ignoring invalid JSON in {file.path}")
        return None
    return data if isinstance(data, dict) else None


def _section(data: dict, key: str) -> dict:
    value = data.get(key)
    return value if isinstance(value, dict) else {}


def generate_tree_view(files: Sequence[FileRecord], max_depth: int = TREE_MAX_DEPTH) -> str:
    root: dict = {"dirs": {}, "files": []}
    for file in files:
        parts = file.path.split("/")
        if len(parts) > max_depth + 1:
            continue
        node = root
        for part in parts[:-1]:
            node = node["dirs"].setdefault(part, {"dirs": {}, "files": []})
        node["files"].append(parts[-1])

    def render(node: dict, prefix: str = "") -> list[str]:
        lines = []
        dirs = list(node["dirs"].items())
        for i, (name, child) in enumerate(dirs):
            is_last = i == len(dirs) - 1 and not node["files"]
            lines.append(f"{prefix}{'└── ' if is_last else '├── '}{name}/")
            lines.extend(render(child, prefix + ("    " if is_last else "│   ")))
        for i, name in enumerate(node["files"]):
            is_last = i == len(node["files"]) - 1
            lines.append(f"{prefix}{'└── ' if is_last else '├── '}{name}")
        return lines

    return "\n".join(render(root)).strip()


def detect_frameworks(files: Sequence[FileRecord]) -> list[str]:
    found: dict[str, None] = {}

    package = _find_package_json(files)
    if package is not None:
        deps = {**_section(package, "dependencies"), **_section(package, "devDependencies")}
        for dep, framework in PACKAGE_FRAMEWORKS.items():
            if dep in deps:
                found[framework] = None

    for name in _file_names(files):
        framework = CONFIG_FILE_FRAMEWORKS.get(name)
        if framework:
            found[framework] = None

    requirements = next((f for f in files if "requirements.txt" in f.path), None)
    if requirements is not None:
        content = requirements.content.lower()
        for marker, framework in REQUIREMENTS_FRAMEWORKS.items():
            if marker in content:
                found[framework] = None

    go_mod = next((f for f in files if "go.mod" in f.path), None)
    if go_mod is not None:
        for marker, framework in GO_MOD_FRAMEWORKS.items():
            if marker in go_mod.content:
                found[framework] = None

    return list(found)


def _has_eslint(names: Sequence[str]) -> bool:
    return any(n.startswith(".eslintrc") or n == "eslint.config.js" for n in names)


def detect_tools(files: Sequence[FileRecord]) -> list[str]:
    names = _file_names(files)
    tools = []
    if _has_eslint(names):
        tools.append("ESLint")
    if any(n.startswith(".prettierrc") for n in names):
        tools.append("Prettier")
    if any("jest.config" in n for n in names):
        tools.append("Jest")
    if "Dockerfile" in names:
        tools.append("Docker")
    if "docker-compose.yml" in names:
        tools.append("Docker Compose")
    return tools


def extract_dependencies(files: Sequence[FileRecord], limit: int = MAX_DEPENDENCIES) -> list[str]:
    package = _find_package_json(files)
    if package is None:
        return []
    return list(_section(package, "dependencies"))[:limit]


def identify_key_directories(files: Sequence[FileRecord]) -> list[models.KeyDirectory]:
    top_level = dict.fromkeys(f.path.split("/")[0] for f in files if "/" in f.path)
    return [
        models.KeyDirectory(path=d, purpose=DIR_PURPOSES[d])
        for d in top_level
        if d in DIR_PURPOSES
    ]


def extract_key_findings(responses: Sequence[str]) -> models.KeyFindings:
    """Heuristically pull entry points, patterns and notable remarks out of model text."""
    entry_points: list[models.EntryPoint] = []
    patterns: dict[str, None] = {}
    notable: dict[str, None] = {}

    for response in responses:
        for line in (l.strip() for l in response.split("\n")):
            if not line:
                continue

            if any(ext in line for ext in (".ts", ".js", ".py")):
                match = _SOURCE_FILE.search(line)
                if match:
                    file = match.group(1)
                    description = _BULLET.sub("", line.replace(file, "", 1)).strip()
                    if 0 < len(description) < 100:
                        entry_points.append(models.EntryPoint(file=file, description=description))

            lowered = line.lower()
            cleaned = _BULLET.sub("", line).strip()
            if not 10 < len(cleaned) < 150:
                continue
            if any(k in lowered for k in _PATTERN_KEYWORDS):
                patterns[cleaned] = None
            if any(k in lowered for k in _NOTABLE_KEYWORDS):
                notable[cleaned] = None

    return models.KeyFindings(
        entry_points=entry_points[:MAX_ENTRY_POINTS],
        patterns=list(patterns)[:MAX_PATTERNS],
        notable=list(notable)[:MAX_NOTABLE],
    )


def assess_code_quality(files: Sequence[FileRecord]) -> models.CodeQuality:
    names = _file_names(files)
    config_files = [
        f.path for f in files
        if "config" in f.name or f.name.startswith(".") or f.name == "package.json"
    ]
    return models.CodeQuality(
        has_tests=any(
            marker in f.path for f in files for marker in (".test.", ".spec.", "/tests/", "/__tests__/")
        ),
        has_typescript=any(f.path.endswith((".ts", ".tsx")) for f in files),
        has_linting=_has_eslint(names),
        config_files=config_files[:MAX_CONFIG_FILES],
    )


def aggregate_analysis(
    responses: Sequence[str],
    files: Sequence[FileRecord],
    metadata: models.RepoMetadata,
) -> models.AnalysisData:
    languages = estimate_languages(files)
    return models.AnalysisData(
        overview=models.Overview(
            name=metadata.name,
            owner=metadata.owner,
            primary_language=metadata.primary_language or (languages[0] if languages else "Unknown"),
            files_analyzed=len(files),
            description=metadata.description or "No description available",
        ),
        tech_stack=models.TechStack(
            languages=languages[:MAX_LANGUAGES],
            frameworks=detect_frameworks(files),
            tools=detect_tools(files),
            dependencies=extract_dependencies(files),
        ),
        structure=models.Structure(
            tree_view=generate_tree_view(files),
            key_directories=identify_key_directories(files),
        ),
        key_findings=extract_key_findings(responses),
        code_quality=assess_code_quality(files),
    )


def empty_analysis(metadata: models.RepoMetadata, description: str, tree_view: str) -> models.AnalysisData:
    return models.AnalysisData(
        overview=models.Overview(
            name=metadata.name,
            owner=metadata.owner,
            primary_language=metadata.primary_language,
            files_analyzed=0,
            description=description,
        ),
        tech_stack=models.TechStack(),
        structure=models.Structure(tree_view=tree_view),
        key_findings=models.KeyFindings(),
        code_quality=models.CodeQuality(),
    )
