from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class FileRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str = Field(min_length=1)
    content: str = ""
    size: int = Field(default=0, ge=0)

    @property
    def name(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    @property
    def depth(self) -> int:
        """Number of path segments; a root-level file has depth 1."""
        return self.path.count("/") + 1


class ContentChunk(BaseModel):
    content: str
    file_count: int
    total_size: int


class RepoMetadata(BaseModel):
    name: str
    owner: str
    description: str = ""
    primary_language: str = "Unknown"
    stars: int = 0
    topics: list[str] = []
    default_branch: str | None = None


class Overview(BaseModel):
    name: str
    owner: str
    primary_language: str
    files_analyzed: int
    description: str


class TechStack(BaseModel):
    languages: list[str] = []
    frameworks: list[str] = []
    tools: list[str] = []
    dependencies: list[str] = []


class KeyDirectory(BaseModel):
    path: str
    purpose: str


class Structure(BaseModel):
    tree_view: str
    key_directories: list[KeyDirectory] = []


class EntryPoint(BaseModel):
    file: str
    description: str


class KeyFindings(BaseModel):
    entry_points: list[EntryPoint] = []
    patterns: list[str] = []
    notable: list[str] = []


class CodeQuality(BaseModel):
    has_tests: bool = False
    has_typescript: bool = False
    has_linting: bool = False
    config_files: list[str] = []


class AnalysisData(BaseModel):
    overview: Overview
    tech_stack: TechStack
    structure: Structure
    key_findings: KeyFindings
    code_quality: CodeQuality


class AnalyzeRequest(BaseModel):
    repo_url: str


class AnalysisResponse(BaseModel):
    success: Literal[True] = True
    data: AnalysisData


class ErrorResponse(BaseModel):
    success: Literal[False] = False
    error: str
