from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SelectionConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SELECTION_", frozen=True, extra="ignore")
    max_file_size: int = 100 * 1024  # chars per file before truncation
    max_total_size: int = 50 * 1024  # chars across all selected files
    max_source_files: int = 20
    min_selected_before_fallback: int = 5
    max_fallback_files: int = 20
    max_fallback_depth: int = 2  # path segments, so at most one directory
    truncation_marker: str = "\n... (truncated)"

    doc_names: frozenset[str] = frozenset({
        "README.md",
        "README.txt",
        "README",
        "CONTRIBUTING.md",
        "LICENSE",
        "LICENSE.md",
        "LICENSE.txt",
    })
    config_names: frozenset[str] = frozenset({
        "package.json",
        "tsconfig.json",
        "next.config.js",
        "next.config.mjs",
        "tailwind.config.js",
        "tailwind.config.ts",
        ".eslintrc",
        ".eslintrc.js",
        ".eslintrc.json",
        "eslint.config.js",
        ".prettierrc",
        ".prettierrc.js",
        ".prettierrc.json",
        "jest.config.js",
        "jest.config.ts",
        "Dockerfile",
        "docker-compose.yml",
        ".env.example",
        ".gitignore",
        "vite.config.js",
        "vite.config.ts",
        "webpack.config.js",
    })
    entry_point_names: frozenset[str] = frozenset({
        "index.ts",
        "index.js",
        "main.ts",
        "main.js",
        "app.ts",
        "app.js",
        "server.ts",
        "server.js",
    })
    # Order matters: earlier markers rank higher
    priority_dirs: tuple[str, ...] = ("/src/", "/lib/", "/app/", "/components/", "/pages/", "/api/")


class ChunkConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="CHUNK_", frozen=True, extra="ignore")
    max_chunk_tokens: int = 4_000
    chars_per_token: int = 4

    @property
    def max_chunk_size(self) -> int:
        return self.max_chunk_tokens * self.chars_per_token


class LLMConfig(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")
    hf_api_key: str | None = None
    hf_base_url: str = "https://router.huggingface.co/v1"
    model_name: str = "bigcode/starcoder2-15b"
    max_new_tokens: int = 500
    temperature: float = 0.7
    request_timeout: float = 60.0
    max_model_wait: float = 30.0  # seconds we are willing to wait for a cold model
    default_model_wait: float = 20.0


class Config(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")
    selection: SelectionConfig = Field(default_factory=SelectionConfig)
    chunking: ChunkConfig = Field(default_factory=ChunkConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    github_token: str | None = None
    max_tree_depth: int = 5  # directory levels below the root


@lru_cache
def get_config() -> Config:
    return Config()


SKIP_DIRS = {
    ".git",
    "node_modules",
    "vendor",
    "__pycache__",
    ".venv",
    "dist",
    "build",
    ".next",
    ".nuxt",
    ".tox",
    ".mypy_cache",
    ".pytest_cache",
    "target",
    "coverage",
}

BINARY_EXTENSIONS = {
    ".jpg",
    ".jpeg",
    ".png",
    ".gif",
    ".ico",
    ".pdf",
    ".zip",
    ".tar",
    ".gz",
    ".exe",
    ".dll",
    ".so",
    ".dylib",
    ".woff",
    ".woff2",
    ".ttf",
    ".eot",
    ".mp3",
    ".mp4",
    ".pyc",
    ".class",
    ".o",
}
