import pytest

from repo_sense import config, llm
from repo_sense.models import FileRecord


def make_file(path: str, size: int | None = None, content: str | None = None) -> FileRecord:
    if content is None:
        content = "x" * (size if size is not None else 10)
    return FileRecord(path=path, content=content, size=len(content) if size is None else size)


REPO_FILES = [
    ("src/components/Header.tsx", "export const Header = () => null;\n"),
    ("README.md", "# Demo\n\nA sample project for testing."),
    ("package.json", '{"dependencies": {"next": "14.0.0", "react": "18.2.0"}, "devDependencies": {"jest": "29"}}'),
    ("src/app/index.ts", "export * from './server';\n"),
    ("index.js", "require('./src/app');\n"),
    ("tsconfig.json", '{"compilerOptions": {"strict": true}}'),
    ("src/lib/util.ts", "export const add = (a: number, b: number) => a + b;\n"),
    ("docs/guide.md", "# Guide\n"),
    ("LICENSE", "MIT License\n"),
    ("tests/app.test.ts", "test('ok', () => {});\n"),
]


@pytest.fixture
def repo_files():
    return [make_file(path, content=content) for path, content in REPO_FILES]


@pytest.fixture(autouse=True)
def _fresh_config():
    config.get_config.cache_clear()
    llm._get_client.cache_clear()
    yield
    config.get_config.cache_clear()
    llm._get_client.cache_clear()
