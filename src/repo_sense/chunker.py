import logging
from typing import Sequence

from repo_sense.config import ChunkConfig
from repo_sense.models import ContentChunk, FileRecord

logger = logging.getLogger(__name__)


def render_file(file: FileRecord) -> str:
    return f"=== {file.path} ===\n{file.content}\n\n"


def chunk_content(
    files: Sequence[FileRecord],
    cfg: ChunkConfig | None = None,
) -> list[ContentChunk]:
    """Pack rendered files, in order, into chunks of at most ``cfg.max_chunk_size`` chars.

    A file is never split: one that does not fit in an empty chunk becomes an
    oversized chunk of its own. ``total_size`` sums the files' original sizes,
    not the rendered length.
    """
    cfg = cfg or ChunkConfig()
    max_size = cfg.max_chunk_size

    chunks: list[ContentChunk] = []
    parts: list[str] = []
    used = 0
    file_count = 0
    total_size = 0

    for file in files:
        block = render_file(file)

        if parts and used + len(block) > max_size:
            chunks.append(ContentChunk(content="".join(parts), file_count=file_count, total_size=total_size))
            parts = []
            used = 0
            file_count = 0
            total_size = 0

        parts.append(block)
        used += len(block)
        file_count += 1
        total_size += file.size

    if parts:
        chunks.append(ContentChunk(content="".join(parts), file_count=file_count, total_size=total_size))

    logger.debug(f"Chunked {len(files)} files into {len(chunks)} chunks (max {max_size} chars)")
    return chunks
