import logging
import time

import httpx

from repo_sense import analyzer, chunker, config, github, llm, models, selector

logger = logging.getLogger(__name__)

PARTIAL_ANALYSIS_NOTE = "AI analysis partially available - using file structure analysis"


async def analyze_repository(repo_url: str) -> models.AnalysisData:
    cfg = config.get_config()
    owner, repo = github.parse_github_url(repo_url)
    logger.info(f"Analyzing {owner}/{repo}")

    async with httpx.AsyncClient(timeout=30.0) as client:
        metadata = await github.fetch_repository_metadata(client, owner, repo, cfg.github_token)
        if not metadata.default_branch:
            return analyzer.empty_analysis(
                metadata, metadata.description or "Repository appears to be empty", "(empty)",
            )

        t0 = time.monotonic()
        files = await github.fetch_repository_contents(
            client,
            owner,
            repo,
            metadata.default_branch,
            config.SKIP_DIRS,
            config.BINARY_EXTENSIONS,
            cfg.max_tree_depth,
            cfg.github_token,
        )
        logger.info(f"Fetched {len(files)} files in {time.monotonic() - t0:.1f}s")

    if not files:
        return analyzer.empty_analysis(
            metadata, metadata.description or "Repository appears to be empty", "(empty)",
        )

    selected = selector.select_key_files(files, cfg.selection)
    logger.info(f"Selected {len(selected)} of {len(files)} files, {sum(f.size for f in selected)} chars")
    if not selected:
        return analyzer.empty_analysis(metadata, "No analyzable text files found", "(no analyzable files)")

    chunks = chunker.chunk_content(selected, cfg.chunking)
    logger.info(f"Split selection into {len(chunks)} chunks")

    t0 = time.monotonic()
    try:
        responses = await llm.analyze_chunks(chunks)
    except Exception:
        logger.exception("Chunk analysis failed, falling back to file structure analysis")
        basic = analyzer.aggregate_analysis([], selected, metadata)
        basic.key_findings = models.KeyFindings(patterns=[PARTIAL_ANALYSIS_NOTE])
        return basic
    logger.info(f"Chunk analysis completed in {time.monotonic() - t0:.1f}s")

    return analyzer.aggregate_analysis(responses, selected, metadata)
