UNAVAILABLE_PLACEHOLDER = "Analysis unavailable for this section."


def build_chunk_analysis_prompt(chunk_content: str) -> str:
    return f"""\
Analyze this code repository content and provide insights:

Repository files:
{chunk_content}

Please identify:
1. Primary programming language and frameworks
2. Project structure and organization
3. Key entry points and important files
4. Code patterns and architectural decisions
5. Dependencies and tools used

Response format: Concise bullet points."""
