import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.requests import Request
from fastapi.responses import JSONResponse

from repo_sense import core, github, models

logger = logging.getLogger(__name__)


app = FastAPI(title="RepoSense Repository Analyzer")


@app.exception_handler(github.GitHubError)
async def github_error_handler(request: Request, exc: github.GitHubError) -> JSONResponse:
    logger.error(f"GitHub error: {exc}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.message},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    messages = "; ".join(
        f"{'.'.join(str(loc) for loc in e['loc'])}: {e['msg']}" for e in exc.errors()
    )
    return JSONResponse(
        status_code=422,
        content={"success": False, "error": messages},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error")
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "An unexpected error occurred during analysis"},
    )


@app.get("/")
async def root():
    return {
        "service": "RepoSense Repository Analyzer",
        "usage": "POST /analyze with {\"repo_url\": \"https://github.com/owner/repo\"}",
        "docs": "/docs",
    }


@app.post(
    "/analyze",
    response_model=models.AnalysisResponse,
)
async def analyze(request: models.AnalyzeRequest) -> models.AnalysisResponse:
    data = await core.analyze_repository(request.repo_url)
    return models.AnalysisResponse(data=data)
