import base64
import logging
import os
import unicodedata
from urllib.parse import quote

from fastapi import Depends, FastAPI, File, HTTPException, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, Response

from .config import Settings, get_settings
from .errors import CleanerError, InvalidState
from .log import setup_logging
from .models import CleaningOptions, CleanResponse, ErrorResponse, HealthResponse
from .pipeline import PipelineResult, run_pipeline

logger = logging.getLogger(__name__)

setup_logging(get_settings().log_level)

app = FastAPI(
    title="csv-cleaner",
    description="Encoding recovery, cleaning and canonical re-serialization of delimited text files",
    version="0.1.0",
)


@app.exception_handler(CleanerError)
async def cleaner_error_handler(request: Request, exc: CleanerError):
    logger.warning("%s on %s: %s", exc.code, request.url.path, exc.message)
    status_code = 409 if isinstance(exc, InvalidState) else 422
    return JSONResponse(status_code=status_code, content=exc.to_dict())


def content_disposition(filename: str) -> str:
    """Attachment header with an ASCII fallback name and the RFC 5987 UTF-8 name."""
    fallback = unicodedata.normalize("NFKD", filename).encode("ascii", "ignore").decode("ascii")
    fallback = "".join(c if c.isprintable() and c not in '"\\' else "_" for c in fallback)
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"


def cleaning_options(
    trim: bool = True,
    remove_empty: bool = True,
    fix_columns: bool = True,
    dedupe: bool = False,
    normalize_header: bool = True,
    normalize_line_endings: bool = True,
    consistent_quotes: bool = True,
    encoding_marker: bool = True,
) -> CleaningOptions:
    return CleaningOptions(
        trim=trim,
        remove_empty=remove_empty,
        fix_columns=fix_columns,
        dedupe=dedupe,
        normalize_header=normalize_header,
        normalize_line_endings=normalize_line_endings,
        consistent_quotes=consistent_quotes,
        encoding_marker=encoding_marker,
    )


async def _run(file: UploadFile, options: CleaningOptions, settings: Settings) -> PipelineResult:
    filename = file.filename or ""
    extension = os.path.splitext(filename)[1].lower()
    if extension not in settings.allowed_extensions:
        raise HTTPException(
            status_code=422,
            detail=f"Only {', '.join(settings.allowed_extensions)} files are supported",
        )

    raw = await file.read()
    logger.info("Received %s (%d bytes)", filename, len(raw))
    return await run_in_threadpool(
        run_pipeline,
        raw,
        filename,
        options,
        sniff_sample_size=settings.sniff_sample_size,
        large_file_warning_mb=settings.large_file_warning_mb,
        preview_rows=settings.preview_rows,
    )


@app.get("/health", response_model=HealthResponse)
def health():
    return {"ok": True}


@app.get("/options/defaults", response_model=CleaningOptions)
def default_options():
    return CleaningOptions.defaults()


@app.post(
    "/clean",
    response_model=CleanResponse,
    responses={409: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def clean_csv(
    file: UploadFile = File(...),
    options: CleaningOptions = Depends(cleaning_options),
    settings: Settings = Depends(get_settings),
):
    result = await _run(file, options, settings)
    export = result.export
    return {
        "cleaned_csv": {
            "filename": export.filename,
            "sha256": export.sha256,
            "encoding": export.encoding,
            "media_type": export.media_type,
            "content_b64": base64.b64encode(export.content).decode("ascii"),
        },
        "diagnostics": result.diagnostics,
        "preview": result.preview,
    }


@app.post("/clean/download", responses={409: {"model": ErrorResponse}, 422: {"model": ErrorResponse}})
async def download_cleaned_csv(
    file: UploadFile = File(...),
    options: CleaningOptions = Depends(cleaning_options),
    settings: Settings = Depends(get_settings),
):
    result = await _run(file, options, settings)
    export = result.export
    return Response(
        content=export.content,
        media_type=export.media_type,
        headers={"Content-Disposition": content_disposition(export.filename)},
    )
