"""FastAPI application for spreadsheet translation."""

import json
import uuid
from datetime import UTC, datetime
from typing import Annotated, Any
from urllib.parse import quote

from fastapi import (
    FastAPI,
    File,
    Form,
    HTTPException,
    Request,
    Response,
    UploadFile,
    status,
)
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from spreadsheet_translator.config import settings, validate_settings_on_startup
from spreadsheet_translator.models import (
    ErrorDetail,
    HealthResponse,
    QualityCheckRequest,
    QualityCheckResponse,
    TemplateCreateRequest,
    TemplateListResponse,
    TemplateResponse,
    TemplateUpdateRequest,
)
from spreadsheet_translator.services.backend import (
    ChatOpenAIBackend,
    TextGenerationBackend,
)
from spreadsheet_translator.services.batch_translator import BatchTranslator
from spreadsheet_translator.services.prompt_builder import PromptBuilder
from spreadsheet_translator.services.quality_checker import (
    QualityChecker,
    quality_suggestions,
)
from spreadsheet_translator.services.template_repository import (
    InMemoryTemplateRepository,
    PromptTemplate,
    TemplateRepository,
)
from spreadsheet_translator.services.translation_pipeline import TranslationPipeline
from spreadsheet_translator.services.workbook_codec import (
    WorkbookCodec,
    translated_file_name,
)
from spreadsheet_translator.sheet_document import (
    Domain,
    QualityLevel,
    TargetLanguage,
    Tone,
    TranslationSettings,
    Workbook,
    parse_glossary,
)
from spreadsheet_translator.utils.exceptions import (
    ErrorCode,
    SpreadsheetTranslatorError,
    ValidationError,
)
from spreadsheet_translator.utils.logging import (
    clear_context,
    configure_logging,
    get_logger,
    get_request_id,
    set_request_id,
)

# Configure structured logging using settings
configure_logging(
    level=settings.log_level_int,
    use_structured_formatter=True,
)
logger = get_logger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
API_VERSION = "0.1.0"


def _parse_json_field(raw: str | None, field: str, expected: type) -> Any:
    """Decode an optional JSON form field of the given top-level type."""
    if raw is None or not raw.strip():
        return None
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValidationError(
            f"Invalid JSON in '{field}': {e}",
            field=field,
            details={"parse_error": str(e)},
        ) from e
    if not isinstance(value, expected):
        raise ValidationError(
            f"'{field}' must be a JSON {expected.__name__}",
            field=field,
        )
    return value


def apply_sheet_options(
    workbook: Workbook,
    sheets: list[Any] | None,
    protected_columns: dict[str, Any] | None,
) -> None:
    """Apply sheet selection and protected columns from the request.

    Raises:
        ValidationError: If a named sheet does not exist or an entry is malformed.
    """
    known = {sheet.name for sheet in workbook.sheets}

    if sheets is not None:
        unknown = [name for name in sheets if name not in known]
        if unknown:
            raise ValidationError(
                "Unknown sheet name(s) in 'sheets'",
                field="sheets",
                errors=[str(name) for name in unknown],
            )
        for sheet in workbook.sheets:
            sheet.included = sheet.name in sheets

    for name, columns in (protected_columns or {}).items():
        sheet = workbook.get_sheet(name)
        if sheet is None:
            raise ValidationError(
                f"Unknown sheet '{name}' in 'protected_columns'",
                field="protected_columns",
            )
        if not isinstance(columns, list):
            raise ValidationError(
                f"Protected columns for '{name}' must be a list of column labels",
                field="protected_columns",
            )
        sheet.protected_columns = {str(column) for column in columns}


def _template_response(
    template: PromptTemplate, templates: TemplateRepository
) -> TemplateResponse:
    active = templates.get_active()
    return TemplateResponse(
        **template.to_dict(),
        active=active is not None and active.id == template.id,
    )


def create_app(
    templates: TemplateRepository | None = None,
    backend: TextGenerationBackend | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        templates: Prompt template store. Defaults to an in-memory store.
        backend: Translation backend. Defaults to the OpenAI chat backend.
    """
    app = FastAPI(
        title="Spreadsheet Translator API",
        description=(
            "Translate the text cells of Excel workbooks into Indian languages "
            "while preserving codes, formulas, dates, emails and URLs."
        ),
        version=API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    app.state.templates = templates or InMemoryTemplateRepository()
    app.state.backend = backend or ChatOpenAIBackend()
    app.state.codec = WorkbookCodec()
    app.state.quality_checker = QualityChecker()

    # Configure CORS using settings
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[
            "Content-Disposition",
            "X-Request-ID",
            "X-Cells-Total",
            "X-Cells-Translated",
            "X-Cells-Skipped",
            "X-Cells-Untranslated",
            "X-Failed-Batches",
        ],
    )

    # Validate settings on startup
    validate_settings_on_startup(settings)

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next: Any) -> Any:
        """Assign a request ID, expose it in logs and echo it in the response."""
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        set_request_id(request_id)
        request.state.request_id = request_id

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            clear_context()

    @app.exception_handler(SpreadsheetTranslatorError)
    async def translator_exception_handler(
        request: Request, exc: SpreadsheetTranslatorError
    ) -> JSONResponse:
        """Return structured error responses for application exceptions."""
        request_id = getattr(request.state, "request_id", get_request_id())
        logger.error(
            f"Translator Error: {exc.message}",
            error_code=exc.error_code.value,
            http_status=exc.http_status,
        )
        return JSONResponse(
            status_code=exc.http_status,
            content=ErrorDetail.from_error_code(
                exc.error_code,
                exc.message,
                details=exc.details or None,
                request_id=request_id,
            ).model_dump(exclude_none=True),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(
        request: Request, exc: HTTPException
    ) -> JSONResponse:
        request_id = getattr(request.state, "request_id", get_request_id())
        logger.warning(
            f"HTTP Error: {exc.detail}",
            status_code=exc.status_code,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorDetail(
                detail=str(exc.detail),
                request_id=request_id,
            ).model_dump(exclude_none=True),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Catch-all handler that hides internals outside debug mode."""
        request_id = getattr(request.state, "request_id", get_request_id())
        logger.exception(
            f"Unexpected error: {type(exc).__name__}",
            error_type=type(exc).__name__,
        )
        if settings.debug:
            detail = f"Internal server error: {type(exc).__name__}: {exc}"
        else:
            detail = "Internal server error. Please try again later."

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorDetail.from_error_code(
                ErrorCode.INTERNAL_ERROR, detail, request_id=request_id
            ).model_dump(exclude_none=True),
        )

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check(request: Request) -> dict[str, Any]:
        """Check the health status of the service."""
        request_id = getattr(request.state, "request_id", None)
        logger.debug("Health check requested", request_id=request_id)
        return {
            "status": "healthy",
            "timestamp": datetime.now(UTC).isoformat(),
            "version": API_VERSION,
        }

    @app.post(
        "/translate",
        tags=["Translation"],
        response_class=Response,
        responses={
            200: {
                "content": {XLSX_MEDIA_TYPE: {}},
                "description": "Translated workbook",
            },
            400: {"model": ErrorDetail, "description": "Invalid workbook or options"},
            413: {"model": ErrorDetail, "description": "File too large"},
            422: {"model": ErrorDetail, "description": "Nothing to translate"},
            502: {"model": ErrorDetail, "description": "Backend unavailable"},
        },
    )
    async def translate_workbook(
        request: Request,
        file: Annotated[UploadFile, File(description="Workbook (.xlsx) to translate")],
        target_language: Annotated[
            TargetLanguage | None, Form(description="Target locale")
        ] = None,
        tone: Annotated[Tone | None, Form(description="Register")] = None,
        domain: Annotated[Domain | None, Form(description="Content domain")] = None,
        quality: Annotated[
            QualityLevel | None, Form(description="Quality level")
        ] = None,
        glossary: Annotated[
            str, Form(description="One 'term[,keep_as]' entry per line")
        ] = "",
        sheets: Annotated[
            str | None, Form(description="JSON list of sheet names to translate")
        ] = None,
        protected_columns: Annotated[
            str | None,
            Form(description="JSON object mapping sheet name to column labels"),
        ] = None,
    ) -> Response:
        """Translate an uploaded workbook and return the translated copy.

        Counters for the run are returned in ``X-Cells-*`` and
        ``X-Failed-Batches`` response headers.
        """
        request_id = getattr(request.state, "request_id", None)

        if file.filename is None or file.filename == "":
            raise ValidationError(
                message="A workbook file must be provided",
                field="file",
            )

        selected_sheets = _parse_json_field(sheets, "sheets", list)
        protected = _parse_json_field(protected_columns, "protected_columns", dict)

        defaults = settings.default_translation_settings()
        translation_settings = TranslationSettings(
            target_language=target_language or defaults.target_language,
            tone=tone or defaults.tone,
            domain=domain or defaults.domain,
            quality=quality or defaults.quality,
        )

        content = await file.read()
        codec = request.app.state.codec
        # openpyxl work is blocking; keep it off the event loop.
        workbook = await run_in_threadpool(codec.decode, content, file.filename)
        apply_sheet_options(workbook, selected_sheets, protected)

        logger.info(
            "Translation requested",
            filename=file.filename,
            file_size=len(content),
            target_language=translation_settings.target_language.value,
            request_id=request_id,
        )

        translator = BatchTranslator(
            request.app.state.backend,
            prompt_builder=PromptBuilder(request.app.state.templates),
        )
        pipeline = TranslationPipeline(translator)
        run = await pipeline.run(
            workbook, translation_settings, parse_glossary(glossary)
        )

        output_name = translated_file_name(file.filename)
        stats = run.stats
        output = await run_in_threadpool(codec.encode, run.workbook)
        return Response(
            content=output,
            media_type=XLSX_MEDIA_TYPE,
            headers={
                "Content-Disposition": (
                    f"attachment; filename*=UTF-8''{quote(output_name)}"
                ),
                "X-Cells-Total": str(stats.total),
                "X-Cells-Translated": str(stats.translated),
                "X-Cells-Skipped": str(stats.skipped),
                "X-Cells-Untranslated": str(stats.untranslated),
                "X-Failed-Batches": str(stats.failed_batches),
            },
        )

    @app.post(
        "/quality/check",
        response_model=QualityCheckResponse,
        tags=["Quality"],
    )
    async def check_quality(
        request: Request, body: QualityCheckRequest
    ) -> dict[str, Any]:
        """Score translations against the language rule table."""
        checker: QualityChecker = request.app.state.quality_checker
        report, pair_reports = checker.check_many(
            ((pair.original, pair.translated) for pair in body.pairs),
            domain=body.domain,
            language=body.language,
        )
        logger.info(
            "Quality check completed",
            pairs=len(pair_reports),
            score=report.score,
            issues=len(report.issues),
        )
        return {
            "report": report.to_dict(),
            "pairs": [pair_report.to_dict() for pair_report in pair_reports],
            "suggestions": quality_suggestions(report.issues),
        }

    @app.get(
        "/templates",
        response_model=TemplateListResponse,
        tags=["Templates"],
    )
    async def list_templates(request: Request) -> TemplateListResponse:
        templates: TemplateRepository = request.app.state.templates
        active = templates.get_active()
        return TemplateListResponse(
            templates=[
                _template_response(template, templates)
                for template in templates.list_templates()
            ],
            active_id=active.id if active else None,
        )

    @app.post(
        "/templates",
        response_model=TemplateResponse,
        status_code=status.HTTP_201_CREATED,
        tags=["Templates"],
        responses={400: {"model": ErrorDetail, "description": "Invalid template"}},
    )
    async def create_template(
        request: Request, body: TemplateCreateRequest
    ) -> TemplateResponse:
        templates: TemplateRepository = request.app.state.templates
        template = templates.create(body.name, body.system_prompt, body.user_prompt)
        return _template_response(template, templates)

    @app.delete(
        "/templates/active",
        status_code=status.HTTP_204_NO_CONTENT,
        tags=["Templates"],
    )
    async def reset_active_template(request: Request) -> Response:
        """Go back to the built-in prompt."""
        request.app.state.templates.reset_active()
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @app.get(
        "/templates/{template_id}",
        response_model=TemplateResponse,
        tags=["Templates"],
        responses={404: {"model": ErrorDetail, "description": "Template not found"}},
    )
    async def get_template(request: Request, template_id: str) -> TemplateResponse:
        templates: TemplateRepository = request.app.state.templates
        return _template_response(templates.get(template_id), templates)

    @app.put(
        "/templates/{template_id}",
        response_model=TemplateResponse,
        tags=["Templates"],
        responses={
            400: {"model": ErrorDetail, "description": "Invalid template"},
            404: {"model": ErrorDetail, "description": "Template not found"},
        },
    )
    async def update_template(
        request: Request, template_id: str, body: TemplateUpdateRequest
    ) -> TemplateResponse:
        templates: TemplateRepository = request.app.state.templates
        template = templates.update(
            template_id,
            name=body.name,
            system_prompt=body.system_prompt,
            user_prompt=body.user_prompt,
        )
        return _template_response(template, templates)

    @app.delete(
        "/templates/{template_id}",
        status_code=status.HTTP_204_NO_CONTENT,
        tags=["Templates"],
        responses={404: {"model": ErrorDetail, "description": "Template not found"}},
    )
    async def delete_template(request: Request, template_id: str) -> Response:
        request.app.state.templates.delete(template_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @app.post(
        "/templates/{template_id}/activate",
        response_model=TemplateResponse,
        tags=["Templates"],
        responses={404: {"model": ErrorDetail, "description": "Template not found"}},
    )
    async def activate_template(
        request: Request, template_id: str
    ) -> TemplateResponse:
        templates: TemplateRepository = request.app.state.templates
        template = templates.set_active(template_id)
        logger.info("Prompt template activated", template_id=template_id)
        return _template_response(template, templates)

    logger.info("FastAPI application created successfully")
    return app


# Create the application instance
app = create_app()
