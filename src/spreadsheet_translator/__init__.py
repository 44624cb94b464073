"""Spreadsheet Translator - batch translation of Excel workbooks into Indian languages."""

from spreadsheet_translator.api import app, create_app

__all__ = ["app", "create_app"]
__version__ = "0.1.0"


def main() -> None:
    """Run the FastAPI server using uvicorn."""
    import uvicorn

    from spreadsheet_translator.config import settings

    uvicorn.run(
        "spreadsheet_translator.api:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.debug,
    )
