import argparse
import os
from pathlib import Path

from app.config.settings import Settings
from app.database.connection import close_pool, init_pool
from app.ingestion.models import FileCategory, UploadedFile
from app.ingestion.service import build_ingestion_service
from app.ingestion.validator import DOCX, MD, PDF, TXT
from app.logging.logger import Log

MIME_TYPES = {
    ".pdf": PDF,
    ".docx": DOCX,
    ".txt": TXT,
    ".md": MD,
    ".markdown": MD,
}


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Upload career documents for processing.")
    parser.add_argument("--owner", required=True, help="Owning user id")
    parser.add_argument(
        "--category",
        default=FileCategory.RESUME.value,
        choices=[c.value for c in FileCategory if c is not FileCategory.LINKEDIN],
    )
    parser.add_argument(
        "--token",
        default=os.environ.get("PROFILE_INGEST_TOKEN"),
        help="Bearer token for the object store (default: $PROFILE_INGEST_TOKEN)",
    )
    parser.add_argument("files", nargs="+", type=Path)
    return parser.parse_args(argv)


def load_file(path: Path) -> UploadedFile:
    mime_type = MIME_TYPES.get(path.suffix.lower(), "application/octet-stream")
    return UploadedFile(file_name=path.name, mime_type=mime_type, content=path.read_bytes())


def main(argv: list[str] | None = None) -> int:
    """Entry point: initialize pool -> build service -> upload files -> wait for processing."""
    args = parse_args(argv)
    settings = Settings()
    Log.configure(settings.log_level)
    if settings.record_store.lower() == "postgres":
        init_pool(settings)

    service = build_ingestion_service(settings)
    try:
        category = FileCategory(args.category)
        results = service.upload_files(
            [load_file(path) for path in args.files],
            args.owner,
            category,
            args.token,
        )
        service.wait_for_background()
        for result in results:
            if not result.success:
                Log.error(f"Upload failed (retryable={result.retryable}): {result.error}")
        for entry in service.progress.entries():
            Log.info(
                f"{entry.file_name}: {entry.status.value} {entry.progress}% "
                f"source={entry.source_id or '-'}"
            )
        return 0 if all(result.success for result in results) else 1
    finally:
        service.shutdown()
        close_pool()


if __name__ == "__main__":
    raise SystemExit(main())
