"""Command-line interface for batch extraction and feedback maintenance.

Subcommands:

- ``extract``: run a folder of scanned forms through the pipeline and
  write the cleaned rows and their issues as JSON.
- ``feedback``: list, summarize or clear the learned user corrections.
- ``serve``: start the API server.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

from inkform.documents.models import Document
from inkform.extraction.base import ExtractionError
from inkform.pipeline.orchestrator import BatchSummary
from inkform.services import Services, build_client, build_orchestrator, build_services
from inkform.utils.config import load_config
from inkform.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

_SUPPORTED_EXTENSIONS = ("*.png", "*.jpg", "*.jpeg", "*.webp", "*.tiff", "*.tif")


def _find_images(input_dir: Path) -> list[Path]:
    """Find all supported image files in a directory.

    Args:
        input_dir: Directory to scan.

    Returns:
        Sorted list of image paths.
    """
    files: list[Path] = []
    for ext in _SUPPORTED_EXTENSIONS:
        files.extend(input_dir.glob(ext))
        files.extend(input_dir.glob(ext.upper()))
    return sorted(set(files))


def _document_to_dict(document: Document) -> dict[str, object]:
    return {
        "id": document.id,
        "filename": document.name,
        "status": str(document.status),
        "error": document.error,
        "rows": [
            {
                "verified": row.verified,
                **{str(f): v for f, v in row.values.items()},
                "corrections": {
                    str(f): {"original": c.original, "reason": c.reason}
                    for f, c in row.corrections.items()
                },
            }
            for row in document.rows
        ],
        "issues": [
            {
                "row": issue.row_index,
                "field": str(issue.field),
                "message": issue.message,
                "category": str(issue.category),
            }
            for issue in document.issues
        ],
    }


def extract_folder(
    services: Services,
    input_dir: Path,
    sidecar_dir: Path | None = None,
) -> tuple[BatchSummary, list[Document]]:
    """Register every image in ``input_dir`` and run the orchestrator.

    Args:
        services: Shared collaborators.
        input_dir: Folder of scanned forms.
        sidecar_dir: Replay saved JSON responses from this folder instead
            of calling the extraction model.

    Returns:
        The batch summary and the processed documents.
    """
    files = _find_images(input_dir)
    if not files:
        logger.warning("No images found in %s", input_dir)
        return BatchSummary(), []

    documents = [services.repository.add_path(path) for path in files]
    client = build_client(services.config, sidecar_dir)
    orchestrator = build_orchestrator(services, client)
    summary = asyncio.run(orchestrator.process(documents))
    return summary, documents


def _print_summary(summary: BatchSummary, output: Path | None) -> None:
    print(f"\n{'=' * 50}")
    print("Batch Extraction Complete")
    print(f"{'=' * 50}")
    print(f"Total:      {summary.total}")
    print(f"Successful: {summary.successful}")
    print(f"Failed:     {summary.failed}")
    if output:
        print(f"Output:     {output}")


def _run_feedback(services: Services, action: str) -> None:
    store = services.feedback
    if action == "list":
        for entry in store.all():
            print(f"[{entry.field}] {entry.original!r} -> {entry.corrected!r}")
        print(f"{len(store)} corrections")
    elif action == "stats":
        print(json.dumps(store.stats(), ensure_ascii=False, indent=2))
    elif action == "clear":
        store.clear()
        print("All user corrections cleared")


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate command.

    Args:
        argv: Command-line arguments (defaults to sys.argv).
    """
    parser = argparse.ArgumentParser(
        description="Inkform delivery form processor",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-c", "--config", type=Path, help="Path to config YAML")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    extract_parser = subparsers.add_parser("extract", help="Process a folder of scans")
    extract_parser.add_argument("input_dir", type=Path, help="Directory with scanned forms")
    extract_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")
    extract_parser.add_argument(
        "--sidecar",
        nargs="?",
        const=True,
        default=None,
        help="Replay <image>.json responses (from input_dir, or the given directory)",
    )

    feedback_parser = subparsers.add_parser("feedback", help="Manage learned corrections")
    feedback_parser.add_argument("action", choices=["list", "stats", "clear"])

    serve_parser = subparsers.add_parser("serve", help="Start the API server")
    serve_parser.add_argument("--host", default="0.0.0.0")
    serve_parser.add_argument("--port", type=int, default=8000)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    config = load_config(args.config)
    setup_logging(config.log_level)

    if args.command == "serve":
        from inkform.main import main as serve

        serve(args.host, args.port, args.config)
        return

    services = build_services(config)

    if args.command == "feedback":
        _run_feedback(services, args.action)
        return

    if not args.input_dir.is_dir():
        print(f"Error: {args.input_dir} is not a directory", file=sys.stderr)
        sys.exit(1)

    sidecar_dir = None
    if args.sidecar is True:
        sidecar_dir = args.input_dir
    elif args.sidecar:
        sidecar_dir = Path(args.sidecar)

    try:
        summary, documents = extract_folder(services, args.input_dir, sidecar_dir)
    except ExtractionError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    output_str = json.dumps(
        [_document_to_dict(d) for d in documents], ensure_ascii=False, indent=2
    )
    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(output_str, encoding="utf-8")
    else:
        print(output_str)
    _print_summary(summary, args.output)


if __name__ == "__main__":
    main()
