#!/usr/bin/env python3
"""
Main runner for the Filing Text-Extraction Pipeline

Sub-commands:
- bulk:   extract every file of a directory (or one file) to .txt
- set:    extract a lawsuit's petition, responses and supplementary documents
- detect: print the case number of a document set
"""

import argparse
import asyncio
import logging
import sys
from datetime import datetime
from pathlib import Path

from tqdm import tqdm

from filing_ingest.batch_orchestrator import BatchOrchestrator, StatusReporter
from filing_ingest.bulk import BulkExtractor
from filing_ingest.case_number import CaseNumberDetector
from filing_ingest.config import ExtractionConfig
from filing_ingest.errors import FilingIngestError
from filing_ingest.models import DocumentSetInput, SourceDocument
from filing_ingest.router import EngineRouter

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(),
        logging.FileHandler(f'extraction_{datetime.now().strftime("%Y%m%d_%H%M%S")}.log')
    ]
)
logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = {'.pdf', '.docx', '.doc', '.txt'}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Filing Text-Extraction Pipeline - Extract text from court filings'
    )
    parser.add_argument(
        '--mode',
        choices=['pure', 'vision', 'tesseract', 'disabled'],
        default=None,
        help='PDF extraction engine (default: EXTRACTION_MODE from env or pure)'
    )
    parser.add_argument(
        '--lang',
        choices=['por', 'eng'],
        default=None,
        help='Document language for OCR (default: OCR_LANGUAGE from env or por)'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose logging'
    )

    commands = parser.add_subparsers(dest='command', required=True)

    bulk = commands.add_parser('bulk', help='Extract files to .txt')
    bulk.add_argument('source', help='Path to a file or a directory of files')
    bulk.add_argument('--output', '-o', default=None, help='Output directory (default: next to each file)')
    bulk.add_argument('--limit', type=int, default=None, help='Maximum number of files to process')

    for name, help_text in (('set', 'Extract a document set'), ('detect', 'Detect the case number')):
        command = commands.add_parser(name, help=help_text)
        command.add_argument('--petition', default=None, help='Initial petition')
        command.add_argument('--response', action='append', default=[], help='Response (repeatable)')
        command.add_argument('--supplement', action='append', default=[], help='Supplementary document (repeatable)')
        if name == 'set':
            command.add_argument('--output', '-o', default=None, help='Directory for the extracted .txt files')

    return parser


def load_document_set(args) -> DocumentSetInput:
    return DocumentSetInput(
        primary=SourceDocument.from_path(args.petition) if args.petition else None,
        responses=[SourceDocument.from_path(p) for p in args.response],
        supplements=[SourceDocument.from_path(p) for p in args.supplement],
    )


def run_bulk(args, config: ExtractionConfig) -> int:
    source_path = Path(args.source)
    if source_path.is_file():
        files = [source_path]
    elif source_path.is_dir():
        files = sorted(p for p in source_path.iterdir() if p.suffix.lower() in SUPPORTED_EXTENSIONS)
    else:
        logger.error(f"Source not found: {source_path}")
        return 1

    if args.limit:
        files = files[:args.limit]

    output_dir = Path(args.output) if args.output else None
    if output_dir:
        output_dir.mkdir(parents=True, exist_ok=True)

    extractor = BulkExtractor(config)
    failed = 0

    async def process_all():
        nonlocal failed
        for path in tqdm(files, desc="Extracting files"):
            try:
                text = await extractor.extract(SourceDocument.from_path(path))
            except FilingIngestError as e:
                failed += 1
                logger.error(f"✗ {path.name}: {e}")
                continue
            target = (output_dir or path.parent) / f"{path.stem}.txt"
            target.write_text(text, encoding='utf-8')
            logger.debug(f"✓ {path.name} -> {target}")

    asyncio.run(process_all())
    logger.info(f"Extracted {len(files) - failed}/{len(files)} files")
    return 1 if failed else 0


def run_set(args, config: ExtractionConfig) -> int:
    document_set = load_document_set(args)
    orchestrator = BatchOrchestrator(config)
    status = StatusReporter(
        set_busy=lambda busy: logger.debug(f"busy={busy}"),
        report=logger.info,
        on_error=logger.error,
    )
    result = asyncio.run(orchestrator.extract_set(document_set, status, mode=config.extraction_mode))

    outputs = []
    if document_set.primary:
        outputs.append((document_set.primary.name, result.primary))
    for document, item in zip(document_set.responses, result.responses):
        outputs.append((document.name, item.text if item else None))
    for document, item in zip(document_set.supplements, result.supplements):
        outputs.append((document.name, item.text if item else None))

    output_dir = Path(args.output) if args.output else None
    if output_dir:
        output_dir.mkdir(parents=True, exist_ok=True)

    for name, text in outputs:
        if text is None:
            logger.warning(f"✗ {name}: no text")
            continue
        logger.info(f"✓ {name}: {len(text)} chars")
        if output_dir:
            (output_dir / f"{Path(name).stem}.txt").write_text(text, encoding='utf-8')

    return 0 if all(text is not None for _, text in outputs) else 1


def run_detect(args, config: ExtractionConfig) -> int:
    detector = CaseNumberDetector()
    number = asyncio.run(detector.detect(load_document_set(args)))
    if number is None:
        logger.warning("Case number not found")
        return 1
    print(number)
    return 0


def main():
    parser = build_parser()
    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    # Load configuration
    config = ExtractionConfig.from_env()
    if args.mode:
        config.extraction_mode = args.mode
    if args.lang:
        config.ocr_language = args.lang

    try:
        config.validate()
    except ValueError as e:
        logger.error(str(e))
        sys.exit(1)

    logger.info("="*60)
    logger.info("FILING TEXT EXTRACTION")
    logger.info("="*60)
    logger.info(f"Command: {args.command}")
    logger.info(f"Mode: {EngineRouter(config).default_mode.value}")
    logger.info(f"Language: {config.ocr_language}")

    handlers = {'bulk': run_bulk, 'set': run_set, 'detect': run_detect}
    exit_code = handlers[args.command](args, config)

    logger.info("="*60)
    logger.info("EXTRACTION COMPLETE")
    logger.info("="*60)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
