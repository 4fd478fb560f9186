from __future__ import annotations

import argparse
import asyncio
import functools
import logging
import time
from collections import Counter
from pathlib import Path
from typing import Iterator, Optional

from dotenv import load_dotenv
from tqdm import tqdm

from meowscan import client
from meowscan.interpreter import render_report
from meowscan.io import append_jsonl, is_image_path, load_image_file
from meowscan.session import DiagnosisSession, WorkflowState
from meowscan.taxonomy import catalog

logger = logging.getLogger(__name__)


def _iter_images(input_path: Path) -> Iterator[Path]:
    if input_path.is_file():
        yield input_path
        return
    for p in sorted(input_path.rglob("*")):
        if is_image_path(p):
            yield p


def _print_catalog() -> None:
    print("Known skin conditions:")
    for category in catalog():
        print(f"- {category.title}: {category.summary}")


async def _run(images: list[Path], url: Optional[str], report: Optional[str]) -> Counter:
    stats: Counter = Counter()
    classifier = functools.partial(client.classify, url=url) if url else client.classify

    with DiagnosisSession(classifier=classifier) as session:
        for img_path in tqdm(images, desc="Classifying", unit="img"):
            stats["total"] += 1
            record = {"source_image": str(img_path)}

            if session.select_image(load_image_file(str(img_path))):
                try:
                    with session.selection.preview.open_image() as preview:
                        record["width"], record["height"] = preview.size
                except OSError as e:
                    logger.warning("Cannot read preview for %s: %s", img_path, e)
                await session.submit()

            if session.state == WorkflowState.SUCCEEDED:
                diagnostic = session.diagnostic
                stats[diagnostic.category] += 1
                record.update(status="ok", **diagnostic.model_dump())
                tqdm.write(f"\n{img_path.name}\n{render_report(diagnostic)}")
            else:
                stats["failed"] += 1
                record.update(status="failed", error_kind=session.error.kind.value, error=session.error.message)
                tqdm.write(f"\n{img_path.name}: {session.error.message}")

            if report:
                append_jsonl(report, record)
            session.reset()

    return stats


def main() -> int:
    load_dotenv()

    parser = argparse.ArgumentParser(description="Classify cat skin photos with the remote MeowScan model.")
    parser.add_argument("--input", required=True, type=str, help="Image file or directory of images.")
    parser.add_argument("--url", type=str, default=None, help="Override the inference endpoint URL.")
    parser.add_argument("--report", type=str, default=None, help="Append one JSON line per image to this file.")
    parser.add_argument("--catalog", action="store_true", help="Print the known conditions first.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    input_path = Path(args.input)
    if not input_path.exists():
        raise FileNotFoundError(f"Input not found: {input_path}")

    if args.catalog:
        _print_catalog()

    images = list(_iter_images(input_path))
    if not images:
        print(f"No images found under {input_path}")
        return 0

    t0 = time.perf_counter()
    stats = asyncio.run(_run(images, args.url, args.report))
    t1 = time.perf_counter()

    print("Done.")
    print(f"- total: {stats['total']}")
    for category in catalog():
        print(f"- {category.title}: {stats[category.key]}")
    print(f"- Unrecognized: {stats['unrecognized']}")
    print(f"- failed: {stats['failed']}")
    print(f"- elapsed_s: {t1 - t0:.2f}")
    if args.report:
        print(f"- report: {Path(args.report).resolve()}")
    return 0 if stats["failed"] == 0 else 1


if __name__ == "__main__":
    raise SystemExit(main())
