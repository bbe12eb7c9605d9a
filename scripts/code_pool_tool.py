from __future__ import annotations

import argparse
import asyncio
import csv
from datetime import datetime, timezone
from pathlib import Path

from app.access.codes import MAX_CODES_PER_POOL, parse_utc_datetime
from app.access.errors import CodeValidationError
from app.access.pools import CodePoolService
from app.access.types import CodePoolCreateResult
from app.db.session import SessionLocal


def _parse_id_list(raw: str) -> list[int]:
    values: list[int] = []
    for chunk in raw.split(","):
        item = chunk.strip()
        if not item:
            continue
        value = int(item)
        if value <= 0:
            raise ValueError(f"ids must be positive: {item}")
        values.append(value)
    return values


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Access code pool generation tool")
    parser.add_argument("--name", required=True)
    parser.add_argument("--count", type=int, required=True)
    parser.add_argument("--expiration", required=True, help="ISO datetime")
    parser.add_argument("--created-by", required=True)
    parser.add_argument("--materials", default="", help="comma separated ids, grants questions+lectures")
    parser.add_argument("--materials-with-questions", default="")
    parser.add_argument("--materials-with-lectures", default="")
    parser.add_argument("--courses", default="")
    parser.add_argument("--output-csv", type=Path)
    return parser.parse_args()


def _validate_args(args: argparse.Namespace) -> None:
    if not 1 <= args.count <= MAX_CODES_PER_POOL:
        raise ValueError(f"--count must be in range 1..{MAX_CODES_PER_POOL}")
    if parse_utc_datetime(args.expiration) <= datetime.now(timezone.utc):
        raise ValueError("--expiration must be in the future")
    if not (
        args.materials
        or args.materials_with_questions
        or args.materials_with_lectures
        or args.courses
    ):
        raise ValueError("a pool must grant at least one material or course")


async def _create_pool(args: argparse.Namespace) -> CodePoolCreateResult:
    async with SessionLocal.begin() as session:
        return await CodePoolService.create_pool(
            session,
            name=args.name,
            code_count=args.count,
            expiration=parse_utc_datetime(args.expiration),
            created_by=args.created_by,
            materials=_parse_id_list(args.materials),
            materials_with_questions=_parse_id_list(args.materials_with_questions),
            materials_with_lectures=_parse_id_list(args.materials_with_lectures),
            courses=_parse_id_list(args.courses),
        )


def _write_output(path: Path, result: CodePoolCreateResult) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as file:
        writer = csv.writer(file)
        writer.writerow(["code", "codes_group_id", "codes_group", "expiration"])
        for value in result.codes:
            writer.writerow([value, result.code_pool_id, result.name, result.expiration.isoformat()])


async def _run() -> int:
    args = _parse_args()
    _validate_args(args)
    try:
        result = await _create_pool(args)
    except CodeValidationError as exc:
        raise ValueError(str(exc) or type(exc).__name__) from exc

    output_csv = args.output_csv or Path(f"reports/codes_group_{result.code_pool_id}.csv")
    _write_output(output_csv, result)
    print(  # noqa: T201
        f"codes_group_id={result.code_pool_id} generated={len(result.codes)} output={output_csv}"
    )
    return 0


def main() -> int:
    return asyncio.run(_run())


if __name__ == "__main__":
    raise SystemExit(main())
