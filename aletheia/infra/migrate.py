"""Apply SQL migrations sequentially using the shared asyncpg pool."""

from __future__ import annotations

import asyncio
import logging
import re
from pathlib import Path

from aletheia.libs.logging_utils import configure_logging
from aletheia.libs.schemas import close_async_pool, get_async_pool

MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"
_COMMENT_RE = re.compile(r"--.*?$|/\*.*?\*/", re.MULTILINE | re.DOTALL)
LOGGER = logging.getLogger(__name__)


def split_sql(sql: str) -> list[str]:
    """Return individual statements stripped of comments and whitespace."""

    cleaned = _COMMENT_RE.sub("", sql)
    return [chunk.strip() for chunk in cleaned.split(";") if chunk.strip()]


def sorted_migration_paths(directory: Path = MIGRATIONS_DIR) -> list[Path]:
    if not directory.exists():
        return []
    return sorted(p for p in directory.iterdir() if p.suffix == ".sql")


async def apply_migrations(directory: Path = MIGRATIONS_DIR) -> int:
    """Run every migration file in filename order, one transaction per file."""

    migration_files = sorted_migration_paths(directory)
    if not migration_files:
        return 0

    pool = await get_async_pool()
    applied = 0
    async with pool.acquire() as connection:
        for path in migration_files:
            statements = split_sql(path.read_text(encoding="utf-8"))
            if not statements:
                continue
            async with connection.transaction():
                for statement in statements:
                    await connection.execute(statement)
            applied += 1
            LOGGER.info("Applied migration %s", path.name)
    return applied


async def amain() -> None:
    try:
        await apply_migrations()
    finally:
        await close_async_pool()


def main() -> None:  # pragma: no cover - CLI entrypoint
    configure_logging()
    asyncio.run(amain())


if __name__ == "__main__":  # pragma: no cover
    main()
