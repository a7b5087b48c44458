"""
Plate persistence (raw SQL).

Ids are BIGSERIAL in the database and opaque decimal strings everywhere
else. A key that cannot be an id simply matches nothing.
"""

from __future__ import annotations

from core import db
from core.enrichment import EnrichedInfo

_MAX_BIGINT = 2**63 - 1


def _parse_key(raw: str) -> int | None:
    raw = (raw or "").strip()
    if not raw.isascii() or not raw.isdigit():
        return None
    value = int(raw)
    if value > _MAX_BIGINT:
        return None
    return value


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


async def migrate() -> None:
    """
    Create tables if missing. Safe to run on every startup.
    """
    await db.execute(
        """
        CREATE TABLE IF NOT EXISTS numbers (
          id BIGSERIAL PRIMARY KEY,
          number text NOT NULL
        )
        """
    )
    await db.execute(
        """
        CREATE TABLE IF NOT EXISTS enriched_info (
          id BIGSERIAL PRIMARY KEY,
          regNum text NOT NULL,
          mark text NOT NULL,
          model text NOT NULL,
          year integer NOT NULL,
          name text NOT NULL,
          surname text NOT NULL,
          patronymic text
        )
        """
    )
    await db.execute(
        """
        ALTER TABLE enriched_info
        ADD COLUMN IF NOT EXISTS number_id bigint REFERENCES numbers(id) ON DELETE SET NULL
        """
    )


async def create_number(number: str) -> str:
    row = await db.fetch_one(
        "INSERT INTO numbers (number) VALUES ($1) RETURNING id",
        number,
    )
    if row is None or "id" not in row:
        raise RuntimeError("Failed to insert number.")
    return str(row["id"])


async def delete_number(number_id: str) -> bool:
    key = _parse_key(number_id)
    if key is None:
        return False
    status = await db.execute("DELETE FROM numbers WHERE id = $1", key)
    # Status tag looks like "DELETE 1".
    return status.rsplit(" ", 1)[-1] != "0"


async def get_number(number_id: str) -> str | None:
    key = _parse_key(number_id)
    if key is None:
        return None
    row = await db.fetch_one("SELECT number FROM numbers WHERE id = $1", key)
    return str(row["number"]) if row is not None else None


async def find_by_prefix(prefix: str) -> list[str]:
    rows = await db.fetch_all(
        "SELECT number FROM numbers WHERE number LIKE ('%' || $1 || '%') ESCAPE '\\'",
        _escape_like(prefix),
    )
    return [str(r["number"]) for r in rows]


async def find_by_region(region: str) -> list[str]:
    """
    `region` is the trailing code of the plate; callers validate it is
    alphanumeric so it is safe inside the regex.
    """
    rows = await db.fetch_all(
        "SELECT number FROM numbers WHERE number ~ $1",
        "[[:alpha:]].*" + region + "$",
    )
    return [str(r["number"]) for r in rows]


async def update_number(number_id: str, new_number: str) -> str | None:
    key = _parse_key(number_id)
    if key is None:
        return None
    row = await db.fetch_one(
        "UPDATE numbers SET number = $2 WHERE id = $1 RETURNING id",
        key,
        new_number,
    )
    return str(row["id"]) if row is not None else None


async def save_enriched(info: EnrichedInfo, *, number_id: str | None = None) -> None:
    await db.execute(
        """
        INSERT INTO enriched_info (regNum, mark, model, year, name, surname, patronymic, number_id)
        VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
        """,
        info.reg_num,
        info.make,
        info.model,
        info.year,
        info.owner.name,
        info.owner.surname,
        info.owner.patronymic,
        _parse_key(number_id) if number_id is not None else None,
    )
