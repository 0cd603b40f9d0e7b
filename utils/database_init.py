import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

import aiosqlite

SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS MESSAGE (
        seq INTEGER PRIMARY KEY AUTOINCREMENT,
        id TEXT NOT NULL,
        user_id TEXT NOT NULL,
        sender TEXT NOT NULL,
        content TEXT NOT NULL,
        timestamp TEXT NOT NULL,
        -- Client-made ids (e.g. ISO timestamps) are only unique per user.
        UNIQUE (user_id, id)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_message_user_id ON MESSAGE(user_id, seq)",
)


class AsyncDatabaseInitializer:
    """
    Own the SQLite file that holds chat transcripts.

    - The file lives at <database_dir>/chat.db; the directory is created when missing.
    - RuntimeError is raised for an unset DATABASE_DIR or one that names a regular file.
    - The MESSAGE schema is created lazily by `ensure_database()`, which only does
      work once per instance. With `reset_on_start` the old file is removed first.
    """

    def __init__(self, database_dir: Optional[Path | str], *, reset_on_start: bool = False) -> None:
        if database_dir is None or not str(database_dir).strip():
            raise RuntimeError("DATABASE_DIR is not set; transcripts need a writable directory.")

        db_dir = Path(database_dir).expanduser()
        if db_dir.exists() and not db_dir.is_dir():
            raise RuntimeError(f"DATABASE_DIR={str(database_dir)!r} is a file ({db_dir}), expected a directory.")
        try:
            db_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise RuntimeError(f"Cannot create transcript directory {db_dir}") from exc

        self.db_dir = db_dir
        self.db_path = db_dir / "chat.db"
        self.reset_on_start = reset_on_start
        self._ready = False

    async def ensure_database(self) -> None:
        """Create the transcript schema (and apply the reset) on first use."""
        if self._ready:
            return

        if self.reset_on_start and self.db_path.exists():
            try:
                self.db_path.unlink()
            except OSError as exc:
                raise RuntimeError(f"Cannot remove old transcript database {self.db_path}") from exc

        attempts = 3
        for attempt in range(1, attempts + 1):
            try:
                async with aiosqlite.connect(self.db_path) as db:
                    for statement in SCHEMA:
                        await db.execute(statement)
                    await db.commit()
                break
            except FileNotFoundError:
                # Transient on some platforms right after mkdir.
                if attempt == attempts:
                    raise
                await asyncio.sleep(0.1 * attempt)

        self._ready = True

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """Yield an open `aiosqlite.Connection`, creating the schema if needed."""
        await self.ensure_database()
        db = await aiosqlite.connect(self.db_path)
        try:
            yield db
        finally:
            await db.close()
