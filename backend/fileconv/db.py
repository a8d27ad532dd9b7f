"""Conversion history. SQLite by default; set DATABASE_URL for MySQL (e.g. localhost:3306).
Startup ensures the table exists; on connection failure logs verbosely and falls back to in-memory SQLite so the app can start."""
import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.pool import StaticPool

from fileconv import config as app_config
from fileconv.conversion.models import ConversionResult

logger = logging.getLogger("fileconv.db")

_engine: Optional[Engine] = None


def _is_sqlite() -> bool:
    return "sqlite" in app_config.DATABASE_URL


def _is_mysql() -> bool:
    return "mysql" in app_config.DATABASE_URL


def _db_kind() -> str:
    if _is_mysql():
        return "MySQL"
    if _is_sqlite():
        return "SQLite"
    return "other"


def _create_engine(url: str) -> Engine:
    if url.startswith("sqlite") and ":memory:" in url:
        # One shared connection, otherwise every checkout sees an empty database
        return create_engine(url, connect_args={"check_same_thread": False}, poolclass=StaticPool)
    if url.startswith("sqlite"):
        db_file = url.split("sqlite:///", 1)[-1]
        if db_file:
            Path(db_file).parent.mkdir(parents=True, exist_ok=True)
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(url)


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        _engine = _create_engine(app_config.DATABASE_URL)
        logger.info("Database engine created (%s)", _db_kind())
    return _engine


def reset_engine() -> None:
    """Dispose the current engine; the next call to get_engine() reads DATABASE_URL again."""
    global _engine
    if _engine is not None:
        _engine.dispose()
    _engine = None


def _create_sqlite_tables(conn) -> None:
    conn.execute(text("""
        CREATE TABLE IF NOT EXISTS conversions (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            input_path TEXT NOT NULL,
            output_path TEXT,
            target_format TEXT,
            success INTEGER NOT NULL,
            message TEXT,
            error TEXT,
            duration_seconds REAL,
            created_at TEXT NOT NULL
        )
    """))
    conn.commit()


def _create_mysql_tables(conn) -> None:
    conn.execute(text("""
        CREATE TABLE IF NOT EXISTS conversions (
            id BIGINT AUTO_INCREMENT PRIMARY KEY,
            input_path VARCHAR(1024) NOT NULL,
            output_path VARCHAR(1024),
            target_format VARCHAR(16),
            success TINYINT NOT NULL,
            message TEXT,
            error TEXT,
            duration_seconds DOUBLE,
            created_at VARCHAR(50) NOT NULL
        )
    """))
    conn.commit()


def _ensure_tables(engine: Engine) -> None:
    with engine.connect() as conn:
        if _is_mysql():
            _create_mysql_tables(conn)
        else:
            _create_sqlite_tables(conn)
    logger.info("Required table ensured: conversions")


def init_db() -> None:
    """Prepare database at startup. On failure, fall back to in-memory SQLite so the app can start."""
    kind = _db_kind()
    try:
        _ensure_tables(get_engine())
        logger.info("Database ready: %s", kind)
        return
    except OperationalError as e:
        logger.warning("Database connection failed (%s): %s. Using in-memory SQLite.", kind, e.orig, exc_info=True)
    except Exception as e:
        logger.exception("Database init failed: %s. Using in-memory SQLite.", e)

    app_config.DATABASE_URL = "sqlite:///:memory:"
    reset_engine()
    _ensure_tables(get_engine())
    logger.warning("Database unavailable. Conversion history will not persist across restarts.")


@contextmanager
def session():
    with get_engine().connect() as conn:
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def record_conversion(input_path: str, target_format: Optional[str], result: ConversionResult) -> None:
    params = {
        "input_path": input_path,
        "output_path": result.output_path or None,
        "target_format": target_format,
        "success": 1 if result.success else 0,
        "message": result.message,
        "error": str(result.error) if result.error is not None else None,
        "duration_seconds": result.processing_time,
        "created_at": _now_iso(),
    }
    with session() as conn:
        conn.execute(
            text("""
                INSERT INTO conversions (input_path, output_path, target_format, success, message, error, duration_seconds, created_at)
                VALUES (:input_path, :output_path, :target_format, :success, :message, :error, :duration_seconds, :created_at)
            """),
            params,
        )


def get_history(limit: int = 100) -> list[dict]:
    """Recent conversions, newest first."""
    with get_engine().connect() as conn:
        rows = conn.execute(
            text("""
                SELECT id, input_path, output_path, target_format, success, message, error, duration_seconds, created_at
                FROM conversions ORDER BY id DESC LIMIT :lim
            """),
            {"lim": limit},
        ).fetchall()
    return [
        {
            "id": r[0],
            "input_path": r[1],
            "output_path": r[2],
            "target_format": r[3],
            "success": bool(r[4]),
            "message": r[5],
            "error": r[6],
            "duration_seconds": r[7],
            "created_at": r[8],
        }
        for r in rows
    ]


def get_stats() -> dict:
    """Totals: conversions, succeeded, failed, time_spent_seconds."""
    with get_engine().connect() as conn:
        row = conn.execute(
            text("""
                SELECT
                    COUNT(*),
                    COALESCE(SUM(success), 0),
                    COALESCE(SUM(duration_seconds), 0)
                FROM conversions
            """)
        ).fetchone()
    total = int(row[0]) if row else 0
    succeeded = int(row[1]) if row else 0
    return {
        "conversions": total,
        "succeeded": succeeded,
        "failed": total - succeeded,
        "time_spent_seconds": float(row[2]) if row else 0.0,
    }
