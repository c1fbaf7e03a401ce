"""
Startup import of codes from a newline-separated text file.

Runs once per process start, before the bot connects. Never raises:
a missing file, an unreadable file or a store fault is logged and the
import is skipped, leaving the store as it was.
"""

from __future__ import annotations

from pathlib import Path
from typing import Union

from claimbot.core.exceptions import CodeImportError, StoreFaultError
from claimbot.core.logging.logger import get_logger
from claimbot.modules.codes.store import CodeStore

logger = get_logger(__name__)


def read_codes_file(path: Path) -> list[str]:
    """
    Raw lines of the import file.

    Raises:
        CodeImportError: If the file is missing or cannot be decoded
    """
    if not path.is_file():
        raise CodeImportError(str(path), "file not found")

    try:
        return path.read_text(encoding="utf-8").splitlines()
    except (OSError, UnicodeDecodeError) as exc:
        raise CodeImportError(str(path), str(exc)) from exc


async def import_codes_file(store: CodeStore, path: Union[str, Path]) -> int:
    """
    Load codes from `path` into an empty store.

    Returns the number of codes inserted (0 when skipped).
    """
    path = Path(path)

    try:
        existing = await store.count_codes()
        if existing > 0:
            logger.info(
                "Code store already populated; import skipped",
                extra={"existing_codes": existing},
            )
            return 0

        entries = read_codes_file(path)
        inserted = await store.bulk_load(entries)

    except CodeImportError as exc:
        logger.warning(
            "Code import skipped",
            extra={"error_code": exc.error_code, **exc.details},
        )
        return 0

    except StoreFaultError as exc:
        logger.error(
            "Code import failed",
            extra={"error_code": exc.error_code, **exc.details},
            exc_info=True,
        )
        return 0

    if inserted == 0:
        logger.warning(
            "No valid codes found in import file",
            extra={"source": str(path), "lines_read": len(entries)},
        )
    else:
        logger.info(
            "Imported codes",
            extra={"source": str(path), "inserted": inserted, "lines_read": len(entries)},
        )
    return inserted
