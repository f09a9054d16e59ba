from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


@dataclass(frozen=True)
class Settings:
    archive_dir: Path
    output_dir: Path
    job_history: int
    log_level: str

    @classmethod
    def from_env(cls) -> "Settings":
        archive_dir = Path(os.environ.get("RSC_LANDSCAPE_ARCHIVE_DIR", "./data")).resolve()
        output_dir = Path(os.environ.get("RSC_LANDSCAPE_OUTPUT_DIR", "./out")).resolve()
        history_raw = os.environ.get("RSC_LANDSCAPE_JOB_HISTORY", "100").strip() or "100"
        try:
            job_history = max(1, int(history_raw))
        except ValueError as exc:
            raise SystemExit(f"Invalid RSC_LANDSCAPE_JOB_HISTORY: {history_raw}") from exc
        log_level = os.environ.get("RSC_LANDSCAPE_LOG_LEVEL", "INFO").strip().upper() or "INFO"
        return cls(
            archive_dir=archive_dir,
            output_dir=output_dir,
            job_history=job_history,
            log_level=log_level,
        )
