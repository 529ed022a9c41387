"""
CrateCI
Copyright (c) 2026 Chris Menendez.
All Rights Reserved.
See LICENSE for permitted use.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ci_engine.utils.network_shield import NetworkShieldError, safe_get_text

logger = logging.getLogger(__name__)

UPLOADER_FILENAME = "codecov-uploader.sh"
UPLOADER_ALLOWED_DOMAINS = ("codecov.io",)
_UPLOADER_TIMEOUT_S = 30.0
_UPLOADER_MAX_BYTES = 2_000_000
_UPLOADER_MAX_REDIRECTS = 5


def stage_uploader(url: str, dest_dir: Path) -> Path:
    """
    Download the coverage uploader script into ``dest_dir`` and mark it executable.

    Raises NetworkShieldError when the fetch is blocked, fails or returns an
    unusable body; nothing is written in that case.
    """
    logger.info("Fetching coverage uploader from %s", url)
    result = safe_get_text(
        url,
        headers={"User-Agent": "crateci/0.1 (+coverage-upload)"},
        timeout_s=_UPLOADER_TIMEOUT_S,
        max_bytes=_UPLOADER_MAX_BYTES,
        allow_domains=UPLOADER_ALLOWED_DOMAINS,
        max_redirects=_UPLOADER_MAX_REDIRECTS,
    )
    if result.status_code != 200:
        raise NetworkShieldError(f"uploader fetch returned status={result.status_code} from {result.final_url}")
    if not result.text.strip():
        raise NetworkShieldError(f"uploader fetch returned an empty body from {result.final_url}")

    dest_dir.mkdir(parents=True, exist_ok=True)
    path = dest_dir / UPLOADER_FILENAME
    path.write_text(result.text, encoding="utf-8")
    path.chmod(0o755)
    logger.info("Staged coverage uploader at %s (%d bytes)", path, result.bytes_len)
    return path
