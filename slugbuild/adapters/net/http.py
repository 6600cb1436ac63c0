"""
HTTP helpers — version-resolution queries and archive downloads.

Results are dicts in the ``{"ok": True, ...}`` / ``{"ok": False,
"error": "..."}`` shape; callers decide which failures are fatal.
"""

from __future__ import annotations

import logging
import shutil
import urllib.error
import urllib.parse
import urllib.request
from pathlib import Path
from typing import Any

from slugbuild import __version__

logger = logging.getLogger(__name__)

USER_AGENT = f"slugbuild/{__version__}"


def fetch_text(
    url: str,
    *,
    params: dict[str, str] | None = None,
    timeout: int = 30,
) -> dict[str, Any]:
    """GET ``url`` (with optional query ``params``) and return its body.

    Returns:
        ``{"ok": True, "text": "...", "url": "..."}`` or error dict.
    """
    if params:
        url = f"{url}?{urllib.parse.urlencode(params)}"

    req = urllib.request.Request(url, headers={"User-Agent": USER_AGENT})
    logger.debug("GET %s", url)
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            text = resp.read().decode("utf-8", errors="replace")
    except urllib.error.HTTPError as e:
        return {"ok": False, "url": url, "status": e.code, "error": f"HTTP {e.code}"}
    except (urllib.error.URLError, OSError) as e:
        return {"ok": False, "url": url, "error": str(getattr(e, "reason", e))}

    return {"ok": True, "url": url, "text": text}


def download(url: str, dest: Path, *, timeout: int = 60) -> dict[str, Any]:
    """Stream ``url`` into ``dest``.

    Returns:
        ``{"ok": True, "path": "...", "size_bytes": N}`` or error dict.
    """
    dest.parent.mkdir(parents=True, exist_ok=True)
    req = urllib.request.Request(url, headers={"User-Agent": USER_AGENT})
    logger.debug("Downloading %s -> %s", url, dest)
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp, open(dest, "wb") as f:
            shutil.copyfileobj(resp, f)
    except urllib.error.HTTPError as e:
        return {"ok": False, "url": url, "status": e.code, "error": f"HTTP {e.code}"}
    except (urllib.error.URLError, OSError) as e:
        return {"ok": False, "url": url, "error": str(getattr(e, "reason", e))}

    return {"ok": True, "url": url, "path": str(dest), "size_bytes": dest.stat().st_size}
