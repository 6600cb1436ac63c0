"""
Cache validity — pure decision over prior and current versions.

Native add-ons compiled under one runtime may not load under another,
so any recorded version mismatch invalidates the whole cache.  The
checks run in a fixed order and the first match decides.

No I/O: the caller supplies presence, flags and versions.
"""

from __future__ import annotations

from slugbuild.core.models.decisions import CacheReason, CacheVerdict


def _changed(previous: str | None, resolved: str | None) -> bool:
    """A recorded version invalidates only when it differs."""
    return previous is not None and previous != resolved


def evaluate_cache(
    *,
    modules_present: bool,
    cache_enabled: bool,
    previous_runtime: str | None,
    resolved_runtime: str | None,
    previous_package_manager: str | None = None,
    resolved_package_manager: str | None = None,
) -> CacheVerdict:
    """Decide whether the cached dependency directory may be reused.

    Order (first match wins):
        1. nothing cached                      → not usable
        2. cache disabled by configuration     → not usable
        3. runtime version changed             → not usable
        4. package manager version changed     → not usable
        5. otherwise                           → usable
    """
    if not modules_present:
        return CacheVerdict(usable=False, reason=CacheReason.NO_PRIOR_CACHE)
    if not cache_enabled:
        return CacheVerdict(usable=False, reason=CacheReason.DISABLED)
    if _changed(previous_runtime, resolved_runtime):
        return CacheVerdict(usable=False, reason=CacheReason.RUNTIME_CHANGED)
    if _changed(previous_package_manager, resolved_package_manager):
        return CacheVerdict(usable=False, reason=CacheReason.PACKAGE_MANAGER_CHANGED)
    return CacheVerdict(usable=True, reason=CacheReason.UNCHANGED)
