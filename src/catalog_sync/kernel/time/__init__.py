"""Kernel time – clock abstraction."""
from catalog_sync.kernel.time.clock import Clock, FrozenClock, SystemClock, as_utc, utc_now

__all__ = ["Clock", "FrozenClock", "SystemClock", "as_utc", "utc_now"]
