"""Application layer – use cases over the kernel ports."""
