"""Observability – logging, audit trail and health checks."""
