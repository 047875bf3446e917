"""Resilience – retry scheduling for index delivery."""
