"""Support utilities for MCQUERY: structured CLI logging."""
