"""Transient-to-permanent URL migration."""

from photo_harvest.migration.engine import (
    RULES,
    MigrationEngine,
    MigrationResult,
    MigrationRule,
    MigrationStatus,
)

__all__ = ["RULES", "MigrationEngine", "MigrationResult", "MigrationRule", "MigrationStatus"]
