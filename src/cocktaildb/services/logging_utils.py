"""Service layer logging utilities.

Provides structured logging functions for service operations, enabling
consistent log format and context across relationship, lineage and
availability operations.

Usage:
    from cocktaildb.services.logging_utils import get_service_logger, log_operation

    logger = get_service_logger(__name__)

    log_operation(
        logger,
        operation="set_relations",
        outcome="success",
        ingredient_id=12,
        kind="substitute",
    )
"""

import logging
from typing import Any


def get_service_logger(name: str) -> logging.Logger:
    """
    Get a logger configured for service operations.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        Logger named 'cocktaildb.services.<module>'.

    Example:
        >>> get_service_logger("cocktaildb.services.lineage_service").name
        'cocktaildb.services.lineage_service'
    """
    if "." in name:
        name = name.split(".")[-1]
    return logging.getLogger(f"cocktaildb.services.{name}")


def log_operation(
    logger: logging.Logger,
    operation: str,
    outcome: str,
    level: int = logging.INFO,
    **context: Any,
) -> None:
    """
    Log a service operation with structured context.

    The message is "<operation>: <outcome>"; the context travels in
    ``extra`` so handlers can render it as structured fields.

    Args:
        logger: Logger instance to use
        operation: Operation name (e.g., "set_relations", "validate_variation")
        outcome: Outcome description (e.g., "success", "circular_reference")
        level: Log level (default: INFO). Use DEBUG for frequent read paths.
        **context: Additional context fields (entity IDs, counts, error details)
    """
    extra = {
        "operation": operation,
        "outcome": outcome,
        **context,
    }
    logger.log(level, f"{operation}: {outcome}", extra=extra)
