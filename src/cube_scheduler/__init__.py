"""Cube-method strength program scheduler."""

from loguru import logger

# Library code logs through loguru but stays silent until an application
# (the CLI, or a caller) enables the "cube_scheduler" namespace.
logger.disable("cube_scheduler")
