from .logger import setup_logging
from .text import split_requirement_statements, truncate_if_needed

__all__ = ["setup_logging", "split_requirement_statements", "truncate_if_needed"]
