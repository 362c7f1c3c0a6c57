"""structlog configuration shared by the CLI, dashboard and library code."""

from __future__ import annotations

import logging
import os
import sys
from typing import List, Optional

import structlog
from structlog.types import Processor

DEFAULT_LOG_LEVEL = "WARNING"


def configure_logging(
    level: Optional[str] = None,
    *,
    json_output: bool = False,
    file_path: Optional[str] = None,
) -> None:
  """Route stdlib logging and structlog through one formatter.

  The level falls back to the LOG_LEVEL environment variable, then WARNING, so
  library debug events stay quiet unless a caller asks for them.
  """
  log_level = level or os.environ.get("LOG_LEVEL") or DEFAULT_LOG_LEVEL
  numeric_level = getattr(logging, log_level.upper(), logging.WARNING)

  root_logger = logging.getLogger()
  for handler in root_logger.handlers[:]:
    root_logger.removeHandler(handler)

  handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
  if file_path:
    handlers.append(logging.FileHandler(file_path))

  timestamper = structlog.processors.TimeStamper(fmt="iso", utc=True)
  renderer: Processor
  if json_output:
    renderer = structlog.processors.JSONRenderer()
  else:
    renderer = structlog.dev.ConsoleRenderer(colors=False)

  formatter = structlog.stdlib.ProcessorFormatter(
      processor=renderer,
      foreign_pre_chain=[
          structlog.contextvars.merge_contextvars,
          structlog.processors.StackInfoRenderer(),
          structlog.processors.format_exc_info,
          structlog.stdlib.add_logger_name,
          structlog.stdlib.add_log_level,
          timestamper,
      ],
  )
  for handler in handlers:
    handler.setFormatter(formatter)

  structlog.configure(
      processors=[
          structlog.contextvars.merge_contextvars,
          structlog.stdlib.filter_by_level,
          structlog.stdlib.add_logger_name,
          structlog.stdlib.add_log_level,
          timestamper,
          structlog.processors.StackInfoRenderer(),
          structlog.processors.format_exc_info,
          structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
      ],
      context_class=dict,
      logger_factory=structlog.stdlib.LoggerFactory(),
      wrapper_class=structlog.stdlib.BoundLogger,
      cache_logger_on_first_use=True,
  )

  root_logger.handlers = handlers
  root_logger.setLevel(numeric_level)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
  """Return a structlog logger bound to ``name``."""
  return structlog.get_logger(name)
