from __future__ import annotations

"""Central logging configuration for Storymaker.

Import and call :func:`setup_logging` at application start-up.
"""

import logging
import logging.config
import os

from storymaker.config import ConfigManager

__all__ = ["setup_logging"]

_NAVIGATION_LOGGERS = (
    "storymaker.core.services.navigation_service",
    "storymaker.core.services.structure_editing_service",
)


def setup_logging() -> None:
    """Configure logging for the application using configuration from YAML files."""
    log_dir = os.environ.get("STORYMAKER_LOG_DIR", "logs")
    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.join(log_dir, "app.log")

    logging_config = ConfigManager().get_logging_config()
    if logging_config and isinstance(logging_config, dict) and logging_config.get("version"):
        config = dict(logging_config)
        handlers = {name: dict(spec) for name, spec in (config.get("handlers") or {}).items()}
        if "file" in handlers:
            handlers["file"]["filename"] = log_file
        config["handlers"] = handlers
        try:
            logging.config.dictConfig(config)
            logging.getLogger("storymaker").info("===== Logging initialised from config files =====")
        except (ValueError, TypeError, AttributeError, ImportError) as exc:
            print(f"Error loading logging config: {exc}")
            _setup_minimal_logging()
    else:
        _setup_minimal_logging()

    _apply_debug_overrides()


def _setup_minimal_logging() -> None:
    """Set up minimal console-only logging when config is unavailable."""
    minimal_config = {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'simple': {
                'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            },
        },
        'handlers': {
            'console': {
                'class': 'logging.StreamHandler',
                'formatter': 'simple',
                'level': 'WARNING',
            },
        },
        'root': {
            'level': 'WARNING',
            'handlers': ['console'],
        },
    }

    logging.config.dictConfig(minimal_config)
    logging.warning("===== Logging initialised with minimal fallback =====")


def _apply_debug_overrides() -> None:
    """Apply environment-driven module-specific debug overrides.

    Supports:
    - STORYMAKER_DEBUG_NAVIGATION=true -> DEBUG for navigation and editing services
    - STORYMAKER_DEBUG_MODULES=comma,separated,logger,names -> DEBUG for listed loggers
    """
    debug_navigation = os.environ.get('STORYMAKER_DEBUG_NAVIGATION', '').strip().lower() in {'1', 'true', 'yes', 'on'}
    extra_modules = os.environ.get('STORYMAKER_DEBUG_MODULES', '').strip()
    targets = []
    if debug_navigation:
        targets.extend(_NAVIGATION_LOGGERS)
    if extra_modules:
        targets.extend([m.strip() for m in extra_modules.split(',') if m.strip()])
    for name in targets:
        logger = logging.getLogger(name)
        logger.setLevel(logging.DEBUG)
        has_debug_handler = any(
            h.level == logging.NOTSET or h.level <= logging.DEBUG for h in logger.handlers
        )
        if not has_debug_handler:
            h = logging.StreamHandler()
            h.setLevel(logging.DEBUG)
            h.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
            logger.addHandler(h)
        logger.info("Debug override active for logger '%s'", name)
