# Copyright (c) Microsoft. All rights reserved.

import logging

from .exceptions import WizardEngineException

__all__ = ["get_logger", "setup_logging"]

ROOT_LOGGER_NAME = "wizard_engine"


def setup_logging(level: int = logging.INFO) -> None:
    """Configure console logging and set the level of the ``wizard_engine`` logger.

    The package logger's level is set even when the root logger was already configured
    by the host application, so ``setup_logging(logging.DEBUG)`` always surfaces the
    engine's handler and resolution logs.
    """
    logging.basicConfig(
        format="[%(asctime)s - %(name)s:%(lineno)d - %(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger(ROOT_LOGGER_NAME).setLevel(level)


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """Get a logger below the ``wizard_engine`` hierarchy.

    Args:
        name: Dotted logger name, e.g. ``"wizard_engine.remote"``.

    Returns:
        The logger; children of "wizard_engine" inherit its level.

    Raises:
        WizardEngineException: If the name is outside the ``wizard_engine`` hierarchy.
    """
    if name != ROOT_LOGGER_NAME and not name.startswith(f"{ROOT_LOGGER_NAME}."):
        raise WizardEngineException(f"Logger name must be 'wizard_engine' or start with 'wizard_engine.', got '{name}'.")
    return logging.getLogger(name)
