# Copyright (c) Microsoft. All rights reserved.

import logging
from typing import Any, Literal

logger = logging.getLogger("wizard_engine")


class WizardEngineException(Exception):
    """Base exception for the wizard engine.

    Every engine error is logged on the "wizard_engine" logger when it is created.
    """

    def __init__(
        self,
        message: str,
        inner_exception: Exception | None = None,
        log_level: Literal[0] | Literal[10] | Literal[20] | Literal[30] | Literal[40] | Literal[50] | None = 10,
        *args: Any,
        **kwargs: Any,
    ):
        """Create a WizardEngineException.

        Args:
            message: The error message.
            inner_exception: The exception that caused this one, attached to the log record.
            log_level: Level of the creation log record; None disables it.
        """
        if log_level is not None:
            logger.log(log_level, message, exc_info=inner_exception)
        self.inner_exception = inner_exception
        super().__init__(message, *args)  # type: ignore


# region Resolution Exceptions


class ResolutionError(WizardEngineException):
    """A context or condition descriptor could not be resolved."""

    pass


class NotFoundError(ResolutionError):
    """A descriptor referenced a name that does not exist in the wizard or state."""

    pass


# endregion

# region Expression Exceptions


class QueryError(WizardEngineException):
    """A structured query expression was malformed or failed to evaluate."""

    pass


class TemplateRenderError(WizardEngineException):
    """A template could not be parsed or rendered."""

    pass


# endregion


class RemoteActionError(WizardEngineException):
    """A remote action could not be prepared or the request failed in transport."""

    pass


# region Document Exceptions


class DocumentValidationError(WizardEngineException):
    """A wizard document does not satisfy the schema or its invariants."""

    pass


class DocumentNotFoundError(WizardEngineException):
    """No wizard document is stored under the requested name."""

    pass


# endregion


class SettingNotFoundError(WizardEngineException):
    """A required setting could not be resolved from any source."""

    pass
