# Copyright (c) Microsoft. All rights reserved.

"""Tests for logging helpers."""

import logging

import pytest

from wizard_engine import WizardEngineException, get_logger, setup_logging


class TestGetLogger:
    """Tests for get_logger."""

    def test_default_and_child_names(self):
        assert get_logger().name == "wizard_engine"
        assert get_logger("wizard_engine.remote").name == "wizard_engine.remote"

    @pytest.mark.parametrize("name", ["other", "wizard_engineering"])
    def test_rejects_names_outside_hierarchy(self, name):
        with pytest.raises(WizardEngineException, match="wizard_engine"):
            get_logger(name)


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_sets_package_level(self):
        package_logger = logging.getLogger("wizard_engine")
        previous = package_logger.level
        try:
            setup_logging(logging.DEBUG)
            assert package_logger.level == logging.DEBUG
            assert get_logger("wizard_engine.blocks").isEnabledFor(logging.DEBUG)
            setup_logging(logging.WARNING)
            assert not get_logger("wizard_engine.blocks").isEnabledFor(logging.INFO)
        finally:
            package_logger.setLevel(previous)
