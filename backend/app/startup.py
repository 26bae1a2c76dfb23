"""
Application startup validation and initialization.

This module performs startup checks to ensure the analytics backend is
properly configured before serving requests.
"""

import logging
import sys
from typing import List, Tuple

from pydantic import ValidationError

from core.config import settings, validate_production_config
from modules.analytics.config.analytics_config import AnalyticsSettings

logger = logging.getLogger(__name__)


class StartupValidator:
    """Validates application startup requirements"""

    def __init__(self):
        self.errors: List[str] = []
        self.warnings: List[str] = []

    def check_environment_config(self) -> bool:
        """Validate environment configuration"""
        try:
            validate_production_config(settings)
        except ValueError as e:
            self.errors.append(f"Configuration validation failed: {str(e)}")
            return False

        if settings.is_development and "*" in settings.cors_origins:
            self.warnings.append("CORS allows every origin - restrict before deploying")
        return True

    def check_analytics_config(self) -> bool:
        """Re-read analytics thresholds so invalid overrides fail at startup"""
        try:
            analytics = AnalyticsSettings()
        except ValidationError as e:
            self.errors.append(f"Invalid analytics configuration: {e}")
            return False

        if analytics.TREND_STABLE_EPSILON == 0:
            self.warnings.append(
                "TREND_STABLE_EPSILON is 0 - any non-zero slope will be reported as a trend"
            )
        return True

    def validate_all(self) -> Tuple[bool, List[str], List[str]]:
        """Run all validation checks"""
        checks = [
            ("Environment Configuration", self.check_environment_config),
            ("Analytics Configuration", self.check_analytics_config),
        ]

        all_passed = True

        for check_name, check_func in checks:
            logger.info(f"Running check: {check_name}")
            if not check_func():
                all_passed = False

        return all_passed, self.errors, self.warnings


def run_startup_checks():
    """Run all startup validation checks"""
    logger.info("=" * 60)
    logger.info(f"Starting {settings.app_name}")
    logger.info(f"Environment: {settings.environment}")
    logger.info("=" * 60)

    validator = StartupValidator()
    passed, errors, warnings = validator.validate_all()

    if warnings:
        logger.warning("Startup Warnings:")
        for warning in warnings:
            logger.warning(f"  {warning}")

    if errors:
        logger.error("Startup Errors:")
        for error in errors:
            logger.error(f"  {error}")

    if not passed and settings.is_production:
        logger.error("Cannot start in production with errors!")
        sys.exit(1)
    elif not passed:
        logger.warning("Starting in development mode despite errors")
    else:
        logger.info("All startup checks passed")

    return passed, warnings


def configure_startup_logging():
    """Configure logging for startup"""
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
