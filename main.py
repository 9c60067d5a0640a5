"""
Main entry point for the AI Prediction Service.
"""

from ai_service.api.main import run
from ai_service.core.config import load_config
from ai_service.core.logging import get_logger


def main():
    """Main application entry point."""
    config = load_config()
    logger = get_logger(__name__)

    logger.info("Starting AI Prediction Service")
    logger.info(f"Environment: {config.environment.value}")

    run()


if __name__ == "__main__":
    main()
