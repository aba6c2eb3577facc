"""
Contract Deployer - Main Entry Point
Deploys one compiled contract and prints its address
"""

import asyncio
import os
import signal
import sys
from loguru import logger

from deployer.config import load_config
from deployer.orchestrator import DeploymentOrchestrator
from utils.exceptions import ConfigurationError


def configure_logging(level: str = None, log_file: str = None):
    """
    Configure loguru sinks

    Args:
        level: stderr log level (default $DEPLOY_LOG_LEVEL or INFO)
        log_file: Optional rotating log file (default $DEPLOY_LOG_FILE)
    """
    level = level or os.getenv('DEPLOY_LOG_LEVEL', 'INFO')
    log_file = log_file or os.getenv('DEPLOY_LOG_FILE')

    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
        level=level
    )

    if log_file:
        logger.add(
            log_file,
            rotation="1 day",
            retention="7 days",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function} - {message}",
            level="DEBUG"
        )


async def main() -> int:
    """
    Run one deployment

    Returns:
        Process exit code (0 = confirmed, 1 = any failure)
    """
    try:
        config = load_config()
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    logger.info(f"Endpoint: {config.endpoint}")

    orchestrator = DeploymentOrchestrator(config)
    result = await orchestrator.deploy()

    if result.succeeded:
        print(f"{result.contract_name}: {result.address}")

    return result.exit_code


def _handle_termination(signum, frame):
    """Treat SIGTERM like Ctrl-C"""
    logger.info(f"Received signal {signum}")
    raise KeyboardInterrupt


def run():
    """Console script entry point"""
    configure_logging()
    signal.signal(signal.SIGTERM, _handle_termination)

    try:
        exit_code = asyncio.run(main())
    except KeyboardInterrupt:
        # A submitted transaction is left to the network; its hash is already logged
        logger.warning("Interrupted by user")
        exit_code = 1
    except Exception as e:
        logger.exception(f"Fatal error in main: {e}")
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    run()
