import asyncio
import sys
import logging
from dotenv import load_dotenv

from emotion_backend.api.fastapi_server import EmotionAPIServer
from emotion_backend.config import AppConfig
from emotion_backend.di.dependencies import DependencyContainer

logger = logging.getLogger(__name__)

ENVIRONMENTS = ["development", "production", "test"]


def configure_logging(level: str):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


async def main():
    """Application entry point"""
    env_version = "production"
    if len(sys.argv) > 1:
        if sys.argv[1] not in ENVIRONMENTS:
            print(f"❌ Environment version must be one of: {ENVIRONMENTS}")
            sys.exit(1)
        env_version = sys.argv[1]

    load_dotenv(f'.env.{env_version}')
    config = AppConfig.from_env()
    config.environment = env_version
    configure_logging(config.log_level)

    logger.info(f"🔧 Configuration loaded for environment: {env_version}")
    if not config.validate():
        logger.warning("⚠️  Configuration has problems, continuing with degraded features")

    container = None
    try:
        container = DependencyContainer(config)
        container.startup()
        logger.info("✅ Database connected successfully")
    except Exception as e:
        logger.error(f"❌ Failed to reach the database: {e}")
        if container is not None:
            await container.close()
        sys.exit(1)

    server = EmotionAPIServer(container)
    logger.info("🎭 Emotion Recognition API ready")
    await server.start_server()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Application terminated by user")
