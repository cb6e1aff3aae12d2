"""
Server entry point.

Usage:
    doc-assistant            # or: python -m doc_assistant.server
"""

import uvicorn

from .api.app import create_app
from .config import Settings
from .utils.logger import get_logger, setup_logging


def main() -> None:
    setup_logging()
    logger = get_logger(__name__)

    settings = Settings.from_env()

    print("=" * 50)
    print("Document Assistant")
    print("=" * 50)
    print(f"Chat model: {settings.chat_model}")
    print(f"Embeddings: {settings.embedding_model} ({settings.embedding_dimension} dims)")
    print(f"Vector store: {settings.vector_db_path or 'hosted Chroma'} / {settings.collection_name}")
    print(f"Slack: {'configured' if settings.slack_bot_token else 'SLACK_BOT_TOKEN not set'}")
    print("=" * 50)

    logger.info(f"Starting server on {settings.host}:{settings.port}")
    uvicorn.run(create_app(settings=settings), host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
