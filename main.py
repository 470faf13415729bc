from loguru import logger

from hadith_cms.cli import app


def main() -> None:
    logger.debug("hadith-cms started")
    app()


if __name__ == "__main__":
    main()
