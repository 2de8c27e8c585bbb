"""Точка входа в приложение."""
import logging
import sys

from tattoo_preview.app import TattooPreviewApp
from tattoo_preview.config import load_config
from tattoo_preview.errors import ConfigurationError
from tattoo_preview.logging_utils import setup_logging

logger = logging.getLogger(__name__)


def main() -> None:
    """Читает конфигурацию, настраивает логирование и запускает главное окно."""
    try:
        config = load_config()
    except ConfigurationError as exc:
        setup_logging()
        logger.error("%s", exc)
        sys.exit(2)

    setup_logging(config.logging.level, config.logging.log_dir)
    logger.info("Starting Tattoo Preview, canvas %dx%d", *config.canvas.size)

    app = TattooPreviewApp(config)
    app.mainloop()


if __name__ == "__main__":
    main()
