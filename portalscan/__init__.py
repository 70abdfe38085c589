import logging
from typing import Any, Mapping, Optional

from flask import Flask

from .config import load_config
from .patterns import load_registry
from .scanners import BatchScraper, select_source

_LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'


def _configure_logging(config: Mapping[str, Any]) -> None:
    level_name = config['LOG_LEVEL']
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(level=level, format=_LOG_FORMAT)
    # Optional rotating file handler for persistent logs (useful in production)
    log_file = config.get('LOG_FILE')
    if log_file:
        from logging.handlers import RotatingFileHandler
        try:
            fh = RotatingFileHandler(log_file, maxBytes=config['LOG_MAX_BYTES'],
                                     backupCount=config['LOG_BACKUP_COUNT'])
        except OSError as e:
            logging.getLogger(__name__).warning('failed attaching RotatingFileHandler for %s: %s', log_file, e)
        else:
            fh.setLevel(level)
            fh.setFormatter(logging.Formatter(_LOG_FORMAT))
            logging.getLogger().addHandler(fh)
            logging.getLogger(__name__).info('RotatingFileHandler attached path=%s max_bytes=%d backups=%d',
                                             log_file, config['LOG_MAX_BYTES'], config['LOG_BACKUP_COUNT'])
    logging.getLogger('werkzeug').setLevel(logging.WARNING)
    logging.getLogger('urllib3').setLevel(logging.WARNING)
    logging.getLogger(__name__).info('Logging initialized at level %s', level_name)


def build_scraper(config: Mapping[str, Any]) -> BatchScraper:
    """Wire the registry and the process-wide content source into a batch runner."""
    registry = load_registry(config.get('PATTERNS_PATH'))
    source = select_source(config)
    timeout = config['RENDER_TIMEOUT'] if source.name == 'firecrawl' else config['FETCH_TIMEOUT']
    return BatchScraper(
        source,
        registry,
        window_size=config['WINDOW_SIZE'],
        timeout=timeout,
        schedule=config['SCHEDULE'],
        fold_url=config['CLASSIFY_URL'],
        include_details=config['EXTRACT_DETAILS'],
    )


def create_app(overrides: Optional[Mapping[str, Any]] = None):
    config = load_config()
    if overrides:
        config.update(overrides)
    app = Flask(__name__)
    app.config.update(config)
    _configure_logging(app.config)

    # Pattern file problems surface here, not on the first request
    scraper = build_scraper(app.config)
    app.extensions['portalscan.scraper'] = scraper
    logging.getLogger(__name__).info(
        'scraper ready source=%s schedule=%s window=%d timeout=%.1fs details=%s fold_url=%s',
        scraper.source.name, scraper.schedule, scraper.window_size, scraper.timeout,
        scraper.include_details, scraper.fold_url)

    # register blueprints
    from .routes.scan import bp as scan_bp
    from .routes.system import system_bp
    app.register_blueprint(scan_bp)
    app.register_blueprint(system_bp)
    return app
