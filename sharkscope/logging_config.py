"""SharkScope logging configuration.

Log lines look like:
[YYYY-MM-DD HH:MM:SS][LEVEL][module.submodule] Message (key=value)

Logger names are shortened for that third field:
    sharkscope.services.capture_service -> services.capture
    sharkscope.blueprints.api.captures -> api.captures
    sharkscope.core.capture.tshark_manager -> capture.tshark
"""

import logging

LOG_FORMAT = '[%(asctime)s][%(levelname)s][%(shortname)s] %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Third-party loggers capped at WARNING
NOISY_LOGGERS = ('werkzeug', 'urllib3')


class SharkScopeFormatter(logging.Formatter):
    """Formatter exposing a short logger name as %(shortname)s."""

    # Stripped in order; a name loses at most one suffix
    PREFIXES_TO_STRIP = ('sharkscope.', 'blueprints.')
    SUFFIXES_TO_STRIP = ('_manager', '_service', '_analyzer', '_store')

    def __init__(self, fmt: str = LOG_FORMAT, datefmt: str = DATE_FORMAT):
        super().__init__(fmt=fmt, datefmt=datefmt)

    def format(self, record: logging.LogRecord) -> str:
        record.shortname = self._get_short_name(record.name)
        return super().format(record)

    def _get_short_name(self, name: str) -> str:
        """Transform a logger name to its short form.

        Args:
            name: Logger name (e.g., 'sharkscope.services.config_store')

        Returns:
            Short name (e.g., 'services.config'); names outside the
            package are returned unchanged
        """
        for prefix in self.PREFIXES_TO_STRIP:
            if name.startswith(prefix):
                name = name[len(prefix):]

        for suffix in self.SUFFIXES_TO_STRIP:
            if name.endswith(suffix):
                name = name[:-len(suffix)]
                break

        if name.startswith('core.'):
            name = name[len('core.'):]

        return name


def _resolve_level(app) -> int:
    """SHARKSCOPE_LOG_LEVEL if set and known, else DEBUG in debug mode, else INFO."""
    configured = app.config.get('SHARKSCOPE_LOG_LEVEL')
    if configured:
        level = logging.getLevelName(str(configured).upper())
        if isinstance(level, int):
            return level

    return logging.DEBUG if app.config.get('DEBUG') else logging.INFO


def configure_logging(app, config_name: str = 'default') -> None:
    """Install the SharkScope formatter on the root logger.

    Existing root handlers are replaced, so calling this again (e.g. once
    per create_app in tests) never duplicates output.

    Args:
        app: Flask application instance.
        config_name: Configuration name, recorded in the first log line.
    """
    log_level = _resolve_level(app)

    handler = logging.StreamHandler()
    handler.setLevel(log_level)
    handler.setFormatter(SharkScopeFormatter())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(
        f'Logging configured (config={config_name}, level={logging.getLevelName(log_level)})'
    )
