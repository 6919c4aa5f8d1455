"""SharkScope Application Factory.

This module provides the application factory pattern for creating Flask
application instances with the appropriate configuration.
"""

from pathlib import Path

from flask import Flask

from sharkscope.config import config

__version__ = '0.1.0'

# YAML key -> app.config key, filled only when the environment left it unset
SETTINGS_KEYS = {
    'tshark_path': 'SHARKSCOPE_TSHARK_PATH',
    'capture_dir': 'SHARKSCOPE_CAPTURE_DIR',
    'config_store_path': 'SHARKSCOPE_CONFIG_STORE_PATH',
    'tls_keylog_file': 'SHARKSCOPE_TLS_KEYLOG_FILE',
    'default_interface': 'SHARKSCOPE_DEFAULT_INTERFACE',
}


def create_app(config_name='default'):
    """Create and configure the Flask application.

    Args:
        config_name: Configuration name ('development', 'testing', 'production', 'default')

    Returns:
        Flask: Configured Flask application instance
    """
    app = Flask(__name__)
    app.config.from_object(config[config_name])

    # Configure logging
    _configure_logging(app, config_name)

    # Load optional YAML settings
    _configure_settings(app)

    # Locate tshark
    _configure_tshark(app)

    # Register blueprints
    _register_blueprints(app)

    # Register error handlers
    _register_error_handlers(app)

    app.logger.info(f'Application created (config={config_name})')

    return app


def _configure_logging(app, config_name):
    """Configure application logging with SharkScope structured format.

    Uses SharkScopeFormatter to produce short module names:
    [TIME][LEVEL][module.submodule] Message

    Args:
        app: Flask application instance
        config_name: Current configuration name
    """
    from sharkscope.logging_config import configure_logging
    configure_logging(app, config_name)


def _configure_settings(app):
    """Fill unset path and default settings from the YAML settings file.

    Reads the `sharkscope:` section of SHARKSCOPE_SETTINGS_PATH (relative
    paths are resolved against the project root). Values already present in
    app.config, e.g. from the environment, are never overwritten.

    Args:
        app: Flask application instance
    """
    import yaml

    settings_path = Path(app.config.get('SHARKSCOPE_SETTINGS_PATH') or '')
    if not settings_path.is_absolute():
        settings_path = Path(app.root_path).parent / settings_path

    if not settings_path.is_file():
        app.logger.debug(f'Settings file not found, using defaults (path={settings_path})')
        return

    try:
        with open(settings_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        app.logger.error(f'Failed to load settings (path={settings_path}, error={str(e)})')
        return

    section = data.get('sharkscope') if isinstance(data, dict) else None
    if not isinstance(section, dict):
        app.logger.warning(f"Settings file has no 'sharkscope' section (path={settings_path})")
        return

    applied = []
    for yaml_key, config_key in SETTINGS_KEYS.items():
        value = section.get(yaml_key)
        if value is not None and not app.config.get(config_key):
            app.config[config_key] = str(value)
            applied.append(yaml_key)

    app.logger.info(f'Settings loaded (path={settings_path}, applied={applied})')


def _configure_tshark(app):
    """Probe for the tshark executable at startup.

    A missing tshark does not stop the application; capture and analysis
    calls report TSHARK_NOT_FOUND until it is installed.

    Args:
        app: Flask application instance
    """
    from sharkscope.core.capture.tshark_locator import find_tshark
    from sharkscope.models.errors import TsharkNotFoundError

    app.config['SHARKSCOPE_TSHARK_AVAILABLE'] = False
    app.config['SHARKSCOPE_TSHARK_RESOLVED'] = None

    if not app.config.get('SHARKSCOPE_PROBE_TSHARK', True):
        return

    try:
        path = find_tshark(app.config.get('SHARKSCOPE_TSHARK_PATH'))
        app.config['SHARKSCOPE_TSHARK_AVAILABLE'] = True
        app.config['SHARKSCOPE_TSHARK_RESOLVED'] = path
        app.logger.info(f'tshark located (path={path})')

    except TsharkNotFoundError as e:
        app.logger.error(f'tshark not available (error={e.message})')


def _register_blueprints(app):
    """Register all application blueprints.

    Args:
        app: Flask application instance
    """
    from sharkscope.blueprints.api import api_bp

    app.register_blueprint(api_bp, url_prefix='/api')


def _register_error_handlers(app):
    """Register custom error handlers.

    Args:
        app: Flask application instance
    """
    from flask import jsonify

    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({
            'success': False,
            'error': {
                'code': 'SYSTEM_NOT_FOUND',
                'message': 'The requested resource was not found',
                'details': {}
            }
        }), 404

    @app.errorhandler(500)
    def internal_error(error):
        return jsonify({
            'success': False,
            'error': {
                'code': 'SYSTEM_INTERNAL_ERROR',
                'message': 'An internal server error occurred',
                'details': {}
            }
        }), 500
