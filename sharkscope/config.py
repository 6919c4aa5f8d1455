"""Configuration classes for SharkScope application."""

import os


class Config:
    """Base configuration."""

    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key'
    SHARKSCOPE_SETTINGS_PATH = os.environ.get(
        'SHARKSCOPE_SETTINGS_PATH', 'data/config/sharkscope.yaml'
    )

    # Unset values may be filled from the YAML settings file
    SHARKSCOPE_TSHARK_PATH = os.environ.get('SHARKSCOPE_TSHARK_PATH')
    SHARKSCOPE_CAPTURE_DIR = os.environ.get('SHARKSCOPE_CAPTURE_DIR')
    SHARKSCOPE_CONFIG_STORE_PATH = os.environ.get('SHARKSCOPE_CONFIG_STORE_PATH')
    SHARKSCOPE_TLS_KEYLOG_FILE = os.environ.get('SSLKEYLOGFILE')
    SHARKSCOPE_DEFAULT_INTERFACE = os.environ.get('SHARKSCOPE_DEFAULT_INTERFACE')

    # Overrides the DEBUG/INFO default (e.g. 'WARNING')
    SHARKSCOPE_LOG_LEVEL = os.environ.get('SHARKSCOPE_LOG_LEVEL')

    # Locate tshark at startup (result stored in SHARKSCOPE_TSHARK_AVAILABLE)
    SHARKSCOPE_PROBE_TSHARK = True


class DevelopmentConfig(Config):
    """Development configuration."""

    DEBUG = True
    TESTING = False


class TestingConfig(Config):
    """Testing configuration."""

    DEBUG = False
    TESTING = True
    SHARKSCOPE_PROBE_TSHARK = False


class ProductionConfig(Config):
    """Production configuration."""

    DEBUG = False
    TESTING = False


config = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig
}
