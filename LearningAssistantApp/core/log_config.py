import logging.config
from typing import Any, Dict


def build_logging_config(level: str = "INFO", log_file: str | None = None) -> Dict[str, Any]:
    """dictConfig for console output plus an optional append-mode log file."""
    level = level.upper()
    config = {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'detailed': {
                'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                'datefmt': '%Y-%m-%d %H:%M:%S'
            },
            'simple': {
                'format': '%(levelname)s - %(message)s'
            }
        },
        'handlers': {
            'console': {
                'class': 'logging.StreamHandler',
                'level': level,
                'formatter': 'simple',
                'stream': 'ext://sys.stderr'
            },
        },
        'loggers': {
            '': {
                'level': level,
                'handlers': ['console']
            },
            'sqlalchemy.engine': {
                'level': 'WARNING'
            }
        }
    }
    if log_file:
        config['handlers']['file'] = {
            'class': 'logging.FileHandler',
            'level': 'DEBUG',
            'formatter': 'detailed',
            'filename': log_file,
            'mode': 'a'
        }
        config['loggers']['']['handlers'].append('file')
    return config


def configure_logging(level: str = "INFO", log_file: str | None = None) -> None:
    logging.config.dictConfig(build_logging_config(level, log_file))
