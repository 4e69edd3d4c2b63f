import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from datetime import datetime, timezone
from os import environ as env
from dotenv import find_dotenv, load_dotenv

# Load environment variables immediately
ENV_FILE = find_dotenv(usecwd=True)
if ENV_FILE and env.get("USE_DOTENV", "true").lower() == "true":
    load_dotenv(ENV_FILE)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Progress and the final summary are operator output, kept at INFO everywhere
MIGRATION_LOG_LEVEL = logging.INFO


class LoggerSingleton:
    _instance = None
    _loggers = {}  # Dictionary to store named loggers
    _initialized = False

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(LoggerSingleton, cls).__new__(cls)
        return cls._instance

    def __init__(self):
        if not self._initialized:
            self._configure_base_logging()
            self._configure_third_party_loggers()
            LoggerSingleton._initialized = True

    @staticmethod
    def _log_level() -> int:
        """Root logger level; production only quietens loggers we do not own"""
        env_setting = env.get('LOGGING_ENV', 'development').lower()
        return logging.WARNING if env_setting == 'production' else logging.INFO

    def _configure_base_logging(self):
        """Configure base logging settings"""
        logging_to_file = env.get('LoggingtoFile', 'false').lower() == 'true'

        root_logger = logging.getLogger()
        log_level = self._log_level()
        root_logger.setLevel(log_level)

        if not root_logger.handlers:  # Only configure if not already configured
            # Migration progress is narrated on stdout
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(MIGRATION_LOG_LEVEL)
            formatter = logging.Formatter(LOG_FORMAT)
            console_handler.setFormatter(formatter)
            root_logger.addHandler(console_handler)

            if logging_to_file:
                try:
                    log_dir = env.get('LOG_DIR', 'logs')
                    os.makedirs(log_dir, exist_ok=True)
                    timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d")
                    log_file = os.path.join(log_dir, f'migration_{timestamp}.log')

                    file_handler = RotatingFileHandler(
                        log_file,
                        maxBytes=30485760,  # 30MB
                        backupCount=5
                    )
                    file_handler.setLevel(MIGRATION_LOG_LEVEL)
                    file_handler.setFormatter(formatter)
                    root_logger.addHandler(file_handler)
                except OSError as e:
                    root_logger.warning(f"Failed to initialize file logging: {e}")
        else:
            # Update existing handlers to use correct level
            for handler in root_logger.handlers:
                handler.setLevel(MIGRATION_LOG_LEVEL)

    def _configure_third_party_loggers(self):
        """Configure logging levels for third-party libraries"""
        third_party_loggers = [
            'urllib3',
            'requests',
            'google',
            'google.auth',  # Service account token refresh
            'google.api_core',
            'google.cloud.firestore',
            'grpc',
            'firebase_admin',
            'cachecontrol',  # Used by firebase_admin for public key fetches
        ]

        # Third-party libraries only surface warnings and above
        level = logging.WARNING

        for logger_name in third_party_loggers:
            logging.getLogger(logger_name).setLevel(level)

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """Get a logger instance with the singleton configuration"""
        if cls._instance is None:
            cls()

        if name not in cls._loggers:
            logger = logging.getLogger(name)
            logger.setLevel(MIGRATION_LOG_LEVEL)

            # Allow propagation to root logger
            logger.propagate = True

            cls._loggers[name] = logger

        return cls._loggers[name]
