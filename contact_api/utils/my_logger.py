import functools
import logging
import os
import sys

from contact_api.config import config_instance


class AppLogger:
    def __init__(self, name: str, is_file_logger: bool = False, log_level: int = logging.INFO):
        logger_name = name if name else config_instance().APP_NAME
        self.logger = logging.getLogger(logger_name)
        self.logger.setLevel(level=log_level)

        if is_file_logger:
            os.makedirs('logs', exist_ok=True)
            handler = logging.FileHandler(f'logs/{config_instance().LOGGING.LOG_FILENAME}')
        else:
            handler = logging.StreamHandler(sys.stdout)
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        handler.setFormatter(formatter)
        self.logger.addHandler(handler)


@functools.lru_cache
def init_logger(name: str = "contact_api"):
    """
        one logger per component, file logging is switched on by LOG_TO_FILE
    :param name:
    :return:
    """
    _logging = config_instance().LOGGING
    log_level = logging.getLevelName(_logging.LOG_LEVEL.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO
    logger = AppLogger(name=name, is_file_logger=_logging.LOG_TO_FILE, log_level=log_level)
    return logger.logger
