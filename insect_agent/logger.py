import logging

import colorlog

from insect_agent.config import LOG_LEVEL


def get_logger(name, level=None):
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, (level or LOG_LEVEL).upper(), logging.INFO))

    # One console handler per logger, even if called repeatedly
    if not logger.handlers:
        console_handler = logging.StreamHandler()
        color_formatter = colorlog.ColoredFormatter(
            "%(log_color)s%(asctime)s %(name)s %(levelname)-8s: %(message)s%(reset)s",
            datefmt='%Y-%m-%d %H:%M:%S',
            reset=True,
            log_colors={
                'DEBUG':    'cyan',
                'INFO':     'green',
                'WARNING':  'yellow',
                'ERROR':    'red',
                'CRITICAL': 'red,bg_white',
            },
            style='%'
        )
        console_handler.setFormatter(color_formatter)
        logger.addHandler(console_handler)

    silenced_libraries = ['urllib3', 'asyncio', 'grpc', 'google', 'PIL']
    for library in silenced_libraries:
        logging.getLogger(library).setLevel(logging.WARNING)

    return logger
