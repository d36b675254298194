import logging


def setup_logger(level='INFO'):
    """
    Sends the log records of the package to the console. Calling it again only
    changes the level.
    """
    logger = logging.getLogger('bmmPriors')
    logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    if not logger.handlers:
        ch = logging.StreamHandler()
        ch.setFormatter(logging.Formatter('%(asctime)s - %(levelname)s - %(message)s'))
        logger.addHandler(ch)
        logger.propagate = False
    return logger
