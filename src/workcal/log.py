import logging

# levelname width 7 fits "WARNING"
LOG_FORMAT = "[%(levelname)7s] %(asctime)s (%(name)s:%(lineno)d) --- %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: int | str = logging.INFO) -> None:
    """
    One console handler on the root logger.
    Calling it again replaces the handler instead of stacking a second one.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT))
    handler.set_name("workcal")

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for existing in list(root_logger.handlers):
        if existing.get_name() == "workcal":
            root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
