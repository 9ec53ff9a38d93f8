"""
Logging Configuration Module

Provides centralized logging configuration with file and console handlers,
plus the ``log_print`` call tracing decorator used by the service layer.
"""

import logging
import os
import functools
import inspect
import json
from datetime import datetime, date
from logging.handlers import TimedRotatingFileHandler

FILE_FORMATTER = '%(asctime)s.%(msecs)03d | %(levelname)-7s | [PID:%(process)d] | %(name)s.%(funcName)s:%(lineno)d | %(message)s'
CONSOLE_FORMATTER = '%(asctime)s.%(msecs)03d | \033[1m%(levelname)-7s\033[0m | %(name)s.%(funcName)s:%(lineno)d | \033[36m%(message)s\033[0m'

MAX_LOGGED_LENGTH = 500


class LoggingConfig:
    """Logging configuration management"""

    def __init__(self, log_file_name='deployer', log_level=logging.INFO, backup_count=30, log_dir=None):
        self.log_file_name = log_file_name
        self.log_level = log_level
        self.backup_count = backup_count
        self.log_dir = log_dir or os.environ.get("DEPLOYER_LOG_DIR")
        self.logger = logging.getLogger()

    def setup_logging(self):
        """Setup logging with file and console handlers"""
        self.logger.handlers.clear()
        self.logger.setLevel(self.log_level)

        console_handler = logging.StreamHandler()
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMATTER))
        self.logger.addHandler(console_handler)

        if self.log_dir is None:
            root_dir = os.path.dirname(os.path.abspath(__file__))
            self.log_dir = os.path.join(root_dir, "../../logs")

        try:
            os.makedirs(self.log_dir, exist_ok=True)
        except OSError as e:
            self.logger.error(f"Failed to create log directory {self.log_dir}, file logging disabled: {e}")
            return self.logger

        # Daily rotation
        file_handler = TimedRotatingFileHandler(
            os.path.join(self.log_dir, f'{self.log_file_name}.log'),
            when='D',
            interval=1,
            backupCount=self.backup_count,
            encoding='utf-8',
        )
        file_handler.setFormatter(logging.Formatter(FILE_FORMATTER))
        self.logger.addHandler(file_handler)

        self.logger.info("Logging initialized successfully")
        return self.logger


class _SafeEncoder(json.JSONEncoder):
    def default(self, o):
        if isinstance(o, (datetime, date)):
            return o.isoformat()
        if isinstance(o, (bytes, bytearray)):
            return f"bytes(len={len(o)})"
        if hasattr(o, 'model_dump') and callable(o.model_dump):
            return o.model_dump()
        if hasattr(o, '__dict__'):
            return {k: v for k, v in o.__dict__.items() if not k.startswith('_')}
        return f"<{type(o).__name__}>"


def _safe_to_json(obj, max_length=MAX_LOGGED_LENGTH) -> str:
    """Render an argument or result for the log without dumping file payloads."""
    try:
        if obj is None or isinstance(obj, (bool, int, float, str)):
            result = str(obj)
        elif isinstance(obj, (bytes, bytearray)):
            return f"bytes(len={len(obj)})"
        else:
            result = json.dumps(obj, cls=_SafeEncoder, ensure_ascii=False)
    except (TypeError, ValueError):
        result = f"<{type(obj).__name__}>"

    if len(result) > max_length:
        return result[:max_length] + "... (truncated)"
    return result


def _format_call(param_names, args, kwargs) -> str:
    params = []
    # Skip self/cls
    start_idx = 1 if args and param_names[:1] in (['self'], ['cls']) else 0

    for i, arg in enumerate(args[start_idx:]):
        param_idx = start_idx + i
        if param_idx < len(param_names):
            params.append(f"{param_names[param_idx]}={_safe_to_json(arg)}")
        else:
            params.append(_safe_to_json(arg))

    params.extend(f"{k}={_safe_to_json(v)}" for k, v in kwargs.items())
    return ', '.join(params) if params else '(no args)'


def log_print(func):
    """Decorator for logging function calls and return values (supports sync/async)"""

    try:
        param_names = list(inspect.signature(func).parameters.keys())
    except (TypeError, ValueError):
        param_names = []

    logger = logging.getLogger(func.__module__)

    @functools.wraps(func)
    async def async_wrapper(*args, **kwargs):
        logger.info(f"[Call] {func.__qualname__} <------------ Args: {_format_call(param_names, args, kwargs)}")
        try:
            result = await func(*args, **kwargs)
        except Exception as e:
            logger.error(f"[Exception] {func.__qualname__} ! {e.__class__.__name__}: {str(e)}", exc_info=True)
            raise
        logger.info(f"[Return] {func.__qualname__} ------------> Result: {_safe_to_json(result)}")
        return result

    @functools.wraps(func)
    def sync_wrapper(*args, **kwargs):
        logger.info(f"[Call] {func.__qualname__} <------------ Args: {_format_call(param_names, args, kwargs)}")
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            logger.error(f"[Exception] {func.__qualname__} ! {e.__class__.__name__}: {str(e)}", exc_info=True)
            raise
        logger.info(f"[Return] {func.__qualname__} ------------> Result: {_safe_to_json(result)}")
        return result

    return async_wrapper if inspect.iscoroutinefunction(func) else sync_wrapper
