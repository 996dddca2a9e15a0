# funnelflow/utils/log.py
# Логирование событий в файлы по дням: LOG_DIR/2025/10/04.log

import os
import datetime
import logging
from aiologger import Logger
from aiologger.handlers.files import AsyncFileHandler


class Log:
    def __init__(self, log_dir: str = "log", log_print: str | bool = "0"):
        self.log_dir = log_dir
        os.makedirs(self.log_dir, exist_ok=True)
        self.current = None     # {"path": ..., "logger": ...} для текущего дня
        if isinstance(log_print, bool):
            self.log_print = log_print
        else:
            self.log_print = str(log_print).lower() in ("1", "true", "yes")

    def build_log_path(self, now: datetime.datetime) -> str:
        base_dir = os.path.join(self.log_dir, f"{now.year}", f"{now:%m}")
        os.makedirs(base_dir, exist_ok=True)
        return os.path.join(base_dir, f"{now:%d}.log")

    def format_line(self, target: str, message: str, data: dict | None, now: datetime.datetime) -> str:
        line = f"{now:%d.%m.%Y %H:%M:%S} {target}: {message}"
        if data:
            line += f": {self.safe_serialize(data)}"
        return line

    async def get_logger(self, now: datetime.datetime) -> Logger:
        """Асинхронный логгер для файла текущего дня. При смене дня старый закрывается."""
        log_path = self.build_log_path(now)

        if self.current is None or self.current["path"] != log_path:
            previous = self.current
            logger = Logger(name="funnelflow")
            logger.add_handler(AsyncFileHandler(filename=log_path, mode="a", encoding="utf-8"))
            self.current = {"path": log_path, "logger": logger}

            if previous is not None:
                await previous["logger"].shutdown()

        return self.current["logger"]

    # Асинхронное
    async def log_info(
        self,
        target: str = "",
        message: str = "",
        data: dict | None = None,
        is_console: bool = None,
    ):
        now = datetime.datetime.now()
        line = self.format_line(target, message, data, now)

        logger = await self.get_logger(now)
        await logger.info(line)

        should_print = self.log_print if is_console is None else is_console
        if should_print:
            print(line)

    async def log_warning(self, target: str = "", message: str = "", data: dict | None = None, is_console: bool = None):
        await self.log_info(target, f"WARNING: {message}", data, is_console)

    async def log_error(self, target: str = "", message: str = "", data: dict | None = None, is_console: bool = None):
        await self.log_info(target, f"ERROR: {message}", data, is_console)

    # Синхронное (старт приложения, до event loop)
    def log_info_sync(self, target: str = "", message: str = "", data: dict | None = None, is_console: bool = None):
        now = datetime.datetime.now()
        log_path = self.build_log_path(now)
        line = self.format_line(target, message, data, now)

        logger = logging.getLogger("funnelflow.sync")
        logger.setLevel(logging.INFO)
        logger.propagate = False

        handler = next((h for h in logger.handlers if getattr(h, "baseFilename", None) == os.path.abspath(log_path)), None)
        if handler is None:
            for old in list(logger.handlers):
                logger.removeHandler(old)
                old.close()
            handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
            handler.setFormatter(logging.Formatter("%(message)s"))
            logger.addHandler(handler)

        logger.info(line)

        should_print = self.log_print if is_console is None else is_console
        if should_print:
            print(line)

    def log_error_sync(self, target: str = "", message: str = "", data: dict | None = None, is_console: bool = None):
        self.log_info_sync(target, f"ERROR: {message}", data, is_console)

    def safe_serialize(self, obj):
        """
        Приводит объект к виду, пригодному для записи в лог:
        - dict, list, tuple, set рекурсивно
        - Pydantic модели через model_dump
        - ORM объекты через публичные атрибуты (пароли и токены скрываются)
        - прочее → строка с типом
        """
        if obj is None:
            return None
        elif isinstance(obj, (str, int, float, bool)):
            return obj
        elif isinstance(obj, (datetime.datetime, datetime.date)):
            return obj.isoformat()
        elif isinstance(obj, dict):
            return {k: self.safe_serialize(v) for k, v in obj.items()}
        elif isinstance(obj, (list, tuple, set)):
            return [self.safe_serialize(v) for v in obj]
        elif hasattr(obj, "model_dump"):  # Pydantic
            return self.safe_serialize(obj.model_dump())
        elif hasattr(obj, "__dict__"):
            return {
                k: self.safe_serialize(v)
                for k, v in vars(obj).items()
                if not k.startswith("_") and k not in ("password", "reset_token")
            }
        else:
            return f"<{type(obj).__name__}>"

    async def shutdown(self):
        if self.current is not None:
            await self.current["logger"].shutdown()
            self.current = None
