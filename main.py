import logging
import os
import uvicorn
from logging.handlers import RotatingFileHandler

from app.api.http import create_app

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(log_dir: str = "logs", level: int = logging.INFO) -> str:
    """
    Configura o root logger: console + arquivo com rotação
    (máximo 10MB por arquivo, mantém 5 backups).
    Retorna o caminho do arquivo de log.
    """
    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.join(log_dir, "registro.log")
    formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)

    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    file_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(console_handler)
    root_logger.addHandler(file_handler)
    return log_file


log_file = configure_logging(level=logging.DEBUG if os.getenv("LOG_LEVEL", "").upper() == "DEBUG" else logging.INFO)
logging.info(f"Logging configurado. Arquivo de log: {log_file}")

app = create_app()

if __name__ == "__main__":
    # Em produção, quem sobe isso é o process manager (systemd, docker, etc.)
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        log_level="info",
    )
