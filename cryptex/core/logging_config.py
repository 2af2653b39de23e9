import logging
from pathlib import Path
from cryptex.core.settings import LOG_DIR

def setup_logger(name: str, log_file: str, level=logging.INFO) -> logging.Logger:
    """Setup logger with file and console handlers"""
    log_path = Path(LOG_DIR) / log_file
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(f"cryptex.{name}")
    logger.setLevel(level)
    logger.handlers.clear()  # re-import must not duplicate output
    logger.propagate = False

    file_handler = logging.FileHandler(
        log_path,
        mode='a',
        encoding='utf-8'
    )
    file_handler.setLevel(level)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(max(level, logging.WARNING))

    formatter = logging.Formatter(
        '%(asctime)s | %(levelname)s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    file_handler.setFormatter(formatter)
    console_handler.setFormatter(formatter)

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    return logger

# Initialize all loggers
encryption_logger = setup_logger('encryption', 'crypto/encryption.log')
decryption_logger = setup_logger('decryption', 'crypto/decryption.log')
key_logger = setup_logger('key_derivation', 'crypto/key_derivation.log')
stego_logger = setup_logger('stego', 'crypto/stego.log')
system_logger = setup_logger('system', 'system/system.log')
error_logger = setup_logger('error', 'error/error.log', level=logging.ERROR)
