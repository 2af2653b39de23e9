import json
from cryptex.core.settings import CONFIG_FILE, DEFAULT_WORKERS
from cryptex.core.logging_config import system_logger

DEFAULT_CONFIG = {
    "workers": DEFAULT_WORKERS,
    "carrier_image": "",
    "output_dir": "",
}


def load_config() -> dict:
    if not CONFIG_FILE.exists():
        system_logger.warning(
            f"{CONFIG_FILE.name} not found. Creating default config."
        )
        save_config(DEFAULT_CONFIG)
        return DEFAULT_CONFIG.copy()

    with open(CONFIG_FILE, "r", encoding="utf-8") as f:
        stored = json.load(f)

    config = DEFAULT_CONFIG.copy()
    config.update(stored)
    return config


def save_config(config: dict):
    CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
    with open(CONFIG_FILE, "w", encoding="utf-8") as f:
        json.dump(config, f, indent=2)


def update_config(new_data: dict):
    config = load_config()
    config.update(new_data)
    save_config(config)
    return config
