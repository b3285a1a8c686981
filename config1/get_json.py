import os
import json
from loguru import logger

"""
读取 config1/config.json 中的开关
"""

CONFIG_DIR = os.path.dirname(os.path.abspath(__file__))
CONFIG_PATH = os.path.join(CONFIG_DIR, 'config.json')
ENV_PATH = os.path.join(CONFIG_DIR, '.env')

DEFAULTS = {
    'log_create': 0,
    'log_path': os.path.join('log', 'roulette_bot.log'),
    'log_rotation': '10 MB',
}


def load_config(path: str = CONFIG_PATH) -> dict:
    #读取配置，文件不存在时使用默认值
    config = dict(DEFAULTS)
    if not os.path.exists(path):
        logger.info(f"未找到配置文件 {path}，使用默认配置")
        return config

    with open(path, 'r', encoding='utf-8') as f:
        config.update(json.load(f))
    return config


_config = load_config()

log_create = int(_config['log_create'])
log_path = _config['log_path']
log_rotation = _config['log_rotation']
