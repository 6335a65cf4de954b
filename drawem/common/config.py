from pathlib import Path
from pyhocon import ConfigTree, ConfigFactory
from drawem.common.constants import RESOURCE_DIR

DRAWEM_CONF_PATH = RESOURCE_DIR.joinpath("drawem.conf")
DRAWEM_CONF = ConfigFactory.parse_file(str(DRAWEM_CONF_PATH))


def get_conf(conf: ConfigTree, group: str = "", key: str = "", default=None):
    if group:
        key = ".".join([group, key])
    return conf.get(key, default)


def load_conf(conf_path: Path) -> ConfigTree:
    if not conf_path.exists():
        raise FileNotFoundError(f"Configuration file does not exist at {conf_path}")
    return ConfigFactory.parse_file(str(conf_path))
