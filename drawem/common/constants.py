from pathlib import Path


PACKAGE_DIR = Path(__file__).parent.parent
ROOT_DIR = PACKAGE_DIR.parent
RESOURCE_DIR = PACKAGE_DIR.joinpath("resource")
