"""Settings components and the shared `config` reader."""

from pathlib import Path

from decouple import AutoConfig

# Project root: the directory containing `manage.py` and `server/`
BASE_DIR = Path(__file__).parent.parent.parent.parent

# Values are read from environment variables first, then from `config/.env`
config = AutoConfig(search_path=BASE_DIR.joinpath('config'))
