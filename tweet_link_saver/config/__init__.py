from .config import Config, config, BASE_DIR

__all__ = ['Config', 'config', 'BASE_DIR']
