from .json_io import save_json
from .config_loader import TrackingOptions, load_config, build_from_config

__all__ = ["save_json", "TrackingOptions", "load_config", "build_from_config"]
