"""Startup configuration: defaults, then an optional YAML file, then CLI flags."""

import os
from dataclasses import dataclass, fields
from typing import Optional

import yaml

DEFAULT_CONFIG_FILE = 'hugs.yaml'


@dataclass
class Config:
    content_dir: str = os.path.join('content', 'post')
    port: int = 8080
    host: str = '127.0.0.1'
    debug: bool = False
    hugo_server: bool = False
    # Seconds; None lets git run as long as it likes.
    git_timeout: Optional[float] = None

    @property
    def site_root(self) -> str:
        """The Hugo site (and git repository) holding the content directory."""
        return os.path.dirname(os.path.dirname(os.path.abspath(self.content_dir)))

    @classmethod
    def from_dict(cls, data: dict) -> 'Config':
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in data.items():
            name = key.replace('-', '_')
            if name not in known:
                raise ValueError(f'Unknown config key: {key}')
            values[name] = value
        return cls(**values)

    @classmethod
    def from_yaml(cls, path: str) -> 'Config':
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f'{path} must contain a mapping')
        return cls.from_dict(data)

    def check(self) -> None:
        if not os.path.isdir(self.content_dir):
            raise FileNotFoundError(f'Content directory not found: {os.path.abspath(self.content_dir)}')


def load_config(config_path: Optional[str] = None) -> Config:
    """Load *config_path*, or hugs.yaml from the working directory when present."""
    if config_path is None:
        if not os.path.isfile(DEFAULT_CONFIG_FILE):
            return Config()
        config_path = DEFAULT_CONFIG_FILE
    return Config.from_yaml(config_path)
