import configparser
import logging
import os

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "mcmodsync_client.ini"

DEFAULTS = {
    'connection': {
        'server_url': 'http://localhost:25555',
        'list_endpoint': '/list',
        'download_endpoint': '/download',
        'timeout': '30',
        'max_retries': '3'
    },
    'paths': {
        'mods_folder': ''
    },
    'download': {
        'max_workers': '10',
        'chunk_size': '65536',
        'verify_hashes': 'True'
    }
}


class ConfigManager:
    """Client settings stored in an INI file"""

    def __init__(self, config_file=DEFAULT_CONFIG_FILE):
        self.config_file = config_file
        self.config = configparser.ConfigParser()
        self.config.read_dict(DEFAULTS)
        self.load_config()

    def load_config(self):
        """Load the file over the defaults; a missing file leaves the defaults"""
        if not os.path.exists(self.config_file):
            return
        try:
            self.config.read(self.config_file, encoding='utf-8')
        except configparser.Error as e:
            raise ValueError(f"invalid client config {self.config_file}: {e}") from e

    def save_config(self):
        """Write the settings back to the file"""
        with open(self.config_file, 'w', encoding='utf-8') as f:
            self.config.write(f)
        logger.debug(f"Saved client config to {self.config_file}")

    def get_mods_folder(self):
        return self.config.get('paths', 'mods_folder', fallback='') or None

    def set_mods_folder(self, path):
        self.config.set('paths', 'mods_folder', str(path))

    def get_connection_settings(self):
        """Server address and request settings"""
        return {
            'server_url': self.config.get('connection', 'server_url').rstrip('/'),
            'list_endpoint': self.config.get('connection', 'list_endpoint'),
            'download_endpoint': self.config.get('connection', 'download_endpoint'),
            'timeout': self.config.getfloat('connection', 'timeout'),
            'max_retries': self.config.getint('connection', 'max_retries')
        }

    def get_download_settings(self):
        """Download pool settings"""
        return {
            'max_workers': self.config.getint('download', 'max_workers'),
            'chunk_size': self.config.getint('download', 'chunk_size'),
            'verify_hashes': self.config.getboolean('download', 'verify_hashes')
        }

    def update_setting(self, section, key, value):
        """Update one setting"""
        if section not in self.config:
            self.config[section] = {}
        self.config.set(section, key, str(value))
