"""
Configuration loader for the Hub Device Liveness Monitor
Loads and validates configuration from YAML files
"""

import yaml
import logging
from typing import Dict, Any
from pathlib import Path
from datetime import datetime
import pytz

logger = logging.getLogger(__name__)

def load_config(config_path: str = "config/config.yaml") -> Dict[str, Any]:
    """
    Load configuration from YAML file with validation
    """
    try:
        config_file = Path(config_path)
        if not config_file.exists():
            logger.error(f"Configuration file not found: {config_path}")
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_file, 'r') as f:
            config = yaml.safe_load(f) or {}

        # Validate required sections
        _validate_config(config)

        # Apply defaults
        config = _apply_defaults(config)

        logger.info(f"Configuration loaded from {config_path}")
        return config

    except Exception as e:
        logger.error(f"Failed to load configuration: {e}")
        raise

def _validate_config(config: Dict) -> None:
    """Validate that required configuration sections exist"""
    required_sections = ['hub']

    for section in required_sections:
        if section not in config:
            raise ValueError(f"Missing required configuration section: {section}")

    # Validate hub section
    hub = config['hub']
    if not hub.get('base_url'):
        raise ValueError("hub.base_url is required")
    if not str(hub['base_url']).startswith(('http://', 'https://')):
        raise ValueError("hub.base_url must start with http:// or https://")

    # Validate tag sink selection if present
    tags = config.get('tags', {})
    sink = tags.get('sink', 'log')
    if sink not in ('log', 'webhook'):
        raise ValueError(f"tags.sink must be 'log' or 'webhook', got: {sink}")
    if sink == 'webhook' and not tags.get('webhook_url'):
        logger.warning("tags.sink is 'webhook' but tags.webhook_url is empty - tags will only be logged")

    # Unknown time zones fall back to UTC rather than failing
    tz_name = config.get('monitor', {}).get('timezone')
    if tz_name and tz_name not in pytz.all_timezones_set:
        logger.warning(f"Unknown monitor.timezone '{tz_name}' - timestamps will be shown in UTC")

def _apply_section_defaults(config: Dict, section: str, defaults: Dict) -> None:
    if section not in config or config[section] is None:
        config[section] = {}
    for key, default_value in defaults.items():
        if key not in config[section]:
            config[section][key] = default_value

def _apply_defaults(config: Dict) -> Dict:
    """Apply default values to configuration"""

    # Hub defaults
    _apply_section_defaults(config, 'hub', {
        'token': None,
        'timeout_seconds': 10,
        'verify_ssl': True
    })

    # Monitor defaults
    _apply_section_defaults(config, 'monitor', {
        'threshold': '600m',          # 10h
        'validation_delay': '5s',
        'interval_minutes': 30,
        'run_on_startup': True,
        'timezone': 'Europe/Prague'
    })

    # Filter defaults (Zigbee lights only)
    _apply_section_defaults(config, 'filters', {
        'include_transports': ['zigbee'],
        'include_classes': ['light'],
        'exclude_classes': ['sensor', 'button', 'remote', 'socket', 'other', 'curtain',
                            'blind', 'valve', 'thermostat', 'fan', 'lock'],
        'include_name_patterns': [],
        'exclude_name_patterns': [],
        'treat_virtual_class_as_class': True,
        'always_apply_class_exclusions': True,
        'excluded_zones': [],
        'excluded_driver_patterns': [],
        'excluded_flags': [],
        'exclude_empty_flags': False,
        'verbose_skip_logs': False
    })

    # Zigbee mesh last-seen (off: capability timestamps are used)
    _apply_section_defaults(config, 'mesh', {
        'enabled': False,
        'include_routers': True,
        'include_end_devices': True
    })

    # Wake defaults
    _apply_section_defaults(config, 'wake', {
        'enabled': True,
        'capability': 'onoff',
        'classes': ['light']
    })

    # Battery defaults
    _apply_section_defaults(config, 'battery', {
        'enabled': True,
        'threshold_percent': 30,
        'include_battery_alarm': True
    })

    # Tag sink defaults
    _apply_section_defaults(config, 'tags', {
        'sink': 'log',
        'webhook_url': None,
        'timeout_seconds': 10
    })

    # API defaults
    _apply_section_defaults(config, 'api', {
        'enabled': True,
        'host': '0.0.0.0',
        'port': 8000
    })

    # Logging defaults
    _apply_section_defaults(config, 'logging', {
        'level': 'INFO',
        'file': 'logs/liveness_monitor.log',
        'console_output': True
    })

    return config


class TimezoneFormatter(logging.Formatter):
    """Formatter that renders timestamps in a configured time zone"""

    def __init__(self, fmt=None, tz_name: str = 'UTC'):
        super().__init__(fmt)
        try:
            self.tz = pytz.timezone(tz_name)
        except pytz.UnknownTimeZoneError:
            self.tz = pytz.utc

    def formatTime(self, record, datefmt=None):
        dt = datetime.fromtimestamp(record.created, tz=self.tz)
        if datefmt:
            return dt.strftime(datefmt)
        else:
            # Default format: YYYY-MM-DD HH:MM:SS CET
            return dt.strftime('%Y-%m-%d %H:%M:%S %Z')

def setup_logging(config: Dict) -> None:
    """Setup logging based on configuration with local-zone timestamps"""
    log_config = config.get('logging', {})
    level = log_config.get('level', 'INFO')
    tz_name = config.get('monitor', {}).get('timezone', 'UTC')

    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    formatter = TimezoneFormatter(log_format, tz_name)

    root = logging.getLogger()
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    for handler in list(root.handlers):
        root.removeHandler(handler)

    # Console handler
    if log_config.get('console_output', True):
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)

    # File handler
    log_file = log_config.get('file')
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    logger.info(f"Logging configured ({tz_name} timestamps): level={level}, console={log_config.get('console_output', True)}, file={log_file}")

def get_sample_config() -> Dict:
    """Return a sample configuration for reference"""
    return {
        "hub": {
            "base_url": "http://192.168.1.50",
            "token": "your-hub-api-token-here",
            "timeout_seconds": 10
        },
        "monitor": {
            "threshold": "600m",
            "validation_delay": "5s",
            "interval_minutes": 30,
            "run_on_startup": True,
            "timezone": "Europe/Prague"
        },
        "filters": {
            "include_transports": ["zigbee"],          # [] = all transports
            "include_classes": ["light"],
            "exclude_classes": ["sensor", "button", "remote", "socket", "other"],
            "include_name_patterns": [],                # e.g. "^pc", "plug"
            "exclude_name_patterns": ["Unif", "Christma", "group"],
            "treat_virtual_class_as_class": True,
            "always_apply_class_exclusions": True,
            "excluded_zones": ["Garage"],
            "excluded_driver_patterns": ["vdevice", "com\\.swttt\\.devicegroups"],
            "excluded_flags": [],                     # e.g. "zwave" to drop that stack
            "exclude_empty_flags": False,
            "verbose_skip_logs": False
        },
        "mesh": {
            "enabled": False,
            "include_routers": True,
            "include_end_devices": True
        },
        "wake": {
            "enabled": True,
            "capability": "onoff",
            "classes": ["light"]
        },
        "battery": {
            "enabled": True,
            "threshold_percent": 30,
            "include_battery_alarm": True
        },
        "tags": {
            "sink": "log",
            "webhook_url": None,
            "timeout_seconds": 10
        },
        "api": {
            "enabled": True,
            "host": "0.0.0.0",
            "port": 8000
        },
        "logging": {
            "level": "INFO",
            "file": "logs/liveness_monitor.log",
            "console_output": True
        }
    }
