"""
Configuration management module for the budget planner.

This module handles loading and saving configuration values and turns the
``categories`` section into the classifier, protected-category set and
accounting unit used by the core.
"""

import copy
import logging
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, FrozenSet, Optional, Union

import yaml

from classification import (
    DEFAULT_AMBIGUOUS_CATEGORY,
    DEFAULT_EXPENSE_CATEGORIES,
    DEFAULT_INCOME_CATEGORIES,
    CategoryClassifier,
    normalize_category,
)
from exceptions import ConfigError
from utils import to_decimal

logger = logging.getLogger(__name__)

# Default configuration values
DEFAULT_CONFIG = {
    'categories': {
        'income': list(DEFAULT_INCOME_CATEGORIES),
        'expense': list(DEFAULT_EXPENSE_CATEGORIES),
        'ambiguous': DEFAULT_AMBIGUOUS_CATEGORY,
        'protected': ['rent'],
    },
    'allocation': {
        'accounting_unit': '1',
    },
    'logging': {
        'level': 'INFO',
        'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        'file': None,
    },
}

CONFIG_FILE = 'config.yaml'


def _merge_defaults(config: Dict[str, Any], defaults: Dict[str, Any]) -> Dict[str, Any]:
    """Fill missing keys in ``config`` from ``defaults``, one level of nesting deep."""
    merged = copy.deepcopy(defaults)
    for key, value in config.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key].update(value)
        else:
            merged[key] = value
    return merged


def load_config(config_path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """
    Load configuration from a YAML file.

    Args:
        config_path: Path to the config file (default: config.yaml)

    Returns:
        Configuration dictionary with defaults for missing values

    Raises:
        ConfigError: If the file is not valid YAML or not a mapping
    """
    path = Path(config_path or CONFIG_FILE)
    if not path.exists():
        logger.info("Config file %s not found; using defaults", path)
        return copy.deepcopy(DEFAULT_CONFIG)

    try:
        with open(path, 'r') as f:
            config = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError("Invalid YAML in config file", details={"path": str(path)}, original_error=e) from e
    except OSError as e:
        raise ConfigError("Unable to read config file", details={"path": str(path)}, original_error=e) from e

    if not isinstance(config, dict):
        raise ConfigError("Config file must contain a mapping", details={"path": str(path)})

    logger.info("Configuration loaded from %s", path)
    return _merge_defaults(config, DEFAULT_CONFIG)


def save_config(config: Dict[str, Any], config_path: Optional[Union[str, Path]] = None) -> bool:
    """
    Save configuration to a YAML file, preserving keys not present in ``config``.

    Args:
        config: Configuration dictionary to save
        config_path: Destination path (default: config.yaml)

    Returns:
        True if successful, False otherwise
    """
    path = Path(config_path or CONFIG_FILE)
    try:
        existing_config = {}
        if path.exists():
            with open(path, 'r') as f:
                existing_config = yaml.safe_load(f) or {}

        existing_config.update(config)

        with open(path, 'w') as f:
            yaml.dump(existing_config, f, default_flow_style=False)

        logger.info("Configuration saved to %s", path)
        return True

    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Error saving configuration: {e}", exc_info=True)
        return False


def build_classifier(config: Optional[Dict[str, Any]] = None) -> CategoryClassifier:
    """
    Build a category classifier from the ``categories`` config section.

    Raises:
        ConfigError: If the vocabularies are malformed or overlap
    """
    categories = (config or DEFAULT_CONFIG).get('categories', {}) or {}
    income = categories.get('income', DEFAULT_INCOME_CATEGORIES)
    expense = categories.get('expense', DEFAULT_EXPENSE_CATEGORIES)
    ambiguous = categories.get('ambiguous', DEFAULT_AMBIGUOUS_CATEGORY)

    if not isinstance(income, (list, tuple)) or not isinstance(expense, (list, tuple)):
        raise ConfigError("Config values 'categories.income' and 'categories.expense' must be lists")

    try:
        return CategoryClassifier(income, expense, ambiguous)
    except ValueError as e:
        raise ConfigError(f"Invalid category configuration: {e}", original_error=e) from e


def get_protected_categories(config: Optional[Dict[str, Any]] = None) -> FrozenSet[str]:
    """Return the normalized set of categories exempt from reduction."""
    categories = (config or DEFAULT_CONFIG).get('categories', {}) or {}
    protected = categories.get('protected', []) or []
    if isinstance(protected, str):
        protected = [protected]
    if not isinstance(protected, (list, tuple)):
        logger.warning("Config value 'categories.protected' should be a list; ignoring.")
        return frozenset()
    return frozenset(normalize_category(name) for name in protected if normalize_category(name))


def get_accounting_unit(config: Optional[Dict[str, Any]] = None) -> Decimal:
    """
    Return the rounding unit for allocation shares.

    Raises:
        ConfigError: If the configured unit is not a positive number
    """
    allocation = (config or DEFAULT_CONFIG).get('allocation', {}) or {}
    raw = allocation.get('accounting_unit', '1')
    unit = to_decimal(raw)
    if unit is None or unit <= 0:
        raise ConfigError("Config value 'allocation.accounting_unit' must be a positive number",
                          details={"value": raw})
    return unit
