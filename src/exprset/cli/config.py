"""
Config files for the exprset commands.

A YAML or JSON file can stand in for any command-line option; options typed
on the command line take precedence over the file.

Example ``build.yaml``:

    matrix: data/expression.csv
    output: results/eset
    pheno:
      file: data/targets.csv
      labels:
        group: Treatment/Control
        age: Age at disease onset
        sex: Sex of patient (Male/Female)
      strict_labels: false
    features:
      file: data/genes.csv
    metadata: data/experiment.yaml

Example ``subset.yaml``:

    output: results/young
    subset:
      feature_range: "0:15"
      query: "age < 30"
"""

import logging
from argparse import Namespace
from pathlib import Path
from typing import Any, Dict, List, Optional

from exprset.io.loaders import read_mapping_file

logger = logging.getLogger(__name__)

# Options that exclude each other; typing one on the CLI blocks the other from config
_EXCLUSIVE = {
    'feature_ids': 'feature_range',
    'feature_range': 'feature_ids',
    'sample_ids': 'query',
    'query': 'sample_ids',
}


def load_config(config_path: Path) -> Dict[str, Any]:
    """
    Read a config mapping (.yaml, .yml or .json).

    Raises:
        FileNotFoundError: Missing file
        ValueError: Unknown suffix, bad syntax, or not a mapping
    """
    config = read_mapping_file(config_path)
    logger.debug(f"Loaded config {config_path}: sections {sorted(config)}")
    return config


def _explicit_args(cli_args: Optional[List[str]]) -> set:
    """Destination names of options the user typed on the command line."""
    short_to_long = {
        'm': 'matrix',
        'o': 'output',
        'p': 'pheno',
        'f': 'features',
    }
    explicit = set()
    for arg in cli_args or []:
        if arg.startswith('--'):
            explicit.add(arg[2:].split('=', 1)[0].replace('-', '_'))
        elif arg.startswith('-') and len(arg) == 2 and arg[1] in short_to_long:
            explicit.add(short_to_long[arg[1]])
    return explicit


def _merge_value(cli_value: Any, config_value: Any, was_explicitly_set: bool) -> Any:
    """Pick the value for one option: typed on the CLI, else from config, else the default."""
    if was_explicitly_set:
        return cli_value
    if config_value is not None:
        return config_value
    return cli_value


def merge_config_with_args(
    config: Dict[str, Any], args: Namespace, cli_args: Optional[List[str]] = None
) -> Namespace:
    """
    Fold config values into parsed arguments.

    An option typed on the command line keeps its value; otherwise a config
    value replaces the argparse default.

    Only attributes that exist on ``args`` are merged, so one config file can
    serve both the build and subset commands.

    Args:
        config: Mapping from load_config()
        args: Parsed arguments of one subcommand
        cli_args: Tokens typed after the subcommand name; None treats every
            option as defaulted

    Returns:
        New Namespace (args is not modified)
    """
    explicit = _explicit_args(cli_args)
    merged = Namespace(**vars(args))

    def _set(arg_name: str, value: Any, as_path: bool = False) -> None:
        if not hasattr(merged, arg_name):
            return
        if _EXCLUSIVE.get(arg_name) in explicit:
            logger.debug(f"Config {arg_name} ignored: {_EXCLUSIVE[arg_name]} given on CLI")
            return
        if as_path and value is not None:
            value = Path(value)
        setattr(
            merged,
            arg_name,
            _merge_value(getattr(merged, arg_name), value, arg_name in explicit),
        )

    # === Top-level paths ===
    for key in ('matrix', 'output', 'metadata'):
        if key in config:
            _set(key, config[key], as_path=True)

    # === Table sections ===
    for key in ('pheno', 'features'):
        if key not in config:
            continue
        section = config[key]
        if isinstance(section, (str, Path)):
            section = {'file': section}
        _set(key, section.get('file'), as_path=True)
        if 'labels' in section:
            _set(f'{key}_labels', section['labels'])
        if section.get('strict_labels'):
            _set('strict_labels', True)

    # === Subset section ===
    subset = config.get('subset') or {}
    for key, arg_name in (('features', 'feature_ids'), ('samples', 'sample_ids')):
        if key in subset:
            value = subset[key]
            if isinstance(value, str):
                value = [value]
            _set(arg_name, [str(v) for v in value])
    if 'feature_range' in subset:
        _set('feature_range', str(subset['feature_range']))
    if 'query' in subset:
        _set('query', subset['query'])

    return merged


def validate_config(config: Dict[str, Any]) -> None:
    """
    Check section names and shapes before merging.

    Raises:
        ValueError: Unknown section, malformed table section, or conflicting
            subset selectors
    """
    known = {'matrix', 'output', 'metadata', 'pheno', 'features', 'subset'}
    unknown = sorted(set(config) - known)
    if unknown:
        raise ValueError(
            f"Unknown config sections: {', '.join(unknown)}. "
            f"Choose from: {', '.join(sorted(known))}"
        )

    for key in ('pheno', 'features'):
        section = config.get(key)
        if section is None or isinstance(section, str):
            continue
        if not isinstance(section, dict):
            raise ValueError(f"'{key}' must be a path or a mapping, got: {section!r}")
        if 'file' not in section:
            raise ValueError(f"'{key}' section needs a 'file' entry")
        labels = section.get('labels')
        if labels is not None and not isinstance(labels, (dict, list, str)):
            raise ValueError(
                f"'{key}.labels' must be a mapping, a list or a label file path"
            )

    subset = config.get('subset')
    if subset is not None:
        if not isinstance(subset, dict):
            raise ValueError("'subset' must be a mapping")
        if 'feature_range' in subset and 'features' in subset:
            raise ValueError("Use either subset.features or subset.feature_range, not both")
        if 'query' in subset and 'samples' in subset:
            raise ValueError("Use either subset.samples or subset.query, not both")
