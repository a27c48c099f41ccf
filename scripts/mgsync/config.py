#!/usr/bin/env python3
"""
Project Configuration Loader

Parses the YAML project configuration that lists the reference, the
chromosomes and the genomes to synchronize, and exposes it to the batch
scripts and to shell wrappers.

Usage:
    # Get single value
    python -m mgsync.config config.yaml --get project.reference

    # Export all as shell variables
    python -m mgsync.config config.yaml --export

    # Validate configuration
    python -m mgsync.config config.yaml --validate

    # As Python module
    from mgsync.config import load_config, get_nested
    config = load_config("config.yaml")
    workers = get_nested(config, "resources.workers", 4)

Example configuration:
    project:
      reference: hg19
      output_dir: /data/sync
    resources:
      workers: 4
    chromosomes:
      chr1: 249250621
      chr2: 243199373
    genomes:
      - name: NA12878
        sample: NA12878
        ploidy: 2
        vcf: /data/NA12878.vcf.gz
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict

import yaml


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Dictionary containing configuration values

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML parsing fails
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(path, 'r') as f:
        config = yaml.safe_load(f)

    if config is None:
        return {}

    return config


def get_nested(config: Dict[str, Any], key_path: str, default: Any = None) -> Any:
    """
    Get a nested value from config using dot notation.

    Examples:
        >>> config = {"project": {"reference": "hg19"}}
        >>> get_nested(config, "project.reference")
        'hg19'
        >>> get_nested(config, "project.missing", "default")
        'default'
    """
    value = config
    for key in key_path.split('.'):
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default
    return value


def flatten_config(config: Dict[str, Any], prefix: str = "") -> Dict[str, str]:
    """
    Flatten nested config into flat dictionary with dot-notation keys.

    Lists (e.g. the genome entries) are exported as JSON strings.

    Examples:
        >>> flatten_config({"project": {"reference": "hg19"}})
        {'project.reference': 'hg19'}
    """
    flat = {}

    for key, value in config.items():
        full_key = f"{prefix}.{key}" if prefix else str(key)

        if isinstance(value, dict):
            flat.update(flatten_config(value, full_key))
        elif value is None:
            flat[full_key] = ""
        elif isinstance(value, bool):
            flat[full_key] = "true" if value else "false"
        elif isinstance(value, list):
            flat[full_key] = json.dumps(value)
        else:
            flat[full_key] = str(value)

    return flat


def to_shell_var_name(key_path: str) -> str:
    """
    Convert dot-notation key to shell variable name.

    Examples:
        >>> to_shell_var_name("project.output_dir")
        'MGSYNC_PROJECT_OUTPUT_DIR'
    """
    return "MGSYNC_" + key_path.upper().replace(".", "_").replace("-", "_")


def export_as_shell(config: Dict[str, Any]) -> str:
    """Export config as shell variable assignments."""
    lines = []
    for key, value in sorted(flatten_config(config).items()):
        escaped_value = str(value).replace("'", "'\"'\"'")
        lines.append(f"export {to_shell_var_name(key)}='{escaped_value}'")
    return "\n".join(lines)


def validate_config(config: Dict[str, Any], check_files: bool = False) -> tuple[bool, list[str]]:
    """
    Validate configuration for required fields.

    Args:
        config: Configuration dictionary
        check_files: Also check that configured VCF files exist

    Returns:
        Tuple of (is_valid, list of error messages)
    """
    errors = []

    if not get_nested(config, "project.reference"):
        errors.append("Missing reference genome name (project.reference)")

    chromosomes = config.get("chromosomes")
    if not chromosomes:
        errors.append("No chromosomes configured (chromosomes)")
    elif isinstance(chromosomes, dict):
        for name, length in chromosomes.items():
            try:
                if int(length or 0) < 0:
                    errors.append(f"chromosomes.{name} length must be >= 0, got {length}")
            except (ValueError, TypeError):
                errors.append(f"chromosomes.{name} length must be an integer, got {length}")

    workers = get_nested(config, "resources.workers", 1)
    try:
        if int(workers) < 1:
            errors.append(f"resources.workers must be >= 1, got {workers}")
    except (ValueError, TypeError):
        errors.append(f"resources.workers must be an integer, got {workers}")

    genomes = config.get("genomes") or []
    if not genomes:
        errors.append("No genomes configured (genomes)")
    seen = set()
    columns = {}
    for i, entry in enumerate(genomes):
        name = entry if isinstance(entry, str) else (entry or {}).get("name")
        if not name:
            errors.append(f"genomes[{i}] has no name")
            continue
        if name in seen:
            errors.append(f"Duplicate genome name: {name}")
        seen.add(name)
        if name == get_nested(config, "project.reference"):
            errors.append(f"Genome {name} has the reference genome name")
        if isinstance(entry, dict):
            try:
                if int(entry.get("ploidy", 2)) < 1:
                    errors.append(f"Genome {name}: ploidy must be >= 1")
            except (ValueError, TypeError):
                errors.append(f"Genome {name}: ploidy must be an integer")
            vcf = entry.get("vcf")
            if vcf:
                # One sample column of one file feeds exactly one genome
                column = (str(Path(vcf).resolve()), entry.get("sample") or name)
                if column in columns:
                    errors.append(
                        f"Genomes {columns[column]} and {name} read the same "
                        f"sample '{column[1]}' from {vcf}"
                    )
                columns.setdefault(column, name)
            if check_files and vcf and not Path(vcf).exists():
                errors.append(f"VCF file not found: {vcf} (genome {name})")

    return len(errors) == 0, errors


def print_config_summary(config: Dict[str, Any]) -> None:
    """Print a human-readable config summary."""
    print("=" * 60)
    print("Meta-genome Synchronization Configuration Summary")
    print("=" * 60)

    print("\nProject:")
    print(f"  Reference: {get_nested(config, 'project.reference', 'not set')}")
    print(f"  Output Directory: {get_nested(config, 'project.output_dir', 'not set')}")
    print(f"  Workers: {get_nested(config, 'resources.workers', 'not set')}")

    print(f"\nChromosomes: {len(config.get('chromosomes') or [])}")

    print("\nGenomes:")
    for entry in config.get("genomes") or []:
        if isinstance(entry, str):
            entry = {"name": entry}
        print(f"  {entry.get('name')}: ploidy {entry.get('ploidy', 2)}, "
              f"vcf {entry.get('vcf', 'not set')}")

    print("\n" + "=" * 60)


def main():
    parser = argparse.ArgumentParser(
        description="Meta-genome Synchronization Configuration Parser",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument("config", help="Path to YAML configuration file")
    parser.add_argument("--get", metavar="KEY",
                        help="Get single value using dot notation (e.g., project.reference)")
    parser.add_argument("--export", action="store_true",
                        help="Export all config as shell variable assignments")
    parser.add_argument("--validate", action="store_true",
                        help="Validate configuration and report errors")
    parser.add_argument("--check-files", action="store_true",
                        help="With --validate, also check that VCF files exist")
    parser.add_argument("--json", action="store_true",
                        help="Output as JSON (for --get with complex values)")

    args = parser.parse_args()

    try:
        config = load_config(args.config)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except yaml.YAMLError as e:
        print(f"Error parsing YAML: {e}", file=sys.stderr)
        sys.exit(1)

    if args.get:
        value = get_nested(config, args.get)
        if value is None:
            print(f"Key not found: {args.get}", file=sys.stderr)
            sys.exit(1)
        print(json.dumps(value) if args.json else value)

    elif args.export:
        print(export_as_shell(config))

    elif args.validate:
        is_valid, errors = validate_config(config, check_files=args.check_files)
        if is_valid:
            print("Configuration is valid!")
            sys.exit(0)
        print("Configuration errors:", file=sys.stderr)
        for error in errors:
            print(f"  - {error}", file=sys.stderr)
        sys.exit(1)

    else:
        print_config_summary(config)


if __name__ == "__main__":
    main()
