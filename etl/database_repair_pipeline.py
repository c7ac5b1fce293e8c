"""
================================================================================
BROKEN PRODUCT DATABASE REPAIR PIPELINE
================================================================================

Goal: Recover a product database whose JSON export was corrupted (garbled
      characters in names, prices stored as text, missing quantities) and
      validate the recovery with two console reports.

Pipeline Flow:
    LOAD → REPAIR (names → prices → quantities) → EXPORT
                                                     ↓
                             CATEGORIES → PRODUCT LISTING + STOCK VALUE

Run with: python -m etl.database_repair_pipeline [--config config/repair_config.yml]
================================================================================
"""

import argparse
import copy
import logging
import os
import sys
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

import yaml

from etl.database_repair import (
    NAME_CORRECTIONS,
    ConfigError,
    DatabaseRepairError,
    export_database,
    fix_names,
    fix_prices,
    fix_quantities,
    import_database,
    is_number,
    name_needs_repair,
)
from etl.inventory_reports import (
    extract_categories,
    format_product_listing,
    format_stock_value,
    list_products,
    stock_value,
)

DEFAULT_CONFIG: Dict[str, Any] = {
    'pipeline': {
        'name': 'Broken Database Repair',
        'version': '1.0',
    },
    'data_sources': {
        'broken_database': {
            'file_path': './database/broken-database.json',
            'encoding': 'utf-8',
        },
    },
    'output': {
        'repaired_database': {
            'file_path': './database/saida.json',
            'indent': 2,
        },
    },
    'name_corrections': [list(pair) for pair in NAME_CORRECTIONS],
    'reporting': {
        'currency': 'R$',
        'highlight_headers': True,
    },
    'logging': {
        'level': 'INFO',
        'file': None,
        'format': '%(asctime)s | %(levelname)-8s | %(message)s',
        'console': True,
    },
}


# =============================================================================
# CONFIGURATION
# =============================================================================

def _merge(base: Dict, overrides: Dict) -> Dict:
    merged = copy.deepcopy(base)
    for key, value in (overrides or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path: Optional[str] = None) -> Dict:
    """Load the YAML configuration on top of the built-in defaults."""
    if config_path is None:
        return copy.deepcopy(DEFAULT_CONFIG)

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            loaded = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to load configuration {config_path}: {e}") from e

    if not isinstance(loaded, dict):
        raise ConfigError(f"Configuration {config_path} must be a mapping")

    config = _merge(DEFAULT_CONFIG, loaded)
    for pair in config['name_corrections']:
        if not isinstance(pair, (list, tuple)) or len(pair) != 2 or not all(isinstance(s, str) for s in pair):
            raise ConfigError(f"Invalid name correction in {config_path}: {pair!r}")
    return config


# =============================================================================
# LOGGING SETUP
# =============================================================================

def setup_logging(config: Dict) -> logging.Logger:
    """Configure logging based on config settings."""
    log_config = config.get('logging', {})

    logger = logging.getLogger('DatabaseRepair')
    logger.setLevel(getattr(logging, str(log_config.get('level', 'INFO')).upper(), logging.INFO))
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(
        log_config.get('format', '%(asctime)s | %(levelname)-8s | %(message)s')
    )

    log_file = log_config.get('file')
    if log_file:
        if os.path.dirname(log_file):
            os.makedirs(os.path.dirname(log_file), exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if log_config.get('console', True):
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger


# =============================================================================
# STATISTICS
# =============================================================================

@dataclass
class RepairStats:
    """Track pipeline execution statistics."""
    total_records: int = 0
    names_repaired: int = 0
    prices_coerced: int = 0
    quantities_defaulted: int = 0
    categories: List[str] = field(default_factory=list)
    execution_time: float = 0.0


# =============================================================================
# MAIN PIPELINE CLASS
# =============================================================================

class DatabaseRepairPipeline:
    """
    Repair a broken product database and validate the result.

    Pipeline Steps:
    1. LOAD: read the broken JSON database
    2. REPAIR: fix names, prices and quantities, in that order
    3. EXPORT: write the repaired database
    4. VALIDATE: print the product listing and the stock value per category
    """

    def __init__(self, config_path: Optional[str] = None, config: Optional[Dict] = None,
                 input_path: Optional[str] = None, output_path: Optional[str] = None):
        self.config = _merge(DEFAULT_CONFIG, config) if config is not None else load_config(config_path)
        if input_path:
            self.config['data_sources']['broken_database']['file_path'] = input_path
        if output_path:
            self.config['output']['repaired_database']['file_path'] = output_path

        self.logger = setup_logging(self.config)
        self.stats = RepairStats()
        self.corrections = [tuple(pair) for pair in self.config['name_corrections']]

        self.database: Optional[List[Dict[str, Any]]] = None
        self.categories: List[str] = []
        self.products: List[str] = []
        self.stock_totals: Dict[str, float] = {}

    @property
    def input_path(self) -> str:
        return self.config['data_sources']['broken_database']['file_path']

    @property
    def output_path(self) -> str:
        return self.config['output']['repaired_database']['file_path']

    # =========================================================================
    # STEP 1: LOAD
    # =========================================================================

    def load(self) -> List[Dict[str, Any]]:
        self.logger.info("=" * 70)
        self.logger.info("STEP 1: LOAD - Broken Database")
        self.logger.info("=" * 70)

        source = self.config['data_sources']['broken_database']
        self.database = import_database(self.input_path, source.get('encoding', 'utf-8'))
        self.stats.total_records = len(self.database)
        self.logger.info(f"Loaded {self.stats.total_records} records from {self.input_path}")
        return self.database

    # =========================================================================
    # STEP 2: REPAIR
    # =========================================================================

    def repair(self) -> List[Dict[str, Any]]:
        """Apply the name, price and quantity passes to the loaded records."""
        self.logger.info("=" * 70)
        self.logger.info("STEP 2: REPAIR - Names, Prices, Quantities")
        self.logger.info("=" * 70)

        database = self.database
        self.stats.names_repaired = sum(1 for r in database if name_needs_repair(r, self.corrections))
        self.stats.prices_coerced = sum(1 for r in database if not is_number(r.get('price')))
        self.stats.quantities_defaulted = sum(1 for r in database if 'quantity' not in r)

        database = fix_names(database, self.corrections)
        self.logger.info(f"Names repaired: {self.stats.names_repaired}")

        database = fix_prices(database)
        self.logger.info(f"Prices converted to numbers: {self.stats.prices_coerced}")

        database = fix_quantities(database)
        self.logger.info(f"Missing quantities set to 0: {self.stats.quantities_defaulted}")

        self.database = database
        return database

    # =========================================================================
    # STEP 3: EXPORT
    # =========================================================================

    def export(self) -> None:
        self.logger.info("=" * 70)
        self.logger.info("STEP 3: EXPORT - Repaired Database")
        self.logger.info("=" * 70)

        indent = self.config['output']['repaired_database'].get('indent', 2)
        export_database(self.output_path, self.database, indent=indent)
        self.logger.info(f"Repaired database saved to {self.output_path}")

    # =========================================================================
    # STEP 4: VALIDATION REPORTS
    # =========================================================================

    def validate(self) -> str:
        """Build both validation reports and return them as console text."""
        self.logger.info("=" * 70)
        self.logger.info("STEP 4: VALIDATE - Product Listing & Stock Value")
        self.logger.info("=" * 70)

        reporting = self.config['reporting']
        highlight = reporting.get('highlight_headers', True)

        self.categories = extract_categories(self.database)
        self.stats.categories = list(self.categories)
        self.logger.info(f"Categories found: {len(self.categories)}")

        self.products = list_products(self.database, self.categories)
        self.stock_totals = stock_value(self.database, self.categories)

        listing = format_product_listing(self.products, highlight=highlight)
        totals = format_stock_value(self.stock_totals, currency=reporting.get('currency', 'R$'),
                                    highlight=highlight)
        return f"{listing}\n\n{totals}"

    # =========================================================================
    # PIPELINE EXECUTION
    # =========================================================================

    def run(self, print_reports: bool = True) -> Dict[str, Any]:
        """
        Execute the complete pipeline.

        Returns:
            Dictionary with the execution status and statistics. A failing step
            stops the run; nothing after it is executed.
        """
        self.logger.info("*" * 70)
        self.logger.info(f"STARTING: {self.config['pipeline']['name'].upper()}")
        self.logger.info("*" * 70)

        start_time = datetime.now()

        try:
            self.load()
            self.repair()
            self.export()
            report = self.validate()
        except DatabaseRepairError as e:
            self.logger.error(f"Pipeline failed: {e.name}: {e}")
            return {
                'status': 'FAILED',
                'error': str(e),
                'error_name': e.name,
            }

        if print_reports:
            print(report)

        self.stats.execution_time = (datetime.now() - start_time).total_seconds()
        self.logger.info(f"Pipeline completed in {self.stats.execution_time:.2f} seconds")

        return {
            'status': 'SUCCESS',
            'stats': self.stats.__dict__,
            'output_path': self.output_path,
            'products': self.products,
            'stock_value': self.stock_totals,
            'report': report,
        }


# =============================================================================
# MAIN EXECUTION
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Repair a broken product database and validate it.")
    parser.add_argument("--config", help="Path to the YAML configuration file")
    parser.add_argument("--input", help="Broken database to repair")
    parser.add_argument("--output", help="Where to write the repaired database")
    parser.add_argument("--no-color", action="store_true", help="Do not highlight report headers")
    parser.add_argument("--log-level", help="Logging level (DEBUG, INFO, WARNING, ...)")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"{e.name}: {e}")
        return 1

    if args.no_color:
        config['reporting']['highlight_headers'] = False
    if args.log_level:
        config['logging']['level'] = args.log_level

    pipeline = DatabaseRepairPipeline(config=config, input_path=args.input, output_path=args.output)
    result = pipeline.run()

    if result['status'] != 'SUCCESS':
        print(f"{result['error_name']}: {result['error']}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
