"""
Budget session module.

A session owns one ledger and the components that read or change it for a
single scenario run. Hosts create one session per user and year; sessions
are not shared.
"""

import copy
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from allocation import AllocationPlan, AllocationPlanner
from config_manager import DEFAULT_CONFIG, build_classifier, get_accounting_unit, get_protected_categories
from data_ingestion import CSVReader, check_file_year
from exclusion import CategoryExclusionManager, ExclusionOutcome
from ledger import Ledger, LedgerSnapshot
from scenario import ScenarioSimulator
from validation import BatchReport, RecordValidator

logger = logging.getLogger(__name__)


class BudgetSession:
    """
    Wires the classifier, validator, ledger, planner, exclusion manager and
    simulator together from one configuration.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize an empty session.

        Args:
            config: Configuration dictionary (see config_manager.DEFAULT_CONFIG)
        """
        self.config = config if config is not None else copy.deepcopy(DEFAULT_CONFIG)
        classifier = build_classifier(self.config)
        protected = get_protected_categories(self.config)
        unit = get_accounting_unit(self.config)

        self.ledger = Ledger(classifier)
        self.validator = RecordValidator(classifier)
        self.exclusions = CategoryExclusionManager(self.ledger)
        self.planner = AllocationPlanner(self.ledger, protected, unit)
        self.simulator = ScenarioSimulator(self.ledger, protected, unit)
        self.last_report: Optional[BatchReport] = None
        self.malformed_rows: List[List[str]] = []
        self.malformed_row_numbers: List[int] = []

    @classmethod
    def from_rows(cls, rows: Iterable[Sequence], config: Optional[Dict[str, Any]] = None) -> "BudgetSession":
        """Create a session and load the given raw rows."""
        session = cls(config)
        session.load_rows(rows)
        return session

    def load_rows(self, rows: Iterable[Sequence]) -> BatchReport:
        """
        Validate and load a batch of raw rows, replacing all ledger state.

        Returns:
            BatchReport for the batch
        """
        self.last_report = self.ledger.load_rows(rows, self.validator)
        if not self.last_report.has_valid_rows:
            logger.warning("Batch contains no valid rows")
        return self.last_report

    def load_csv(self, file_path: Union[str, Path], reader: Optional[CSVReader] = None) -> BatchReport:
        """
        Read a ``Date,Category,Amount`` CSV file and load it.

        Raises:
            IngestionError: If the file cannot be read
        """
        reader = reader or CSVReader()
        result = reader.read_rows(file_path)
        self.malformed_rows = result.malformed
        self.malformed_row_numbers = result.malformed_row_numbers
        report = self.load_rows(result.rows)
        check_file_year(result.file_year, report.year)
        return report

    def snapshot(self) -> LedgerSnapshot:
        return self.ledger.snapshot()

    def exclude(self, category: str) -> ExclusionOutcome:
        return self.exclusions.exclude(category)

    def include(self, category: str) -> ExclusionOutcome:
        return self.exclusions.include(category)

    def plan(self) -> AllocationPlan:
        """Build a surplus plan when the ledger has a surplus, otherwise a deficit plan."""
        if self.ledger.net_balance() > 0:
            return self.planner.surplus_plan()
        return self.planner.deficit_plan()
