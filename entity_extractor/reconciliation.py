"""Identifier-based comparison of extracted records against ground truth"""
import logging
from typing import Sequence

from .models import EntityRecord, ReconciliationResult

logger = logging.getLogger(__name__)


def compare(extracted: Sequence[EntityRecord],
            ground_truth: Sequence[EntityRecord]) -> ReconciliationResult:
    """
    Partition records by PAN membership

    Identity is the identifier alone, compared exactly. Names and types are
    not compared, and duplicates on either side are classified one by one.

    Args:
        extracted: Records produced by the extractor
        ground_truth: Records parsed from the ground-truth CSV

    Returns:
        Matches and extractor-only records (both drawn from ``extracted``)
        and ground-truth-only records
    """
    extracted_ids = {record.identifier for record in extracted}
    ground_truth_ids = {record.identifier for record in ground_truth}

    result = ReconciliationResult(
        matches=[r for r in extracted if r.identifier in ground_truth_ids],
        extractor_only=[r for r in extracted if r.identifier not in ground_truth_ids],
        ground_truth_only=[r for r in ground_truth if r.identifier not in extracted_ids],
    )
    logger.info("Reconciliation: %s", result.summary())
    return result
