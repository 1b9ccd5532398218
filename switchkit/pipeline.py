"""Entry point used when the helpers run inside a host flow element."""
from __future__ import annotations

import logging
from pathlib import Path

from .config import SwitchConfig
from .datasets import create_dataset, get_property
from .errors import ValidationError
from .host import FlowElement, HostLogHandler, Job
from .reconcile import match_files_to_csv_data, rules_from_json
from .report import ReportBuilder

LOGGER = logging.getLogger(__name__)

REPORT_DATASET = "FileMatchReport"


def _read_rules(flow_element: FlowElement, property_name: str) -> list:
    raw = get_property(flow_element, property_name)
    if not raw:
        raise ValidationError(f'Flow element property "{property_name}" is not set')
    return rules_from_json(raw, f'Property "{property_name}"')


def process_job(
    job: Job,
    flow_element: FlowElement,
    config: SwitchConfig,
    csv_path: Path | str,
    *,
    rules_property: str = "MatchRules",
) -> ReportBuilder:
    """Reconcile the job's CSV file and route the job by the worst outcome.

    The CSV is updated in place, the report is attached as a JSON dataset and
    the rendered HTML travels on the log connection.
    """

    tmp_store = config.temp_metadata_file_location
    if tmp_store is None:
        raise ValidationError("TempMetadataFileLocation is not configured")

    handler = HostLogHandler(job)
    package_logger = logging.getLogger("switchkit")
    previous_level = package_logger.level
    if package_logger.getEffectiveLevel() > logging.INFO:
        package_logger.setLevel(logging.INFO)
    package_logger.addHandler(handler)
    try:
        rules = _read_rules(flow_element, rules_property)
        _, report = match_files_to_csv_data(csv_path, rules, overwrite=True)

        with create_dataset(job, REPORT_DATASET, report.as_json(), tmp_store):
            with report.route_to(job, tmp_store):
                LOGGER.info("Job routed with %s", report.counts())
    finally:
        package_logger.removeHandler(handler)
        package_logger.setLevel(previous_level)
    return report
