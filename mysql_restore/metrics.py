import logging

from prometheus_client import CollectorRegistry, Counter, Histogram, push_to_gateway


logger = logging.getLogger(__name__)

# Metrics of a single restore run, pushed once the run is over
REGISTRY = CollectorRegistry()

# Counters
RESTORE_RUNS = Counter(
    'mysql_restore_runs',
    'Number of restore runs by mode and outcome',
    ["mode", "state"],
    registry=REGISTRY,
)
RESTORE_STEP_FAILURES = Counter(
    'mysql_restore_step_failures',
    'Number of failed side-effecting restore steps',
    ["step"],
    registry=REGISTRY,
)

# Histograms
RESTORE_STEP_DURATION = Histogram(
    'mysql_restore_step_duration_seconds',
    'Time taken by each side-effecting restore step',
    ["step"],
    registry=REGISTRY,
)


def push_metrics(gateway: str | None, job: str, instance: str) -> None:
    if not gateway:
        return
    try:
        push_to_gateway(gateway, job=job, registry=REGISTRY, grouping_key={"instance": instance})
    except Exception as e:
        logger.warning("Could not push metrics to %s: %s", gateway, e)
