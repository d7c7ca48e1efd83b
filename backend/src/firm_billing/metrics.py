"""Business metrics for Prometheus monitoring."""
from prometheus_client import Counter

# Usage metrics
usage_increments_total = Counter(
    "usage_increments_total",
    "Total usage counter increments recorded",
    labelnames=["category"],
)

usage_alerts_total = Counter(
    "usage_alerts_total",
    "Usage categories classified above normal",
    labelnames=["category", "severity"],  # severity: warning, critical
)

# Growth charge metrics
charges_proposed_total = Counter(
    "charges_proposed_total",
    "Total growth charges proposed",
    labelnames=["charge_type", "decision"],  # decision: auto_approved, pending
)

charge_transitions_total = Counter(
    "charge_transitions_total",
    "Total growth charge lifecycle transitions",
    labelnames=["status"],  # approved, billed, paid, cancelled
)

concurrent_threshold_violations_total = Counter(
    "concurrent_threshold_violations_total",
    "Charge proposals rejected by the optimistic concurrency check",
)

# Invoice metrics
invoices_generated_total = Counter(
    "invoices_generated_total",
    "Total invoices generated at period close",
    labelnames=["currency"],
)

split_allocations_total = Counter(
    "split_allocations_total",
    "Total line items allocated between firm and staff",
    labelnames=["category"],
)
