"""Prometheus metrics for proposal assembly and submission"""

from prometheus_client import Counter, Histogram

proposal_assemblies = Counter(
    'governance_proposal_assemblies_total',
    'Proposal assemblies by outcome',
    ['outcome'],
)
proposal_instructions = Histogram(
    'governance_proposal_instructions',
    'Instructions per assembled proposal',
    buckets=(3, 4, 5, 6, 8, 10, 15, 20),
)
proposal_submissions = Counter(
    'governance_proposal_submissions_total',
    'Proposal transaction submissions by outcome',
    ['outcome'],
)
confirmation_duration = Histogram(
    'governance_confirmation_duration_seconds',
    'Time from send until the transaction reached the target commitment',
)
