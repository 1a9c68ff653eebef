"""
Auditor error taxonomy.

Only structural corpus failures are exceptions that abort a run. Rule
violations are never raised: they are reported as findings.
"""


class CorpusError(RuntimeError):
    """
    Fatal corpus-structural failure.

    Raised before any finding is produced when the corpus or the canonical
    mapping cannot be established unambiguously:
    - unreadable or missing root directories
    - two documents resolving to the same id
    - malformed canonical-mapping configuration
    """


class ResolutionAmbiguity(LookupError):
    """
    No unambiguous canonical target could be derived for a reference.

    Non-fatal. Callers convert this into a finding whose expected value
    is null.
    """
