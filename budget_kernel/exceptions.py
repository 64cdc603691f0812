"""
Typed Exception Hierarchy for the Budget Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Report callers need to tell "you asked for the wrong thing" apart from "a
collaborator could not answer". Matching on message strings is fragile, so
every error here has:
  1. A TYPED exception class (catch by type, not message)
  2. A CODE class attribute (machine-readable, API-safe)
  3. Structured DATA attributes (not just a message string)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from BudgetKernelError:

    BudgetKernelError (base)
    |
    +-- ReportInputError
    |   +-- MissingInputError
    |   +-- ProjectNotFoundError
    |
    +-- SourceError
    |   +-- SourceUnavailableError
    |   +-- DocumentFetchError
    |
    +-- ConfigurationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Input           | MISSING_INPUT               | Corporation or project id is blank
                | PROJECT_NOT_FOUND           | Project lookup returned nothing
----------------|-----------------------------|-----------------------------------------
Source          | SOURCE_UNAVAILABLE          | A whole collection could not be read
                | DOCUMENT_FETCH_FAILED       | One document's sub-collection failed
----------------|-----------------------------|-----------------------------------------
Config          | INVALID_CONFIGURATION       | Report configuration failed validation

===============================================================================
PROPAGATION
===============================================================================

Only ReportInputError and SourceUnavailableError reach the caller of
BudgetReportService.generate_report(). DocumentFetchError is raised by
source implementations for a single document and is absorbed by the loader:
the document contributes zero and is listed in the report's skipped-source
manifest.

    try:
        report = service.generate_report(corporation_id, project_id)
    except MissingInputError as e:
        return {"error": e.code, "missing": e.field_names}
"""


class BudgetKernelError(Exception):
    """
    Base exception for all budget kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "BUDGET_KERNEL_ERROR"


# Report input exceptions


class ReportInputError(BudgetKernelError):
    """Base exception for invalid report requests."""

    code: str = "REPORT_INPUT_ERROR"


class MissingInputError(ReportInputError):
    """Required identifiers were not supplied; no report is produced."""

    code: str = "MISSING_INPUT"

    def __init__(self, field_names: tuple[str, ...]):
        self.field_names = field_names
        super().__init__(
            "Corporation and project are required "
            f"(missing: {', '.join(field_names)})"
        )


class ProjectNotFoundError(ReportInputError):
    """Project with given ID was not found."""

    code: str = "PROJECT_NOT_FOUND"

    def __init__(self, project_id: str):
        self.project_id = project_id
        super().__init__(f"Project not found: {project_id}")


# Source exceptions


class SourceError(BudgetKernelError):
    """Base exception for source collaborator failures."""

    code: str = "SOURCE_ERROR"


class SourceUnavailableError(SourceError):
    """A whole source collection could not be read."""

    code: str = "SOURCE_UNAVAILABLE"

    def __init__(self, collection: str, reason: str):
        self.collection = collection
        self.reason = reason
        super().__init__(f"Source collection {collection} unavailable: {reason}")


class DocumentFetchError(SourceError):
    """
    A per-document sub-fetch failed.

    Absorbed by the loader; the document contributes zero amounts.
    """

    code: str = "DOCUMENT_FETCH_FAILED"

    def __init__(self, document_kind: str, document_id: str, reason: str):
        self.document_kind = document_kind
        self.document_id = document_id
        self.reason = reason
        super().__init__(
            f"Failed to fetch {document_kind} {document_id}: {reason}"
        )


# Configuration exceptions


class ConfigurationError(BudgetKernelError):
    """Report configuration is invalid."""

    code: str = "INVALID_CONFIGURATION"

    def __init__(self, field_name: str, message: str):
        self.field_name = field_name
        super().__init__(f"Invalid configuration for {field_name}: {message}")
