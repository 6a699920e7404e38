"""
errors.py
Failure classes for the report run. Every one of them is terminal.
"""


class ReportError(Exception):
    """Base class for anything that aborts a report render."""


class FetchError(ReportError):
    """Source CSV could not be retrieved or parsed (unreachable, non-2xx, timeout, bad CSV)."""


class SchemaMismatchError(ReportError):
    """One or more expected source columns are absent."""

    def __init__(self, missing, stage: str = ""):
        self.missing = sorted(missing)
        self.stage = stage
        where = f" ({stage})" if stage else ""
        super().__init__(f"Dataset is missing expected columns{where}: {self.missing}")


class FieldParseError(ReportError):
    """A date/time field holds values that do not match the expected format."""

    def __init__(self, column: str, expected_format: str, examples: list, count: int):
        self.column = column
        self.expected_format = expected_format
        self.examples = examples
        self.count = count
        super().__init__(
            f"{count:,} value(s) in '{column}' do not match format "
            f"'{expected_format}', e.g. {examples}"
        )
