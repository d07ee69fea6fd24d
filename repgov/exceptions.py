"""
RepGov Exceptions

Process-level exception classes. Governance rule violations live in
`repgov.governance.errors`.
"""


class RepGovException(Exception):
    """Base exception for RepGov."""
    pass


class ConfigurationError(RepGovException):
    """Configuration file or environment value is invalid."""
    pass
