"""reltool - release orchestration for desktop application repositories."""

__version__ = "0.1.0"
